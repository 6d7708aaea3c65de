# routers/product_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from exceptions import InvalidResponse, NetworkFailure
from models.dtos import BarcodeLookupResult, Product
from repositories.product_repository import ProductRepository
from services.barcode_scanning_service import BarcodeScanningService

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)


def _upstream_error(e: Exception) -> HTTPException:
    """외부 제품 DB 오류 -> HTTP 오류"""
    if isinstance(e, NetworkFailure):
        return HTTPException(status_code=503, detail=f"Product source unavailable: {e}")
    return HTTPException(status_code=502, detail=f"Bad response from product source: {e}")


# -------------------------------------------------------------------
# Open Beauty Facts 조회
# -------------------------------------------------------------------
@router.get("/search", response_model=List[Product], summary="제품 검색")
def search_products(
    query: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, gt=0, le=100),
    repo: ProductRepository = Depends(ProductRepository)
):
    try:
        return repo.search(query, page=page, page_size=page_size)
    except (NetworkFailure, InvalidResponse) as e:
        raise _upstream_error(e)


@router.get("/random", response_model=List[Product], summary="랜덤 제품 목록")
def random_products(
    count: int = Query(20, gt=0, le=100),
    repo: ProductRepository = Depends(ProductRepository)
):
    try:
        return repo.fetch_random(count)
    except (NetworkFailure, InvalidResponse) as e:
        raise _upstream_error(e)


@router.get("/barcode/{barcode}", response_model=Product, summary="바코드로 제품 조회")
def get_product_by_barcode(
    barcode: str,
    repo: ProductRepository = Depends(ProductRepository)
):
    try:
        product = repo.fetch_by_code(barcode)
    except (NetworkFailure, InvalidResponse) as e:
        raise _upstream_error(e)

    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product


@router.post("/scan-barcode-image", response_model=BarcodeLookupResult, summary="바코드 이미지 스캔 후 조회")
async def scan_barcode_image(
    file: UploadFile = File(...),
    scanner_service: BarcodeScanningService = Depends(BarcodeScanningService),
    repo: ProductRepository = Depends(ProductRepository)
):
    """
    이미지에서 바코드를 읽고 그 바코드로 제품을 조회합니다.
    제품이 없으면 product는 null.
    """
    # 라우터의 역할: HTTP 요청 유효성 검사 (MIME 타입)
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are supported.")

    contents = await file.read()
    scan = scanner_service.scan_image_to_barcode(contents)

    try:
        product = repo.fetch_by_code(scan.barcode)
    except (NetworkFailure, InvalidResponse) as e:
        raise _upstream_error(e)

    return BarcodeLookupResult(barcode=scan.barcode, type=scan.type, product=product)


# -------------------------------------------------------------------
# 로컬 캐시
# -------------------------------------------------------------------
@router.get("/cached", response_model=List[Product], summary="캐시된 제품 목록")
def list_cached_products(
    query: Optional[str] = None,
    repo: ProductRepository = Depends(ProductRepository)
):
    return repo.cached_products(query)


@router.get("/cached/{barcode}", response_model=Product, summary="캐시에서 바코드로 조회")
def get_cached_product(
    barcode: str,
    repo: ProductRepository = Depends(ProductRepository)
):
    product = repo.find_cached(barcode)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not in local cache.")
    return product


@router.delete("/cached", status_code=status.HTTP_204_NO_CONTENT, summary="캐시 비우기")
def clear_cached_products(
    repo: ProductRepository = Depends(ProductRepository)
):
    repo.clear_cache()
    return None
