# repositories/product_repository.py
import logging
import random
from typing import List, Optional

from fastapi import Depends
from pydantic import ValidationError

from exceptions import InvalidResponse
from models.dtos import Product, RawProductRecord
from repositories.open_beauty_facts_client import OpenBeautyFactsClient, get_obf_client
from repositories.product_store import ProductStore, get_product_store
from services.product_normalization_service import ProductNormalizationService

logger = logging.getLogger(__name__)

# 정규화 단계에서 레코드 하나가 실패할 때 나오는 예외들
NORMALIZE_ERRORS = (ValidationError, ValueError, TypeError, OverflowError, OSError)

RANDOM_SEARCH_TERMS = [
    "cleanser", "moisturizer", "serum", "sunscreen", "shampoo",
    "conditioner", "lipstick", "foundation", "mascara", "toner",
]


class ProductRepository:
    """
    [흐름]
    1. Open Beauty Facts 호출 (client)
    2. 레코드 정규화 (normalizer)
    3. 로컬 캐시에 병합 후 저장 (store)
    캐시 저장 실패는 로그만 남기고 결과는 그대로 반환
    """

    def __init__(
        self,
        client: OpenBeautyFactsClient = Depends(get_obf_client),
        normalizer: ProductNormalizationService = Depends(ProductNormalizationService),
        store: ProductStore = Depends(get_product_store),
    ):
        self.client = client
        self.normalizer = normalizer
        self.store = store

    def search(self, query: str, page: int = 1, page_size: int = 20) -> List[Product]:
        records = self.client.search(query, page=page, page_size=page_size)

        products = [p for p in (self._safe_normalize(r) for r in records) if p is not None]
        logger.info("[Repo] Search '%s' found %d products", query, len(products))

        if products:
            self._cache_products(products)
        return products

    def fetch_by_code(self, barcode: str) -> Optional[Product]:
        record = self.client.fetch_by_code(barcode)
        if record is None:
            logger.info("[Repo] No product for barcode: %s", barcode)
            return None

        try:
            product = self.normalizer.normalize(record)
        except NORMALIZE_ERRORS as e:
            logger.warning("[Repo] Undecodable product payload for %s: %s", barcode, e)
            raise InvalidResponse("Undecodable product payload") from e

        logger.info("[Repo] Found product: %s", product.name)
        self._cache_product(product)
        return product

    def fetch_random(self, count: int) -> List[Product]:
        term = random.choice(RANDOM_SEARCH_TERMS)
        logger.info("[Repo] Fetching random products using term: '%s'", term)
        return self.search(term, page=1, page_size=count)

    # ------------------------------------------------------------------
    # 로컬 캐시 조회 (네트워크 호출 없음)
    # ------------------------------------------------------------------
    def cached_products(self, query: Optional[str] = None) -> List[Product]:
        """캐시 전체 또는 이름/브랜드/카테고리에 query가 포함된 제품"""
        products = self.store.load_all()
        if not query:
            return products

        needle = query.casefold()
        return [
            p for p in products
            if needle in p.name.casefold()
            or needle in p.brand.casefold()
            or needle in p.category.casefold()
        ]

    def find_cached(self, barcode: str) -> Optional[Product]:
        return next((p for p in self.store.load_all() if p.barcode == barcode), None)

    def clear_cache(self) -> None:
        self.store.delete_all()
        logger.info("[Repo] Local product cache cleared")

    # ------------------------------------------------------------------
    # 내부
    # ------------------------------------------------------------------
    def _safe_normalize(self, record: RawProductRecord) -> Optional[Product]:
        try:
            return self.normalizer.normalize(record)
        except NORMALIZE_ERRORS as e:
            logger.debug("[Repo] Dropping record %s: %s", record.code, e)
            return None

    def _cache_products(self, products: List[Product]) -> None:
        """검색 결과 병합: 이미 있는 바코드는 건드리지 않음 (먼저 들어온 것 유지)"""
        try:
            cached = self.store.load_all()
            known = {p.barcode for p in cached}
            for product in products:
                if product.barcode not in known:
                    cached.append(product)
                    known.add(product.barcode)
            self.store.save_all(cached)
            logger.info("[Repo] Cached %d products", len(products))
        except Exception as e:
            logger.warning("[Repo] Failed to cache products: %s", e, exc_info=True)

    def _cache_product(self, product: Product) -> None:
        """바코드 조회 결과는 같은 바코드를 덮어씀"""
        try:
            cached = self.store.load_all()
            for index, existing in enumerate(cached):
                if existing.barcode == product.barcode:
                    cached[index] = product
                    break
            else:
                cached.append(product)
            self.store.save_all(cached)
            logger.info("[Repo] Cached product: %s", product.name)
        except Exception as e:
            logger.warning("[Repo] Failed to cache product: %s", e, exc_info=True)
