# models/dtos.py
from enum import Enum
from datetime import datetime
from typing import List, Optional, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ===================================================================
# 0. 공통 타입 정의
# ===================================================================
Category = Literal[
    'Cleanser', 'Moisturizer', 'Treatment', 'Sunscreen', 'Toner',
    'Mask', 'Makeup', 'Fragrance', 'Hair Care', 'Personal Care',
]


class Concern(str, Enum):
    """태그에서 추출하는 피부 고민 분류"""
    acne = "acne"
    redness = "redness"
    pigmentation = "pigmentation"
    sensitivity = "sensitivity"
    aging = "aging"
    dryness = "dryness"
    oiliness = "oiliness"
    pores = "pores"


def coerce_optional_int(value: Any) -> Optional[int]:
    """
    숫자 또는 문자열로 오는 필드를 int로 변환
    1) int 그대로  2) 문자열이면 int 파싱  3) 둘 다 실패하면 None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


# ===================================================================
# 1. 외부 API 원본 데이터 (Open Beauty Facts)
# ===================================================================
class RawProductRecord(BaseModel):
    """
    [Client -> Normalizer]
    Open Beauty Facts 제품 레코드를 필드명 그대로 받아주는 DTO.
    거의 모든 필드가 비어 있을 수 있음.
    """
    code: Optional[str] = None
    product_name: Optional[str] = None
    brands: Optional[str] = None
    categories: Optional[str] = None
    categories_tags: Optional[List[str]] = None
    labels: Optional[str] = None
    labels_tags: Optional[List[str]] = None
    quantity: Optional[str] = None

    # 이미지 URL (최대 8종)
    image_url: Optional[str] = None
    image_small_url: Optional[str] = None
    image_front_url: Optional[str] = None
    image_front_small_url: Optional[str] = None
    image_ingredients_url: Optional[str] = None
    image_ingredients_small_url: Optional[str] = None
    image_nutrition_url: Optional[str] = None
    image_nutrition_small_url: Optional[str] = None

    # 원재료
    ingredients_text: Optional[str] = None
    ingredients_text_en: Optional[str] = None
    ingredients_analysis_tags: Optional[List[str]] = None
    allergens: Optional[str] = None
    allergens_tags: Optional[List[str]] = None
    traces: Optional[str] = None
    traces_tags: Optional[List[str]] = None
    additives: Optional[str] = None
    additives_tags: Optional[List[str]] = None

    # 등급 정보
    nutrition_grades: Optional[str] = None
    nova_group: Optional[int] = None
    ecoscore_grade: Optional[str] = None

    # 메타데이터 (Unix 초)
    last_modified_t: Optional[int] = None
    created_t: Optional[int] = None
    last_modified_by: Optional[str] = None
    created_by: Optional[str] = None

    model_config = ConfigDict(extra='ignore')

    @field_validator('nova_group', 'last_modified_t', 'created_t', mode='before')
    @classmethod
    def _coerce_int(cls, value):
        return coerce_optional_int(value)


class SearchEnvelope(BaseModel):
    """cgi/search.pl 응답. page 계열 필드는 문자열로 올 때가 있음"""
    page: Optional[int] = None
    page_size: Optional[int] = None
    count: Optional[int] = None
    # 레코드 단위로 따로 디코딩하기 위해 원본 그대로 보관
    products: Optional[List[Any]] = None

    model_config = ConfigDict(extra='ignore')

    @field_validator('page', 'page_size', 'count', mode='before')
    @classmethod
    def _coerce_int(cls, value):
        return coerce_optional_int(value)


class LookupEnvelope(BaseModel):
    """api/v2/product/{barcode}.json 응답"""
    status: int
    status_verbose: Optional[str] = None
    product: Optional[dict] = None

    model_config = ConfigDict(extra='ignore')


# ===================================================================
# 2. 정규화된 제품 (Normalizer -> Repository -> Frontend)
# ===================================================================
class Ingredient(BaseModel):
    inci_name: str
    common_name: str
    role: str
    note: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Product(BaseModel):
    """
    앱 내부에서 사용하는 표준 제품 모델.
    barcode가 식별자 (출처 코드가 없으면 빈 문자열일 수 있음)
    """
    barcode: str
    name: str
    brand: str
    category: Category
    ingredients: List[Ingredient] = Field(default_factory=list)
    concerns: List[Concern] = Field(default_factory=list)
    rating: Optional[float] = Field(default=None, ge=1.0, le=5.0)
    image_url: Optional[str] = None

    # Open Beauty Facts 부가 정보
    quantity: Optional[str] = None
    product_labels: Optional[List[str]] = None
    product_categories: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    traces: Optional[List[str]] = None
    additives: Optional[List[str]] = None
    nutrition_grade: Optional[str] = None
    ingredients_text: Optional[str] = None
    last_modified: Optional[datetime] = None
    created_date: Optional[datetime] = None
    is_from_open_beauty_facts: bool = False

    model_config = ConfigDict(frozen=True)


# ===================================================================
# 3. 바코드 스캔 결과 (Barcode Service)
# ===================================================================
class BarcodeScanResult(BaseModel):
    """이미지 업로드 시 바코드 인식 결과"""
    barcode: str
    type: str = "unknown"  # e.g., EAN13


class BarcodeLookupResult(BaseModel):
    """
    [API] /products/scan-barcode-image
    인식된 바코드와 조회된 제품 (없으면 null)
    """
    barcode: str
    type: str = "unknown"
    product: Optional[Product] = None
