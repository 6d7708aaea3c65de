# services/product_normalization_service.py
import re
import string
from datetime import datetime, timezone
from typing import List, Optional

from models.dtos import Concern, Ingredient, Product, RawProductRecord

DEFAULT_CATEGORY = "Personal Care"
DEFAULT_BRAND = "Unknown Brand"
INGREDIENT_ROLE = "ingredient"
INGREDIENT_NOTE = "Ingredient from Open Beauty Facts"

# 순서가 중요함: 태그마다 위에서부터 검사해서 처음 걸린 카테고리 사용
CATEGORY_KEYWORDS = [
    ("Cleanser", ("cleanser", "cleaning", "soap")),
    ("Moisturizer", ("moisturizer", "cream", "lotion")),
    ("Treatment", ("serum", "treatment", "essence")),
    ("Sunscreen", ("sunscreen", "spf", "sun")),
    ("Toner", ("toner", "astringent")),
    ("Mask", ("mask", "pack")),
    ("Makeup", ("makeup", "cosmetic")),
    ("Fragrance", ("perfume", "fragrance")),
    ("Hair Care", ("shampoo", "conditioner")),
]

# 카테고리와 달리 한 태그에서 여러 고민이 동시에 잡힐 수 있음
CONCERN_KEYWORDS = [
    (Concern.sensitivity, ("sensitive", "sensitivity", "hypoallergenic")),
    (Concern.oiliness, ("oily", "oiliness", "sebum")),
    (Concern.dryness, ("dry", "dryness", "moisturizing")),
    (Concern.acne, ("acne", "blemish", "anti-acne")),
    (Concern.aging, ("aging", "wrinkle", "anti-aging", "anti-wrinkle")),
    (Concern.pigmentation, ("pigmentation", "dark spot", "brightening", "whitening")),
    (Concern.redness, ("redness", "irritation")),
]

CATEGORY_BOILERPLATE = ("en:", "open-beauty-facts", "non-food-products")

GRADE_POINTS = {"A": 5.0, "B": 4.0, "C": 3.0, "D": 2.0, "E": 1.0}
NOVA_POINTS = {1: 5.0, 2: 4.0, 3: 3.0, 4: 2.0}
INGREDIENTS_PRESENT_POINTS = 3.0
IMAGE_PRESENT_POINTS = 2.0

INGREDIENT_SEPARATORS = re.compile(r"[,;]")


class ProductNormalizationService:
    """
    Open Beauty Facts 원본 레코드 -> 표준 Product 변환.
    I/O 없음, 같은 입력이면 항상 같은 결과.
    """

    def normalize(self, raw: RawProductRecord) -> Product:
        ingredients_text = raw.ingredients_text or raw.ingredients_text_en

        return Product(
            barcode=raw.code or "",
            name=self.resolve_name(raw),
            brand=raw.brands if raw.brands is not None else DEFAULT_BRAND,
            category=self.classify_category(raw.categories_tags or []),
            ingredients=self.parse_ingredients(ingredients_text),
            concerns=self.extract_concerns(raw.categories_tags, raw.labels_tags),
            rating=self.calculate_rating(raw),
            image_url=self.select_image_url(raw),
            quantity=raw.quantity,
            product_labels=raw.labels_tags,
            product_categories=raw.categories_tags,
            allergens=raw.allergens_tags,
            traces=raw.traces_tags,
            additives=raw.additives_tags,
            nutrition_grade=raw.nutrition_grades,
            ingredients_text=ingredients_text,
            last_modified=self.parse_timestamp(raw.last_modified_t),
            created_date=self.parse_timestamp(raw.created_t),
            is_from_open_beauty_facts=True,
        )

    # ------------------------------------------------------------------
    # 이름
    # ------------------------------------------------------------------
    def resolve_name(self, raw: RawProductRecord) -> str:
        if raw.product_name:
            return raw.product_name
        return self._synthesize_name(raw)

    def _synthesize_name(self, raw: RawProductRecord) -> str:
        """product_name이 비어 있을 때: 브랜드 + 카테고리 + 용량"""
        name_parts = []

        if raw.brands:
            name_parts.append(raw.brands)

        if raw.categories:
            cleaned = raw.categories
            for boilerplate in CATEGORY_BOILERPLATE:
                cleaned = cleaned.replace(boilerplate, "")
            cleaned = cleaned.strip()
            if cleaned and cleaned != raw.categories:
                name_parts.append(string.capwords(cleaned))

        if raw.quantity:
            name_parts.append(raw.quantity)

        if not name_parts:
            return f"Product {raw.code or 'Unknown'}"
        return " ".join(name_parts)

    # ------------------------------------------------------------------
    # 분류
    # ------------------------------------------------------------------
    def classify_category(self, categories_tags: List[str]) -> str:
        for tag in categories_tags:
            lowered = tag.lower()
            for category, keywords in CATEGORY_KEYWORDS:
                if any(keyword in lowered for keyword in keywords):
                    return category
        return DEFAULT_CATEGORY

    def extract_concerns(
        self,
        categories_tags: Optional[List[str]],
        labels_tags: Optional[List[str]],
    ) -> List[Concern]:
        concerns: List[Concern] = []
        for tag in (categories_tags or []) + (labels_tags or []):
            lowered = tag.lower()
            for concern, keywords in CONCERN_KEYWORDS:
                if concern not in concerns and any(keyword in lowered for keyword in keywords):
                    concerns.append(concern)
        return concerns

    # ------------------------------------------------------------------
    # 원재료
    # ------------------------------------------------------------------
    def parse_ingredients(self, ingredients_text: Optional[str]) -> List[Ingredient]:
        if not ingredients_text:
            return []

        pieces = [piece.strip() for piece in INGREDIENT_SEPARATORS.split(ingredients_text)]
        return [
            Ingredient(
                inci_name=piece,
                common_name=piece,
                role=INGREDIENT_ROLE,
                note=INGREDIENT_NOTE,
            )
            for piece in pieces
            if piece
        ]

    # ------------------------------------------------------------------
    # 평점
    # ------------------------------------------------------------------
    def calculate_rating(self, raw: RawProductRecord) -> Optional[float]:
        """
        등급 정보들을 1~5점으로 환산해 평균.
        반영된 항목이 하나도 없으면 None (0점이 아님)
        """
        score = 0.0
        factors = 0

        # 영양 등급 (A=5 ... E=1)
        points = GRADE_POINTS.get((raw.nutrition_grades or "").upper())
        if points is not None:
            score += points
            factors += 1

        # 에코스코어 (A=5 ... E=1)
        points = GRADE_POINTS.get((raw.ecoscore_grade or "").upper())
        if points is not None:
            score += points
            factors += 1

        # NOVA 그룹 (1=5 ... 4=2)
        points = NOVA_POINTS.get(raw.nova_group)
        if points is not None:
            score += points
            factors += 1

        if raw.ingredients_text:
            score += INGREDIENTS_PRESENT_POINTS
            factors += 1

        if raw.image_url is not None or raw.image_front_url is not None:
            score += IMAGE_PRESENT_POINTS
            factors += 1

        if factors == 0:
            return None
        return min(5.0, max(1.0, score / factors))

    def select_image_url(self, raw: RawProductRecord) -> Optional[str]:
        """main -> small -> front 순서로 처음 존재하는 URL"""
        return next(
            (url for url in (raw.image_url, raw.image_small_url, raw.image_front_url) if url is not None),
            None,
        )

    def parse_timestamp(self, timestamp: Optional[int]) -> Optional[datetime]:
        if timestamp is None:
            return None
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
