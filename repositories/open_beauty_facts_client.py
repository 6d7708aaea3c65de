# repositories/open_beauty_facts_client.py
import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

import config
from exceptions import InvalidResponse, NetworkFailure
from models.dtos import LookupEnvelope, RawProductRecord, SearchEnvelope

logger = logging.getLogger(__name__)

SEARCH_FIELDS = "code,product_name,brands,image_url,image_small_url,ingredients_text,quantity,categories_tags,labels_tags"


class OpenBeautyFactsClient:
    """
    Open Beauty Facts HTTP 클라이언트.
    - search: 검색어 -> 원본 레코드 목록
    - fetch_by_code: 바코드 -> 원본 레코드 1건 (없으면 None)
    정규화는 하지 않음 (ProductNormalizationService 담당)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        search_url: str = config.OBF_SEARCH_URL,
        product_url: str = config.OBF_PRODUCT_URL,
        timeout: float = config.OBF_TIMEOUT_SECONDS,
    ):
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": config.OBF_USER_AGENT})
        self.session = session
        self.search_url = search_url
        self.product_url = product_url.rstrip("/")
        self.timeout = timeout

    def search(self, query: str, page: int = 1, page_size: int = 20) -> List[RawProductRecord]:
        if not query or not query.strip():
            return []
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be > 0")

        params = {
            "search_terms": query,
            "search_simple": "1",
            "action": "process",
            "json": "1",
            "page": str(page),
            "page_size": str(page_size),
            "fields": SEARCH_FIELDS,
        }
        response = self._get(self.search_url, params=params)

        if response.status_code != 200:
            logger.warning("[OBF] Search failed with status %s", response.status_code)
            raise InvalidResponse(f"Search failed with status {response.status_code}", response.status_code)

        try:
            envelope = SearchEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            # requests의 JSONDecodeError도 ValueError 하위 클래스
            raise InvalidResponse(f"Undecodable search response: {e}", response.status_code) from e

        records = self._decode_records(envelope.products or [])
        logger.info("[OBF] Search '%s' returned %d records", query, len(records))
        return records

    def fetch_by_code(self, barcode: str) -> Optional[RawProductRecord]:
        if not barcode:
            return None

        url = f"{self.product_url}/{barcode}.json"
        response = self._get(url)
        logger.debug("[OBF] Lookup %s -> HTTP %s", barcode, response.status_code)

        # 404는 "없음"이라는 정상 응답
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise InvalidResponse(f"Unexpected HTTP status: {response.status_code}", response.status_code)

        try:
            envelope = LookupEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise InvalidResponse(f"Undecodable product response: {e}", response.status_code) from e

        if envelope.status != 1 or envelope.product is None:
            logger.info("[OBF] Product not found for barcode: %s", barcode)
            return None

        try:
            return RawProductRecord.model_validate(envelope.product)
        except ValidationError as e:
            raise InvalidResponse(f"Undecodable product payload: {e}", response.status_code) from e

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        try:
            return self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("[OBF] Request to %s failed: %s", url, e)
            raise NetworkFailure(e) from e

    def _decode_records(self, items: list) -> List[RawProductRecord]:
        """레코드 하나가 깨져도 전체 검색은 실패하지 않음 (실패한 것만 버림)"""
        records = []
        for item in items:
            try:
                records.append(RawProductRecord.model_validate(item))
            except ValidationError as e:
                logger.debug("[OBF] Dropping undecodable record: %s", e)
        return records


# 기본 클라이언트 (FastAPI Depends용)
_default_client: Optional[OpenBeautyFactsClient] = None


def get_obf_client() -> OpenBeautyFactsClient:
    global _default_client
    if _default_client is None:
        _default_client = OpenBeautyFactsClient()
    return _default_client
