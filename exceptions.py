# exceptions.py
from typing import Optional


class ProductSourceError(Exception):
    """외부 제품 DB(Open Beauty Facts) 호출 실패의 공통 부모"""


class NetworkFailure(ProductSourceError):
    """DNS, 타임아웃, 연결 끊김 등 전송 계층 오류 (원본 예외를 감싼다)"""

    def __init__(self, cause: Exception):
        super().__init__(f"Network error: {cause}")
        self.cause = cause


class InvalidResponse(ProductSourceError):
    """허용되지 않은 상태 코드이거나 응답 본문을 해석할 수 없음"""

    def __init__(self, message: str = "Invalid response from server", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
