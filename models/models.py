#models/models.py
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from database import Base

# =========================================================
# 로컬 제품 캐시 (cached_products)
# =========================================================
class CachedProduct(Base):
    __tablename__ = "cached_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # 저장 순서 유지용
    position = Column(Integer, nullable=False, index=True)
    # 출처 코드가 없는 제품도 있어서 unique 아님
    barcode = Column(String(50), nullable=False, default="", index=True)
    # Product JSON 전체
    payload = Column(Text, nullable=False)
    cached_at = Column(DateTime(timezone=True), server_default=func.now())
