# repositories/product_store.py
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from fastapi import Depends
from pydantic import TypeAdapter
from redis import Redis
from sqlalchemy.orm import Session

import config
from cache import get_redis_client
from database import get_db
from models.dtos import Product
from models.models import CachedProduct

logger = logging.getLogger(__name__)

_product_list = TypeAdapter(List[Product])


class ProductStore(ABC):
    """로컬 제품 캐시 저장소 (바코드 단위). 저장 형식은 구현체 책임"""

    @abstractmethod
    def load_all(self) -> List[Product]:
        ...

    @abstractmethod
    def save_all(self, products: List[Product]) -> None:
        ...

    @abstractmethod
    def delete_all(self) -> None:
        ...


class JsonFileProductStore(ProductStore):
    """JSON 배열 파일 하나에 전체 목록 저장"""

    def __init__(self, path: Path = config.PRODUCT_CACHE_FILE):
        self.path = Path(path)

    def load_all(self) -> List[Product]:
        if not self.path.exists():
            return []
        return _product_list.validate_json(self.path.read_bytes())

    def save_all(self, products: List[Product]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = _product_list.dump_json(products, indent=2)

        # 임시 파일에 쓰고 교체 (쓰다 죽어도 기존 파일 유지)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug("[Store] Wrote %d products to %s", len(products), self.path)

    def delete_all(self) -> None:
        if self.path.exists():
            self.path.unlink()


class SqlProductStore(ProductStore):
    """cached_products 테이블에 행 단위로 저장 (payload는 Product JSON)"""

    def __init__(self, db: Session):
        self.db = db

    def load_all(self) -> List[Product]:
        rows = self.db.query(CachedProduct).order_by(CachedProduct.position).all()
        return [Product.model_validate_json(row.payload) for row in rows]

    def save_all(self, products: List[Product]) -> None:
        try:
            self.db.query(CachedProduct).delete()
            for position, product in enumerate(products):
                self.db.add(CachedProduct(
                    position=position,
                    barcode=product.barcode,
                    payload=product.model_dump_json(),
                ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def delete_all(self) -> None:
        try:
            self.db.query(CachedProduct).delete()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class RedisProductStore(ProductStore):
    """전체 목록을 JSON 문자열 하나로 Redis에 저장"""

    def __init__(
        self,
        redis: Redis,
        key: str = config.PRODUCT_CACHE_REDIS_KEY,
        ttl_seconds: int = config.PRODUCT_CACHE_TTL_SECONDS,
    ):
        self.redis = redis
        self.key = key
        self.ttl_seconds = ttl_seconds

    def load_all(self) -> List[Product]:
        cached = self.redis.get(self.key)
        if not cached:
            return []
        return _product_list.validate_json(cached)

    def save_all(self, products: List[Product]) -> None:
        data = _product_list.dump_json(products).decode("utf-8")
        if self.ttl_seconds > 0:
            self.redis.setex(self.key, self.ttl_seconds, data)
        else:
            self.redis.set(self.key, data)

    def delete_all(self) -> None:
        self.redis.delete(self.key)


def get_product_store(
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_client),
) -> ProductStore:
    """PRODUCT_STORE 설정값(file | sql | redis)에 따라 저장소 선택"""
    backend = config.PRODUCT_STORE
    if backend == "sql":
        return SqlProductStore(db)
    if backend == "redis":
        return RedisProductStore(redis)
    if backend != "file":
        logger.warning("[Store] Unknown PRODUCT_STORE '%s', falling back to file", backend)
    return JsonFileProductStore()
