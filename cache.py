# cache.py
from redis import Redis

import config

# Redis 연결 풀 생성 (첫 명령 실행 시점에 연결됨)
redis_client = Redis(
    host=config.REDIS_HOST,
    port=config.REDIS_PORT,
    db=config.REDIS_DB,
    decode_responses=True,
)


def get_redis_client():
    """FastAPI Depends로 주입하기 위한 함수"""
    yield redis_client
