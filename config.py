# config.py
import os
from pathlib import Path
from dotenv import load_dotenv

# --- .env 파일 로드 ---
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# =============================================================================
# Open Beauty Facts
# =============================================================================
OBF_SEARCH_URL = os.getenv("OBF_SEARCH_URL", "https://world.openbeautyfacts.org/cgi/search.pl")
OBF_PRODUCT_URL = os.getenv("OBF_PRODUCT_URL", "https://world.openbeautyfacts.org/api/v2/product")
OBF_USER_AGENT = os.getenv("OBF_USER_AGENT", "SkinSync/1.0 (product-api)")
OBF_TIMEOUT_SECONDS = float(os.getenv("OBF_TIMEOUT_SECONDS", "10"))

# =============================================================================
# Database / Redis
# =============================================================================
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./skinsync.db")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))

# =============================================================================
# Local product cache
# =============================================================================
# file | sql | redis
PRODUCT_STORE = os.getenv("PRODUCT_STORE", "file").lower()
PRODUCT_CACHE_FILE = Path(os.getenv("PRODUCT_CACHE_FILE", str(BASE_DIR / "data" / "products.json")))
PRODUCT_CACHE_REDIS_KEY = os.getenv("PRODUCT_CACHE_REDIS_KEY", "products:cache")
# 0 이면 만료 없음
PRODUCT_CACHE_TTL_SECONDS = int(os.getenv("PRODUCT_CACHE_TTL_SECONDS", "0"))

# =============================================================================
# App
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
