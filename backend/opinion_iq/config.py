"""
Configuration for Opinion IQ API
"""
from pydantic_settings import BaseSettings
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def build_openapi_base(raw: Optional[str]) -> str:
    """Normalize OPINION_API_BASE so every call lands under {base}/openapi"""
    base = (raw or "").strip().rstrip("/")
    if not base:
        return ""
    if base.lower().endswith("/openapi"):
        return base
    return f"{base}/openapi"


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Opinion IQ"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    PORT: int = int(os.getenv("PORT", "8080"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    STATIC_DIR: str = os.getenv("STATIC_DIR", "public")

    # Opinion Trade OpenAPI
    OPINION_API_BASE: str = os.getenv("OPINION_API_BASE", "https://openapi.opinion.trade/openapi")
    OPINION_API_KEY: str = os.getenv("OPINION_API_KEY", "")
    OPINION_HTTP_TIMEOUT: float = float(os.getenv("OPINION_HTTP_TIMEOUT", "15"))
    ANALYSIS_TIMEOUT: float = float(os.getenv("ANALYSIS_TIMEOUT", "60"))

    # Market listing scan
    MARKET_PAGE_SIZE: int = int(os.getenv("MARKET_PAGE_SIZE", "20"))  # API max is 20
    MARKET_MAX_PAGES: int = int(os.getenv("MARKET_MAX_PAGES", "50"))  # Safety limit
    MARKET_TYPE: int = int(os.getenv("MARKET_TYPE", "2"))  # 0 binary, 1 categorical, 2 all
    RESOLVER_DETAIL_FALLBACK: bool = True

    # Upstream API description cache
    OPENAPI_SPEC_PATH: str = os.getenv("OPENAPI_SPEC_PATH", "/openapi.json")
    OPENAPI_SPEC_TTL: float = float(os.getenv("OPENAPI_SPEC_TTL", "3600"))

    # Scoring policy
    SCORE_DEPTH_OK: float = 25000
    SCORE_DEPTH_WAIT: float = 10000
    SCORE_SPREAD_OK: float = 2.5
    SCORE_SPREAD_WAIT: float = 5
    SCORE_MOVE_OK: float = 6
    SCORE_MOVE_WAIT: float = 12
    SCORE_VOLUME_OK: float = 50000
    SCORE_VOLUME_WAIT: float = 20000
    DEPTH_BAND_PERCENT: float = 1.0

    # CORS
    CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    @property
    def openapi_base(self) -> str:
        return build_openapi_base(self.OPINION_API_BASE)

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra fields from .env


settings = Settings()
