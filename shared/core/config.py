import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    # sqlite file for the embedded store, postgresql+psycopg2://... for the server store
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./metering.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", 2))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", 2))

    # Billing
    DEFAULT_RATE_PER_UNIT: float = float(os.getenv("DEFAULT_RATE_PER_UNIT", 45))
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "PKR")
    BUSINESS_NAME: str = os.getenv("BUSINESS_NAME", "MeraMeter")
    MAX_READING_VALUE: float = float(os.getenv("MAX_READING_VALUE", 99999999))

    # Analyzer (AI/OCR)
    ANALYZER_URL: str = os.getenv(
        "ANALYZER_URL", "http://localhost:5000/api/analyze")
    ANALYZER_TIMEOUT_SECONDS: float = float(
        os.getenv("ANALYZER_TIMEOUT_SECONDS", 30))
    LOW_CONFIDENCE_THRESHOLD: float = float(
        os.getenv("LOW_CONFIDENCE_THRESHOLD", 60))

    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS", "http://localhost:8080,http://127.0.0.1:8002")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def get_cors_origins(self) -> list[str]:
        return [o.strip().rstrip("/") for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()

DATABASE_URL = settings.DATABASE_URL
