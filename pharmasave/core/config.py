from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
import logging
import os
from urllib.parse import quote_plus
from pathlib import Path
from enum import Enum

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment Configuration
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Project Information
    PROJECT_NAME: str = "PharmaSave"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # Server settings
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "pharmasave"
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: str = "pharmasave"
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    # Security
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # JWT Settings
    ALGORITHM: str = "HS256"

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    PLATFORM_CONFIG_CACHE_SECONDS: int = 300

    # AWS / object storage
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_REGION: Optional[str] = None
    AWS_S3_ENDPOINT_URL: Optional[str] = None
    PHARMACY_DOCS_BUCKET: str = "pharmacy-documents"
    VERIFICATION_DOCS_BUCKET: str = "verification-documents"
    LISTING_IMAGES_BUCKET: str = "listing-images"
    USE_S3_UPLOADS: bool = False  # Toggle: False for local dev, True for cloud/S3
    UPLOADS_LOCAL_DIR: Optional[str] = None  # Local durable storage when S3 disabled (derived if not set)
    MAX_DOCUMENT_SIZE_BYTES: int = 10 * 1024 * 1024
    ALLOWED_DOCUMENT_EXTENSIONS: List[str] = ["pdf", "jpg", "jpeg", "png"]

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # API Security
    VALID_API_KEYS: List[str] = []
    REQUIRE_API_KEY: bool = False

    # Money
    CURRENCY: str = "EGP"
    BUYER_FEE_PERCENTAGE: float = 0.03
    SELLER_FEE_PERCENTAGE: float = 0.03
    MONTHLY_SUBSCRIPTION_FEE: float = 999
    WITHDRAWAL_FEE_FIXED: float = 10
    MIN_TRANSACTION_AMOUNT: float = 50
    MAX_TRANSACTION_AMOUNT: float = 50000

    # Demo balances reported when the settlement function is unavailable
    MOCK_PARTY_A_BALANCE: float = 5000
    MOCK_PARTY_B_BALANCE: float = 3000

    # Fund requests and withdrawals
    FUND_REQUEST_MIN: int = 100
    FUND_REQUEST_MAX: int = 10000
    WITHDRAWAL_MIN: int = 100

    # Lifecycles
    INVITATION_EXPIRE_DAYS: int = 7
    TRIAL_PERIOD_DAYS: int = 30
    NOTIFICATION_EXPIRE_DAYS: int = 30
    ARCHIVE_CLEANUP_DAYS: int = 365

    # Client polling (seconds)
    FINANCIAL_REFRESH_SECONDS: int = 300
    ALERTS_REFRESH_SECONDS: int = 30

    # Financial alert thresholds
    ALERT_CASH_RUNWAY_MONTHS: float = 6
    ALERT_CHURN_RATE: float = 5.0
    ALERT_REVENUE_DECLINE: float = -10.0
    ALERT_EXPENSE_BUDGET: float = 90.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --- Validators & Derived Settings ---
    @field_validator("CORS_ORIGINS", "VALID_API_KEYS", mode="before")
    @classmethod
    def split_comma_separated(cls, v):
        # Accept "a,b,c" as well as JSON lists from the environment
        if isinstance(v, str) and not v.strip().startswith("["):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @model_validator(mode="after")
    def _finalize_and_validate(self) -> "Settings":
        # Derive SQLALCHEMY_DATABASE_URI if not provided
        if not self.SQLALCHEMY_DATABASE_URI:
            safe_user = quote_plus(self.POSTGRES_USER)
            server = self.POSTGRES_SERVER
            port = self.POSTGRES_PORT
            db = self.POSTGRES_DB
            if self.POSTGRES_PASSWORD:
                safe_password = quote_plus(self.POSTGRES_PASSWORD)
                self.SQLALCHEMY_DATABASE_URI = (
                    f"postgresql://{safe_user}:{safe_password}@{server}:{port}/{db}"
                )
            else:
                self.SQLALCHEMY_DATABASE_URI = f"postgresql://{safe_user}@{server}:{port}/{db}"

        # If S3 is enabled but the document bucket is blank, fall back to local storage
        if self.USE_S3_UPLOADS and not str(self.PHARMACY_DOCS_BUCKET or "").strip():
            self.USE_S3_UPLOADS = False
            logger.warning("⚠️ [Config] USE_S3_UPLOADS is True but PHARMACY_DOCS_BUCKET is blank. Disabling S3 uploads.")

        if not self.UPLOADS_LOCAL_DIR:
            project_root = Path(__file__).resolve().parents[2]
            self.UPLOADS_LOCAL_DIR = str(project_root / "data" / "storage")

        return self

    @property
    def storage_buckets(self) -> List[str]:
        return [self.PHARMACY_DOCS_BUCKET, self.VERIFICATION_DOCS_BUCKET, self.LISTING_IMAGES_BUCKET]


settings = Settings(_env_file=os.getenv("PHARMASAVE_ENV_FILE", ".env"))
