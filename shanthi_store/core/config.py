from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from typing import List


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Shanthi Online Gold API"
    API_V1_STR: str = "/api/v1"

    # Database
    DATABASE_URL: str = "sqlite:///./shanthi_store.db"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Razorpay
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""

    # PhonePe standard checkout
    PHONEPE_CLIENT_ID: str = ""
    PHONEPE_CLIENT_SECRET: str = ""
    PHONEPE_CLIENT_VERSION: str = "1"
    PHONEPE_ENV: str = "sandbox"
    PHONEPE_REDIRECT_URL: str = ""
    PHONEPE_WEBHOOK_USERNAME: str = ""
    PHONEPE_WEBHOOK_PASSWORD: str = ""
    PHONEPE_TIMEOUT_SECONDS: float = 15.0

    CURRENCY: str = "INR"

    # Online orders left Pending longer than this are cancelled by the beat task
    PENDING_ORDER_TTL_MINUTES: int = 30

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "https://shanthionlinegold.com",
        "https://www.shanthionlinegold.com",
    ]

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Frontend
    FRONTEND_URL: str = "https://shanthionlinegold.com"

    # Monitoring (Optional - Add to .env for production)
    SENTRY_DSN: str = ""

    # Celery & Redis (Task Queue)
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    @field_validator("ENVIRONMENT", "PHONEPE_ENV")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @model_validator(mode="after")
    def validate_production_secrets(self):
        if self.ENVIRONMENT == "production":
            normalized_secret = (self.SECRET_KEY or "").strip()
            if len(normalized_secret) < 32 or "your-secret-key-here" in normalized_secret.lower():
                raise ValueError("SECRET_KEY must be at least 32 chars and not use placeholders in production")
            if (self.RAZORPAY_KEY_ID or "").startswith("rzp_test_"):
                raise ValueError("RAZORPAY_KEY_ID must use live key in production")
        return self

    @property
    def phonepe_base_url(self) -> str:
        if self.PHONEPE_ENV == "production":
            return "https://api.phonepe.com/apis"
        return "https://api-preprod.phonepe.com/apis/pg-sandbox"

    @property
    def phonepe_redirect_url(self) -> str:
        if self.PHONEPE_REDIRECT_URL:
            return self.PHONEPE_REDIRECT_URL
        return f"{self.FRONTEND_URL.rstrip('/')}/payment-success"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
