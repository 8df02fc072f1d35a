from typing import Optional

from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    REQUEST_TIMEOUT: float = 15.0

    # A toast within this window of the last shown one is dropped
    TOAST_DEBOUNCE_MS: int = 500

    STATUS_POLL_INTERVAL_SECONDS: float = 30.0
    STATUS_POLL_MAX_ATTEMPTS: int = 3

    # Guest cart/wishlist file; kept in memory when unset
    LOCAL_STORAGE_PATH: Optional[str] = None

    model_config = {
        "env_prefix": "STOREFRONT_",
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }
