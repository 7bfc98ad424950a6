# storefront/core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

Environment = Literal["development", "test", "production"]

# ----- App settings (env-driven) -----
class Settings(BaseSettings):
    stripe_secret_key: str
    stripe_webhook_secret: str
    stripe_api_base: str = "https://api.stripe.com"
    stripe_api_version: str = "2025-02-24.acacia"
    http_timeout_seconds: float = 20.0

    environment: Environment = "development"
    log_level: str = "INFO"

    # catalog lookups are cached briefly to spare the Stripe API
    catalog_cache_ttl_seconds: float = 60.0
    catalog_default_limit: int = 24

    # POST /api/checkout guard, keyed by client ip
    checkout_rate_limit_max_requests: int = 5
    checkout_rate_limit_window_seconds: float = 60.0
    rate_limit_cleanup_interval_seconds: float = 300.0  # 0 disables the sweep task

    webhook_tolerance_seconds: int = 300

    class Config:
        env_prefix = ""
        env_file = ".env"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
