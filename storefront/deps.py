# storefront/deps.py
from fastapi import Request

from storefront.clients.stripe import StripeClient
from storefront.core.cache import TTLCache
from storefront.core.config import Settings
from storefront.core.rate_limit import RateLimiter

# Everything below lives on app.state, built once per app in create_app(),
# so each test app gets its own cache / limiter.

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_stripe_client(request: Request) -> StripeClient:
    return request.app.state.stripe

def get_catalog_cache(request: Request) -> TTLCache:
    return request.app.state.catalog_cache

def get_checkout_limiter(request: Request) -> RateLimiter:
    return request.app.state.checkout_limiter

def client_key(request: Request) -> str:
    """
    Identify the caller for rate limiting.
    - first hop of X-Forwarded-For, else X-Real-IP
    - empty string when neither header is present (all such callers share one bucket)
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return (request.headers.get("x-real-ip") or "").strip()
