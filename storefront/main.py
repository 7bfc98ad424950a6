# storefront/main.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .clients.stripe import StripeClient
from .core.cache import TTLCache
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import RequestIdMiddleware
from .core.rate_limit import RateLimiter
from .routers import catalog, checkout, debug, health, success, webhooks

log = logging.getLogger(__name__)


async def _sweep_limiter(limiter: RateLimiter, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        before = limiter.get_bucket_count()
        limiter.cleanup()
        log.debug("rate limiter cleanup buckets %d -> %d", before, limiter.get_bucket_count())


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    sweeper: Optional[asyncio.Task] = None
    if settings.rate_limit_cleanup_interval_seconds > 0:
        sweeper = asyncio.create_task(
            _sweep_limiter(app.state.checkout_limiter, settings.rate_limit_cleanup_interval_seconds)
        )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
        app.state.stripe.close()


def create_app(settings: Optional[Settings] = None, stripe_client: Optional[StripeClient] = None) -> FastAPI:
    """
    Build the API with its own catalog cache and checkout limiter.
    Run with: uvicorn storefront.main:create_app --factory
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Storefront API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.stripe = stripe_client or StripeClient.from_settings(settings)
    app.state.catalog_cache = TTLCache(settings.catalog_cache_ttl_seconds)
    app.state.checkout_limiter = RateLimiter(
        settings.checkout_rate_limit_max_requests,
        settings.checkout_rate_limit_window_seconds,
    )

    app.add_middleware(RequestIdMiddleware)

    # Routers
    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(checkout.router)
    app.include_router(success.router)
    app.include_router(webhooks.router)
    app.include_router(debug.router)

    @app.get("/")
    def root():
        return {"service": "storefront-api"}

    return app
