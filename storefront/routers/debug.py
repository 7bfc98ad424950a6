from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from ..core.cache import TTLCache
from ..core.config import Settings
from ..core.rate_limit import RateLimiter
from ..deps import get_catalog_cache, get_checkout_limiter, get_settings
from ..services.catalog import cache_stats, clear_products_cache

router = APIRouter(prefix="/api", tags=["debug"])

def _dev_only(settings: Settings = Depends(get_settings)) -> None:
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")

@router.get("/cache-stats", summary="Catalog cache + checkout limiter sizes", dependencies=[Depends(_dev_only)])
def stats(
    cache: TTLCache = Depends(get_catalog_cache),
    limiter: RateLimiter = Depends(get_checkout_limiter),
):
    return {
        "cache": cache_stats(cache),
        "rateLimiter": {"buckets": limiter.get_bucket_count()},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@router.delete("/cache", summary="Drop cached catalog pages", dependencies=[Depends(_dev_only)])
def clear_cache(cache: TTLCache = Depends(get_catalog_cache)):
    clear_products_cache(cache)
    return {"cleared": True}
