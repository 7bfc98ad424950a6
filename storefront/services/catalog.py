# storefront/services/catalog.py
from __future__ import annotations

import logging
from typing import Dict, List

from ..clients.stripe import StripeClient
from ..core.cache import TTLCache
from ..schemas.catalog import Product

log = logging.getLogger(__name__)

DEFAULT_LIMIT = 24


def cache_key(limit: int) -> str:
    return f"products_{limit}"


def list_products(client: StripeClient, cache: TTLCache[List[Product]], limit: int = DEFAULT_LIMIT) -> List[Product]:
    """Active products with their default price, served from `cache` while fresh."""
    key = cache_key(limit)
    cached = cache.get(key)
    if cached is not None:
        return cached

    rows = client.list_products(limit=limit, active=True)
    products = [Product.model_validate(row) for row in rows]
    cache.set(key, products)
    log.info("catalog refreshed limit=%d products=%d", limit, len(products))
    return products


def clear_products_cache(cache: TTLCache) -> None:
    cache.clear()


def cache_stats(cache: TTLCache) -> Dict[str, int]:
    return {"keys": cache.size()}
