# storefront/routers/catalog.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..clients.stripe import StripeClient, StripeError
from ..core.cache import TTLCache
from ..core.config import Settings
from ..deps import get_catalog_cache, get_settings, get_stripe_client
from ..schemas.catalog import ProductList, ProductOut
from ..services.catalog import list_products
from ..services.money import format_money

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/products", response_model=ProductList, summary="Active products with their default price")
def products(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Max products (defaults to CATALOG_DEFAULT_LIMIT)"),
    settings: Settings = Depends(get_settings),
    client: StripeClient = Depends(get_stripe_client),
    cache: TTLCache = Depends(get_catalog_cache),
):
    try:
        items = list_products(client, cache, limit or settings.catalog_default_limit)
    except StripeError as e:
        raise HTTPException(status_code=502, detail=f"provider_error: {e}")

    out = []
    for p in items:
        price = p.default_price
        display = None
        if price is not None and price.unit_amount is not None:
            display = format_money(price.unit_amount, price.currency)
        out.append(ProductOut(**p.model_dump(), display_price=display))
    return ProductList(count=len(out), products=out)
