# storefront/routers/checkout.py
from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..clients.stripe import StripeClient, StripeError
from ..core.rate_limit import RateLimiter
from ..deps import client_key, get_checkout_limiter, get_stripe_client
from ..schemas.checkout import CheckoutCreateRequest
from ..services.checkout import CheckoutError, create_checkout_session

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])


def _limit_headers(limiter: RateLimiter, key: str) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(limiter.max_requests),
        "X-RateLimit-Remaining": str(limiter.get_remaining_requests(key)),
    }


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return {}


@router.post("/checkout", summary="Create a Stripe Checkout session for the cart")
async def checkout(
    request: Request,
    key: str = Depends(client_key),
    limiter: RateLimiter = Depends(get_checkout_limiter),
    client: StripeClient = Depends(get_stripe_client),
):
    """
    1) rate limit by client ip before touching Stripe
    2) validate the cart
    3) verify prices + create the session (blocking httpx, run off the event loop)
    """
    if not limiter.is_allowed(key):
        retry_after = max(1, math.ceil(limiter.get_reset_time(key) - time.time()))
        log.warning("checkout rate limited key=%r retry_after=%ds", key, retry_after)
        return JSONResponse(
            {"error": "Too many requests", "retryAfter": retry_after},
            status_code=429,
            headers={"Retry-After": str(retry_after), **_limit_headers(limiter, key)},
        )
    headers = _limit_headers(limiter, key)

    payload = await _read_json(request)
    try:
        req = CheckoutCreateRequest.model_validate(payload)
    except ValidationError as e:
        return JSONResponse(
            {"error": "Invalid request", "details": e.errors(include_url=False, include_context=False)},
            status_code=400,
            headers=headers,
        )

    origin = str(request.base_url).rstrip("/")
    try:
        resp = await run_in_threadpool(create_checkout_session, client, req, origin)
    except CheckoutError as e:
        return JSONResponse({"error": e.message}, status_code=e.status_code, headers=headers)
    except StripeError as e:
        log.error("checkout provider error: %s", e)
        return JSONResponse({"error": "Payment provider error"}, status_code=502, headers=headers)
    except Exception:
        log.exception("checkout failed")
        return JSONResponse({"error": "Internal server error"}, status_code=500, headers=headers)

    return JSONResponse(resp.model_dump(by_alias=True), status_code=200, headers=headers)
