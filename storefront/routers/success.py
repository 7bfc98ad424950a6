# storefront/routers/success.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from ..clients.stripe import StripeClient, StripeError
from ..deps import get_stripe_client
from ..services.checkout import get_checkout_summary

log = logging.getLogger(__name__)

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("/success", summary="Order confirmation for a completed Checkout session")
def checkout_success(
    session_id: Optional[str] = Query(None, description="Stripe Checkout session id from the success_url redirect"),
    client: StripeClient = Depends(get_stripe_client),
):
    if not session_id or not session_id.strip():
        return PlainTextResponse("Missing or invalid session_id parameter", status_code=400)
    try:
        summary = get_checkout_summary(client, session_id)
    except StripeError as e:
        log.error("could not load checkout session %s: %s", session_id, e)
        status = 404 if e.status_code == 404 else 502
        return JSONResponse({"error": "Unable to load order"}, status_code=status)
    return JSONResponse(summary.model_dump(by_alias=True))
