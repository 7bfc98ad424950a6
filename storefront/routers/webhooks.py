# storefront/routers/webhooks.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ..core.config import Settings
from ..deps import get_settings
from ..services.webhooks import WebhookSignatureError, construct_event, handle_event

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["webhooks"])


@router.post("/stripe-webhook", response_class=PlainTextResponse, summary="Stripe event callback")
async def stripe_webhook(request: Request, settings: Settings = Depends(get_settings)):
    signature = request.headers.get("stripe-signature")
    if not signature:
        log.error("missing Stripe signature header")
        return PlainTextResponse("Missing signature", status_code=400)

    # signature covers the raw bytes, so read them before any parsing
    raw = await request.body()
    try:
        event = construct_event(
            raw, signature, settings.stripe_webhook_secret,
            tolerance=settings.webhook_tolerance_seconds,
        )
    except WebhookSignatureError as e:
        msg = f"Webhook signature verification failed: {e}"
        log.error(msg)
        return PlainTextResponse(msg, status_code=400)

    try:
        handle_event(event)
    except Exception:
        # 5xx makes Stripe redeliver
        log.exception("error handling webhook %s", event.get("type"))
        return PlainTextResponse("Webhook handler error", status_code=500)
    return PlainTextResponse("Webhook handled successfully", status_code=200)
