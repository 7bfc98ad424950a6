# storefront/services/webhooks.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import stripe

log = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300


class WebhookSignatureError(ValueError):
    pass


def construct_event(payload: bytes, sig_header: str, secret: str, *,
                    tolerance: int = DEFAULT_TOLERANCE) -> Dict[str, Any]:
    """
    Verify a Stripe-Signature header against the raw body and return the event.

    Verification (header parsing, HMAC, timestamp tolerance) is Stripe's own
    `WebhookSignature.verify_header`; the body is decoded here so callers get a
    plain dict back.
    """
    body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    try:
        stripe.WebhookSignature.verify_header(body, sig_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(e.user_message or str(e)) from e
    try:
        event = json.loads(body)
    except ValueError as e:
        raise WebhookSignatureError(f"Invalid payload: {e}") from e
    if not isinstance(event, dict):
        raise WebhookSignatureError("Invalid payload: expected a JSON object")
    return event


def _created(obj: Dict[str, Any]) -> Optional[str]:
    ts = obj.get("created")
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat() if ts else None


# ------------ handlers ------------
# Fulfillment (orders, e-mail, inventory) hooks in here. Stripe retries
# deliveries, so anything added must be idempotent on the object id.

def handle_checkout_session_completed(session: Dict[str, Any]) -> Dict[str, Any]:
    order = {
        "session_id": session.get("id"),
        "customer_id": session.get("customer"),
        "customer_email": session.get("customer_email"),
        "amount_total": session.get("amount_total"),
        "currency": session.get("currency"),
        "payment_status": session.get("payment_status"),
        "metadata": session.get("metadata") or {},
        "created": _created(session),
    }
    log.info("checkout session completed: %s", order)
    return order


def handle_payment_intent_succeeded(intent: Dict[str, Any]) -> Dict[str, Any]:
    payment = {
        "payment_intent_id": intent.get("id"),
        "amount": intent.get("amount"),
        "currency": intent.get("currency"),
        "status": intent.get("status"),
        "metadata": intent.get("metadata") or {},
        "created": _created(intent),
    }
    log.info("payment intent succeeded: %s", payment)
    return payment


def handle_payment_intent_failed(intent: Dict[str, Any]) -> Dict[str, Any]:
    failure = {
        "payment_intent_id": intent.get("id"),
        "amount": intent.get("amount"),
        "currency": intent.get("currency"),
        "status": intent.get("status"),
        "last_payment_error": intent.get("last_payment_error"),
        "metadata": intent.get("metadata") or {},
    }
    log.error("payment intent failed: %s", failure)
    return failure


def handle_customer_changed(customer: Dict[str, Any]) -> Dict[str, Any]:
    log.info("customer changed: %s", customer.get("id"))
    return {"customer_id": customer.get("id")}


HANDLERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "checkout.session.completed": handle_checkout_session_completed,
    "payment_intent.succeeded": handle_payment_intent_succeeded,
    "payment_intent.payment_failed": handle_payment_intent_failed,
    "customer.created": handle_customer_changed,
    "customer.updated": handle_customer_changed,
}


def handle_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Dispatch on event type. Unknown types are acknowledged so Stripe stops retrying."""
    etype = event.get("type", "")
    log.info("received webhook %s id=%s", etype, event.get("id"))
    handler = HANDLERS.get(etype)
    if handler is None:
        log.info("unhandled webhook event type: %s", etype)
        return None
    obj = (event.get("data") or {}).get("object") or {}
    return handler(obj)
