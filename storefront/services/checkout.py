# storefront/services/checkout.py
from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, List

from ..clients.stripe import StripeClient, StripeError
from ..schemas.checkout import CheckoutCreateRequest, CheckoutCreateResponse, CheckoutSummary, LineItemSummary
from .money import format_money

log = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Request-level failure with the HTTP status the caller should answer with."""
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def sha256_hex(payload: Any) -> str:
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _verify_prices(client: StripeClient, req: CheckoutCreateRequest) -> Dict[str, Dict[str, Any]]:
    prices: Dict[str, Dict[str, Any]] = {}
    for item in req.items:
        if item.price_id in prices:
            continue
        try:
            price = client.retrieve_price(item.price_id)
        except StripeError as e:
            log.warning("price lookup failed price_id=%s: %s", item.price_id, e)
            raise CheckoutError(f"Invalid price ID: {item.price_id}") from e
        if not price.get("active"):
            raise CheckoutError(f"Price {item.price_id} is not active")
        prices[item.price_id] = price

    for item in req.items:
        product = prices[item.price_id].get("product")
        product_id = product.get("id") if isinstance(product, dict) else product
        if product_id and product_id != item.product_id:
            raise CheckoutError(f"Price {item.price_id} does not match product {item.product_id}")
    return prices


def build_session_params(req: CheckoutCreateRequest, origin: str) -> Dict[str, Any]:
    items = [i.model_dump(by_alias=True) for i in req.items]
    line_items: List[Dict[str, Any]] = [
        {"price": i.price_id, "quantity": i.quantity, "adjustable_quantity": {"enabled": False}}
        for i in req.items
    ]
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": line_items,
        "success_url": f"{origin}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{origin}/",
        "metadata": {**(req.metadata or {}), "cart_hash": sha256_hex(items)},
    }
    if req.customer_email:
        params["customer_email"] = req.customer_email
    return params


def idempotency_key(req: CheckoutCreateRequest) -> str:
    items = [i.model_dump(by_alias=True) for i in req.items]
    return sha256_hex({"items": items, "customerEmail": req.customer_email})


def create_checkout_session(client: StripeClient, req: CheckoutCreateRequest, origin: str) -> CheckoutCreateResponse:
    """
    1) verify every price exists, is active and belongs to the claimed product
    2) build line items from verified prices only
    3) create the session under an idempotency key derived from the cart
    """
    _verify_prices(client, req)
    params = build_session_params(req, origin.rstrip("/"))
    session = client.create_checkout_session(params, idempotency_key=idempotency_key(req))
    log.info("checkout session created id=%s items=%d", session.get("id"), len(req.items))
    return CheckoutCreateResponse(sessionId=session["id"], url=session["url"])


def _expanded(value: Any) -> Dict[str, Any]:
    # unexpanded references come back as bare id strings
    return value if isinstance(value, dict) else {}


def summarize_session(session: Dict[str, Any]) -> CheckoutSummary:
    """Order confirmation view of a retrieved session; session fields win over the payment intent's."""
    intent = _expanded(session.get("payment_intent"))
    currency = session.get("currency") or intent.get("currency") or "usd"
    total = session.get("amount_total")
    if total is None:
        total = intent.get("amount") or 0

    items: List[LineItemSummary] = []
    for row in (_expanded(session.get("line_items")).get("data") or []):
        price = _expanded(row.get("price"))
        product = _expanded(price.get("product"))
        items.append(LineItemSummary(
            id=row.get("id") or "",
            quantity=row.get("quantity") or 0,
            name=product.get("name") or price.get("nickname") or "Unknown Item",
            unitAmount=price.get("unit_amount") or 0,
            currency=price.get("currency") or currency,
        ))

    return CheckoutSummary(
        sessionId=session.get("id") or "",
        status=session.get("status") or intent.get("status") or "unknown",
        amountTotal=total,
        currency=currency,
        displayTotal=format_money(total, currency),
        lineItems=items,
    )


def get_checkout_summary(client: StripeClient, session_id: str) -> CheckoutSummary:
    session = client.retrieve_checkout_session(session_id)
    return summarize_session(session)
