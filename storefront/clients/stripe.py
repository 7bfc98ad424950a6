# storefront/clients/stripe.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
import httpx

from ..core.config import Settings
from ..core.http import HttpRetryingClient


class StripeError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def encode_params(params: Mapping[str, Any]) -> Dict[str, str]:
    """
    Flatten nested params into Stripe's bracket form encoding:

        {"line_items": [{"price": "price_1", "quantity": 2}]}
          -> {"line_items[0][price]": "price_1", "line_items[0][quantity]": "2"}

    None values are dropped; booleans become "true"/"false".
    """
    out: Dict[str, str] = {}

    def walk(value: Any, key: str) -> None:
        if value is None:
            return
        if isinstance(value, Mapping):
            for k, v in value.items():
                walk(v, f"{key}[{k}]")
        elif isinstance(value, (list, tuple)):
            for i, v in enumerate(value):
                walk(v, f"{key}[{i}]")
        elif isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = str(value)

    for k, v in params.items():
        walk(v, k)
    return out


class StripeClient:
    """
    Thin wrapper over the handful of Stripe REST endpoints the storefront uses:

      products:  GET  /v1/products?active=true&limit=N&expand[0]=data.default_price
      prices:    GET  /v1/prices/{id}?expand[0]=product
      checkout:  POST /v1/checkout/sessions   (Idempotency-Key header)
                 GET  /v1/checkout/sessions/{id}?expand[]=payment_intent&expand[]=line_items.data.price.product
    """

    # ------------ lifecycle ------------
    def __init__(self, api_key: str, *, base_url: str = "https://api.stripe.com",
                 api_version: Optional[str] = None, timeout: float = 20.0,
                 transport: Optional[httpx.BaseTransport] = None):
        headers = {"Authorization": f"Bearer {api_key}"}
        if api_version:
            headers["Stripe-Version"] = api_version
        self._http = HttpRetryingClient(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripeClient":
        return cls(
            settings.stripe_secret_key,
            base_url=settings.stripe_api_base,
            api_version=settings.stripe_api_version,
            timeout=settings.http_timeout_seconds,
        )

    def close(self) -> None:
        self._http.close()

    # ------------ low-level helpers ------------
    def _call(self, method: str, path: str, params: Optional[Mapping[str, Any]] = None,
              idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        encoded = encode_params(params or {})
        try:
            if method == "GET":
                resp = self._http.get(path, params=encoded)
            else:
                headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
                resp = self._http.post(path, data=encoded, headers=headers, retry=idempotency_key is not None)
        except httpx.HTTPStatusError as e:
            raise StripeError(
                f"{method} {path} -> {e.response.status_code}: {_error_message(e.response)}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise StripeError(f"{method} {path} failed: {e}") from e
        return resp.json()

    # ------------ products ------------
    def list_products(self, limit: int = 24, *, active: bool = True) -> List[Dict[str, Any]]:
        payload = self._call("GET", "/v1/products", {
            "active": active,
            "limit": limit,
            "expand": ["data.default_price"],
        })
        return payload.get("data", [])

    # ------------ prices ------------
    def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        return self._call("GET", f"/v1/prices/{price_id}", {"expand": ["product"]})

    # ------------ checkout sessions ------------
    def create_checkout_session(self, params: Mapping[str, Any], *,
                                idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        return self._call("POST", "/v1/checkout/sessions", params, idempotency_key=idempotency_key)

    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        return self._call("GET", f"/v1/checkout/sessions/{session_id}", {
            "expand": ["payment_intent", "line_items.data.price.product"],
        })


def _error_message(resp: httpx.Response) -> str:
    # include server body to help diagnose quickly
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return resp.text
