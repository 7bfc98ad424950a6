from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from storefront.clients.stripe import StripeError
from storefront.core.config import Settings
from storefront.main import create_app


class FakeClock:
    """Manually advanced stand-in for time.time()."""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStripe:
    """Records calls; prices are looked up in a dict keyed by price id."""
    def __init__(self) -> None:
        self.products: List[Dict[str, Any]] = [
            {
                "id": "prod_tee",
                "name": "T-shirt",
                "description": "Cotton",
                "images": ["https://img.example/tee.png"],
                "default_price": {"id": "price_tee", "unit_amount": 1999, "currency": "usd"},
            },
            {"id": "prod_mug", "name": "Mug", "description": None, "images": None, "default_price": "price_mug"},
        ]
        self.prices: Dict[str, Dict[str, Any]] = {
            "price_tee": {"id": "price_tee", "active": True, "unit_amount": 1999,
                          "currency": "usd", "product": {"id": "prod_tee"}},
            "price_old": {"id": "price_old", "active": False, "unit_amount": 500,
                          "currency": "usd", "product": {"id": "prod_tee"}},
        }
        self.list_calls = 0
        self.price_calls: List[str] = []
        self.sessions: List[Dict[str, Any]] = []
        self.completed: Dict[str, Dict[str, Any]] = {
            "cs_test_123": {
                "id": "cs_test_123",
                "status": "complete",
                "amount_total": 3998,
                "currency": "usd",
                "payment_intent": {"id": "pi_1", "status": "succeeded", "amount": 3998, "currency": "usd"},
                "line_items": {"data": [
                    {"id": "li_1", "quantity": 2,
                     "price": {"id": "price_tee", "unit_amount": 1999, "currency": "usd",
                               "product": {"id": "prod_tee", "name": "T-shirt"}}},
                ]},
            },
        }
        self.closed = False

    def list_products(self, limit: int = 24, *, active: bool = True) -> List[Dict[str, Any]]:
        self.list_calls += 1
        return self.products[:limit]

    def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        self.price_calls.append(price_id)
        if price_id not in self.prices:
            raise StripeError(f"No such price: '{price_id}'", status_code=404)
        return self.prices[price_id]

    def create_checkout_session(self, params: Dict[str, Any], *, idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        self.sessions.append({"params": params, "idempotency_key": idempotency_key})
        return {"id": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}

    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        if session_id not in self.completed:
            raise StripeError(f"No such checkout.session: '{session_id}'", status_code=404)
        return self.completed[session_id]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret="whsec_test",
        environment="test",
        checkout_rate_limit_max_requests=2,
        checkout_rate_limit_window_seconds=60,
        rate_limit_cleanup_interval_seconds=0,
    )


@pytest.fixture
def fake_stripe() -> FakeStripe:
    return FakeStripe()


@pytest.fixture
def app(settings, fake_stripe):
    return create_app(settings, stripe_client=fake_stripe)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
