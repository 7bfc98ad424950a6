import pytest

from storefront.schemas.checkout import CheckoutCreateRequest
from storefront.services.checkout import CheckoutError, create_checkout_session, idempotency_key

CART = {"items": [{"priceId": "price_tee", "productId": "prod_tee", "quantity": 2}]}


def test_session_params(fake_stripe):
    req = CheckoutCreateRequest.model_validate({**CART, "customerEmail": "a@b.co", "metadata": {"ref": "x"}})
    resp = create_checkout_session(fake_stripe, req, "https://shop.test/")

    assert resp.session_id == "cs_test_123"
    sent = fake_stripe.sessions[0]
    params = sent["params"]
    assert params["mode"] == "payment"
    assert params["line_items"] == [{"price": "price_tee", "quantity": 2, "adjustable_quantity": {"enabled": False}}]
    assert params["success_url"] == "https://shop.test/checkout/success?session_id={CHECKOUT_SESSION_ID}"
    assert params["cancel_url"] == "https://shop.test/"
    assert params["customer_email"] == "a@b.co"
    assert params["metadata"]["ref"] == "x"
    assert len(params["metadata"]["cart_hash"]) == 64
    assert sent["idempotency_key"] == idempotency_key(req)


def test_idempotency_key_is_stable_per_cart():
    a = CheckoutCreateRequest.model_validate(CART)
    b = CheckoutCreateRequest.model_validate(CART)
    c = CheckoutCreateRequest.model_validate({**CART, "customerEmail": "a@b.co"})
    assert idempotency_key(a) == idempotency_key(b)
    assert idempotency_key(a) != idempotency_key(c)


def test_duplicate_prices_are_looked_up_once(fake_stripe):
    req = CheckoutCreateRequest.model_validate({"items": [CART["items"][0], CART["items"][0]]})
    create_checkout_session(fake_stripe, req, "http://test")
    assert fake_stripe.price_calls == ["price_tee"]


@pytest.mark.parametrize("item, message", [
    ({"priceId": "price_missing", "productId": "prod_tee", "quantity": 1}, "Invalid price ID: price_missing"),
    ({"priceId": "price_old", "productId": "prod_tee", "quantity": 1}, "Price price_old is not active"),
    ({"priceId": "price_tee", "productId": "prod_other", "quantity": 1}, "Price price_tee does not match product prod_other"),
])
def test_price_verification(fake_stripe, item, message):
    req = CheckoutCreateRequest.model_validate({"items": [item]})
    with pytest.raises(CheckoutError) as exc:
        create_checkout_session(fake_stripe, req, "http://test")
    assert exc.value.status_code == 400
    assert exc.value.message == message
    assert fake_stripe.sessions == []


@pytest.mark.asyncio
async def test_checkout_endpoint_success(client, fake_stripe):
    r = await client.post("/api/checkout", json=CART, headers={"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})
    assert r.status_code == 200
    assert r.json() == {"sessionId": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}
    assert r.headers["x-ratelimit-limit"] == "2"
    assert r.headers["x-ratelimit-remaining"] == "1"
    assert fake_stripe.sessions[0]["params"]["cancel_url"] == "http://test/"


@pytest.mark.asyncio
async def test_checkout_rate_limited_before_stripe(client, fake_stripe, app):
    headers = {"X-Forwarded-For": "9.9.9.9"}
    for _ in range(2):
        assert (await client.post("/api/checkout", json=CART, headers=headers)).status_code == 200
    calls = len(fake_stripe.price_calls)

    r = await client.post("/api/checkout", json=CART, headers=headers)
    assert r.status_code == 429
    assert r.json()["error"] == "Too many requests"
    assert 1 <= int(r.headers["retry-after"]) <= 60
    assert r.json()["retryAfter"] == int(r.headers["retry-after"])
    assert len(fake_stripe.price_calls) == calls

    # other clients keep their own quota
    r = await client.post("/api/checkout", json=CART, headers={"X-Real-IP": "8.8.8.8"})
    assert r.status_code == 200
    assert app.state.checkout_limiter.get_bucket_count() == 2


@pytest.mark.asyncio
async def test_invalid_requests_still_count_against_limit(client, app):
    r = await client.post("/api/checkout", content=b"not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"
    assert app.state.checkout_limiter.get_remaining_requests("") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"items": []},
    {"items": [{"priceId": "bad", "productId": "prod_tee", "quantity": 1}]},
    {"items": [{"priceId": "price_tee", "productId": "prod_tee", "quantity": 21}]},
    {**CART, "customerEmail": "not-an-email"},
    {**CART, "coupon": "FREE"},
])
async def test_checkout_validation(client, payload):
    r = await client.post("/api/checkout", json=payload)
    assert r.status_code == 400
    assert r.json()["details"]


@pytest.mark.asyncio
async def test_checkout_verification_error(client):
    r = await client.post("/api/checkout", json={"items": [{"priceId": "price_old", "productId": "prod_tee", "quantity": 1}]})
    assert r.status_code == 400
    assert r.json() == {"error": "Price price_old is not active"}


@pytest.mark.asyncio
async def test_checkout_unexpected_error_is_500(client, fake_stripe):
    def boom(params, *, idempotency_key=None):
        raise KeyError("url")

    fake_stripe.create_checkout_session = boom
    r = await client.post("/api/checkout", json=CART)
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
