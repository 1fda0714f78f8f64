import hashlib
import hmac
import json
import os
import time

import pytest
from sqlalchemy import select

from plzdm.models import Price, Product, Purchase, Receipt, Subscription


def _signed(event: dict) -> tuple[bytes, dict]:
    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    secret = os.environ["STRIPE_WEBHOOK_SECRET"]
    signature = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return payload, {"stripe-signature": f"t={timestamp},v1={signature}", "content-type": "application/json"}


def _event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_1", "object": "event", "type": event_type, "data": {"object": obj}}


async def _post(client, event: dict):
    payload, headers = _signed(event)
    return await client.post("/webhooks/stripe", content=payload, headers=headers)


@pytest.mark.asyncio
async def test_bad_signature_is_rejected(client):
    payload = json.dumps(_event("product.created", {})).encode()

    resp = await client.post(
        "/webhooks/stripe", content=payload, headers={"stripe-signature": "t=1,v1=deadbeef"}
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_irrelevant_event_is_acknowledged(client):
    resp = await _post(client, _event("invoice.created", {"id": "in_1"}))

    assert resp.status_code == 200
    assert resp.json() == {"received": True}


@pytest.mark.asyncio
async def test_product_and_price_events_upsert_catalog(client, session_maker):
    product = {"object": "product", "id": "prod_1", "active": True, "name": "plzdm lifetime", "images": []}
    price = {
        "object": "price", "id": "price_once", "product": "prod_1", "active": True,
        "currency": "usd", "type": "one_time", "unit_amount": 900, "recurring": None,
    }

    assert (await _post(client, _event("product.created", product))).status_code == 200
    assert (await _post(client, _event("price.updated", price))).status_code == 200

    async with session_maker() as session:
        assert (await session.get(Product, "prod_1")).name == "plzdm lifetime"
        assert (await session.get(Price, "price_once")).unit_amount == 900


@pytest.mark.asyncio
async def test_malformed_product_payload_returns_400(client):
    resp = await _post(client, _event("product.updated", {"object": "product", "id": "prod_1"}))

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_checkout_payment_records_purchase(client, fake_stripe, mapped_user, session_maker):
    session_obj = {
        "object": "checkout.session", "id": "cs_1", "mode": "payment",
        "customer": "cus_known", "created": 1_700_000_000,
    }
    fake_stripe.checkout.sessions.objects["cs_1"] = {
        **session_obj, "line_items": {"data": [{"price": {"id": "price_once"}}]},
    }

    resp = await _post(client, _event("checkout.session.completed", session_obj))

    assert resp.status_code == 200
    async with session_maker() as session:
        purchase = (await session.execute(select(Purchase))).scalar_one()
    assert purchase.price_id == "price_once"
    assert purchase.user_id == mapped_user


@pytest.mark.asyncio
async def test_checkout_subscription_reconciles_as_new(client, fake_stripe, mapped_user, session_maker):
    fake_stripe.subscriptions.objects["sub_1"] = {
        "object": "subscription", "id": "sub_1", "customer": "cus_known", "status": "active",
        "created": 1_700_000_000, "items": {"data": [{"price": {"id": "price_monthly"}}]},
        "default_payment_method": None,
    }
    session_obj = {
        "object": "checkout.session", "id": "cs_2", "mode": "subscription",
        "customer": "cus_known", "subscription": "sub_1", "created": 1_700_000_000,
    }

    resp = await _post(client, _event("checkout.session.completed", session_obj))

    assert resp.status_code == 200
    async with session_maker() as session:
        sub = await session.get(Subscription, "sub_1")
    assert sub.status == "active"


@pytest.mark.asyncio
async def test_subscription_event_for_unknown_customer_fails(client, fake_stripe, session_maker):
    resp = await _post(
        client,
        _event("customer.subscription.updated", {"object": "subscription", "id": "sub_1", "customer": "cus_missing"}),
    )

    assert resp.status_code == 500
    assert resp.json()["error"]["statusCode"] == 500
    assert fake_stripe.subscriptions.calls == []
    async with session_maker() as session:
        assert (await session.execute(select(Subscription))).first() is None


@pytest.mark.asyncio
async def test_charge_succeeded_adds_receipt(client, mapped_user, session_maker):
    charge = {
        "object": "charge", "id": "ch_1", "customer": "cus_known",
        "receipt_url": "https://pay.stripe.com/receipts/r1", "created": 1_700_000_000,
    }

    assert (await _post(client, _event("charge.succeeded", charge))).status_code == 200
    assert (await _post(client, _event("charge.succeeded", charge))).status_code == 200

    async with session_maker() as session:
        receipts = (await session.execute(select(Receipt))).scalars().all()
    assert [r.receipt_url for r in receipts] == ["https://pay.stripe.com/receipts/r1"]


@pytest.mark.asyncio
async def test_subscription_event_without_customer_returns_400(client, fake_stripe):
    resp = await _post(client, _event("customer.subscription.updated", {"object": "subscription", "id": "sub_1"}))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Webhook handler failed. View logs."
    assert fake_stripe.subscriptions.calls == []


@pytest.mark.asyncio
async def test_subscription_event_with_expanded_customer(client, fake_stripe, mapped_user, session_maker):
    fake_stripe.subscriptions.objects["sub_1"] = {
        "object": "subscription", "id": "sub_1", "customer": "cus_known", "status": "trialing",
        "created": 1_700_000_000, "items": {"data": [{"price": {"id": "price_monthly"}}]},
    }
    sub = {"object": "subscription", "id": "sub_1", "customer": {"id": "cus_known", "object": "customer"}}

    resp = await _post(client, _event("customer.subscription.created", sub))

    assert resp.status_code == 200
    async with session_maker() as session:
        assert (await session.get(Subscription, "sub_1")).user_id == mapped_user


@pytest.mark.asyncio
async def test_event_without_data_object_is_malformed(client):
    payload, headers = _signed({"id": "evt_1", "type": "product.created", "data": {}})

    resp = await client.post("/webhooks/stripe", content=payload, headers=headers)

    assert resp.status_code == 400
