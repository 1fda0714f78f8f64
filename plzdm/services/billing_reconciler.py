"""Stripe reconciliation — keeps local billing rows equal to Stripe's latest snapshots."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel

from plzdm.errors import UnknownCustomerError
from plzdm.schemas.billing import (
    StripeCheckoutSession,
    StripePaymentMethod,
    StripePrice,
    StripeProduct,
    StripeSubscription,
    stripe_to_dict,
)
from plzdm.services.record_store import RecordStore
from plzdm.utils import to_datetime

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], obj: Any) -> M:
    if isinstance(obj, model):
        return obj
    return model.model_validate(stripe_to_dict(obj))


def _as_datetime(value: int | datetime | None) -> datetime | None:
    if isinstance(value, datetime):
        return value
    return to_datetime(value)


class BillingReconciler:
    """Applies Stripe objects to the record store.

    Both collaborators are injected: ``store`` is a RecordStore bound to the
    current request's session and ``stripe_client`` is a ``stripe.StripeClient``.
    Stripe calls are blocking and run in a worker thread; nothing here retries.
    """

    def __init__(self, store: RecordStore, stripe_client):
        self.store = store
        self.stripe = stripe_client

    async def _require_user_id(self, customer_id: str) -> uuid.UUID:
        user_id = await self.store.get_user_id_for_customer(customer_id)
        if user_id is None:
            logger.error("No customer mapping for Stripe customer %s", customer_id)
            raise UnknownCustomerError(customer_id)
        return user_id

    # --- catalog ---

    async def upsert_product(self, product: StripeProduct | Any) -> None:
        product = _parse(StripeProduct, product)
        await self.store.upsert_product({
            "id": product.id,
            "active": product.active,
            "name": product.name,
            "description": product.description,
            "image": product.images[0] if product.images else None,
            "metadata": product.metadata,
        })
        logger.info("Product inserted/updated: %s", product.id)

    async def upsert_price(self, price: StripePrice | Any) -> None:
        price = _parse(StripePrice, price)
        recurring = price.recurring
        await self.store.upsert_price({
            "id": price.id,
            "product_id": price.product,
            "active": price.active,
            "currency": price.currency,
            "description": price.nickname,
            "type": price.type,
            "unit_amount": price.unit_amount,
            "interval": recurring.interval if recurring else None,
            "interval_count": recurring.interval_count if recurring else None,
            "trial_period_days": recurring.trial_period_days if recurring else None,
            "metadata": price.metadata,
        })
        logger.info("Price inserted/updated: %s", price.id)

    # --- customers ---

    async def create_or_retrieve_customer(self, user_id: uuid.UUID, email: str | None = None) -> str:
        """Return the user's Stripe customer id, creating the customer on first use."""
        existing = await self.store.get_customer_id_for_user(user_id)
        if existing:
            return existing

        params: dict[str, Any] = {"metadata": {"supabaseUUID": str(user_id)}}
        if email:
            params["email"] = email
        customer = await asyncio.to_thread(self.stripe.customers.create, params=params)
        await self.store.insert_customer(user_id, customer.id)
        logger.info("New customer created and inserted for %s.", user_id)
        return customer.id

    async def copy_billing_details_to_customer(
        self,
        user_id: uuid.UUID,
        payment_method: StripePaymentMethod,
        customer_id: str | None = None,
    ) -> None:
        """Copy the payment method's billing details onto the Stripe customer and local profile."""
        details = payment_method.billing_details
        address = details.address.model_dump() if details.address else None
        customer = payment_method.customer or customer_id
        await asyncio.to_thread(
            self.stripe.customers.update,
            customer,
            params={"name": details.name, "phone": details.phone, "address": address},
        )
        await self.store.update_user_billing_details(user_id, address, payment_method.type_details())

    # --- subscriptions and payments ---

    async def reconcile_subscription(
        self,
        subscription_id: str,
        customer_id: str,
        is_new_subscription: bool = False,
    ) -> None:
        """Upsert the latest snapshot of a subscription.

        The customer mapping must already exist; an unknown customer aborts before
        anything is fetched or written.
        """
        user_id = await self._require_user_id(customer_id)

        raw = await asyncio.to_thread(
            self.stripe.subscriptions.retrieve,
            subscription_id,
            params={"expand": ["default_payment_method"]},
        )
        subscription = _parse(StripeSubscription, raw)

        await self.store.upsert_subscription({
            "id": subscription.id,
            "user_id": user_id,
            "metadata": subscription.metadata,
            "status": subscription.status,
            "price_id": subscription.price_id,
            "quantity": subscription.quantity,
            "cancel_at_period_end": subscription.cancel_at_period_end,
            "cancel_at": to_datetime(subscription.cancel_at),
            "canceled_at": to_datetime(subscription.canceled_at),
            "current_period_start": to_datetime(subscription.current_period_start),
            "current_period_end": to_datetime(subscription.current_period_end),
            "created": to_datetime(subscription.created),
            "ended_at": to_datetime(subscription.ended_at),
            "trial_start": to_datetime(subscription.trial_start),
            "trial_end": to_datetime(subscription.trial_end),
        })
        logger.info("Inserted/updated subscription [%s] for user [%s]", subscription.id, user_id)

        # Costly and least critical, so it runs last.
        payment_method = subscription.expanded_payment_method
        if is_new_subscription and payment_method:
            await self.copy_billing_details_to_customer(user_id, payment_method, customer_id)

    async def reconcile_one_time_payment(
        self,
        payment_id: str,
        customer_id: str,
        is_new_subscription: bool = False,
        created_at: int | datetime | None = None,
    ) -> None:
        """Record a completed one-time Checkout session as a purchase."""
        user_id = await self._require_user_id(customer_id)

        raw = await asyncio.to_thread(
            self.stripe.checkout.sessions.retrieve,
            payment_id,
            params={"expand": ["line_items"]},
        )
        session = _parse(StripeCheckoutSession, raw)

        line_items = session.line_items.data if session.line_items else []
        if not line_items:
            logger.warning("Checkout session %s has no line items", session.id)

        await self.store.upsert_purchase({
            "payment_id": payment_id,
            "user_id": user_id,
            "created": _as_datetime(created_at if created_at is not None else session.created),
            "price_id": line_items[0].price.id if line_items else None,
        })
        logger.info(
            "Inserted/updated purchase [%s] for user [%s] (new=%s)",
            session.id, user_id, is_new_subscription,
        )

    async def add_receipt(
        self,
        receipt_url: str,
        created_at: int | datetime,
        customer_id: str,
    ) -> None:
        user_id = await self._require_user_id(customer_id)
        await self.store.upsert_receipt({
            "user_id": user_id,
            "created": _as_datetime(created_at),
            "receipt_url": receipt_url,
        })
        logger.info("Inserted/updated receipt for user [%s]", user_id)
