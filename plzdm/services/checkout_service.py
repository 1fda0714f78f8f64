"""Stripe Checkout and Customer Portal sessions."""

import asyncio
import logging

from plzdm.config import get_settings
from plzdm.errors import ValidationError
from plzdm.models.user import User
from plzdm.services.billing_reconciler import BillingReconciler

logger = logging.getLogger(__name__)


async def create_checkout_session(
    user: User,
    price_id: str,
    reconciler: BillingReconciler,
    quantity: int = 1,
) -> str:
    """Create a Stripe Checkout session for ``price_id`` and return its URL.

    One-time prices check out in ``payment`` mode, recurring ones in
    ``subscription`` mode. The Stripe customer is created on first checkout.
    """
    settings = get_settings()

    price = await reconciler.store.get_price(price_id)
    if not price or not price.active:
        raise ValidationError("price_id", f"Unknown or inactive price {price_id}")

    customer_id = await reconciler.create_or_retrieve_customer(user.id, user.email)
    mode = "subscription" if price.type == "recurring" else "payment"

    params = {
        "customer": customer_id,
        "mode": mode,
        "line_items": [{"price": price.id, "quantity": quantity}],
        "success_url": f"{settings.app_url}/account?success=true",
        "cancel_url": f"{settings.app_url}/pricing?canceled=true",
        "metadata": {"user_id": str(user.id)},
    }
    if mode == "subscription" and price.trial_period_days:
        params["subscription_data"] = {"trial_period_days": price.trial_period_days}

    session = await asyncio.to_thread(reconciler.stripe.checkout.sessions.create, params=params)
    logger.info("Created %s checkout session %s for user %s", mode, session.id, user.id)
    return session.url


async def create_portal_session(user: User, reconciler: BillingReconciler) -> str:
    """Create a Stripe Customer Portal session and return the URL."""
    settings = get_settings()

    customer_id = await reconciler.store.get_customer_id_for_user(user.id)
    if not customer_id:
        raise ValidationError("customer", "No billing account exists for this user yet")

    session = await asyncio.to_thread(
        reconciler.stripe.billing_portal.sessions.create,
        params={"customer": customer_id, "return_url": f"{settings.app_url}/account"},
    )
    return session.url
