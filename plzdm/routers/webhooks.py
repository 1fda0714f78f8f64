"""Webhook routes — Stripe."""

import logging

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from plzdm.config import get_settings
from plzdm.constants import RELEVANT_STRIPE_EVENTS
from plzdm.dependencies import get_reconciler
from plzdm.errors import UnknownCustomerError
from plzdm.schemas.billing import StripeCharge, StripeCheckoutSession, StripeEvent, StripeSubscriptionRef
from plzdm.services.billing_reconciler import BillingReconciler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


async def handle_stripe_event(event: StripeEvent, reconciler: BillingReconciler) -> None:
    """Route a verified Stripe event to the matching reconciliation step."""
    event_type = event.type
    data = event.data_object

    if event_type in ("product.created", "product.updated"):
        await reconciler.upsert_product(data)
    elif event_type in ("price.created", "price.updated"):
        await reconciler.upsert_price(data)
    elif event_type in (
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    ):
        sub = StripeSubscriptionRef.model_validate(data)
        await reconciler.reconcile_subscription(
            sub.id,
            sub.customer,
            event_type == "customer.subscription.created",
        )
    elif event_type == "checkout.session.completed":
        session = StripeCheckoutSession.model_validate(data)
        if not session.customer:
            raise UnknownCustomerError("(none)")
        if session.mode == "subscription" and session.subscription:
            await reconciler.reconcile_subscription(session.subscription, session.customer, True)
        elif session.mode == "payment":
            await reconciler.reconcile_one_time_payment(session.id, session.customer, True, session.created)
    elif event_type == "charge.succeeded":
        charge = StripeCharge.model_validate(data)
        if charge.receipt_url and charge.customer:
            await reconciler.add_receipt(charge.receipt_url, charge.created, charge.customer)
        else:
            logger.info("Charge %s has no customer or receipt; skipping", charge.id)


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(alias="stripe-signature"),
    reconciler: BillingReconciler = Depends(get_reconciler),
):
    settings = get_settings()
    payload = await request.body()

    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"), stripe_signature, settings.stripe_webhook_secret
        )
    except stripe.SignatureVerificationError:
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = StripeEvent.model_validate_json(payload)
    except PydanticValidationError:
        raise HTTPException(status_code=400, detail="Malformed event")

    logger.info("Stripe webhook: %s", event.type)

    if event.type not in RELEVANT_STRIPE_EVENTS:
        return {"received": True}

    try:
        await handle_stripe_event(event, reconciler)
    except PydanticValidationError as e:
        logger.error("Stripe %s payload did not match the expected shape: %s", event.type, e)
        raise HTTPException(status_code=400, detail="Webhook handler failed. View logs.")

    return {"received": True}
