"""Billing routes — Stripe Checkout and Customer Portal."""

from fastapi import APIRouter, Depends

from plzdm.dependencies import get_reconciler
from plzdm.models.user import User
from plzdm.schemas.checkout import CheckoutRequest
from plzdm.services.auth_service import get_current_user
from plzdm.services.billing_reconciler import BillingReconciler
from plzdm.services.checkout_service import create_checkout_session, create_portal_session

router = APIRouter(prefix="/api/billing", tags=["billing"])


@router.post("/checkout")
async def billing_checkout(
    request: CheckoutRequest,
    user: User = Depends(get_current_user),
    reconciler: BillingReconciler = Depends(get_reconciler),
):
    url = await create_checkout_session(user, request.price_id, reconciler, request.quantity)
    return {"url": url}


@router.post("/portal")
async def billing_portal(
    user: User = Depends(get_current_user),
    reconciler: BillingReconciler = Depends(get_reconciler),
):
    url = await create_portal_session(user, reconciler)
    return {"url": url}
