"""FastAPI dependency providers wiring services to their collaborators."""

import httpx
import stripe
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from plzdm.config import get_settings
from plzdm.db.session import get_db
from plzdm.http_client import get_http_client
from plzdm.services.billing_reconciler import BillingReconciler
from plzdm.services.dispatch_client import WelcomeMessageDispatcher
from plzdm.services.entitlement import EntitlementResolver
from plzdm.services.record_store import RecordStore
from plzdm.stripe_client import get_stripe_client


def get_record_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_reconciler(
    store: RecordStore = Depends(get_record_store),
    stripe_client: stripe.StripeClient = Depends(get_stripe_client),
) -> BillingReconciler:
    return BillingReconciler(store, stripe_client)


def get_entitlement_resolver(store: RecordStore = Depends(get_record_store)) -> EntitlementResolver:
    return EntitlementResolver(store, policy=get_settings().entitlement_policy)


def get_dispatcher(
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> WelcomeMessageDispatcher:
    settings = get_settings()
    return WelcomeMessageDispatcher(
        http_client,
        consumer_key=settings.twitter_api_key,
        consumer_secret=settings.twitter_api_secret_key,
    )
