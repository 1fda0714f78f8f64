"""Entitlement lookup — decides whether a user has paid for full access."""

import logging
import uuid
from typing import Literal

from plzdm.constants import ENTITLED_SUBSCRIPTION_STATUSES
from plzdm.services.record_store import RecordStore

logger = logging.getLogger(__name__)

EntitlementPolicy = Literal["purchase", "subscription", "any"]


class EntitlementResolver:
    """Reads the local billing projections; never calls Stripe.

    ``policy`` picks which records grant access: a one-time purchase, an active
    or trialing subscription, or either.
    """

    def __init__(self, store: RecordStore, policy: EntitlementPolicy = "purchase"):
        self.store = store
        self.policy = policy

    async def resolve_entitlement(self, user_id: uuid.UUID) -> str | None:
        """Price id of the user's most recent purchase, or None when they have bought nothing."""
        return await self.store.latest_purchase_price_id(user_id)

    async def has_active_subscription(self, user_id: uuid.UUID) -> bool:
        sub = await self.store.latest_subscription(user_id)
        return bool(sub and sub.status in ENTITLED_SUBSCRIPTION_STATUSES)

    async def is_entitled(self, user_id: uuid.UUID) -> bool:
        if self.policy in ("purchase", "any") and await self.store.has_purchase(user_id):
            return True
        if self.policy in ("subscription", "any") and await self.has_active_subscription(user_id):
            return True
        logger.debug("User %s is not entitled under policy %s", user_id, self.policy)
        return False
