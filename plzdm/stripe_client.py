"""Stripe API client construction."""

from functools import lru_cache

import stripe

from plzdm.config import get_settings


@lru_cache
def get_stripe_client() -> stripe.StripeClient:
    """Return the process-wide StripeClient built from settings."""
    settings = get_settings()
    if not settings.stripe_secret_key:
        raise RuntimeError("STRIPE_SECRET_KEY is not configured")
    return stripe.StripeClient(settings.stripe_secret_key)
