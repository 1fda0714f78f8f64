"""Shared utility functions for plzdm."""

import logging
from datetime import datetime, UTC

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def to_datetime(epoch_seconds: int | float | None) -> datetime | None:
    """
    Convert a Stripe/Twitter epoch timestamp to an aware UTC datetime.

    Args:
        epoch_seconds: Seconds since the Unix epoch, or None.

    Returns:
        Aware datetime, or None when no timestamp was given.
    """
    if epoch_seconds is None:
        return None
    return datetime.fromtimestamp(epoch_seconds, tz=UTC)


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
