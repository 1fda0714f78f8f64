"""Auth routes — link an X account via OAuth 1.0a."""

import json
import logging
import time
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from redis.asyncio import Redis as AsyncRedis

from plzdm.config import get_settings
from plzdm.constants import OAUTH_STATE_TTL
from plzdm.dependencies import get_record_store
from plzdm.models.user import User
from plzdm.services.auth_service import get_current_user
from plzdm.services.record_store import RecordStore
from plzdm.services.twitter_oauth import fetch_access_token, fetch_request_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth/twitter", tags=["auth"])

# In-memory fallback for OAuth request tokens (used when Redis is not configured)
_oauth_states: dict[str, dict] = {}


async def _get_redis() -> AsyncRedis | None:
    settings = get_settings()
    if not settings.redis_url:
        return None
    return AsyncRedis.from_url(settings.redis_url)


async def _store_oauth_state(oauth_token: str, data: dict) -> None:
    """Remember the request-token secret until Twitter redirects back."""
    redis = await _get_redis()
    if redis:
        try:
            await redis.setex(f"oauth1:{oauth_token}", OAUTH_STATE_TTL, json.dumps(data))
        finally:
            await redis.aclose()
    else:
        _oauth_states[oauth_token] = {**data, "created_at": time.monotonic()}


async def _pop_oauth_state(oauth_token: str) -> dict | None:
    redis = await _get_redis()
    if redis:
        try:
            raw = await redis.getdel(f"oauth1:{oauth_token}")
            return json.loads(raw) if raw else None
        finally:
            await redis.aclose()
    return _oauth_states.pop(oauth_token, None)


def _cleanup_expired_states() -> None:
    now = time.monotonic()
    expired = [k for k, v in _oauth_states.items() if now - v.get("created_at", 0) > OAUTH_STATE_TTL]
    for k in expired:
        del _oauth_states[k]


@router.get("/login")
async def login(user: User = Depends(get_current_user)):
    """Start linking: fetch a request token and send the user to Twitter."""
    _cleanup_expired_states()

    try:
        request_token, url = await fetch_request_token()
    except Exception as e:
        logger.error("Twitter request token error: %s", e, exc_info=True)
        raise HTTPException(status_code=502, detail="Could not start Twitter authorization.")

    await _store_oauth_state(
        request_token["oauth_token"],
        {"oauth_token_secret": request_token["oauth_token_secret"], "user_id": str(user.id)},
    )
    return RedirectResponse(url)


@router.get("/callback")
async def callback(
    oauth_token: str | None = Query(None),
    oauth_verifier: str | None = Query(None),
    denied: str | None = Query(None),
    store: RecordStore = Depends(get_record_store),
):
    """Exchange the verifier for an access token and store it as the newest linked account."""
    settings = get_settings()

    if denied:
        await _pop_oauth_state(denied)
        return RedirectResponse(url=f"{settings.app_url}/account?linked=denied", status_code=303)
    if not oauth_token or not oauth_verifier:
        raise HTTPException(status_code=400, detail="Missing OAuth parameters")

    stored = await _pop_oauth_state(oauth_token)
    if not stored:
        raise HTTPException(status_code=400, detail="Invalid or expired OAuth state")
    if stored.get("created_at") and time.monotonic() - stored["created_at"] > OAUTH_STATE_TTL:
        raise HTTPException(status_code=400, detail="OAuth state expired. Please try linking again.")

    try:
        token = await fetch_access_token(oauth_token, stored["oauth_token_secret"], oauth_verifier)
    except Exception as e:
        logger.error("Twitter access token error: %s", e, exc_info=True)
        raise HTTPException(status_code=400, detail="Linking failed. Please try again.")

    user_id = uuid.UUID(stored["user_id"])
    await store.create_twitter_token(
        user_id,
        token["oauth_token"],
        token["oauth_token_secret"],
        twitter_user_id=str(token["user_id"]),
        user_name=token["screen_name"],
    )
    logger.info("Linked @%s for user %s", token["screen_name"], user_id)

    return RedirectResponse(url=f"{settings.app_url}/messages/new", status_code=303)
