"""Identity-provider JWT verification and the get_current_user dependency.

Sign-in happens at the identity provider; plzdm only verifies the HS256 access
token it issues and keeps a local profile row keyed by the token's ``sub``.
"""

import jwt
from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from plzdm.config import get_settings
from plzdm.constants import COOKIE_NAME
from plzdm.db.session import get_db
from plzdm.models.user import User
from plzdm.schemas.auth import TokenPayload
from plzdm.services.record_store import RecordStore


def _extract_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(COOKIE_NAME)


def decode_access_token(token: str) -> TokenPayload:
    settings = get_settings()
    options = {"require": ["exp", "sub"]}
    if not settings.jwt_audience:
        options["verify_aud"] = False
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )
    return TokenPayload.model_validate(payload)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency: verify the access token and return the local User, or raise 401."""
    token = _extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_access_token(token)
    except (jwt.InvalidTokenError, PydanticValidationError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return await RecordStore(db).ensure_user(payload.sub, payload.email)
