"""Auth-related Pydantic schemas."""

import uuid

from pydantic import BaseModel


class TokenPayload(BaseModel):
    sub: uuid.UUID  # identity-provider user id
    exp: int
    email: str | None = None
