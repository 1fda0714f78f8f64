"""TwitterToken model — OAuth 1.0a credentials for a linked X account."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plzdm.utils import now_utc
from .base import Base


class TwitterToken(Base):
    __tablename__ = "twitter_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    # Fernet-encrypted
    user_token: Mapped[str] = mapped_column(Text, nullable=False)
    user_token_secret: Mapped[str] = mapped_column(Text, nullable=False)
    twitter_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_name: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, index=True)

    user: Mapped["User"] = relationship(back_populates="twitter_tokens")
