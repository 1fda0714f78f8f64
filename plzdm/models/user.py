"""User model — local profile row for an identity-provider user."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plzdm.utils import now_utc
from .base import Base


class User(Base):
    __tablename__ = "users"

    # Same UUID the identity provider issues; never generated locally.
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    billing_address: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payment_method: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    # Relationships
    customer: Mapped["Customer | None"] = relationship(back_populates="user", uselist=False)
    twitter_tokens: Mapped[list["TwitterToken"]] = relationship(back_populates="user")
