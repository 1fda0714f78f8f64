"""Purchase model — a completed one-time Checkout session."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Purchase(Base):
    __tablename__ = "purchases"

    payment_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    price_id: Mapped[str | None] = mapped_column(ForeignKey("prices.id"), nullable=True)
