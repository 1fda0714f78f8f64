"""Price model — projection of a Stripe price."""

from sqlalchemy import JSON, BigInteger, Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Price(Base):
    __tablename__ = "prices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    unit_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    type: Mapped[str | None] = mapped_column(String(16), nullable=True)  # one_time | recurring
    interval: Mapped[str | None] = mapped_column(String(16), nullable=True)
    interval_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    trial_period_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
