"""Record store — keyed upserts and reads over the billing and token tables.

Every billing write is a single ``INSERT ... ON CONFLICT DO UPDATE`` on the
provider's own id, so replaying the same snapshot leaves exactly one row holding
the latest values.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import Table, exists, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from plzdm.db.encryption import decrypt_token_pair, encrypt_token_pair
from plzdm.errors import StoreWriteError
from plzdm.models import (
    Customer,
    Price,
    Product,
    Purchase,
    Receipt,
    Subscription,
    TwitterToken,
    User,
)
from plzdm.schemas.messages import TwitterCredentials

logger = logging.getLogger(__name__)


class RecordStore:
    """Typed access to the relational store, bound to one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- write helpers ---

    def _insert(self, table: Table):
        if self.db.get_bind().dialect.name == "postgresql":
            return pg_insert(table)
        return sqlite_insert(table)

    async def _upsert(
        self,
        entity: str,
        key: str,
        table: Table,
        values: dict[str, Any],
        conflict_keys: list[str],
    ) -> None:
        stmt = self._insert(table).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_keys,
            set_={col: stmt.excluded[col] for col in values if col not in conflict_keys},
        )
        await self._write(entity, key, stmt)

    async def _write(self, entity: str, key: str, stmt) -> None:
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Store write failed for %s [%s]: %s", entity, key, e)
            raise StoreWriteError(entity, key) from e

    # --- billing entities ---

    async def upsert_product(self, values: dict[str, Any]) -> None:
        await self._upsert("product", values["id"], Product.__table__, values, ["id"])

    async def upsert_price(self, values: dict[str, Any]) -> None:
        await self._upsert("price", values["id"], Price.__table__, values, ["id"])

    async def upsert_subscription(self, values: dict[str, Any]) -> None:
        await self._upsert("subscription", values["id"], Subscription.__table__, values, ["id"])

    async def upsert_purchase(self, values: dict[str, Any]) -> None:
        await self._upsert(
            "purchase", values["payment_id"], Purchase.__table__, values, ["payment_id"]
        )

    async def upsert_receipt(self, values: dict[str, Any]) -> None:
        await self._upsert(
            "receipt", values["receipt_url"], Receipt.__table__, values, ["user_id", "receipt_url"]
        )

    async def get_price(self, price_id: str) -> Price | None:
        return await self.db.get(Price, price_id)

    # --- customers ---

    async def get_user_id_for_customer(self, stripe_customer_id: str) -> uuid.UUID | None:
        result = await self.db.execute(
            select(Customer.id).where(Customer.stripe_customer_id == stripe_customer_id)
        )
        return result.scalar_one_or_none()

    async def get_customer_id_for_user(self, user_id: uuid.UUID) -> str | None:
        result = await self.db.execute(
            select(Customer.stripe_customer_id).where(Customer.id == user_id)
        )
        return result.scalar_one_or_none()

    async def insert_customer(self, user_id: uuid.UUID, stripe_customer_id: str) -> None:
        stmt = self._insert(Customer.__table__).values(
            {"id": user_id, "stripe_customer_id": stripe_customer_id}
        )
        await self._write("customer", str(user_id), stmt)

    # --- users ---

    async def ensure_user(self, user_id: uuid.UUID, email: str | None = None) -> User:
        """Return the local profile row for an identity-provider user, creating it if needed."""
        user = await self.db.get(User, user_id)
        if user:
            return user
        stmt = self._insert(User.__table__).values({"id": user_id, "email": email})
        await self._write("user", str(user_id), stmt.on_conflict_do_nothing(index_elements=["id"]))
        return await self.db.get(User, user_id)

    async def update_user_billing_details(
        self,
        user_id: uuid.UUID,
        billing_address: dict | None,
        payment_method: dict | None,
    ) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(billing_address=billing_address, payment_method=payment_method)
        )
        await self._write("user", str(user_id), stmt)

    # --- entitlement reads ---

    async def latest_purchase_price_id(self, user_id: uuid.UUID) -> str | None:
        result = await self.db.execute(
            select(Purchase.price_id)
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.created.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def has_purchase(self, user_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(exists().where(Purchase.user_id == user_id))
        )
        return bool(result.scalar())

    async def latest_subscription(self, user_id: uuid.UUID) -> Subscription | None:
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created.desc())
            .limit(1)
        )
        return result.scalars().first()

    # --- linked X accounts ---

    async def create_twitter_token(
        self,
        user_id: uuid.UUID,
        token: str,
        token_secret: str,
        twitter_user_id: str,
        user_name: str,
    ) -> TwitterToken:
        sealed_token, sealed_secret = encrypt_token_pair(token, token_secret)
        row = TwitterToken(
            user_id=user_id,
            user_token=sealed_token,
            user_token_secret=sealed_secret,
            twitter_user_id=twitter_user_id,
            user_name=user_name,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Store write failed for twitter_token [%s]: %s", user_id, e)
            raise StoreWriteError("twitter_token", str(user_id)) from e
        await self.db.refresh(row)
        return row

    async def latest_twitter_token(self, user_id: uuid.UUID) -> TwitterToken | None:
        """The most recently linked account wins."""
        result = await self.db.execute(
            select(TwitterToken)
            .where(TwitterToken.user_id == user_id)
            .order_by(TwitterToken.created_at.desc(), TwitterToken.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list_twitter_tokens(self, user_id: uuid.UUID) -> list[TwitterToken]:
        result = await self.db.execute(
            select(TwitterToken)
            .where(TwitterToken.user_id == user_id)
            .order_by(TwitterToken.created_at.desc(), TwitterToken.id.desc())
        )
        return list(result.scalars().all())

    async def latest_credentials(self, user_id: uuid.UUID) -> TwitterCredentials | None:
        row = await self.latest_twitter_token(user_id)
        if not row:
            return None
        key, secret = decrypt_token_pair(row.user_token, row.user_token_secret)
        return TwitterCredentials(
            access_token_key=key,
            access_token_secret=secret,
            external_account_id=row.twitter_user_id,
            account_handle=row.user_name,
        )
