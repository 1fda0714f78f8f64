import copy
import os
import uuid
from datetime import datetime, timedelta, UTC
from types import SimpleNamespace

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("FERNET_KEY", "MDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDA=")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_plzdm")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_plzdm")
os.environ.setdefault("TWITTER_API_KEY", "consumer-key")
os.environ.setdefault("TWITTER_API_SECRET_KEY", "consumer-secret")
os.environ.setdefault("REDIS_URL", "")

import httpx
import jwt
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from plzdm.models import Base, Customer, User
from plzdm.services.record_store import RecordStore


class FakeStripeService:
    """Stands in for one StripeClient service (customers, subscriptions, ...)."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.objects: dict[str, dict] = {}
        self.calls: list[tuple] = []

    def retrieve(self, id, params=None):
        self.calls.append(("retrieve", id, params))
        return copy.deepcopy(self.objects[id])

    def create(self, params=None):
        self.calls.append(("create", params))
        new_id = f"{self.prefix}_{len(self.calls)}"
        return SimpleNamespace(id=new_id, url=f"https://stripe.test/{new_id}")

    def update(self, id, params=None):
        self.calls.append(("update", id, params))
        return SimpleNamespace(id=id)


class FakeStripe:
    def __init__(self):
        self.customers = FakeStripeService("cus")
        self.subscriptions = FakeStripeService("sub")
        self.checkout = SimpleNamespace(sessions=FakeStripeService("cs"))
        self.billing_portal = SimpleNamespace(sessions=FakeStripeService("bps"))


@pytest.fixture
def fake_stripe():
    return FakeStripe()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'plzdm.db'}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(db):
    return RecordStore(db)


@pytest_asyncio.fixture
async def mapped_user(session_maker):
    """A user whose Stripe customer mapping already exists."""
    user_id = uuid.uuid4()
    async with session_maker() as session:
        session.add(User(id=user_id, email="maker@example.com"))
        await session.flush()
        session.add(Customer(id=user_id, stripe_customer_id="cus_known"))
        await session.commit()
    return user_id


def make_access_token(user_id: uuid.UUID, email: str | None = None) -> str:
    payload = {"sub": str(user_id), "exp": datetime.now(UTC) + timedelta(hours=1)}
    if email:
        payload["email"] = email
    return jwt.encode(payload, os.environ["JWT_SECRET"], algorithm="HS256")


def naive(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; compare in UTC wall time."""
    return dt.astimezone(UTC).replace(tzinfo=None) if dt.tzinfo else dt


class TwitterStub:
    """httpx MockTransport handler standing in for the X API."""

    def __init__(self):
        self.response = httpx.Response(200, json={"welcome_message": {"id": "1"}})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


@pytest.fixture
def twitter():
    return TwitterStub()


@pytest_asyncio.fixture
async def client(session_maker, fake_stripe, twitter):
    """API client with the database, Stripe and X wired to test doubles."""
    from plzdm.app import create_app
    from plzdm.db.session import get_db
    from plzdm.http_client import get_http_client
    from plzdm.stripe_client import get_stripe_client

    app = create_app()
    twitter_http = httpx.AsyncClient(transport=httpx.MockTransport(twitter))

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_client] = lambda: fake_stripe
    app.dependency_overrides[get_http_client] = lambda: twitter_http

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await twitter_http.aclose()
