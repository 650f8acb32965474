"""
Pytest configuration and fixtures for backend tests.
"""

import itertools
import uuid
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from rest_api.main import app, register_resources
from rest_api.models import Base, Company, User
from shared.infrastructure.db import create_session_factory, get_db
from shared.security.auth import sign_jwt
from tests.sample_models import Gadget, Memo

# Test-only resources, mounted next to the real ones
register_resources(app, {"gadgets": Gadget, "memos": Memo})

_nit_counter = itertools.count(900100)


def next_nit() -> str:
    """Unique NIT for each seeded company."""
    return str(next(_nit_counter))


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock for the audit interceptor."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    Fresh SQLite database file for each test.

    A file (rather than :memory:) gives every session its own connection,
    so concurrent writers behave like they do against a server database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP client bound to the app with the test database.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def actor_id() -> uuid.UUID:
    return uuid.UUID("5b0c2f5e-1d2a-4c1b-9a53-0d4e2f6a7b8c")


@pytest.fixture
def auth_headers(actor_id):
    """Bearer token whose subject is actor_id."""
    token = sign_jwt({"sub": str(actor_id)})
    return {"Authorization": f"Bearer {token}"}


def company_payload(**overrides) -> dict:
    payload = {
        "nit": next_nit(),
        "name": "Acme Andina",
        "country": "CO",
        "state": "Valle",
        "city": "Cali",
        "email": "contacto@acme.co",
        "phone": "+57 602 555 0101",
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def seed_companies(db_session):
    """Three live companies and one soft-deleted company."""
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    rows = [
        ("Acme Andina", "Cali", False),
        ("Borealis 100% Tech", "Bogota", False),
        ("Cafe_Norte", "Medellin", False),
        ("Difunta SAS", "Cali", True),
    ]
    companies = []
    for index, (name, city, deleted) in enumerate(rows):
        company = Company(**company_payload(name=name, city=city, email=f"info{index}@example.co"))
        company.stamp_created(uuid.UUID(int=1), now)
        if deleted:
            company.stamp_deleted(uuid.UUID(int=1), now)
        db_session.add(company)
        companies.append(company)
    await db_session.commit()
    return companies


@pytest_asyncio.fixture
async def seed_user(db_session, seed_companies):
    """A user with Nid A1 attached to the first company."""
    user = User(
        nid="A1",
        first_name="Ana",
        last_name="Rios",
        email="ana.rios@acme.co",
        is_active=True,
        company_id=seed_companies[0].id,
    )
    user.stamp_created(uuid.UUID(int=1), datetime(2024, 1, 2, tzinfo=timezone.utc))
    db_session.add(user)
    await db_session.commit()
    return user
