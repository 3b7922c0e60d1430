"""Shared fixtures: a file-backed SQLite database per test."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAYMENTS_MOCK_MODE", "true")

import uuid
from datetime import datetime
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.pool import NullPool

from app.core import database
from app.modules.auth.models import User
from app.modules.billing.models import PaymentOrder, ProcessedPayment  # noqa: F401
from app.modules.credits.models import AccountLedgerEntry
from app.modules.credits.repository import AccountLedgerRepository
from app.modules.letters.models import Letter  # noqa: F401


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite leaves foreign keys off unless asked, unlike PostgreSQL."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh schema in a temporary SQLite file, torn down after the test."""
    engine = database.init_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    await database.create_all()
    yield
    await database.close_db()


@pytest_asyncio.fixture
async def session(db):
    async with database.async_session_maker() as s:
        yield s


@pytest.fixture
def account_factory(db):
    """Insert an account directly and return its id."""

    async def _create(
        plan: str = "free",
        credits: int = 5,
        credits_reset_at: Optional[datetime] = None,
        email: Optional[str] = None,
    ) -> uuid.UUID:
        async with database.async_session_maker() as s:
            user = User(
                email=email or f"{uuid.uuid4().hex[:12]}@example.com",
                password_hash="not-a-real-hash",
                plan=plan,
                credits=credits,
                credits_reset_at=credits_reset_at or datetime.utcnow(),
            )
            s.add(user)
            await s.commit()
            return user.id

    return _create


@pytest.fixture
def read_ledger(db):
    """Read an account's ledger columns through a separate session."""

    async def _read(account_id: uuid.UUID) -> Optional[AccountLedgerEntry]:
        async with database.async_session_maker() as s:
            return await AccountLedgerRepository(s).get(account_id)

    return _read


class FixedClock:
    """Injectable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 15, 10, 30))
