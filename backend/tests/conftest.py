"""
Shared fixtures: an in-memory SQLite database per test, seeded users/accounts
and categories, and a TestClient wired to the same session.
"""
import os
import sys
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import GenerationHorizon, settings  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Account, Category, FixedRecurringEntry, Membership, User  # noqa: E402
from app.services.clock import FixedClock  # noqa: E402
from app.services.fixed_recurring_sync_service import FixedRecurringSynchronizer  # noqa: E402

TEST_AUTH_SECRET = "test-internal-auth-secret"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db, monkeypatch):
    monkeypatch.setattr(settings, "internal_auth_secret", TEST_AUTH_SECRET)

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def user(db) -> User:
    user = User(id="user-owner", email="owner@example.com", name="Owner")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def account(db, user) -> Account:
    account = Account(owner_id=user.id, name="Household", account_type="shared")
    db.add(account)
    db.flush()
    db.add(Membership(account_id=account.id, user_id=user.id, role="owner"))
    db.commit()
    return account


@pytest.fixture
def expense_category(db, account) -> Category:
    category = Category(account_id=account.id, name="Housing", category_type="expense")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def income_category(db, account) -> Category:
    category = Category(account_id=account.id, name="Salary", category_type="income")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(date(2025, 1, 15))


@pytest.fixture
def synchronizer(db, clock) -> FixedRecurringSynchronizer:
    return FixedRecurringSynchronizer(db, horizon=GenerationHorizon(2), clock=clock)


@pytest.fixture
def make_entry(db, account, expense_category):
    """Insert a fixed recurring entry without syncing it."""

    def _make_entry(**overrides) -> FixedRecurringEntry:
        values = dict(
            account_id=account.id,
            category_id=expense_category.id,
            title="Rent",
            kind="expense",
            amount=120000,
            day_of_month=25,
            use_end_of_month=False,
            effective_from=date(2024, 12, 1),
            effective_to=date(2025, 2, 1),
        )
        values.update(overrides)
        entry = FixedRecurringEntry(**values)
        db.add(entry)
        db.flush()
        return entry

    return _make_entry
