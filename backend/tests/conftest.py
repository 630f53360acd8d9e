"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from datetime import datetime
from decimal import Decimal

from pesaledger.config import Settings
from pesaledger.container import AppContainer
from pesaledger.database import Base, create_db_engine, create_session_factory
from pesaledger.dependencies import get_db
from pesaledger.main import create_app
from pesaledger.models.account import Account
from pesaledger.models.category import Category, CategoryItem
from pesaledger.models.transaction import Transaction, TransactionKind, TransactionStatus
from pesaledger.seed import seed_defaults
from pesaledger.services.remote_store import InMemoryRemoteStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory SQLite database with foreign keys enabled."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite:///:memory:",
        seed_defaults=False,
        sync_enabled=False,
        user_id=None,
        sync_interval_seconds=3600,
    )


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def container(test_settings, engine, session_factory, remote_store):
    return AppContainer(
        test_settings,
        engine=engine,
        session_factory=session_factory,
        remote_store=remote_store,
    )


@pytest.fixture(scope="function")
def client(container, db_session):
    """Create a test client with database override."""
    app = create_app(container)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_db(db_session):
    """Ledger with default categories, accounts and this week's limit."""
    seed_defaults(db_session)
    return db_session


@pytest.fixture
def sample_account(db_session):
    account = Account(name="M-Pesa", sender_pattern="MPESA", balance=Decimal("1000.00"))
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def sample_category(db_session):
    """Transport with two items."""
    category = Category(name="Transport")
    category.items = [CategoryItem(name="Matatu"), CategoryItem(name="Uber")]
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def sample_transaction(db_session, sample_account):
    txn = Transaction(
        account_id=sample_account.id,
        amount=Decimal("250.00"),
        fee=Decimal("0.00"),
        kind=TransactionKind.DEBIT,
        description="Paid from M-Pesa",
        date=datetime(2024, 3, 7, 12, 30),
        status=TransactionStatus.UNCATEGORIZED,
        fingerprint="f" * 64,
    )
    db_session.add(txn)
    db_session.commit()
    db_session.refresh(txn)
    return txn
