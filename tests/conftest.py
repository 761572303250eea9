"""Shared pytest fixtures for daybook tests."""

import tempfile
import os
from datetime import datetime, UTC
from decimal import Decimal
import pytest

from daybook.database.factories import create_sqlite_database
from daybook.domain.daybook import DayBookService
from daybook.domain.entities import Transaction, TransactionType
from daybook.domain.session import SessionService
from daybook.domain.sync import SyncQueueManager


class FakeGateway:
    """Records calls in order and fails on demand."""

    def __init__(self):
        self.token = None
        self.calls = []
        self.fail_on = {}
        self.on_send = None

    def _record(self, name, **kwargs):
        key = kwargs.get("idempotency_key")
        self.calls.append((name, kwargs))
        if self.on_send is not None:
            self.on_send(name, kwargs)
        error = self.fail_on.get(key) or self.fail_on.get(name)
        if error is not None:
            raise error
        return {"ok": True}

    def login(self, mobile, password):
        self._record("login", mobile=mobile)
        return f"token-{mobile}"

    def register(self, full_name, short_name, mobile, password):
        return self._record("register", full_name=full_name, short_name=short_name, mobile=mobile)

    def logout(self):
        self._record("logout")

    def open_day(self, idempotency_key=None):
        return self._record("open_day", idempotency_key=idempotency_key)

    def close_day(self, idempotency_key=None):
        return self._record("close_day", idempotency_key=idempotency_key)

    def create_transaction(self, amount, type, description, idempotency_key=None):
        return self._record(
            "create_transaction",
            amount=amount,
            type=type,
            description=description,
            idempotency_key=idempotency_key,
        )

    def get_current_day(self):
        return self._record("get_current_day")

    def list_transactions(self):
        self._record("list_transactions")
        return []

    @property
    def sent_keys(self):
        return [kwargs.get("idempotency_key") for _, kwargs in self.calls if kwargs.get("idempotency_key")]


def make_transaction(txn_id, type, amount, client_name="Client", trade_details=None):
    """Build a transaction with a fixed timestamp."""
    return Transaction(
        id=txn_id,
        client_name=client_name,
        amount=Decimal(str(amount)),
        type=type,
        timestamp=datetime(2024, 1, 15, 9, 0, tzinfo=UTC),
        trade_details=trade_details,
    )


def income(txn_id, amount, client_name="Customer"):
    return make_transaction(txn_id, TransactionType.INCOME, amount, client_name)


def expense(txn_id, amount, client_name="Fuel"):
    return make_transaction(txn_id, TransactionType.EXPENSE, amount, client_name)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def fake_gateway():
    """Create a recording gateway."""
    return FakeGateway()


@pytest.fixture
def sync_queue(temp_db, fake_gateway):
    """Create an offline SyncQueueManager; tests flip it online as needed."""
    return SyncQueueManager(temp_db, fake_gateway, online=False)


@pytest.fixture
def session_service(temp_db, fake_gateway, sync_queue):
    """Create a SessionService with a temporary database."""
    return SessionService(temp_db, fake_gateway, sync_queue)


@pytest.fixture
def daybook_service(temp_db, sync_queue):
    """Create a DayBookService with a temporary database."""
    return DayBookService(temp_db, sync_queue)


@pytest.fixture
def offline_driver(session_service):
    """Start an offline-only session."""
    return session_service.start_offline_mode("Ahmed", "01000000001")


@pytest.fixture
def online_driver(session_service):
    """Log in an online driver through the fake gateway."""
    return session_service.login("01000000002", "secret")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
