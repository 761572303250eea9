"""Tests for Database interface returning domain models."""

import pytest
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from conftest import expense, income, make_transaction
from daybook.domain import entities
from daybook.domain.entities import (
    DailyLog,
    DayStatus,
    Driver,
    ExpenseItem,
    SyncAction,
    SyncQueueItem,
    TradeCategory,
    TransactionType,
    WeightUnit,
)
from daybook.domain.errors import StorageUnavailable
from daybook.domain.ledger import build_trade_details

DRIVER = "01000000001"


def make_log(log_id="2024-01-15", transactions=(), status=DayStatus.OPEN, driver_id=DRIVER):
    return DailyLog(
        id=log_id,
        driver_id=driver_id,
        created_at=datetime(2024, 1, 15, 8, 0, tzinfo=UTC),
        status=status,
        transactions=tuple(transactions),
    )


def make_item(item_id, action=SyncAction.CREATE_TRANSACTION, log_id="2024-01-15", **extra):
    payload = {"driver_id": DRIVER, "log_id": log_id, **extra}
    return SyncQueueItem(id=item_id, action=action, payload=payload, timestamp=datetime.now(UTC))


class TestDrivers:
    """Tests for driver storage and the session pointer."""

    def test_save_and_get_driver(self, temp_db):
        driver = Driver(mobile=DRIVER, name="Ahmed", token="abc", preferences={"tap": False})
        temp_db.save_driver(driver)

        stored = temp_db.get_driver(DRIVER)

        assert isinstance(stored, entities.Driver)
        assert stored == driver

    def test_save_driver_upserts(self, temp_db):
        temp_db.save_driver(Driver(mobile=DRIVER, name="Ahmed"))
        temp_db.save_driver(Driver(mobile=DRIVER, name="Ahmed Ali", is_offline_only=True))

        drivers = temp_db.list_drivers()
        assert len(drivers) == 1
        assert drivers[0].name == "Ahmed Ali"
        assert drivers[0].is_offline_only

    def test_get_missing_driver(self, temp_db):
        assert temp_db.get_driver("nobody") is None

    def test_session_pointer(self, temp_db):
        temp_db.save_driver(Driver(mobile=DRIVER, name="Ahmed"))
        assert temp_db.get_current_driver() is None

        temp_db.set_current_driver_key(DRIVER)
        assert temp_db.get_current_driver_key() == DRIVER
        assert temp_db.get_current_driver().name == "Ahmed"

        temp_db.clear_current_driver_key()
        assert temp_db.get_current_driver() is None
        assert temp_db.get_driver(DRIVER) is not None

    def test_delete_driver(self, temp_db):
        temp_db.save_driver(Driver(mobile=DRIVER, name="Ahmed"))
        temp_db.delete_driver(DRIVER)
        assert temp_db.get_driver(DRIVER) is None


class TestLogs:
    """Tests for daily log storage."""

    def test_save_and_get_log(self, temp_db):
        temp_db.save_log(make_log(transactions=[income("a", 1000), expense("b", "250.5")]))

        log = temp_db.get_log(DRIVER, "2024-01-15")

        assert isinstance(log, entities.DailyLog)
        assert log.status == DayStatus.OPEN
        assert [t.id for t in log.transactions] == ["a", "b"]
        assert log.transactions[0].type == TransactionType.INCOME
        assert isinstance(log.transactions[1].amount, Decimal)
        assert log.transactions[1].amount == Decimal("250.5")

    def test_timestamps_come_back_in_utc(self, temp_db):
        closed_at = datetime(2024, 1, 15, 21, 30, 15, 250000, tzinfo=UTC)
        saved = replace(make_log(transactions=[income("a", 1000)]), status=DayStatus.CLOSED, closed_at=closed_at)
        temp_db.save_log(saved)

        log = temp_db.get_log(DRIVER, "2024-01-15")

        assert log.created_at == saved.created_at
        assert log.created_at.tzinfo is not None
        assert log.closed_at == closed_at
        assert log.transactions[0].timestamp == saved.transactions[0].timestamp
        assert log.transactions[0].timestamp.utcoffset().total_seconds() == 0

    def test_trade_details_round_trip(self, temp_db):
        details = build_trade_details(
            category=TradeCategory.PURCHASE,
            product_name="Copper",
            quantity=Decimal("1.5"),
            unit=WeightUnit.TON,
            price=Decimal("2000"),
            customer_name="Hassan",
            paid_amount=Decimal("1000"),
            expenses=[ExpenseItem(id="e1", label="Loading", value=Decimal("100"))],
            image="receipt-1.jpg",
        )
        trade = make_transaction("t1", TransactionType.TRADE, details.total, "Hassan", details)
        temp_db.save_log(make_log(transactions=[income("a", 5000), trade]))

        stored = temp_db.get_log(DRIVER, "2024-01-15").transactions[1].trade_details

        assert stored.category == TradeCategory.PURCHASE
        assert stored.unit == WeightUnit.TON
        assert stored.total == Decimal("2900")
        assert stored.paid_amount == Decimal("1000")
        assert stored.expenses[0].label == "Loading"
        assert stored.expenses[0].value == Decimal("100")
        assert stored.image == "receipt-1.jpg"

    def test_save_log_replaces_transactions(self, temp_db):
        temp_db.save_log(make_log(transactions=[income("a", 1000), expense("b", 100)]))
        temp_db.save_log(make_log(transactions=[income("a", 1000), expense("b", 300), income("c", 5)]))

        log = temp_db.get_log(DRIVER, "2024-01-15")

        assert [t.id for t in log.transactions] == ["a", "b", "c"]
        assert log.transactions[1].amount == Decimal("300")

    def test_save_log_updates_status(self, temp_db):
        log = make_log()
        temp_db.save_log(log)
        temp_db.save_log(replace(log, status=DayStatus.CLOSED, closed_at=datetime(2024, 1, 15, 20, 0)))

        stored = temp_db.get_log(DRIVER, "2024-01-15")
        assert stored.status == DayStatus.CLOSED
        assert stored.closed_at is not None

    def test_list_logs_newest_first(self, temp_db):
        temp_db.save_log(make_log("2024-01-14", status=DayStatus.CLOSED))
        temp_db.save_log(make_log("2024-01-16"))
        temp_db.save_log(make_log("2024-01-15", status=DayStatus.CLOSED))

        assert [log.id for log in temp_db.list_logs(DRIVER)] == ["2024-01-16", "2024-01-15", "2024-01-14"]

    def test_logs_are_scoped_by_driver(self, temp_db):
        temp_db.save_log(make_log())
        temp_db.save_log(make_log(driver_id="01999999999"))

        assert len(temp_db.list_logs(DRIVER)) == 1
        assert temp_db.get_log("01999999999", "2024-01-15") is not None

    def test_delete_log(self, temp_db):
        temp_db.save_log(make_log(transactions=[income("a", 1)]))
        temp_db.delete_log(DRIVER, "2024-01-15")
        assert temp_db.get_log(DRIVER, "2024-01-15") is None


class TestSyncQueue:
    """Tests for sync queue storage."""

    def test_queue_is_fifo(self, temp_db):
        for item_id in ("first", "second", "third"):
            temp_db.save_sync_item(make_item(item_id))

        assert [item.id for item in temp_db.list_sync_queue()] == ["first", "second", "third"]

    def test_upsert_keeps_position(self, temp_db):
        temp_db.save_sync_item(make_item("first"))
        temp_db.save_sync_item(make_item("second"))
        temp_db.save_sync_item(make_item("first", amount="99"))

        items = temp_db.list_sync_queue()
        assert [item.id for item in items] == ["first", "second"]
        assert items[0].payload["amount"] == "99"

    def test_item_timestamp_keeps_utc(self, temp_db):
        item = make_item("first")
        temp_db.save_sync_item(item)

        stored = temp_db.get_sync_item("first")

        assert stored.timestamp == item.timestamp
        assert stored.timestamp.tzinfo is not None

    def test_filter_by_driver(self, temp_db):
        temp_db.save_sync_item(make_item("mine"))
        other = SyncQueueItem(
            id="theirs",
            action=SyncAction.OPEN_DAY,
            payload={"driver_id": "01999999999", "log_id": "2024-01-15"},
            timestamp=datetime.now(UTC),
        )
        temp_db.save_sync_item(other)

        assert [item.id for item in temp_db.list_sync_queue(driver_id=DRIVER)] == ["mine"]

    def test_delete_sync_item(self, temp_db):
        temp_db.save_sync_item(make_item("first"))
        temp_db.delete_sync_item("first")
        assert temp_db.get_sync_item("first") is None

    def test_complete_sync_item_marks_synced(self, temp_db):
        temp_db.save_log(make_log(transactions=[income("a", 1000)]))
        item = make_item("first", transaction_id="a")
        temp_db.save_sync_item(item)

        temp_db.complete_sync_item(item)

        assert temp_db.get_sync_item("first") is None
        assert temp_db.has_sync_receipt("first")
        log = temp_db.get_log(DRIVER, "2024-01-15")
        assert log.transactions[0].is_synced
        assert log.is_synced

    def test_log_stays_unsynced_while_items_pending(self, temp_db):
        temp_db.save_log(make_log(transactions=[income("a", 1000), income("b", 5)]))
        first = make_item("first", transaction_id="a")
        temp_db.save_sync_item(first)
        temp_db.save_sync_item(make_item("second", transaction_id="b"))

        temp_db.complete_sync_item(first)

        assert not temp_db.get_log(DRIVER, "2024-01-15").is_synced


class TestStorageFailures:
    """Storage faults surface as StorageUnavailable."""

    def test_failed_write_raises_storage_unavailable(self, temp_db):
        session = temp_db._get_session()
        with patch.object(session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))):
            with pytest.raises(StorageUnavailable):
                temp_db.save_driver(Driver(mobile=DRIVER, name="Ahmed"))

        # Nothing half written
        assert temp_db.get_driver(DRIVER) is None
