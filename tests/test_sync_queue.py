"""Tests for the offline sync queue."""

import pytest
from datetime import date
from decimal import Decimal

from conftest import income, make_transaction
from daybook.domain.entities import SyncAction, TradeCategory, TransactionType, WeightUnit
from daybook.domain.errors import NetworkUnavailable, NotFoundError, RemoteError
from daybook.domain.ledger import build_trade_details
from daybook.domain.sync import (
    create_transaction_item,
    open_day_item,
    remote_transaction_fields,
    sync_item_id,
)

DAY = date(2024, 1, 15)


def remote_calls(gateway):
    return [name for name, _ in gateway.calls if name != "login"]


@pytest.fixture
def busy_day(daybook_service, online_driver):
    """Open a day and record two entries while the network is down."""
    daybook_service.start_day(day=DAY)
    daybook_service.add_transaction("Customer", Decimal("1000"), TransactionType.INCOME)
    daybook_service.add_transaction("Fuel", Decimal("200"), TransactionType.EXPENSE)
    return daybook_service.get_log("2024-01-15")


class TestQueueing:
    """Tests for enqueueing while offline."""

    def test_nothing_is_sent_while_offline(self, busy_day, sync_queue, fake_gateway):
        actions = [item.action for item in sync_queue.pending()]

        assert actions == [
            SyncAction.OPEN_DAY,
            SyncAction.CREATE_TRANSACTION,
            SyncAction.CREATE_TRANSACTION,
        ]
        assert remote_calls(fake_gateway) == []
        assert not busy_day.is_synced

    def test_same_intent_is_queued_once(self, busy_day, sync_queue):
        sync_queue.enqueue(open_day_item(busy_day))
        assert len(sync_queue.pending()) == 3

    def test_item_ids_derive_from_intent(self):
        first = sync_item_id(SyncAction.CREATE_TRANSACTION, "010", "2024-01-15", "a")
        again = sync_item_id(SyncAction.CREATE_TRANSACTION, "010", "2024-01-15", "a")
        other = sync_item_id(SyncAction.CREATE_TRANSACTION, "010", "2024-01-15", "b")

        assert first == again
        assert first != other

    def test_offline_only_driver_never_queues(self, daybook_service, sync_queue, offline_driver):
        daybook_service.start_day(day=DAY)
        daybook_service.add_transaction("Customer", Decimal("1000"), TransactionType.INCOME)
        daybook_service.close_day()

        assert sync_queue.pending() == []
        assert daybook_service.get_log("2024-01-15").is_synced


class TestDrain:
    """Tests for replaying the queue."""

    def test_reconnect_replays_in_order(self, busy_day, sync_queue, fake_gateway, daybook_service):
        queued = [item.id for item in sync_queue.pending()]

        report = sync_queue.set_online(True)

        assert report.sent == tuple(queued)
        assert remote_calls(fake_gateway) == ["open_day", "create_transaction", "create_transaction"]
        assert fake_gateway.sent_keys == queued
        assert sync_queue.pending() == []

        log = daybook_service.get_log("2024-01-15")
        assert log.is_synced
        assert all(txn.is_synced for txn in log.transactions)

    def test_transaction_payload_reaches_gateway(self, busy_day, sync_queue, fake_gateway):
        sync_queue.set_online(True)

        _, first = fake_gateway.calls[2]
        assert first["amount"] == Decimal("1000")
        assert first["type"] == "income"
        assert first["description"] == "Customer"

    def test_drain_stops_at_first_failure(self, busy_day, sync_queue, fake_gateway):
        fake_gateway.fail_on["create_transaction"] = NetworkUnavailable("timed out")

        report = sync_queue.set_online(True)

        assert remote_calls(fake_gateway) == ["open_day", "create_transaction"]
        assert len(report.sent) == 1
        assert report.failed_item == sync_queue.pending()[0].id
        assert "timed out" in report.failure_reason
        assert len(sync_queue.pending()) == 2

    def test_retry_resumes_without_resending(self, busy_day, sync_queue, fake_gateway):
        open_key = sync_queue.pending()[0].id
        fake_gateway.fail_on["create_transaction"] = NetworkUnavailable("timed out")
        sync_queue.set_online(True)

        fake_gateway.fail_on.clear()
        report = sync_queue.drain()

        assert len(report.sent) == 2
        assert fake_gateway.sent_keys.count(open_key) == 1
        assert sync_queue.pending() == []

    def test_server_rejection_keeps_item_at_head(self, busy_day, sync_queue, fake_gateway):
        fake_gateway.fail_on["open_day"] = RemoteError(409, "Day already open")

        report = sync_queue.set_online(True)

        assert report.sent == ()
        assert "Day already open" in report.failure_reason
        assert remote_calls(fake_gateway) == ["open_day"]
        assert sync_queue.pending()[0].action == SyncAction.OPEN_DAY

    def test_discard_unblocks_queue(self, busy_day, sync_queue, fake_gateway):
        head = sync_queue.pending()[0]
        fake_gateway.fail_on[head.id] = RemoteError(409, "Day already open")
        sync_queue.set_online(True)

        sync_queue.discard(head.id)
        report = sync_queue.drain()

        assert len(report.sent) == 2
        assert sync_queue.pending() == []

    def test_discard_unknown_item(self, sync_queue):
        with pytest.raises(NotFoundError):
            sync_queue.discard("missing")

    def test_acknowledged_item_is_never_resent(self, busy_day, sync_queue, fake_gateway, temp_db):
        head = sync_queue.pending()[0]
        # Acknowledged, then queued again by a replay of the same intent
        temp_db.complete_sync_item(head)
        sync_queue.enqueue(head)

        sync_queue.set_online(True)

        assert head.id not in fake_gateway.sent_keys
        assert sync_queue.pending() == []

    def test_concurrent_drain_is_dropped(self, busy_day, sync_queue, fake_gateway):
        nested = []

        def drain_again(name, kwargs):
            if not nested:
                nested.append(sync_queue.drain())

        fake_gateway.on_send = drain_again
        sync_queue.set_online(True)

        assert nested[0].skipped_reason == "busy"
        assert len(fake_gateway.sent_keys) == 3

    def test_drain_skipped_while_offline(self, busy_day, sync_queue):
        report = sync_queue.drain()
        assert report.skipped
        assert report.skipped_reason == "offline"

    def test_start_drains_when_online(self, busy_day, sync_queue):
        sync_queue.online = True
        assert len(sync_queue.start().sent) == 3

    def test_set_online_without_transition(self, busy_day, sync_queue, fake_gateway):
        sync_queue.online = True
        report = sync_queue.set_online(True)

        assert report.skipped
        assert remote_calls(fake_gateway) == []

    def test_going_offline_does_not_drain(self, busy_day, sync_queue, fake_gateway):
        sync_queue.online = True
        sync_queue.set_online(False)
        assert remote_calls(fake_gateway) == []

    def test_offline_only_driver_skips_drain(self, sync_queue, offline_driver):
        sync_queue.online = True
        assert sync_queue.drain().skipped_reason == "offline-only"

    def test_online_driver_syncs_immediately(self, daybook_service, sync_queue, fake_gateway, online_driver):
        sync_queue.online = True

        daybook_service.start_day(day=DAY)
        outcome = daybook_service.add_transaction("Customer", Decimal("50"), TransactionType.INCOME)

        assert remote_calls(fake_gateway) == ["open_day", "create_transaction"]
        assert outcome.value.is_synced
        assert outcome.value.transactions[0].is_synced


class TestLocalChanges:
    """Tests for edits and deletes of entries that are still queued."""

    def test_edit_before_drain_sends_new_amount(self, busy_day, sync_queue, fake_gateway, daybook_service):
        customer = busy_day.transactions[0]
        queued = [item.id for item in sync_queue.pending()]

        daybook_service.update_transaction(customer.id, amount=Decimal("1500"))

        assert [item.id for item in sync_queue.pending()] == queued
        sync_queue.set_online(True)

        _, sent = fake_gateway.calls[2]
        assert sent["amount"] == Decimal("1500")
        assert fake_gateway.sent_keys == queued

    def test_edit_to_trade_updates_queued_description(self, busy_day, sync_queue, fake_gateway, daybook_service):
        customer = busy_day.transactions[0]
        details = build_trade_details(
            category=TradeCategory.SALES,
            product_name="Copper",
            quantity=Decimal("1"),
            unit=WeightUnit.TON,
            price=Decimal("1200"),
            customer_name="Hassan",
            paid_amount=Decimal("1200"),
        )

        daybook_service.update_transaction(customer.id, type=TransactionType.TRADE, trade_details=details)
        sync_queue.set_online(True)

        _, sent = fake_gateway.calls[2]
        assert sent["amount"] == Decimal("1200")
        assert sent["type"] == "income"
        assert "Hassan" in sent["description"]

    def test_delete_before_drain_drops_queued_create(self, busy_day, sync_queue, fake_gateway, daybook_service):
        fuel = busy_day.transactions[1]
        fuel_key = sync_item_id(SyncAction.CREATE_TRANSACTION, busy_day.driver_id, busy_day.id, fuel.id)

        daybook_service.delete_transaction(fuel.id)

        assert fuel_key not in [item.id for item in sync_queue.pending()]
        sync_queue.set_online(True)

        assert remote_calls(fake_gateway) == ["open_day", "create_transaction"]
        assert fuel_key not in fake_gateway.sent_keys

    def test_edit_after_sync_queues_nothing(self, busy_day, sync_queue, fake_gateway, daybook_service):
        sync_queue.set_online(True)
        sent_before = list(fake_gateway.sent_keys)
        sync_queue.online = False

        daybook_service.update_transaction(busy_day.transactions[0].id, amount=Decimal("1500"))

        assert sync_queue.pending() == []
        sync_queue.set_online(True)
        assert fake_gateway.sent_keys == sent_before

    def test_delete_after_sync_leaves_receipts(self, busy_day, sync_queue, temp_db, daybook_service):
        fuel = busy_day.transactions[1]
        fuel_key = sync_item_id(SyncAction.CREATE_TRANSACTION, busy_day.driver_id, busy_day.id, fuel.id)
        sync_queue.set_online(True)

        daybook_service.delete_transaction(fuel.id)

        assert temp_db.has_sync_receipt(fuel_key)
        assert sync_queue.pending() == []


class TestRemoteMapping:
    """Tests for mapping local transactions to remote rows."""

    def _trade(self, category):
        details = build_trade_details(
            category=category,
            product_name="Copper",
            quantity=Decimal("2"),
            unit=WeightUnit.KG,
            price=Decimal("100"),
            customer_name="Hassan",
            paid_amount=Decimal("150"),
        )
        return make_transaction("t1", TransactionType.TRADE, details.total, "Hassan", details)

    def test_income_maps_directly(self):
        assert remote_transaction_fields(income("a", 10, client_name="Store")) == (Decimal("10"), "income", "Store")

    def test_sale_is_sent_as_income_of_paid_amount(self):
        amount, remote_type, description = remote_transaction_fields(self._trade(TradeCategory.SALES))

        assert amount == Decimal("150")
        assert remote_type == "income"
        assert description == "Copper - Hassan"

    def test_purchase_is_sent_as_expense(self):
        _, remote_type, _ = remote_transaction_fields(self._trade(TradeCategory.PURCHASE))
        assert remote_type == "expense"

    def test_payload_amount_is_text(self, busy_day):
        item = create_transaction_item(busy_day, income("x1", "1000.25"))

        assert item.payload["amount"] == "1000.25"
        assert item.payload["transaction_id"] == "x1"
        assert item.payload["log_id"] == "2024-01-15"
