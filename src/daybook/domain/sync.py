"""Sync queue: replay locally authored mutations against the remote API.

Local writes never wait on the network. Each successful intent of an online
driver is recorded as a queue item, and ``drain`` sends the items strictly
in enqueue order, stopping at the first failure so that a transaction never
reaches the server before the day it belongs to.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from daybook.database.base import Database
from daybook.domain.entities import (
    DailyLog,
    Driver,
    SyncAction,
    SyncQueueItem,
    TradeCategory,
    Transaction,
    TransactionType,
)
from daybook.domain.errors import (
    NetworkUnavailable,
    NotFoundError,
    RemoteError,
    sync_item_not_found,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrainReport:
    """What a drain attempt did."""

    sent: tuple[str, ...] = ()
    failed_item: Optional[str] = None
    failure_reason: Optional[str] = None
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


def sync_item_id(action: SyncAction, driver_id: str, log_id: str, transaction_id: Optional[str] = None) -> str:
    """Derive a queue item id by hashing the intent it represents."""
    key = "|".join([action.value, driver_id, log_id, transaction_id or ""])
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:24]


def remote_transaction_fields(transaction: Transaction) -> tuple[Any, str, str]:
    """Map a local transaction to the remote (amount, type, description) triple.

    The server only knows income and expense rows, so trades are sent with
    the cash that actually changed hands.
    """
    if transaction.type == TransactionType.INCOME:
        return transaction.amount, "income", transaction.client_name
    if transaction.type == TransactionType.EXPENSE:
        return transaction.amount, "expense", transaction.client_name

    details = transaction.trade_details
    remote_type = "income" if details.category == TradeCategory.SALES else "expense"
    description = f"{details.product_name} - {transaction.client_name}"
    return details.paid_amount, remote_type, description


def open_day_item(log: DailyLog, now: Optional[datetime] = None) -> SyncQueueItem:
    return SyncQueueItem(
        id=sync_item_id(SyncAction.OPEN_DAY, log.driver_id, log.id),
        action=SyncAction.OPEN_DAY,
        payload={"driver_id": log.driver_id, "log_id": log.id},
        timestamp=now or datetime.now(UTC),
    )


def close_day_item(log: DailyLog, now: Optional[datetime] = None) -> SyncQueueItem:
    return SyncQueueItem(
        id=sync_item_id(SyncAction.CLOSE_DAY, log.driver_id, log.id),
        action=SyncAction.CLOSE_DAY,
        payload={
            "driver_id": log.driver_id,
            "log_id": log.id,
            "closed_at": log.closed_at.isoformat() if log.closed_at else None,
        },
        timestamp=now or datetime.now(UTC),
    )


def create_transaction_item(
    log: DailyLog, transaction: Transaction, now: Optional[datetime] = None
) -> SyncQueueItem:
    amount, remote_type, description = remote_transaction_fields(transaction)
    return SyncQueueItem(
        id=sync_item_id(SyncAction.CREATE_TRANSACTION, log.driver_id, log.id, transaction.id),
        action=SyncAction.CREATE_TRANSACTION,
        payload={
            "driver_id": log.driver_id,
            "log_id": log.id,
            "transaction_id": transaction.id,
            # Kept as text so the payload stays JSON and exact
            "amount": str(amount),
            "type": remote_type,
            "description": description,
        },
        timestamp=now or datetime.now(UTC),
    )


class SyncQueueManager:
    """Durable FIFO of pending remote actions and its replay loop."""

    def __init__(self, db: Database, gateway, online: bool = False):
        """Initialize sync queue manager.

        Args:
            db: Database instance holding the queue
            gateway: RemoteGateway (or compatible) used to replay items
            online: Whether the network is currently reachable
        """
        self.db = db
        self.gateway = gateway
        self.online = online
        self._draining = threading.Lock()

    def enqueue(self, item: SyncQueueItem) -> None:
        """Append an item to the durable queue. Never touches the network."""
        self.db.save_sync_item(item)
        logger.debug("Queued %s %s", item.action.value, item.id)

    def pending(self, driver_id: Optional[str] = None) -> list[SyncQueueItem]:
        """List queued items in replay order."""
        return self.db.list_sync_queue(driver_id=driver_id)

    def discard(self, item_id: str) -> None:
        """Drop an item the server will never accept so the queue can move on.

        Raises:
            NotFoundError: If the item is not queued
        """
        if self.db.get_sync_item(item_id) is None:
            raise NotFoundError(sync_item_not_found(item_id))
        self.db.delete_sync_item(item_id)
        logger.info("Discarded sync item %s", item_id)

    def start(self) -> DrainReport:
        """Initial trigger at startup: drain if the network is already up."""
        if not self.online:
            return DrainReport(skipped_reason="offline")
        return self.drain()

    def set_online(self, online: bool) -> DrainReport:
        """Record a connectivity change. Going online triggers a drain."""
        was_online = self.online
        self.online = online
        if online and not was_online:
            logger.info("Network is back, draining sync queue")
            return self.drain()
        return DrainReport(skipped_reason="no transition to online")

    def drain(self) -> DrainReport:
        """Replay queued items in order until the queue is empty or one fails.

        A drain requested while another is running is dropped. Per-item
        network and server failures are logged and reported, never raised;
        storage failures propagate.
        """
        if not self.online:
            return DrainReport(skipped_reason="offline")

        driver = self.db.get_current_driver()
        if driver is None or driver.is_offline_only:
            return DrainReport(skipped_reason="offline-only")

        if not self._draining.acquire(blocking=False):
            logger.debug("Drain already in progress, request dropped")
            return DrainReport(skipped_reason="busy")

        try:
            return self._drain_items(driver)
        finally:
            self._draining.release()

    def _drain_items(self, driver: Driver) -> DrainReport:
        self.gateway.token = driver.token
        sent: list[str] = []

        for item in self.db.list_sync_queue(driver_id=driver.mobile):
            if self.db.has_sync_receipt(item.id):
                # Same intent was acknowledged before; never resend it
                self.db.delete_sync_item(item.id)
                continue

            try:
                self._send(item)
            except (NetworkUnavailable, RemoteError) as e:
                logger.warning("Sync stopped at %s %s: %s", item.action.value, item.id, e)
                return DrainReport(sent=tuple(sent), failed_item=item.id, failure_reason=str(e))

            self.db.complete_sync_item(item)
            sent.append(item.id)
            logger.info("Synced %s %s", item.action.value, item.id)

        return DrainReport(sent=tuple(sent))

    def _send(self, item: SyncQueueItem) -> None:
        if item.action == SyncAction.OPEN_DAY:
            self.gateway.open_day(idempotency_key=item.id)
        elif item.action == SyncAction.CLOSE_DAY:
            self.gateway.close_day(idempotency_key=item.id)
        elif item.action == SyncAction.CREATE_TRANSACTION:
            payload = item.payload
            self.gateway.create_transaction(
                amount=Decimal(payload["amount"]),
                type=payload["type"],
                description=payload["description"],
                idempotency_key=item.id,
            )
        else:
            raise ValueError(f"Unsupported sync action {item.action}")
