"""Daily log domain service.

Composes the ledger engine and the day lifecycle with the store and the sync
queue. Every intent reads the log fresh from the store, validates, persists
the returned log and only then hands the intent to the sync queue.
"""

import logging
from dataclasses import replace
from datetime import datetime, date, UTC
from decimal import Decimal
from typing import Optional

from daybook.database.base import Database
from daybook.domain import ledger, lifecycle
from daybook.domain.entities import (
    DailyLog,
    Driver,
    SyncAction,
    SyncQueueItem,
    TradeDetails,
    Transaction,
    TransactionType,
    generate_id,
)
from daybook.domain.errors import (
    NotFoundError,
    ValidationError,
    log_not_found,
    no_open_day,
    no_session,
    transaction_not_found,
)
from daybook.domain.outcomes import Accepted, DayClosed, LifecycleOutcome
from daybook.domain.sync import (
    SyncQueueManager,
    close_day_item,
    create_transaction_item,
    open_day_item,
    sync_item_id,
)

logger = logging.getLogger(__name__)


class DayBookService:
    """Service for opening, recording and closing daily logs."""

    def __init__(self, db: Database, sync_queue: SyncQueueManager):
        """Initialize day book service.

        Args:
            db: Database instance
            sync_queue: Queue that receives intents of online drivers
        """
        self.db = db
        self.sync_queue = sync_queue

    def current_driver(self) -> Driver:
        """Return the active driver.

        Raises:
            NotFoundError: If no session is active
        """
        driver = self.db.get_current_driver()
        if driver is None:
            raise NotFoundError(no_session())
        return driver

    def list_logs(self) -> list[DailyLog]:
        """List the active driver's logs, newest first."""
        return self.db.list_logs(self.current_driver().mobile)

    def get_log(self, log_id: str) -> Optional[DailyLog]:
        return self.db.get_log(self.current_driver().mobile, log_id)

    def get_current_log(self) -> Optional[DailyLog]:
        """Return the open log of the active driver, if any."""
        return lifecycle.find_open_log(self.list_logs())

    def require_log(self, log_id: Optional[str] = None) -> DailyLog:
        """Return the given log, or the open log when ``log_id`` is None.

        Raises:
            NotFoundError: If the log does not exist or no day is open
        """
        if log_id is None:
            log = self.get_current_log()
            if log is None:
                raise NotFoundError(no_open_day())
            return log

        log = self.get_log(log_id)
        if log is None:
            raise NotFoundError(log_not_found(log_id))
        return log

    def start_day(self, day: Optional[date] = None, now: Optional[datetime] = None) -> LifecycleOutcome:
        """Open a log for ``day`` (today by default)."""
        driver = self.current_driver()
        outcome = lifecycle.create_log(
            driver_id=driver.mobile,
            day=day or date.today(),
            existing_logs=self.db.list_logs(driver.mobile),
            now=now,
        )
        if not outcome.ok:
            return outcome

        log = self._persist(driver, outcome.value)
        self._queue(driver, open_day_item(log))
        return Accepted(self._reload(log))

    def add_transaction(
        self,
        client_name: str,
        amount: Decimal,
        type: TransactionType,
        log_id: Optional[str] = None,
    ) -> LifecycleOutcome:
        """Record an income or expense entry."""
        if type == TransactionType.TRADE:
            raise ValidationError("Trade transactions must be added with trade details")

        driver = self.current_driver()
        transaction = Transaction(
            id=generate_id(),
            client_name=client_name.strip(),
            amount=amount,
            type=type,
            timestamp=datetime.now(UTC),
            is_synced=driver.is_offline_only,
        )
        return self._add(driver, self.require_log(log_id), transaction)

    def add_trade(self, details: TradeDetails, log_id: Optional[str] = None) -> LifecycleOutcome:
        """Record a sale or purchase. Only the paid amount moves the balance."""
        driver = self.current_driver()
        transaction = Transaction(
            id=generate_id(),
            client_name=details.customer_name.strip(),
            amount=details.total,
            type=TransactionType.TRADE,
            timestamp=datetime.now(UTC),
            is_synced=driver.is_offline_only,
            trade_details=details,
        )
        return self._add(driver, self.require_log(log_id), transaction)

    def _add(self, driver: Driver, log: DailyLog, transaction: Transaction) -> LifecycleOutcome:
        outcome = lifecycle.mutate_transactions(log, lifecycle.AddTransaction(transaction))
        if not outcome.ok:
            return outcome

        updated = self._persist(driver, outcome.value)
        self._queue(driver, create_transaction_item(updated, transaction))
        return Accepted(self._reload(updated))

    def update_transaction(
        self,
        transaction_id: str,
        client_name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        type: Optional[TransactionType] = None,
        trade_details: Optional[TradeDetails] = None,
        log_id: Optional[str] = None,
    ) -> LifecycleOutcome:
        """Edit a transaction. Only provided fields change.

        The remote API has no edit endpoint, so an edit only reaches the
        server while the transaction is still waiting in the queue.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        driver = self.current_driver()
        log = self.require_log(log_id)
        if log.is_closed:
            return DayClosed(log_id=log.id)

        existing = log.find_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        new_type = type or existing.type
        if new_type == TransactionType.TRADE:
            details = trade_details or existing.trade_details
            if details is None:
                raise ValidationError("Trade transactions require trade details")
            new_client = details.customer_name if trade_details else (client_name or existing.client_name)
            new_amount = details.total
        else:
            details = None
            new_client = client_name if client_name is not None else existing.client_name
            new_amount = amount if amount is not None else existing.amount

        updated_txn = replace(
            existing,
            client_name=new_client.strip(),
            amount=new_amount,
            type=new_type,
            trade_details=details,
            is_synced=driver.is_offline_only,
        )
        outcome = lifecycle.mutate_transactions(log, lifecycle.EditTransaction(updated_txn))
        if not outcome.ok:
            return outcome
        updated = self._persist(driver, outcome.value)

        pending = self._unsent_create(driver, updated.id, transaction_id)
        if pending is not None:
            # Same id, so the queue keeps its position
            self.sync_queue.enqueue(create_transaction_item(updated, updated_txn, now=pending.timestamp))
        return Accepted(updated)

    def delete_transaction(self, transaction_id: str, log_id: Optional[str] = None) -> LifecycleOutcome:
        """Remove a transaction if the remaining entries stay covered.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        driver = self.current_driver()
        log = self.require_log(log_id)
        outcome = lifecycle.mutate_transactions(log, lifecycle.DeleteTransaction(transaction_id))
        if not outcome.ok:
            return outcome
        updated = self._persist(driver, outcome.value)

        pending = self._unsent_create(driver, updated.id, transaction_id)
        if pending is not None:
            self.db.delete_sync_item(pending.id)
            logger.debug("Dropped unsent %s for deleted transaction %s", pending.id, transaction_id)
        return Accepted(updated)

    def close_day(self, log_id: Optional[str] = None, now: Optional[datetime] = None) -> LifecycleOutcome:
        """Close a log for good."""
        driver = self.current_driver()
        log = self.require_log(log_id)
        outcome = lifecycle.close_log(log, now=now)
        if not outcome.ok:
            return outcome

        closed = self._persist(driver, outcome.value)
        self._queue(driver, close_day_item(closed))
        return Accepted(self._reload(closed))

    def summarize(self, log: DailyLog) -> ledger.LedgerSummary:
        return ledger.summarize(log.transactions)

    def search(self, query: str, log_id: Optional[str] = None) -> list[Transaction]:
        return ledger.search_transactions(self.require_log(log_id).transactions, query)

    def _persist(self, driver: Driver, log: DailyLog) -> DailyLog:
        log = replace(log, is_synced=driver.is_offline_only)
        self.db.save_log(log)
        return log

    def _reload(self, log: DailyLog) -> DailyLog:
        # A drain may have flipped sync flags since the save
        return self.db.get_log(log.driver_id, log.id) or log

    def _unsent_create(self, driver: Driver, log_id: str, transaction_id: str) -> Optional[SyncQueueItem]:
        """Return the queued create for a transaction if the server has not seen it."""
        if driver.is_offline_only:
            return None
        item_id = sync_item_id(SyncAction.CREATE_TRANSACTION, driver.mobile, log_id, transaction_id)
        if self.db.has_sync_receipt(item_id):
            return None
        return self.db.get_sync_item(item_id)

    def _queue(self, driver: Driver, item: SyncQueueItem) -> None:
        # Offline-only data is authoritative on the device
        if driver.is_offline_only:
            return
        self.sync_queue.enqueue(item)
        self.sync_queue.drain()
