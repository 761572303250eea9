"""Generic SQLAlchemy database implementation."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daybook.database.base import Database
from daybook.database.models import (
    AppState,
    DailyLog,
    Driver,
    SyncQueueEntry,
    SyncReceipt,
    create_session_factory,
)
from daybook.database.mappers import (
    driver_to_domain,
    log_to_domain,
    sync_item_to_domain,
    transaction_to_orm,
)
from daybook.domain.entities import (
    DailyLog as DomainDailyLog,
    Driver as DomainDriver,
    SyncAction,
    SyncQueueItem as DomainSyncQueueItem,
)
from daybook.domain.errors import StorageUnavailable

logger = logging.getLogger(__name__)

CURRENT_DRIVER_KEY = "current_driver"


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')

        Raises:
            StorageUnavailable: If the schema cannot be created
        """
        self.database_url = database_url
        try:
            self.session_factory = create_session_factory(database_url)
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Could not open database {database_url}: {e}") from e
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    @contextmanager
    def _unit(self, operation: str, commit: bool = False) -> Iterator[Session]:
        """Run a block against the session, translating storage faults.

        On any failure the session is rolled back so nothing is half written.
        """
        session = self._get_session()
        try:
            yield session
            if commit:
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Storage failure while trying to %s: %s", operation, e)
            raise StorageUnavailable(f"Could not {operation}: {e}") from e
        except Exception:
            session.rollback()
            raise

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Driver operations
    def get_driver(self, mobile: str) -> Optional[DomainDriver]:
        """Get driver by mobile number."""
        with self._unit("read driver") as session:
            driver = session.get(Driver, mobile)
            if driver is None:
                return None
            return driver_to_domain(driver)

    def list_drivers(self) -> list[DomainDriver]:
        """List all drivers known to this device."""
        with self._unit("list drivers") as session:
            drivers = session.query(Driver).order_by(Driver.name).all()
            return [driver_to_domain(drv) for drv in drivers]

    def save_driver(self, driver: DomainDriver) -> None:
        """Insert or replace a driver."""
        with self._unit("save driver", commit=True) as session:
            orm_driver = session.get(Driver, driver.mobile)
            if orm_driver is None:
                orm_driver = Driver(mobile=driver.mobile)
                session.add(orm_driver)
            orm_driver.name = driver.name
            orm_driver.token = driver.token
            orm_driver.is_offline_only = driver.is_offline_only
            orm_driver.preferences = dict(driver.preferences)

    def delete_driver(self, mobile: str) -> None:
        """Delete a driver record."""
        with self._unit("delete driver", commit=True) as session:
            orm_driver = session.get(Driver, mobile)
            if orm_driver is not None:
                session.delete(orm_driver)

    # Session pointer
    def get_current_driver_key(self) -> Optional[str]:
        """Return the mobile number of the active driver, if any."""
        with self._unit("read session") as session:
            state = session.get(AppState, CURRENT_DRIVER_KEY)
            return state.value if state is not None else None

    def set_current_driver_key(self, mobile: str) -> None:
        """Point the session at a driver."""
        with self._unit("save session", commit=True) as session:
            state = session.get(AppState, CURRENT_DRIVER_KEY)
            if state is None:
                session.add(AppState(key=CURRENT_DRIVER_KEY, value=mobile))
            else:
                state.value = mobile

    def clear_current_driver_key(self) -> None:
        """Clear the session pointer without touching driver records."""
        with self._unit("clear session", commit=True) as session:
            state = session.get(AppState, CURRENT_DRIVER_KEY)
            if state is not None:
                session.delete(state)

    # Daily log operations
    def _find_log(self, session: Session, driver_id: str, log_id: str) -> Optional[DailyLog]:
        return (
            session.query(DailyLog)
            .filter(DailyLog.driver_id == driver_id, DailyLog.log_id == log_id)
            .first()
        )

    def get_log(self, driver_id: str, log_id: str) -> Optional[DomainDailyLog]:
        """Get a daily log by driver and date id."""
        with self._unit("read daily log") as session:
            log = self._find_log(session, driver_id, log_id)
            if log is None:
                return None
            return log_to_domain(log)

    def list_logs(self, driver_id: str) -> list[DomainDailyLog]:
        """List a driver's logs, newest first."""
        with self._unit("list daily logs") as session:
            logs = (
                session.query(DailyLog)
                .filter(DailyLog.driver_id == driver_id)
                .order_by(DailyLog.log_id.desc())
                .all()
            )
            return [log_to_domain(log) for log in logs]

    def save_log(self, log: DomainDailyLog) -> None:
        """Insert or replace a daily log together with its transactions."""
        with self._unit("save daily log", commit=True) as session:
            orm_log = self._find_log(session, log.driver_id, log.id)
            if orm_log is None:
                orm_log = DailyLog(log_id=log.id, driver_id=log.driver_id)
                session.add(orm_log)
            else:
                # Drop the old rows first so re-inserted ids do not collide
                orm_log.transactions.clear()
                session.flush()

            orm_log.status = log.status.value
            orm_log.created_at = log.created_at
            orm_log.closed_at = log.closed_at
            orm_log.is_synced = log.is_synced
            orm_log.transactions = [
                transaction_to_orm(txn, position) for position, txn in enumerate(log.transactions)
            ]
            logger.debug("Saved log %s for %s (%d transactions)", log.id, log.driver_id, len(log.transactions))

    def delete_log(self, driver_id: str, log_id: str) -> None:
        """Delete a daily log and its transactions."""
        with self._unit("delete daily log", commit=True) as session:
            orm_log = self._find_log(session, driver_id, log_id)
            if orm_log is not None:
                session.delete(orm_log)

    # Sync queue operations
    def get_sync_item(self, item_id: str) -> Optional[DomainSyncQueueItem]:
        """Get a queued item by id."""
        with self._unit("read sync item") as session:
            entry = session.query(SyncQueueEntry).filter(SyncQueueEntry.id == item_id).first()
            if entry is None:
                return None
            return sync_item_to_domain(entry)

    def list_sync_queue(self, driver_id: Optional[str] = None) -> list[DomainSyncQueueItem]:
        """List queued items in enqueue order, optionally for one driver."""
        with self._unit("list sync queue") as session:
            query = session.query(SyncQueueEntry)
            if driver_id is not None:
                query = query.filter(SyncQueueEntry.driver_id == driver_id)
            entries = query.order_by(SyncQueueEntry.sequence).all()
            return [sync_item_to_domain(entry) for entry in entries]

    def save_sync_item(self, item: DomainSyncQueueItem) -> None:
        """Append an item, or replace it in place if its id is already queued."""
        with self._unit("save sync item", commit=True) as session:
            entry = session.query(SyncQueueEntry).filter(SyncQueueEntry.id == item.id).first()
            if entry is None:
                entry = SyncQueueEntry(id=item.id)
                session.add(entry)
            entry.driver_id = item.payload.get("driver_id", "")
            entry.action = item.action.value
            entry.payload = dict(item.payload)
            entry.timestamp = item.timestamp

    def delete_sync_item(self, item_id: str) -> None:
        """Remove an item from the queue."""
        with self._unit("delete sync item", commit=True) as session:
            session.query(SyncQueueEntry).filter(SyncQueueEntry.id == item_id).delete()

    def has_sync_receipt(self, item_id: str) -> bool:
        """Check whether the remote service already acknowledged an item."""
        with self._unit("read sync receipt") as session:
            return session.get(SyncReceipt, item_id) is not None

    def complete_sync_item(self, item: DomainSyncQueueItem) -> None:
        """Record an acknowledgement in a single commit."""
        with self._unit("complete sync item", commit=True) as session:
            session.query(SyncQueueEntry).filter(SyncQueueEntry.id == item.id).delete()
            if session.get(SyncReceipt, item.id) is None:
                session.add(SyncReceipt(id=item.id))

            driver_id = item.payload.get("driver_id")
            log_id = item.payload.get("log_id")
            orm_log = self._find_log(session, driver_id, log_id) if driver_id and log_id else None
            if orm_log is None:
                return

            if item.action == SyncAction.CREATE_TRANSACTION:
                for txn in orm_log.transactions:
                    if txn.transaction_id == item.payload.get("transaction_id"):
                        txn.is_synced = True

            pending = session.query(SyncQueueEntry).filter(SyncQueueEntry.driver_id == driver_id).all()
            log_pending = any(entry.payload.get("log_id") == log_id for entry in pending)
            if not log_pending and all(txn.is_synced for txn in orm_log.transactions):
                orm_log.is_synced = True
