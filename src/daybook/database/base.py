"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional

from daybook.domain.entities import DailyLog, Driver, SyncQueueItem


class Database(ABC):
    """Abstract store for drivers, daily logs, the sync queue and the session.

    Every operation may raise StorageUnavailable; no operation leaves a
    partial write behind.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Driver operations
    @abstractmethod
    def get_driver(self, mobile: str) -> Optional[Driver]:
        """Get driver by mobile number."""
        pass

    @abstractmethod
    def list_drivers(self) -> list[Driver]:
        """List all drivers known to this device."""
        pass

    @abstractmethod
    def save_driver(self, driver: Driver) -> None:
        """Insert or replace a driver."""
        pass

    @abstractmethod
    def delete_driver(self, mobile: str) -> None:
        """Delete a driver record."""
        pass

    # Session pointer
    @abstractmethod
    def get_current_driver_key(self) -> Optional[str]:
        """Return the mobile number of the active driver, if any."""
        pass

    @abstractmethod
    def set_current_driver_key(self, mobile: str) -> None:
        """Point the session at a driver."""
        pass

    @abstractmethod
    def clear_current_driver_key(self) -> None:
        """Clear the session pointer without touching driver records."""
        pass

    def get_current_driver(self) -> Optional[Driver]:
        """Resolve the session pointer to a driver."""
        mobile = self.get_current_driver_key()
        if mobile is None:
            return None
        return self.get_driver(mobile)

    # Daily log operations
    @abstractmethod
    def get_log(self, driver_id: str, log_id: str) -> Optional[DailyLog]:
        """Get a daily log by driver and date id."""
        pass

    @abstractmethod
    def list_logs(self, driver_id: str) -> list[DailyLog]:
        """List a driver's logs, newest first."""
        pass

    @abstractmethod
    def save_log(self, log: DailyLog) -> None:
        """Insert or replace a daily log together with its transactions."""
        pass

    @abstractmethod
    def delete_log(self, driver_id: str, log_id: str) -> None:
        """Delete a daily log and its transactions."""
        pass

    # Sync queue operations
    @abstractmethod
    def get_sync_item(self, item_id: str) -> Optional[SyncQueueItem]:
        """Get a queued item by id."""
        pass

    @abstractmethod
    def list_sync_queue(self, driver_id: Optional[str] = None) -> list[SyncQueueItem]:
        """List queued items in enqueue order, optionally for one driver."""
        pass

    @abstractmethod
    def save_sync_item(self, item: SyncQueueItem) -> None:
        """Append an item, or replace it in place if its id is already queued."""
        pass

    @abstractmethod
    def delete_sync_item(self, item_id: str) -> None:
        """Remove an item from the queue."""
        pass

    @abstractmethod
    def has_sync_receipt(self, item_id: str) -> bool:
        """Check whether the remote service already acknowledged an item."""
        pass

    @abstractmethod
    def complete_sync_item(self, item: SyncQueueItem) -> None:
        """Record an acknowledgement.

        Removes the item, stores a receipt for its id and marks the affected
        log or transaction as synced, all in one commit.
        """
        pass
