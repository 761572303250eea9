"""Driver session domain service."""

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from daybook.database.base import Database
from daybook.domain.entities import DEFAULT_PREFERENCES, Driver
from daybook.domain.errors import (
    NetworkUnavailable,
    NotFoundError,
    RemoteError,
    ValidationError,
    no_session,
)
from daybook.domain.sync import SyncQueueManager

logger = logging.getLogger(__name__)

DEFAULT_DRIVER_NAME = "Driver"


@dataclass(frozen=True)
class RemoteSnapshot:
    """Read-only view of the server's current day and transactions."""

    current_day: Any
    transactions: list[dict[str, Any]]


def _require_mobile(mobile: str) -> str:
    mobile = mobile.strip()
    if not mobile:
        raise ValidationError("Mobile number is required")
    return mobile


class SessionService:
    """Service for logging drivers in and out.

    The driver key is the mobile number; it joins local records with the
    server's.
    """

    def __init__(self, db: Database, gateway, sync_queue: SyncQueueManager):
        """Initialize session service.

        Args:
            db: Database instance
            gateway: RemoteGateway used for login and refresh
            sync_queue: Sync queue to trigger when a session resumes online
        """
        self.db = db
        self.gateway = gateway
        self.sync_queue = sync_queue

    def current_driver(self) -> Optional[Driver]:
        return self.db.get_current_driver()

    def login(self, mobile: str, password: str) -> Driver:
        """Authenticate against the server and make the driver current.

        Raises:
            NetworkUnavailable: If the server cannot be reached
            RemoteError: If the server rejects the credentials
        """
        mobile = _require_mobile(mobile)
        token = self.gateway.login(mobile, password)

        existing = self.db.get_driver(mobile)
        driver = Driver(
            mobile=mobile,
            name=existing.name if existing else DEFAULT_DRIVER_NAME,
            token=token,
            is_offline_only=False,
            preferences=dict(existing.preferences) if existing else dict(DEFAULT_PREFERENCES),
        )
        self.db.save_driver(driver)
        self.db.set_current_driver_key(mobile)
        self.gateway.token = token
        logger.info("Driver %s logged in", mobile)
        return driver

    def register(self, full_name: str, mobile: str, password: str) -> None:
        """Create the driver on the server. Does not start a session.

        Raises:
            ValidationError: If the name is empty
            NetworkUnavailable: If the server cannot be reached
            RemoteError: If the server rejects the registration
        """
        full_name = full_name.strip()
        if not full_name:
            raise ValidationError("Name is required")
        self.gateway.register(full_name, full_name.split()[0], _require_mobile(mobile), password)

    def start_offline_mode(self, name: str, mobile: str) -> Driver:
        """Create a driver that never talks to the server and make it current."""
        name = name.strip()
        if not name:
            raise ValidationError("Name is required")

        driver = Driver(
            mobile=_require_mobile(mobile),
            name=name,
            is_offline_only=True,
            preferences=dict(DEFAULT_PREFERENCES),
        )
        self.db.save_driver(driver)
        self.db.set_current_driver_key(driver.mobile)
        return driver

    def update_preferences(self, preferences: dict[str, Any]) -> Driver:
        """Store new preferences on the active driver.

        Raises:
            NotFoundError: If no session is active
        """
        driver = self.current_driver()
        if driver is None:
            raise NotFoundError(no_session())
        updated = replace(driver, preferences=dict(preferences))
        self.db.save_driver(updated)
        return updated

    def logout(self) -> Optional[Driver]:
        """End the session. The driver record and its logs are kept.

        When online the server token is revoked too; a failure there does
        not keep the local session alive.
        """
        driver = self.current_driver()
        if driver is not None and driver.token:
            if self.sync_queue.online:
                self.gateway.token = driver.token
                try:
                    self.gateway.logout()
                except (NetworkUnavailable, RemoteError) as e:
                    logger.info("Server logout skipped: %s", e)
            self.db.save_driver(replace(driver, token=None))
        self.db.clear_current_driver_key()
        self.gateway.token = None
        return driver

    def refresh(self) -> Optional[RemoteSnapshot]:
        """Fetch the server's view of the day. Returns None when unreachable."""
        driver = self.current_driver()
        if driver is None or driver.is_offline_only or not self.sync_queue.online:
            return None

        self.gateway.token = driver.token
        try:
            return RemoteSnapshot(
                current_day=self.gateway.get_current_day(),
                transactions=self.gateway.list_transactions(),
            )
        except (NetworkUnavailable, RemoteError) as e:
            logger.info("Refresh from server skipped: %s", e)
            return None

    def resume(self) -> Optional[Driver]:
        """Restore the saved session at startup.

        When online, refreshes from the server and drains the sync queue.
        """
        driver = self.current_driver()
        if driver is None:
            return None
        if not driver.is_offline_only and self.sync_queue.online:
            self.refresh()
            self.sync_queue.start()
        return driver
