"""Domain model entities for daybook.

These are pure data classes representing business concepts, independent of
database schema. Entities are frozen: every change produces a new instance
that the caller is expected to persist.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class TransactionType(str, Enum):
    """Transaction variants recorded in a daily log."""

    INCOME = "income"
    EXPENSE = "expense"
    TRADE = "trade"


class TradeCategory(str, Enum):
    """Direction of a trade."""

    SALES = "sales"
    PURCHASE = "purchase"


class WeightUnit(str, Enum):
    """Unit for a traded quantity."""

    KG = "KG"
    TON = "ton"


class DayStatus(str, Enum):
    """Lifecycle state of a daily log."""

    OPEN = "open"
    CLOSED = "closed"


class SyncAction(str, Enum):
    """Remote actions that can be queued for replay."""

    OPEN_DAY = "OPEN_DAY"
    CLOSE_DAY = "CLOSE_DAY"
    CREATE_TRANSACTION = "CREATE_TRANSACTION"


DEFAULT_PREFERENCES: dict[str, bool] = {
    "enabled": True,
    "success": True,
    "error": True,
    "alert": True,
    "sync": True,
    "tap": True,
    "dismiss": True,
}


def generate_id() -> str:
    """Return a short random identifier for transactions and expense items."""
    return secrets.token_hex(5)


@dataclass(frozen=True)
class Driver:
    """Driver domain entity, keyed by mobile number."""

    mobile: str
    name: str
    token: Optional[str] = None
    is_offline_only: bool = False
    # Sound/notification preferences, stored and returned unexamined
    preferences: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_PREFERENCES))


@dataclass(frozen=True)
class ExpenseItem:
    """Expense deducted from a trade's gross value."""

    id: str
    label: str
    value: Decimal


@dataclass(frozen=True)
class TradeDetails:
    """Payload carried only by TRADE transactions.

    ``total`` is ``quantity * price - sum(expenses)``. Only ``paid_amount``
    moves cash; the rest is a receivable (sales) or payable (purchase).
    """

    category: TradeCategory
    product_name: str
    quantity: Decimal
    unit: WeightUnit
    price: Decimal
    customer_name: str
    expenses: tuple[ExpenseItem, ...]
    total: Decimal
    paid_amount: Decimal
    image: Optional[str] = None

    @property
    def remaining(self) -> Decimal:
        """Amount still to be collected or paid."""
        return self.total - self.paid_amount


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    For TRADE transactions ``amount`` is the trade total and
    ``trade_details`` is required; it is None for every other type.
    """

    id: str
    client_name: str
    amount: Decimal
    type: TransactionType
    timestamp: datetime
    is_synced: bool = False
    trade_details: Optional[TradeDetails] = None


@dataclass(frozen=True)
class DailyLog:
    """One calendar day's ledger for a driver. ``id`` is the ISO date."""

    id: str
    driver_id: str
    created_at: datetime
    status: DayStatus
    transactions: tuple[Transaction, ...] = ()
    closed_at: Optional[datetime] = None
    is_synced: bool = False

    @property
    def is_open(self) -> bool:
        return self.status == DayStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status == DayStatus.CLOSED

    @property
    def day(self) -> date:
        return date.fromisoformat(self.id)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for txn in self.transactions:
            if txn.id == transaction_id:
                return txn
        return None


@dataclass(frozen=True)
class SyncQueueItem:
    """Locally authored mutation awaiting acknowledgement from the server."""

    id: str
    action: SyncAction
    payload: dict[str, Any]
    timestamp: datetime
