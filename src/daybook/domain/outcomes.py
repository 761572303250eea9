"""Explicit results for business-rule checks.

The ledger engine and the day lifecycle return one of these values instead
of raising for expected rule violations. Every outcome exposes ``ok`` and a
human readable ``message``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Union


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


@dataclass(frozen=True)
class Accepted:
    """The operation passed validation. ``value`` carries its result."""

    value: Any = None

    ok: ClassVar[bool] = True

    @property
    def message(self) -> str:
        return "OK"


class Rejection(ABC):
    """Base class for expected business-rule failures."""

    ok: ClassVar[bool] = False

    @property
    @abstractmethod
    def message(self) -> str:
        """Human readable reason for the rejection."""
        pass


@dataclass(frozen=True)
class InsufficientFunds(Rejection):
    """A debit would exceed the cash on hand.

    ``available`` is the balance before the change and
    ``projected_balance`` is what the balance would have become.
    """

    available: Decimal
    projected_balance: Decimal

    @property
    def message(self) -> str:
        return (
            f"Insufficient balance: available {_money(self.available)}, "
            f"balance would become {_money(self.projected_balance)}"
        )


@dataclass(frozen=True)
class WouldOverdraw(Rejection):
    """Removing a transaction would strand later debits."""

    projected_balance: Decimal

    @property
    def message(self) -> str:
        return (
            "Cannot delete transaction: other entries depend on it. "
            f"Balance would become {_money(self.projected_balance)}"
        )


@dataclass(frozen=True)
class DayClosed(Rejection):
    """The daily log is closed and can no longer change."""

    log_id: str

    @property
    def message(self) -> str:
        return f"Day {self.log_id} is closed and cannot be changed"


@dataclass(frozen=True)
class AlreadyOpen(Rejection):
    """Another daily log is already open for the driver."""

    log_id: str

    @property
    def message(self) -> str:
        return f"Day {self.log_id} is already open. Close it before starting a new day"


LedgerOutcome = Union[Accepted, InsufficientFunds, WouldOverdraw]
LifecycleOutcome = Union[Accepted, InsufficientFunds, WouldOverdraw, DayClosed, AlreadyOpen]
