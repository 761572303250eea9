"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class InfrastructureError(Exception):
    """Base class for storage and network faults."""


class StorageUnavailable(InfrastructureError):
    """The local store could not complete an operation."""


class NetworkUnavailable(InfrastructureError):
    """The remote service could not be reached or timed out."""


class RemoteError(InfrastructureError):
    """The remote service answered with an error status."""

    def __init__(self, status_code: int, feedback: str | None = None):
        self.status_code = status_code
        self.feedback = feedback
        message = f"Remote service returned {status_code}"
        if feedback:
            message = f"{message}: {feedback}"
        super().__init__(message)


def no_session() -> str:
    """Return message when no driver session is active."""
    return "No active driver session. Log in or start offline mode first"


def no_open_day() -> str:
    """Return message when an operation needs an open day but none exists."""
    return "No open day found. Start a day first"


def log_not_found(log_id: str) -> str:
    """Return message for missing daily log."""
    return f"Daily log {log_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def sync_item_not_found(item_id: str) -> str:
    """Return message for missing sync queue item."""
    return f"Sync queue item {item_id} not found"
