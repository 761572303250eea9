"""Domain layer for daybook application."""

__all__ = [
    "DayBookService",
    "SessionService",
    "SyncQueueManager",
]


# Services import the database layer, which imports entities from here,
# so they are resolved lazily
def __getattr__(name):
    if name == "DayBookService":
        from daybook.domain.daybook import DayBookService
        return DayBookService
    if name == "SessionService":
        from daybook.domain.session import SessionService
        return SessionService
    if name == "SyncQueueManager":
        from daybook.domain.sync import SyncQueueManager
        return SyncQueueManager
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
