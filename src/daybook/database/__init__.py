"""Database layer for daybook application."""

from daybook.database.base import Database
from daybook.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
