"""Utility functions for daybook."""

from daybook.utils.date_parser import parse_date, get_date_range
from daybook.utils.amount_parser import parse_amount

__all__ = ["parse_date", "get_date_range", "parse_amount"]
