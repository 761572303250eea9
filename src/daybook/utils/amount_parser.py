"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

# Arabic-Indic and Eastern Arabic-Indic digits
_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹٫٬", "01234567890123456789.,")
_CURRENCY = re.compile(r"(ج\.?\s?م\.?|EGP|LE|[$€£])", re.IGNORECASE)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "1500"
    - "1,234.56"
    - "1500 ج.م" / "EGP 1500"
    - "١٥٠٠" (Arabic-Indic digits)

    Negative amounts are rejected: the transaction type carries the sign.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = amount_str.strip().translate(_DIGITS)
    cleaned = _CURRENCY.sub("", cleaned)
    cleaned = cleaned.replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: '{amount_str}'")
    return amount
