"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Optional

_CURRENCY = re.compile(r"(?i)(?:try|tl)(?=\s*$)|^\s*(?:try|tl)|[₺$€£]")


def parse_amount(amount_str: str, comma_decimal: bool = True) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles Turkish and dot-decimal formats:
    - "1.234,56" and "1234,56" (comma decimal, dot thousands)
    - "1,234.56" and "1234.56" (dot decimal)
    - "(123,45)" and "123,45-" (negative)
    - "500,00 TL"

    When only one kind of separator is present the choice is ambiguous.
    A single comma, or a single dot followed by exactly three digits, is
    read the Turkish way when ``comma_decimal`` is set; otherwise a dot is a
    decimal point and a comma a thousands separator.

    Args:
        amount_str: Amount string
        comma_decimal: Prefer the Turkish convention for ambiguous input

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip().strip('"').strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]
    if amount_str.endswith("-"):
        is_negative = True
        amount_str = amount_str[:-1]

    amount_str = _CURRENCY.sub("", amount_str)
    amount_str = amount_str.replace("\u00a0", "").replace(" ", "")
    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]
    elif amount_str.startswith("+"):
        amount_str = amount_str[1:]

    amount_str = _canonical_number(amount_str, comma_decimal)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def _canonical_number(text: str, comma_decimal: bool) -> str:
    """Rewrite separators so that Decimal can read the number."""
    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        # whichever separator comes last is the decimal one
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")

    if has_comma:
        single = text.count(",") == 1
        if single and (comma_decimal or not re.fullmatch(r"\d{1,3},\d{3}", text)):
            return text.replace(",", ".")
        return text.replace(",", "")

    if has_dot:
        grouped = re.fullmatch(r"\d{1,3}(\.\d{3})+", text)
        if text.count(".") > 1 or (comma_decimal and grouped):
            return text.replace(".", "")
    return text


def parse_ledger_amount(value: Optional[str], comma_decimal: bool = True) -> Decimal:
    """Parse an amount, falling back to zero for blank or unreadable text."""
    if value is None or not value.strip():
        return Decimal("0")
    try:
        return parse_amount(value, comma_decimal=comma_decimal)
    except ValueError:
        return Decimal("0")
