"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser

# Turkish day.month.year first, then slash and ISO variants
LEDGER_DATE_FORMATS = (
    "%d.%m.%Y",
    "%d/%m/%Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d.%m.%y",
)

_DATE_LIKE = re.compile(r"\d{1,4}[./-]\d{1,2}")


def parse_ledger_date(value: Optional[str]) -> Optional[date]:
    """Parse a date as written in ledger exports.

    Tries the known formats in order, then an ISO timestamp, then a
    day-first dateutil parse for anything that still looks like a date.

    Args:
        value: Raw date text, e.g. "01.01.2024", "2024-01-15T00:00:00"

    Returns:
        Parsed date, or None if the value is not a recognizable date
    """
    if value is None:
        return None
    text = value.strip().strip('"')
    if not text:
        return None

    candidates = [text]
    head = text.split()[0]
    if head != text:
        candidates.append(head)

    for candidate in candidates:
        for fmt in LEDGER_DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    if not _DATE_LIKE.search(text):
        return None
    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def parse_date(date_str: str) -> date:
    """Parse a date given on the command line.

    Supports ledger formats ("31.12.2024"), ISO dates and a few relative
    words: "today", "yesterday", "tomorrow".

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    parsed = parse_ledger_date(date_str)
    if parsed is not None:
        return parsed

    try:
        return date_parser.parse(date_str, dayfirst=True).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def year_range(year: int, month: Optional[int] = None) -> tuple[date, date]:
    """Return the first and last day of a year, or of one month in it."""
    if month is None:
        return date(year, 1, 1), date(year, 12, 31)
    start = date(year, month, 1)
    if month == 12:
        end = date(year, 12, 31)
    else:
        end = date(year, month + 1, 1) - timedelta(days=1)
    return start, end
