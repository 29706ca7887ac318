"""Row-building rules shared by the XML and text ledger parsers."""

import re
from datetime import date
from decimal import Decimal
from typing import Optional

from muavin.domain.entities import Side, VoucherType
from muavin.utils.text_keys import fold_turkish, normalize_for_key, short_digest

DESCRIPTION_KEY_LENGTH = 80

_DOCUMENT_NUMBER_PATTERNS = (
    (re.compile(r"\[\s*no\s*[:\-]?\s*([A-Z0-9/\-.]{2,})\s*\]", re.IGNORECASE), 2),
    (re.compile(r"(?:fatura|belge|irsaliye)\s*no[:\-]?\s*([A-Z0-9/\-.]{2,})", re.IGNORECASE), 2),
    (re.compile(r"\b(?:inv|ftr|fat|ft)\s*[:\-]?\s*([A-Z0-9/\-.]{4,})", re.IGNORECASE), 4),
    (re.compile(r"\bno[:\-]?\s*([A-Z0-9/\-.]{4,})", re.IGNORECASE), 4),
)

_TRIPLE_PREFIX = re.compile(r"^(\d{3})-\1-(.+)$")


def normalize_side(code: Optional[str]) -> str:
    """Unify vendor debit/credit codes to "D", "C" or ""."""
    text = (code or "").strip().upper()
    if text.startswith(("D", "B")):
        return Side.DEBIT
    if text.startswith(("C", "A")):
        return Side.CREDIT
    return Side.NONE


def strip_leading_zeros(value: Optional[str]) -> Optional[str]:
    """Strip leading zeros from a voucher number; all zeros become "0"."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return text
    stripped = text.lstrip("0")
    return stripped or "0"


def combine_text(first: Optional[str], second: Optional[str]) -> Optional[str]:
    """Join two descriptions, keeping only the second if it already contains the first."""
    a = (first or "").strip()
    b = (second or "").strip()
    if not a:
        return b or None
    if not b:
        return a
    if a.casefold() in b.casefold():
        return b
    return f"{a} {b}"


def build_account_code(main_id: Optional[str], sub_id: Optional[str]) -> Optional[str]:
    """Compose the full account code from main and sub identifiers.

    "120" + "120.01.001" -> "120-01-001"; "120" + "01" -> "120-01".
    """
    main = (main_id or "").strip().replace(".", "-")
    sub = (sub_id or "").strip().replace(".", "-")

    if sub:
        if main and not sub.startswith(main):
            code = f"{main}-{sub}"
        else:
            code = sub
    else:
        code = main

    if not code:
        return None
    return _TRIPLE_PREFIX.sub(r"\1-\2", code)


def guess_ledger_code(account_code: Optional[str]) -> Optional[str]:
    """Return the ledger (kebir) part of an account code."""
    code = (account_code or "").strip()
    if not code:
        return None
    for index, ch in enumerate(code):
        if ch in "-.":
            if index > 0:
                return code[:index]
            break
    return code[:3]


def extract_document_number(text: Optional[str]) -> Optional[str]:
    """Find an invoice or document number inside free description text."""
    if not text or not text.strip():
        return None
    for pattern, min_length in _DOCUMENT_NUMBER_PATTERNS:
        match = pattern.search(text)
        if match:
            number = match.group(1).strip()
            if len(number) >= min_length:
                return number
    return None


def mentions_opening(text: Optional[str]) -> bool:
    return "acilis" in fold_turkish(text or "")


def mentions_closing(text: Optional[str]) -> bool:
    return "kapanis" in fold_turkish(text or "")


def infer_voucher_type_xml(description: Optional[str], posting_date: date) -> tuple[str, Optional[str]]:
    """Classify an XML voucher; both a keyword and a fiscal boundary date are required."""
    if mentions_opening(description) and (posting_date.month, posting_date.day) == (1, 1):
        return VoucherType.OPENING, VoucherType.OPENING
    if mentions_closing(description) and (posting_date.month, posting_date.day) == (12, 31):
        return VoucherType.CLOSING, VoucherType.CLOSING
    return VoucherType.COMPOUND, None


def infer_voucher_type_text(type_field: Optional[str], description: Optional[str]) -> tuple[str, Optional[str]]:
    """Classify a text ledger voucher from its type column and description.

    A filled type column must agree with the description; a blank one lets
    the description decide alone.
    """
    field_text = (type_field or "").strip()
    folded = fold_turkish(field_text)
    field_opening = "acilis" in folded or "opening" in folded
    field_closing = "kapanis" in folded or "closing" in folded

    desc_opening = mentions_opening(description)
    desc_closing = mentions_closing(description)

    if field_opening and desc_opening:
        return VoucherType.OPENING, VoucherType.OPENING
    if field_closing and desc_closing:
        return VoucherType.CLOSING, VoucherType.CLOSING
    if not field_text:
        if desc_opening:
            return VoucherType.OPENING, VoucherType.OPENING
        if desc_closing:
            return VoucherType.CLOSING, VoucherType.CLOSING
    return VoucherType.COMPOUND, None


def _description_key(description: Optional[str]) -> str:
    return normalize_for_key(description)[:DESCRIPTION_KEY_LENGTH]


def xml_entry_number(
    posting_date: date,
    account_code: Optional[str],
    debit: Decimal,
    credit: Decimal,
    entry_counter: int,
    description: Optional[str],
) -> str:
    """Synthesize a deterministic entry number for an XML line without one."""
    payload = (
        f"{posting_date:%Y-%m-%d}|{normalize_for_key(account_code)}"
        f"|B:{debit:.2f}|A:{credit:.2f}|{entry_counter}|{_description_key(description)}"
    )
    return f"XML-{posting_date:%Y%m%d}-{short_digest(payload)}"


def text_entry_number(
    posting_date: date,
    account_code: Optional[str],
    debit: Decimal,
    credit: Decimal,
    description: Optional[str],
    voucher_type_field: Optional[str],
    source_file: Optional[str],
) -> str:
    """Synthesize a deterministic entry number for a text line without one."""
    payload = (
        f"{posting_date:%Y-%m-%d}|{normalize_for_key(account_code)}"
        f"|B:{debit:.2f}|A:{credit:.2f}|{normalize_for_key(voucher_type_field)}"
        f"|{_description_key(description)}|{normalize_for_key(source_file)}"
    )
    return f"TXT-{posting_date:%Y%m%d}-{short_digest(payload)}"
