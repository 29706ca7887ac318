"""Delimited TXT/CSV ledger (muavin) export parser."""

import csv
import logging
import re
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, Union

from muavin.domain.entities import GroupKey, LedgerRow, ParseMeta, Side, ZERO
from muavin.domain.errors import (
    LedgerParseError,
    NotFoundError,
    input_not_found,
    unreadable_text_ledger,
)
from muavin.domain.ledger_rules import (
    extract_document_number,
    guess_ledger_code,
    infer_voucher_type_text,
    normalize_side,
    text_entry_number,
)
from muavin.utils.amount_parser import parse_ledger_amount
from muavin.utils.date_parser import parse_ledger_date
from muavin.utils.text_keys import header_key

logger = logging.getLogger(__name__)

FALLBACK_ENCODING = "cp1254"
ENCODING_SAMPLE_LINES = 5
TITLE_LINES = ("muavin defter",)

TAB = "\t"
PIPE = "|"
SEMICOLON = ";"
COMMA = ","
FIXED_WIDTH = "fixed"

_MULTI_SPACE = re.compile(r"\s{2,}")


def canonical_header(key: str) -> str:
    """Map a folded header key onto the logical column it denotes.

    >>> canonical_header("yevmiyeno")
    'fisno'
    """
    if key == "tarih" or any(
        token in key for token in ("fistarihi", "islemtarihi", "belgetarih", "belgetrh", "kayittarih", "kayittrh")
    ):
        return "tarih"

    if (
        "hesapkodu" in key
        or key == "kodu"
        or "anahesap" in key
        or ("ana" in key and "hesap" in key)
        or "hesapno" in key
    ):
        return "hesapkodu"

    if "hesapadi" in key or "unvan" in key or "hesapaciklama" in key:
        return "hesapadi"

    if "fisno" in key or ("yevmiye" in key and "no" in key) or ("belge" in key and "no" in key):
        return "fisno"

    if "fisnumarasi2" in key:
        return "fisnumarasi2"
    if "fisnumara" in key:
        return "fisnumarasi"

    if "fisturu" in key or "fistipi" in key:
        return "fisturu"

    if "aciklama" in key or "comment" in key or "metin" in key:
        return "aciklama"

    if "debitcredit" in key or key == "dc" or "borcalacak" in key:
        return "debitcredit"

    if "borc" in key and "tutar" in key:
        return "borc"
    if "alacak" in key and "tutar" in key:
        return "alacak"
    if "borc" in key:
        return "borc"
    if "alacak" in key:
        return "alacak"

    if "tutar" in key or "amount" in key:
        return "tutar"

    return key


def detect_delimiter(line: str) -> str:
    """Guess the column separator of a header candidate line."""
    if TAB in line:
        return TAB
    if line.lstrip().startswith(PIPE):
        return PIPE
    if SEMICOLON in line:
        return SEMICOLON
    if COMMA in line:
        return COMMA
    if re.search(r"\S\s{2,}\S", line):
        return FIXED_WIDTH
    return SEMICOLON


def _unquote(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    return text.strip()


def split_line(line: str, delimiter: str) -> list[str]:
    """Split one line into stripped cells."""
    if delimiter == PIPE:
        text = line.strip()
        if text.startswith(PIPE):
            text = text[1:]
        if text.endswith(PIPE):
            text = text[:-1]
        return [_unquote(cell) for cell in text.split(PIPE)]
    if delimiter == FIXED_WIDTH:
        return [_unquote(cell) for cell in _MULTI_SPACE.split(line.strip()) if cell.strip()]
    return [_unquote(cell) for cell in next(csv.reader([line], delimiter=delimiter))]


def fixed_width_layout(header_line: str, cells: list[str]) -> list[tuple[int, int]]:
    """Return (start, end) column spans taken from header cell positions."""
    starts = []
    cursor = 0
    for cell in cells:
        index = header_line.find(cell, cursor)
        if index < 0:
            index = cursor
        starts.append(index)
        cursor = index + len(cell)

    spans = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else None
        spans.append((start, end))
    return spans


def read_text_with_fallback(path: Path) -> tuple[str, bool]:
    """Decode a file as UTF-8, switching to cp1254 if the first lines look garbled."""
    raw = path.read_bytes()
    text = raw.decode("utf-8-sig", errors="replace")
    sample = text.splitlines()[:ENCODING_SAMPLE_LINES]
    if any("\ufffd" in line for line in sample):
        return raw.decode(FALLBACK_ENCODING, errors="replace"), True
    return text, False


class TextLedgerParser:
    """Parser for TXT/CSV muavin exports of accounting packages."""

    def __init__(self):
        self.last_meta = ParseMeta(
            min_date=None,
            max_date=None,
            distinct_period_count=0,
            parsed_row_count=0,
            skipped_row_count=0,
            used_fallback_encoding=False,
            delimiter="",
        )

    def parse(
        self, file_path: Union[str, Path], company_code: str = ""
    ) -> tuple[list[LedgerRow], Optional[int], Optional[int]]:
        """Parse a text ledger export.

        Args:
            file_path: Path to the TXT/CSV file
            company_code: Company the file belongs to, used for logging

        Returns:
            Tuple of (rows, detected_year, detected_month). The period is taken
            from the earliest posting date; both are None without rows.
            Statistics of the run are available in ``last_meta``.

        Raises:
            NotFoundError: If the file does not exist
            LedgerParseError: If the file cannot be read
        """
        path = Path(file_path)
        if not path.is_file():
            raise NotFoundError(input_not_found(str(path)))

        try:
            text, used_fallback = read_text_with_fallback(path)
        except OSError as e:
            raise LedgerParseError(unreadable_text_ledger(str(path), str(e)), source_file=path.name) from e
        if used_fallback:
            logger.info("%s: invalid UTF-8 in the first lines, reading as %s", path.name, FALLBACK_ENCODING)

        lines = text.splitlines()
        header = self._find_header(lines)
        if header is None:
            logger.warning("%s: no ledger header found (company %s)", path.name, company_code or "-")
            self.last_meta = ParseMeta(None, None, 0, 0, 0, used_fallback, "")
            return [], None, None

        header_index, delimiter, columns, spans = header
        logger.info("%s: header on line %d, delimiter %r", path.name, header_index + 1, delimiter)

        rows: list[LedgerRow] = []
        skipped = 0
        line_number = 0
        periods: set[tuple[int, int]] = set()
        min_date: Optional[date] = None
        max_date: Optional[date] = None

        for line in lines[header_index + 1:]:
            if not line.strip():
                continue
            get = self._cell_reader(line, delimiter, columns, spans)

            posting_date = parse_ledger_date(get("tarih"))
            if posting_date is None:
                skipped += 1
                continue

            row = self._build_row(get, columns, posting_date, path.name)
            if row is None:
                skipped += 1
                continue

            line_number += 1
            row.entry_counter = line_number
            rows.append(row)

            min_date = posting_date if min_date is None or posting_date < min_date else min_date
            max_date = posting_date if max_date is None or posting_date > max_date else max_date
            periods.add((posting_date.year, posting_date.month))

        self.last_meta = ParseMeta(
            min_date=min_date,
            max_date=max_date,
            distinct_period_count=len(periods),
            parsed_row_count=len(rows),
            skipped_row_count=skipped,
            used_fallback_encoding=used_fallback,
            delimiter=delimiter,
        )
        logger.info("%s: %d rows parsed, %d skipped", path.name, len(rows), skipped)

        if min_date is None:
            return rows, None, None
        return rows, min_date.year, min_date.month

    @staticmethod
    def _find_header(lines: list[str]):
        """Locate the header line; returns (index, delimiter, columns, spans) or None."""
        for index, line in enumerate(lines):
            stripped = line.rstrip()
            if not stripped.strip():
                continue
            if _unquote(stripped).casefold() in TITLE_LINES:
                continue

            delimiter = detect_delimiter(stripped)
            cells = split_line(stripped, delimiter)
            keys = [canonical_header(header_key(cell)) for cell in cells]
            if "tarih" not in keys or not ("hesapkodu" in keys or "hesapadi" in keys):
                continue

            columns: dict[str, int] = {}
            for position, key in enumerate(keys):
                if key:
                    columns.setdefault(key, position)
            if "hesapkodu" not in columns and "hesapadi" in columns:
                columns["hesapkodu"] = 0

            spans = fixed_width_layout(stripped, cells) if delimiter == FIXED_WIDTH else None
            return index, delimiter, columns, spans
        return None

    @staticmethod
    def _cell_reader(line: str, delimiter: str, columns: dict[str, int], spans) -> Callable[[str], str]:
        cells = None if spans is not None else split_line(line, delimiter)

        def get(key: str) -> str:
            position = columns.get(key)
            if position is None:
                return ""
            if spans is not None:
                if position >= len(spans):
                    return ""
                start, end = spans[position]
                return line[start:end].strip() if start < len(line) else ""
            if position >= len(cells):
                return ""
            return cells[position]

        return get

    @staticmethod
    def _build_row(get: Callable[[str], str], columns: dict[str, int], posting_date: date, source_file: str):
        account_code = get("hesapkodu").strip() or None
        account_name = get("hesapadi").strip() or None
        if not account_code and not account_name:
            return None

        type_field = get("fisturu").strip() or None
        voucher_number = (
            get("fisno").strip() or get("fisnumarasi").strip() or get("fisnumarasi2").strip() or None
        )
        description = get("aciklama").strip() or None

        has_debit = "borc" in columns
        has_credit = "alacak" in columns
        debit = parse_ledger_amount(get("borc")) if has_debit else ZERO
        credit = parse_ledger_amount(get("alacak")) if has_credit else ZERO

        # a negative column amount belongs on the opposite side
        if debit < 0 or credit < 0:
            net = debit - credit
            debit, credit = (net, ZERO) if net > 0 else (ZERO, -net)

        if debit > 0 and credit > 0:
            if debit > credit:
                credit = ZERO
            else:
                debit = ZERO

        if not has_debit and not has_credit:
            total = parse_ledger_amount(get("tutar"))
            side = normalize_side(get("debitcredit"))
            if side == Side.DEBIT:
                debit = abs(total)
            elif side == Side.CREDIT:
                credit = abs(total)
            elif total == 0:
                return None
            elif total < 0:
                credit = abs(total)
            else:
                debit = total
        elif debit == 0 and credit == 0 and "tutar" in columns:
            total = parse_ledger_amount(get("tutar"))
            if total < 0:
                credit = abs(total)
            elif total > 0:
                debit = total

        entry_number = voucher_number or text_entry_number(
            posting_date,
            account_code,
            debit,
            credit,
            description,
            type_field,
            source_file,
        )
        voucher_type, voucher_subtype = infer_voucher_type_text(type_field, description)

        return LedgerRow(
            posting_date=posting_date,
            entry_number=entry_number,
            entry_number_raw=voucher_number,
            document_number=extract_document_number(description),
            account_code=account_code,
            account_name=account_name,
            ledger_code=guess_ledger_code(account_code),
            debit_credit_code=_side_of(debit, credit),
            amount=debit if debit != 0 else credit,
            debit=debit,
            credit=credit,
            description=description,
            voucher_type=voucher_type,
            voucher_subtype=voucher_subtype,
            side=_side_of(debit, credit),
            group_key=GroupKey(entry_number=entry_number, posting_date=posting_date),
            source_file=source_file,
        )


def _side_of(debit: Decimal, credit: Decimal) -> str:
    if debit > 0:
        return Side.DEBIT
    if credit > 0:
        return Side.CREDIT
    return Side.NONE
