"""Enrichment passes over a collected row set.

Run in this order once all rows of a batch are collected:

1. :func:`fill_counter_accounts` writes ``side``, ``group_key`` (when
   missing) and the three counter-account fields.
2. :func:`compute_running_balance` or
   :func:`compute_running_balance_per_account` writes ``running_balance``.

No pass touches identity or monetary fields.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from pathlib import PurePath
from typing import Iterable, Optional, Sequence

from muavin.domain.entities import GroupKey, LedgerRow, Side, VoucherBalance, VoucherType, ZERO

DISPLAY_SEPARATOR = " | "
CSV_SEPARATOR = ","
UNKNOWN_SOURCE = "_unknown_"
TEXT_SOURCE_SUFFIXES = (".txt", ".csv")


def normalize_source_file(source_file: Optional[str]) -> str:
    """Reduce a source path to its file name, or "_unknown_"."""
    if not source_file or not source_file.strip():
        return UNKNOWN_SOURCE
    return PurePath(source_file.strip()).name.strip() or UNKNOWN_SOURCE


def is_text_source(source_file: Optional[str]) -> bool:
    """Return True for delimited text exports (.txt/.csv)."""
    return PurePath((source_file or "").strip()).suffix.lower() in TEXT_SOURCE_SUFFIXES


def build_group_key(
    entry_number: Optional[str],
    posting_date: Optional[date],
    document_number: Optional[str],
    voucher_type: Optional[str],
    source_file: Optional[str],
) -> GroupKey:
    """Build the voucher grouping key of a row.

    The document number only takes part for ordinary vouchers from XML
    sources; opening/closing vouchers and text exports group by entry
    number and date alone.
    """
    number = (entry_number or "").strip()
    document = (document_number or "").strip()
    if VoucherType.is_special(voucher_type) or is_text_source(source_file) or not document:
        return GroupKey(entry_number=number, posting_date=posting_date)
    return GroupKey(entry_number=number, posting_date=posting_date, document_number=document)


def side_of(row: LedgerRow) -> str:
    if row.debit > 0:
        return Side.DEBIT
    if row.credit > 0:
        return Side.CREDIT
    return Side.NONE


def group_rows(rows: Iterable[LedgerRow]) -> dict[GroupKey, list[LedgerRow]]:
    """Partition rows by group key, keeping first-seen order."""
    groups: dict[GroupKey, list[LedgerRow]] = {}
    for row in rows:
        groups.setdefault(row.group_key, []).append(row)
    return groups


def _join_sorted(values: Iterable[str], separator: str) -> str:
    return separator.join(sorted(values))


class _MinusSelf:
    """Joined "set without my code" strings of one voucher side, cached per code."""

    def __init__(self, codes: set[str], separator: str):
        self.codes = codes
        self.separator = separator
        self.full = _join_sorted(codes, separator)
        self._cache: dict[str, str] = {}

    def without(self, mine: str) -> str:
        if mine not in self.codes:
            return self.full
        if mine not in self._cache:
            self._cache[mine] = _join_sorted((c for c in self.codes if c != mine), self.separator)
        return self._cache[mine]


def fill_counter_accounts(
    rows: Sequence[LedgerRow],
    source_file: Optional[str] = None,
    include_account_codes: bool = False,
) -> None:
    """Fill counter-account (karşı hesap) fields per voucher group, in place.

    Debit rows see the credit-side ledger codes of their voucher and credit
    rows the debit-side ones. A row's own code is removed only when it also
    appears on the opposing side. Rows with no side see the union of both.

    Args:
        rows: Rows to enrich
        source_file: Source used for group keys of rows without their own
            ``source_file``
        include_account_codes: Also fill ``counter_account_codes_csv`` at
            full account code level
    """
    if not rows:
        return

    default_source = normalize_source_file(source_file)
    for row in rows:
        row.side = side_of(row)
        if row.group_key is None:
            row.group_key = build_group_key(
                row.entry_number,
                row.posting_date,
                row.document_number,
                row.voucher_type,
                row.source_file or default_source,
            )

    for members in group_rows(rows).values():
        debit_ledgers: set[str] = set()
        credit_ledgers: set[str] = set()
        debit_codes: set[str] = set()
        credit_codes: set[str] = set()

        for row in members:
            ledger = (row.ledger_code or "").strip()
            code = (row.account_code or "").strip()
            if row.side == Side.DEBIT:
                if ledger:
                    debit_ledgers.add(ledger)
                if code:
                    debit_codes.add(code)
            elif row.side == Side.CREDIT:
                if ledger:
                    credit_ledgers.add(ledger)
                if code:
                    credit_codes.add(code)

        credit_view = _MinusSelf(credit_ledgers, DISPLAY_SEPARATOR)
        debit_view = _MinusSelf(debit_ledgers, DISPLAY_SEPARATOR)
        either_view = _MinusSelf(debit_ledgers | credit_ledgers, DISPLAY_SEPARATOR)
        credit_code_view = _MinusSelf(credit_codes, CSV_SEPARATOR)
        debit_code_view = _MinusSelf(debit_codes, CSV_SEPARATOR)
        either_code_view = _MinusSelf(debit_codes | credit_codes, CSV_SEPARATOR)

        for row in members:
            ledger = (row.ledger_code or "").strip()
            code = (row.account_code or "").strip()
            if row.side == Side.DEBIT:
                ledger_view, code_view = credit_view, credit_code_view
            elif row.side == Side.CREDIT:
                ledger_view, code_view = debit_view, debit_code_view
            else:
                ledger_view, code_view = either_view, either_code_view

            row.counter_account = ledger_view.without(ledger)
            row.counter_ledger_codes_csv = row.counter_account.replace(DISPLAY_SEPARATOR, CSV_SEPARATOR)
            if include_account_codes:
                row.counter_account_codes_csv = code_view.without(code)


def chronological_key(row: LedgerRow) -> tuple:
    """Sort key: posting date, entry number, entry counter."""
    return (
        row.posting_date or date.min,
        row.entry_number or "",
        row.entry_counter or 0,
    )


def compute_running_balance(rows: Iterable[LedgerRow]) -> None:
    """Write one cumulative debit-minus-credit balance across all rows."""
    balance = ZERO
    for row in sorted(rows, key=chronological_key):
        balance += row.debit - row.credit
        row.running_balance = balance


def compute_running_balance_per_account(rows: Iterable[LedgerRow]) -> None:
    """Write a cumulative balance per account code, restarting at zero.

    Rows without an account code are left untouched.
    """
    by_account: dict[str, list[LedgerRow]] = defaultdict(list)
    for row in rows:
        code = (row.account_code or "").strip()
        if code:
            by_account[code].append(row)

    for account_rows in by_account.values():
        compute_running_balance(account_rows)


def voucher_balances(rows: Sequence[LedgerRow], source_file: Optional[str] = None) -> list[VoucherBalance]:
    """Return debit/credit totals per voucher group in first-seen order.

    Rows without a group key get one the same way :func:`fill_counter_accounts`
    builds it, without writing it back.
    """
    default_source = normalize_source_file(source_file)
    totals: dict[GroupKey, list] = {}
    for row in rows:
        key = row.group_key or build_group_key(
            row.entry_number,
            row.posting_date,
            row.document_number,
            row.voucher_type,
            row.source_file or default_source,
        )
        entry = totals.setdefault(key, [0, ZERO, ZERO])
        entry[0] += 1
        entry[1] += row.debit
        entry[2] += row.credit

    return [
        VoucherBalance(group_key=key, line_count=count, total_debit=debit, total_credit=credit)
        for key, (count, debit, credit) in totals.items()
    ]


def unbalanced_vouchers(rows: Sequence[LedgerRow], source_file: Optional[str] = None) -> list[VoucherBalance]:
    """Return only the voucher groups whose debit and credit totals differ."""
    return [balance for balance in voucher_balances(rows, source_file) if not balance.is_balanced]


def total_imbalance(rows: Iterable[LedgerRow]) -> Decimal:
    """Return sum(debit) - sum(credit) over all rows."""
    return sum((row.debit - row.credit for row in rows), ZERO)
