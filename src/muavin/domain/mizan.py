"""Trial balance (mizan) construction."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from muavin.domain.account_plan import AccountPlan
from muavin.domain.entities import (
    ActivityFilter,
    LedgerRow,
    MizanRow,
    VoucherType,
    ViewMode,
    ZERO,
)
from muavin.domain.errors import ValidationError, invalid_date_window


@dataclass(frozen=True)
class _Totals:
    period_debit: Decimal
    period_credit: Decimal
    closing_net: Decimal
    opening_net: Decimal

    @property
    def is_active(self) -> bool:
        return self.period_debit != 0 or self.period_credit != 0

    @property
    def debit_balance(self) -> Decimal:
        return self.closing_net if self.closing_net > 0 else ZERO

    @property
    def credit_balance(self) -> Decimal:
        return -self.closing_net if self.closing_net < 0 else ZERO


def _totals(rows: Sequence[LedgerRow], start: date, end: date) -> _Totals:
    """Aggregate rows already limited to posting dates up to ``end``."""
    period_debit = ZERO
    period_credit = ZERO
    net = ZERO
    opening = ZERO
    for row in rows:
        movement = row.debit - row.credit
        net += movement
        if row.posting_date < start:
            opening += movement
        else:
            period_debit += row.debit
            period_credit += row.credit
    return _Totals(period_debit, period_credit, net, opening)


def _passes(activity_filter: ActivityFilter, is_active: bool) -> bool:
    if activity_filter is ActivityFilter.ACTIVE_ONLY:
        return is_active
    if activity_filter is ActivityFilter.INACTIVE_ONLY:
        return not is_active
    return True


class MizanCalculator:
    """Builds ledger header and account rows of a trial balance."""

    def __init__(self, account_plan: Optional[AccountPlan] = None):
        """Initialize the calculator.

        Args:
            account_plan: Ledger name lookup; an empty lookup is used if None
        """
        self.account_plan = account_plan or AccountPlan()

    def calculate(
        self,
        rows: Iterable[LedgerRow],
        start_date: date,
        end_date: date,
        activity_filter: ActivityFilter = ActivityFilter.ALL,
        view_mode: ViewMode = ViewMode.DETAILED,
        exclude_closing_entries: bool = False,
    ) -> list[MizanRow]:
        """Calculate the trial balance for a date window.

        Period debit/credit cover ``[start_date, end_date]``; balances cover
        every row up to ``end_date``.

        Args:
            rows: Ledger rows; rows without a posting date are ignored
            start_date: First day of the period
            end_date: Last day of the period, inclusive
            activity_filter: Keep all, only active or only inactive rows. Applied
                separately to ledger headers and accounts.
            view_mode: ``LEDGERS_ONLY`` emits header rows only
            exclude_closing_entries: Leave closing (Kapanış) vouchers out

        Returns:
            Header rows (level 0) each followed by their account rows (level 1),
            ordered by ledger code and account code

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValidationError(invalid_date_window(start_date, end_date))

        cumulative = [
            row
            for row in rows
            if row.posting_date is not None
            and row.posting_date <= end_date
            and not (exclude_closing_entries and (row.voucher_type or "").strip() == VoucherType.CLOSING)
        ]

        ledgers: dict[str, list[LedgerRow]] = {}
        for row in cumulative:
            ledger = (row.ledger_code or "").strip()
            if ledger:
                ledgers.setdefault(ledger, []).append(row)

        result: list[MizanRow] = []
        for ledger in sorted(ledgers):
            ledger_rows = ledgers[ledger]
            totals = _totals(ledger_rows, start_date, end_date)

            if _passes(activity_filter, totals.is_active):
                result.append(
                    self._row(
                        ledger,
                        ledger,
                        self.account_plan.header_name(ledger, _fallback_name(ledger, ledger_rows)),
                        totals,
                        level=0,
                    )
                )

            if view_mode is ViewMode.LEDGERS_ONLY:
                continue

            accounts: dict[tuple[str, str], list[LedgerRow]] = {}
            for row in ledger_rows:
                key = ((row.account_code or "").strip(), (row.account_name or "").strip())
                accounts.setdefault(key, []).append(row)

            for code, name in sorted(accounts, key=lambda key: key[0]):
                if code == ledger:
                    continue
                account_totals = _totals(accounts[(code, name)], start_date, end_date)
                if not _passes(activity_filter, account_totals.is_active):
                    continue
                result.append(self._row(ledger, code, name, account_totals, level=1))

        return result

    @staticmethod
    def _row(ledger: str, code: str, name: str, totals: _Totals, level: int) -> MizanRow:
        return MizanRow(
            ledger_code=ledger,
            account_code=code,
            account_name=name,
            debit=totals.period_debit,
            credit=totals.period_credit,
            debit_balance=totals.debit_balance,
            credit_balance=totals.credit_balance,
            opening_net_balance=totals.opening_net,
            closing_net_balance=totals.closing_net,
            is_active=totals.is_active,
            is_ledger_row=level == 0,
            level=level,
        )


def _fallback_name(ledger: str, rows: Sequence[LedgerRow]) -> str:
    """Name of the row whose account code is the ledger code, else of the first row."""
    for row in rows:
        if (row.account_code or "").strip() == ledger and row.account_name:
            return row.account_name.strip()
    return (rows[0].account_name or "").strip() if rows else ""


def ledger_balance_totals(mizan_rows: Iterable[MizanRow]) -> tuple[Decimal, Decimal]:
    """Sum debit and credit balances of the ledger header rows."""
    debit = ZERO
    credit = ZERO
    for row in mizan_rows:
        if row.is_ledger_row:
            debit += row.debit_balance
            credit += row.credit_balance
    return debit, credit
