"""Receivable/payable aging (yaşlandırma)."""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from muavin.domain.entities import AGING_BOUNDARIES, AgingReportRow, LedgerRow, VoucherType, ZERO
from muavin.domain.post_processors import chronological_key

DEFAULT_AGING_LEDGERS = (
    "120", "320", "159", "340", "136", "336", "131", "331",
    "180", "280", "126", "226", "236", "436", "431",
)


def bucket_index(days: int) -> int:
    """Return the bucket of a day distance; ``len(AGING_BOUNDARIES)`` means overflow."""
    for index, boundary in enumerate(AGING_BOUNDARIES):
        if days <= boundary:
            return index
    return len(AGING_BOUNDARIES)


def _is_opening(row: LedgerRow) -> bool:
    return (row.voucher_type or "").strip().casefold() == VoucherType.OPENING.casefold()


class AgingCalculator:
    """Splits account balances into day-distance buckets."""

    def calculate(
        self,
        rows: Iterable[LedgerRow],
        aging_date: date,
        ledger_codes: Optional[Sequence[str]] = None,
    ) -> list[AgingReportRow]:
        """Age every account with a nonzero balance at ``aging_date``.

        The balance is matched against the account's movements on its
        dominant side from the newest backwards, so the open amount is
        assumed to come from the most recent entries. Opening entries fill
        a separate bucket regardless of their date.

        Args:
            rows: Ledger rows; undated rows and rows after the aging date are ignored
            aging_date: Cut-off date
            ledger_codes: Only age accounts under these ledger codes

        Returns:
            One row per account, ordered by account code
        """
        wanted = {code.strip() for code in ledger_codes} if ledger_codes else None

        accounts: dict[str, list[LedgerRow]] = {}
        for row in rows:
            code = (row.account_code or "").strip()
            if not code or row.posting_date is None or row.posting_date > aging_date:
                continue
            if wanted is not None and (row.ledger_code or "").strip() not in wanted:
                continue
            accounts.setdefault(code, []).append(row)

        report = []
        for code in sorted(accounts):
            aged = self._age_account(code, sorted(accounts[code], key=chronological_key), aging_date)
            if aged is not None:
                report.append(aged)
        return report

    @staticmethod
    def _age_account(code: str, ordered: list[LedgerRow], aging_date: date) -> Optional[AgingReportRow]:
        net = ordered[-1].running_balance
        if net == 0:
            net = sum((row.debit - row.credit for row in ordered), ZERO)
        if net == 0:
            return None

        debit_side = net > 0
        remaining = abs(net)
        opening = ZERO
        buckets = [ZERO] * (len(AGING_BOUNDARIES) + 1)

        for row in reversed(ordered):
            if remaining <= 0:
                break
            amount = row.debit if debit_side else row.credit
            if amount <= 0:
                continue
            allocated = min(remaining, amount)
            if _is_opening(row):
                opening += allocated
            else:
                days = max(0, (aging_date - row.posting_date).days)
                buckets[bucket_index(days)] += allocated
            remaining -= allocated

        # history shorter than the balance: treat the rest as oldest
        if remaining > 0:
            buckets[-1] += remaining

        name = next((row.account_name.strip() for row in ordered if row.account_name), "")
        return AgingReportRow(
            account_code=code,
            account_name=name,
            ledger_code=(ordered[-1].ledger_code or "").strip(),
            net_balance=net,
            opening=opening,
            buckets=tuple(buckets[:-1]),
            overflow=buckets[-1],
        )


def bucket_totals(report: Iterable[AgingReportRow]) -> tuple[Decimal, list[Decimal], Decimal]:
    """Sum opening, day buckets and overflow across report rows."""
    opening = ZERO
    buckets = [ZERO] * len(AGING_BOUNDARIES)
    overflow = ZERO
    for row in report:
        opening += row.opening
        for index, amount in enumerate(row.buckets):
            buckets[index] += amount
        overflow += row.overflow
    return opening, buckets, overflow
