"""Tests for the aging calculator."""

from datetime import date
from decimal import Decimal

from muavin.domain.aging import AgingCalculator, bucket_index, bucket_totals
from muavin.domain.entities import AGING_BOUNDARIES, LedgerRow, VoucherType, aging_bucket_labels

AGING_DATE = date(2024, 12, 31)


def make_row(day, account="120-01", debit="0", credit="0", voucher_type=VoucherType.COMPOUND, entry="1"):
    return LedgerRow(
        posting_date=day,
        entry_number=entry,
        account_code=account,
        account_name="ABC Ltd.",
        ledger_code=account[:3],
        debit=Decimal(debit),
        credit=Decimal(credit),
        voucher_type=voucher_type,
    )


def test_bucket_labels():
    labels = aging_bucket_labels()
    assert labels[0] == "0-30"
    assert labels[1] == "31-60"
    assert labels[-2] == "331-365"
    assert labels[-1] == "365+"
    assert len(labels) == len(AGING_BOUNDARIES) + 1


def test_bucket_index():
    assert bucket_index(0) == 0
    assert bucket_index(30) == 0
    assert bucket_index(31) == 1
    assert bucket_index(365) == len(AGING_BOUNDARIES) - 1
    assert bucket_index(366) == len(AGING_BOUNDARIES)


class TestAgingCalculator:
    """Tests for AgingCalculator.calculate."""

    def test_opening_entry_goes_to_opening_bucket(self):
        rows = [make_row(date(2024, 1, 1), debit="2000.00", voucher_type=VoucherType.OPENING)]
        report = AgingCalculator().calculate(rows, AGING_DATE)

        assert len(report) == 1
        assert report[0].opening == Decimal("2000.00")
        assert all(amount == 0 for amount in report[0].buckets)
        assert report[0].overflow == 0

    def test_newest_movements_are_consumed_first(self):
        rows = [
            make_row(date(2024, 10, 15), debit="500", entry="1"),
            make_row(date(2024, 12, 1), debit="1000", entry="2"),
            make_row(date(2024, 12, 10), credit="300", entry="3"),
        ]
        row = AgingCalculator().calculate(rows, AGING_DATE)[0]

        assert row.net_balance == Decimal("1200")
        assert row.buckets[0] == Decimal("1000")
        assert row.buckets[2] == Decimal("200")
        assert row.total == Decimal("1200")

    def test_credit_balance_is_aged_as_magnitude(self):
        rows = [
            make_row(date(2024, 12, 20), account="320-01", credit="400"),
            make_row(date(2024, 11, 1), account="320-01", credit="100"),
        ]
        row = AgingCalculator().calculate(rows, AGING_DATE)[0]

        assert row.net_balance == Decimal("-500")
        assert row.buckets[0] == Decimal("400")
        assert row.buckets[1] == Decimal("100")
        assert row.total == Decimal("500")

    def test_old_movements_overflow(self):
        rows = [make_row(date(2023, 1, 1), debit="100")]
        row = AgingCalculator().calculate(rows, AGING_DATE)[0]
        assert row.overflow == Decimal("100")

    def test_unallocated_balance_goes_to_overflow(self):
        row = make_row(date(2024, 12, 20), debit="300")
        row.running_balance = Decimal("500")
        aged = AgingCalculator().calculate([row], AGING_DATE)[0]

        assert aged.buckets[0] == Decimal("300")
        assert aged.overflow == Decimal("200")
        assert aged.total == abs(aged.net_balance)

    def test_rows_after_aging_date_are_ignored(self):
        rows = [make_row(date(2024, 12, 1), debit="100"), make_row(date(2025, 1, 5), credit="100", entry="2")]
        row = AgingCalculator().calculate(rows, AGING_DATE)[0]
        assert row.net_balance == Decimal("100")

    def test_zero_balance_accounts_are_skipped(self):
        rows = [make_row(date(2024, 12, 1), debit="100"), make_row(date(2024, 12, 5), credit="100", entry="2")]
        assert AgingCalculator().calculate(rows, AGING_DATE) == []

    def test_ledger_filter_and_order(self):
        rows = [
            make_row(date(2024, 12, 1), account="320-02", credit="10"),
            make_row(date(2024, 12, 1), account="120-05", debit="10"),
            make_row(date(2024, 12, 1), account="100-01", debit="10"),
        ]
        report = AgingCalculator().calculate(rows, AGING_DATE, ledger_codes=["120", "320"])
        assert [row.account_code for row in report] == ["120-05", "320-02"]

    def test_bucket_totals(self):
        rows = [
            make_row(date(2024, 1, 1), debit="2000", voucher_type=VoucherType.OPENING),
            make_row(date(2024, 12, 20), account="120-02", debit="50"),
        ]
        opening, buckets, overflow = bucket_totals(AgingCalculator().calculate(rows, AGING_DATE))
        assert opening == Decimal("2000")
        assert buckets[0] == Decimal("50")
        assert overflow == Decimal("0")
