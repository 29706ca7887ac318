"""Tests for the SQLAlchemy ledger repository."""

from datetime import date
from decimal import Decimal

import pytest

from muavin.domain.entities import GroupKey, LedgerRow, Side
from muavin.domain.errors import ValidationError


def make_row(day, account="120-01", debit="0", credit="0", entry="1", counter=1, **kwargs):
    return LedgerRow(
        posting_date=day,
        entry_number=entry,
        entry_counter=counter,
        account_code=account,
        account_name="ABC Ltd.",
        ledger_code=account[:3],
        debit=Decimal(debit),
        credit=Decimal(credit),
        amount=Decimal(debit) or Decimal(credit),
        **kwargs,
    )


class TestBulkInsert:
    """Tests for bulk_insert and fetch_rows."""

    def test_round_trip(self, temp_db):
        key = GroupKey("7", date(2024, 3, 15), "FTR2024000001")
        row = make_row(
            date(2024, 3, 15),
            debit="1180.00",
            entry="7",
            entry_number_raw="0007",
            document_number="FTR2024000001",
            description="Satış",
            voucher_type="Mahsup",
            side=Side.DEBIT,
            group_key=key,
            counter_account="391 | 600",
            running_balance=Decimal("1180.00"),
            source_file="defter.xml",
        )

        assert temp_db.bulk_insert("ACME", [row], "defter.xml") == 1

        stored = temp_db.fetch_rows("ACME", 2024)
        assert len(stored) == 1
        loaded = stored[0]
        assert loaded.posting_date == date(2024, 3, 15)
        assert loaded.entry_number == "7"
        assert loaded.entry_number_raw == "0007"
        assert loaded.debit == Decimal("1180.00")
        assert loaded.credit == Decimal("0.00")
        assert loaded.running_balance == Decimal("1180.00")
        assert loaded.group_key == key
        assert loaded.side == Side.DEBIT
        assert loaded.counter_account == "391 | 600"
        assert loaded.source_file == "defter.xml"

    def test_fetch_filters_company_and_period(self, temp_db):
        temp_db.bulk_insert(
            "ACME",
            [make_row(date(2024, 1, 5), debit="1"), make_row(date(2024, 2, 5), debit="2")],
            "a.xml",
        )
        temp_db.bulk_insert("OTHER", [make_row(date(2024, 1, 5), debit="3")], "a.xml")

        assert len(temp_db.fetch_rows("ACME", 2024)) == 2
        assert [r.debit for r in temp_db.fetch_rows("ACME", 2024, 2)] == [Decimal("2.00")]
        assert temp_db.fetch_rows("ACME", 2023) == []
        assert temp_db.count_rows("OTHER") == 1

    def test_fetch_order(self, temp_db):
        rows = [
            make_row(date(2024, 1, 6), entry="1", counter=1),
            make_row(date(2024, 1, 5), entry="2", counter=2),
            make_row(date(2024, 1, 5), entry="2", counter=1),
            make_row(date(2024, 1, 5), entry="1", counter=1),
        ]
        temp_db.bulk_insert("ACME", rows, "a.xml")

        fetched = temp_db.fetch_rows("ACME", 2024)
        assert [(r.posting_date.day, r.entry_number, r.entry_counter) for r in fetched] == [
            (5, "1", 1),
            (5, "2", 1),
            (5, "2", 2),
            (6, "1", 1),
        ]

    def test_replace_same_source_and_period(self, temp_db):
        temp_db.bulk_insert("ACME", [make_row(date(2024, 1, 5), debit="1")] * 3, "ocak.xml")
        temp_db.bulk_insert("ACME", [make_row(date(2024, 1, 5), debit="1")] * 2, "ocak.xml")

        assert temp_db.count_rows("ACME") == 2

    def test_replace_keeps_other_sources_and_periods(self, temp_db):
        temp_db.bulk_insert("ACME", [make_row(date(2024, 1, 5), debit="1")], "ocak.xml")
        temp_db.bulk_insert("ACME", [make_row(date(2024, 2, 5), debit="1")], "subat.xml")
        temp_db.bulk_insert("ACME", [make_row(date(2024, 3, 5), debit="1")], "ocak.xml")

        assert temp_db.count_rows("ACME") == 3

    def test_no_replace_appends(self, temp_db):
        row = make_row(date(2024, 1, 5), debit="1")
        temp_db.bulk_insert("ACME", [row], "ocak.xml")
        temp_db.bulk_insert("ACME", [row], "ocak.xml", replace_existing_for_same_source=False)

        assert temp_db.count_rows("ACME") == 2

    def test_empty_rows(self, temp_db):
        assert temp_db.bulk_insert("ACME", [], "bos.xml") == 0
        assert temp_db.list_import_batches() == []

    def test_blank_company(self, temp_db):
        with pytest.raises(ValidationError):
            temp_db.bulk_insert("  ", [make_row(date(2024, 1, 5))], "a.xml")

    def test_undated_row_rejects_whole_batch(self, temp_db):
        rows = [make_row(date(2024, 1, 5), debit="1"), make_row(None, debit="1")]
        with pytest.raises(ValidationError):
            temp_db.bulk_insert("ACME", rows, "a.xml")
        assert temp_db.count_rows("ACME") == 0


class TestImportBatches:
    """Tests for import batch bookkeeping."""

    def test_batch_records(self, temp_db):
        temp_db.bulk_insert(
            "ACME",
            [make_row(date(2024, 1, 5), debit="1"), make_row(date(2024, 1, 20), debit="1")],
            "ocak.xml",
        )
        temp_db.bulk_insert("ACME", [make_row(date(2024, 2, 5), debit="1")], "subat.xml")
        temp_db.bulk_insert("OTHER", [make_row(date(2024, 2, 5), debit="1")], "subat.xml")

        batches = temp_db.list_import_batches("ACME")
        assert [b.source_file for b in batches] == ["subat.xml", "ocak.xml"]
        assert batches[1].row_count == 2
        assert batches[1].min_date == date(2024, 1, 5)
        assert batches[1].max_date == date(2024, 1, 20)
        assert len(temp_db.list_import_batches()) == 3
