"""Tests for the e-Defter XML parser."""

from datetime import date
from decimal import Decimal

import pytest

from muavin.domain.entities import Side, VoucherType
from muavin.domain.errors import LedgerParseError, NotFoundError
from muavin.domain.field_map import FieldMap
from muavin.domain.xml_parser import EdefterParser, local_name

MINIMAL_MAP = {
    "Header.EntryNumber": ["/(ROOT)/xbrl/accountingentries/entryheader/@no"],
    "Header.PostingDate": ["/(ROOT)/xbrl/accountingentries/entryheader/entereddate"],
}

VENDOR_XML = """<?xml version="1.0" encoding="UTF-8"?>
<defter>
  <xbrl>
    <accountingEntries>
      <entryHeader no="77">
        <enteredDate>2024-05-02</enteredDate>
        <entryDetail>
          <accountMainID>100</accountMainID>
          <amount>10.50</amount>
          <debitCreditCode>D</debitCreditCode>
          <vendorNote>ignored</vendorNote>
        </entryDetail>
        <entryDetail>
          <accountMainID>102</accountMainID>
          <accountSubID>102.01</accountSubID>
          <amount>10.50</amount>
          <debitCreditCode>C</debitCreditCode>
        </entryDetail>
      </entryHeader>
    </accountingEntries>
  </xbrl>
</defter>
"""


def test_local_name():
    assert local_name("{http://www.xbrl.org/int/gl/cor/2006-10-25}amount") == "amount"
    assert local_name("amount") == "amount"


class TestEdefterParser:
    """Tests for parsing the sample e-Defter file."""

    def test_parses_every_detail_line(self, write_edefter, field_map):
        rows = EdefterParser(field_map).parse(write_edefter())
        assert len(rows) == 5
        assert [row.account_code for row in rows] == ["100-01", "500-01", "120-01-001", "600-01", "391-01"]

    def test_opening_voucher(self, write_edefter, field_map):
        first = EdefterParser(field_map).parse(write_edefter())[0]

        assert first.posting_date == date(2024, 1, 1)
        assert first.entry_number == "1"
        assert first.entry_number_raw == "0001"
        assert first.entry_counter == 1
        assert first.ledger_code == "100"
        assert first.account_name == "KASA TL Hesabı"
        assert first.debit == Decimal("5000.00")
        assert first.credit == Decimal("0")
        assert first.debit_credit_code == Side.DEBIT
        assert first.description == "Açılış fişi"
        assert first.voucher_type == VoucherType.OPENING
        assert first.source_file == "defter.xml"

    def test_document_number_is_shared_by_voucher_lines(self, write_edefter, field_map):
        rows = EdefterParser(field_map).parse(write_edefter())
        sale = rows[2:]
        assert {row.document_number for row in sale} == {"FTR2024000001"}
        assert {row.voucher_type for row in sale} == {VoucherType.COMPOUND}
        assert sale[0].debit == Decimal("1180.00")
        assert sale[1].credit + sale[2].credit == Decimal("1180.00")
        assert [row.entry_counter for row in sale] == [1, 2, 3]

    def test_stats(self, write_edefter, field_map):
        parser = EdefterParser(field_map)
        parser.parse(write_edefter())

        assert parser.stats.rows == 5
        assert parser.stats.hits > 0
        assert parser.stats.misses > 0
        assert "/defter/xbrl/accountingentries/entityinformation/entityname" in parser.stats.unmatched_paths
        assert parser.stats.unmatched_paths == sorted(parser.stats.unmatched_paths)

    def test_synthesized_entry_numbers_are_stable(self, write_edefter, field_map):
        vouchers = [
            {
                "date": "2024-02-10",
                "comment": "Kira",
                "lines": [
                    {"main": "770", "sub": "770.01", "amount": "300.00", "dc": "D"},
                    {"main": "102", "sub": "102.01", "amount": "300.00", "dc": "C"},
                ],
            }
        ]
        path = write_edefter(vouchers)
        first = EdefterParser(field_map).parse(path)
        second = EdefterParser(field_map).parse(path)

        assert [row.entry_number for row in first] == [row.entry_number for row in second]
        assert all(row.entry_number.startswith("XML-20240210-") for row in first)
        assert first[0].entry_number != first[1].entry_number
        assert first[0].entry_number_raw is None

    def test_negative_amount_moves_to_opposite_side(self, write_edefter, field_map):
        vouchers = [
            {
                "date": "2024-04-01",
                "number": "9",
                "lines": [{"main": "320", "sub": "320.01", "amount": "-250.00", "dc": "D"}],
            }
        ]
        row = EdefterParser(field_map).parse(write_edefter(vouchers))[0]

        assert row.debit == Decimal("0")
        assert row.credit == Decimal("250.00")
        assert row.debit_credit_code == Side.CREDIT
        assert row.amount == Decimal("-250.00")

    def test_attribute_paths_and_fallback_suffixes(self, tmp_path):
        """A sparse field map still yields rows through the detail fallbacks."""
        path = tmp_path / "vendor.xml"
        path.write_text(VENDOR_XML, encoding="utf-8")
        parser = EdefterParser(FieldMap.from_mapping(MINIMAL_MAP))

        rows = parser.parse(path)

        assert len(rows) == 2
        assert rows[0].entry_number == "77"
        assert rows[0].posting_date == date(2024, 5, 2)
        assert rows[0].account_code == "100"
        assert rows[0].debit == Decimal("10.50")
        assert rows[0].entry_counter == 1
        assert rows[1].account_code == "102-01"
        assert rows[1].credit == Decimal("10.50")
        assert rows[1].entry_counter == 2
        assert any(p.endswith("/entrydetail/vendornote") for p in parser.stats.unmatched_paths)

    def test_lines_without_date_are_dropped(self, tmp_path):
        path = tmp_path / "nodate.xml"
        path.write_text(VENDOR_XML.replace("<enteredDate>2024-05-02</enteredDate>", ""), encoding="utf-8")
        assert EdefterParser(FieldMap.from_mapping(MINIMAL_MAP)).parse(path) == []

    def test_malformed_xml(self, tmp_path, field_map):
        path = tmp_path / "broken.xml"
        path.write_text("<defter><xbrl><accountingEntries>", encoding="utf-8")

        with pytest.raises(LedgerParseError) as excinfo:
            EdefterParser(field_map).parse(path)
        assert excinfo.value.source_file == "broken.xml"
        assert "Malformed XML" in str(excinfo.value)

    def test_missing_file(self, tmp_path, field_map):
        with pytest.raises(NotFoundError):
            EdefterParser(field_map).parse(tmp_path / "missing.xml")

    def test_company_info(self, write_edefter, field_map):
        info = EdefterParser(field_map).parse_company_info(write_edefter())
        assert info.entity_name == "Örnek Ticaret A.Ş."
        assert info.tax_id == "1234567890"
