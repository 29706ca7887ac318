"""Shared pytest fixtures for muavin tests."""

import tempfile
import os
import pytest

from muavin.database.factories import create_sqlite_repository
from muavin.domain.field_map import FieldMap, reset_current_field_map

EDEFTER_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<edefter:defter xmlns:edefter="http://www.edefter.gov.tr"
    xmlns:xbrli="http://www.xbrl.org/2003/instance"
    xmlns:gl-cor="http://www.xbrl.org/int/gl/cor/2006-10-25"
    xmlns:gl-bus="http://www.xbrl.org/int/gl/bus/2006-10-25">
  <xbrli:xbrl>
    <link:schemaRef xmlns:link="http://www.xbrl.org/2003/linkbase" href="edefter.xsd"/>
    <gl-cor:accountingEntries>
      <gl-cor:entityInformation>
        <gl-bus:entityName>Örnek Ticaret A.Ş.</gl-bus:entityName>
        <gl-bus:organizationIdentifiers>
          <gl-bus:organizationIdentifier>1234567890</gl-bus:organizationIdentifier>
        </gl-bus:organizationIdentifiers>
        <gl-cor:taxID>1234567890</gl-cor:taxID>
      </gl-cor:entityInformation>
{entries}
    </gl-cor:accountingEntries>
  </xbrli:xbrl>
</edefter:defter>
"""

HEADER_TEMPLATE = """      <gl-cor:entryHeader>
        <gl-cor:enteredDate>{date}</gl-cor:enteredDate>
        {number}
        <gl-cor:entryComment>{comment}</gl-cor:entryComment>
{details}
      </gl-cor:entryHeader>"""

DETAIL_TEMPLATE = """        <gl-cor:entryDetail>
          <gl-cor:lineNumberCounter>{line}</gl-cor:lineNumberCounter>
          <gl-cor:account>
            <gl-cor:accountMainID>{main}</gl-cor:accountMainID>
            <gl-cor:accountMainDescription>{main_desc}</gl-cor:accountMainDescription>
            <gl-cor:accountSub>
              <gl-cor:accountSubDescription>{sub_desc}</gl-cor:accountSubDescription>
              <gl-cor:accountSubID>{sub}</gl-cor:accountSubID>
            </gl-cor:accountSub>
          </gl-cor:account>
          <gl-cor:amount decimals="2" unitRef="try">{amount}</gl-cor:amount>
          <gl-cor:debitCreditCode>{dc}</gl-cor:debitCreditCode>
          <gl-cor:postingDate>{date}</gl-cor:postingDate>
          {document}
          <gl-cor:detailComment>{comment}</gl-cor:detailComment>
        </gl-cor:entryDetail>"""


def build_edefter(vouchers):
    """Render an e-Defter document.

    Each voucher is a dict with ``date``, optional ``number`` and ``comment``,
    and ``lines``: dicts with ``main``, ``sub``, ``amount``, ``dc`` and
    optional ``main_desc``, ``sub_desc``, ``document``, ``comment``.
    """
    entries = []
    for voucher in vouchers:
        details = []
        for index, line in enumerate(voucher["lines"], start=1):
            document = line.get("document")
            details.append(
                DETAIL_TEMPLATE.format(
                    line=line.get("line", index),
                    main=line["main"],
                    main_desc=line.get("main_desc", ""),
                    sub=line.get("sub", ""),
                    sub_desc=line.get("sub_desc", ""),
                    amount=line["amount"],
                    dc=line["dc"],
                    date=voucher["date"],
                    document=f"<gl-cor:documentNumber>{document}</gl-cor:documentNumber>" if document else "",
                    comment=line.get("comment", ""),
                )
            )
        number = voucher.get("number")
        entries.append(
            HEADER_TEMPLATE.format(
                date=voucher["date"],
                number=f"<gl-cor:entryNumber>{number}</gl-cor:entryNumber>" if number else "",
                comment=voucher.get("comment", ""),
                details="\n".join(details),
            )
        )
    return EDEFTER_TEMPLATE.format(entries="\n".join(entries))


SAMPLE_VOUCHERS = [
    {
        "date": "2024-01-01",
        "number": "0001",
        "comment": "Açılış fişi",
        "lines": [
            {"main": "100", "sub": "100.01", "main_desc": "KASA", "sub_desc": "TL Hesabı", "amount": "5000.00", "dc": "D"},
            {"main": "500", "sub": "500.01", "main_desc": "SERMAYE", "amount": "5000.00", "dc": "C"},
        ],
    },
    {
        "date": "2024-03-15",
        "number": "0002",
        "comment": "Satış",
        "lines": [
            {
                "main": "120",
                "sub": "120.01.001",
                "main_desc": "ALICILAR",
                "sub_desc": "ABC Ltd.",
                "amount": "1180.00",
                "dc": "D",
                "document": "FTR2024000001",
            },
            {"main": "600", "sub": "600.01", "main_desc": "YURTİÇİ SATIŞLAR", "amount": "1000.00", "dc": "C"},
            {"main": "391", "sub": "391.01", "main_desc": "HESAPLANAN KDV", "amount": "180.00", "dc": "C"},
        ],
    },
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_repository(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def field_map():
    """Load the packaged field map."""
    return FieldMap.load()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep environment overrides and the cached field map out of tests."""
    for name in ("MUAVIN_DB_PATH", "MUAVIN_FIELDMAP_PATH", "MUAVIN_CHART_PATH", "MUAVIN_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_current_field_map()
    yield
    reset_current_field_map()


@pytest.fixture
def write_edefter(tmp_path):
    """Return a helper writing an e-Defter file into tmp_path."""

    def _write(vouchers=None, name="defter.xml"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(build_edefter(SAMPLE_VOUCHERS if vouchers is None else vouchers), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_text_ledger(tmp_path):
    """Return a helper writing a text ledger export into tmp_path."""

    def _write(lines, name="muavin.txt", encoding="utf-8"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(("\n".join(lines) + "\n").encode(encoding))
        return path

    return _write
