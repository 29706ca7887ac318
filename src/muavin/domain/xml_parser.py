"""Streaming e-Defter (XBRL GL) parser.

Walks the document once with ``lxml.etree.iterparse`` and keeps only the
header and detail accumulators of the current voucher. Every text node is
located by its canonical path and matched against the field map; detail
lines are flushed into :class:`LedgerRow` objects as their element closes.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Optional, Union

from lxml import etree

from muavin.domain.entities import CompanyInfo, LedgerRow, ParseStats, Side, ZERO
from muavin.domain.errors import LedgerParseError, NotFoundError, input_not_found, malformed_xml
from muavin.domain.field_map import FieldMap, LogicalField, current_field_map
from muavin.domain.ledger_rules import (
    build_account_code,
    combine_text,
    extract_document_number,
    guess_ledger_code,
    infer_voucher_type_xml,
    normalize_side,
    strip_leading_zeros,
    xml_entry_number,
)
from muavin.utils.amount_parser import parse_ledger_amount
from muavin.utils.date_parser import parse_ledger_date
from muavin.utils.path_normalizer import NamespacePathBuilder

logger = logging.getLogger(__name__)

# Configured paths are tried in this order; the first match wins
MATCH_PRIORITY = (
    LogicalField.HEADER_ENTRY_NUMBER,
    LogicalField.HEADER_POSTING_DATE,
    LogicalField.HEADER_DESCRIPTION,
    LogicalField.HEADER_ENTRY_COUNTER,
    LogicalField.HEADER_DOCUMENT_NUMBER,
    LogicalField.DETAIL_ACCOUNT_MAIN_ID,
    LogicalField.DETAIL_ACCOUNT_MAIN_DESCRIPTION,
    LogicalField.DETAIL_ACCOUNT_SUB_ID,
    LogicalField.DETAIL_ACCOUNT_SUB_DESCRIPTION,
    LogicalField.DETAIL_DEBIT_CREDIT_CODE,
    LogicalField.DETAIL_AMOUNT,
    LogicalField.DETAIL_DOCUMENT_NUMBER,
    LogicalField.DETAIL_DESCRIPTION,
    LogicalField.DETAIL_ENTRY_COUNTER,
    LogicalField.DETAIL_POSTING_DATE,
)

# Suffix heuristics for unmapped paths inside a detail line
FALLBACK_SUFFIXES = (
    (("/amount",), LogicalField.DETAIL_AMOUNT),
    (("/debitcreditcode",), LogicalField.DETAIL_DEBIT_CREDIT_CODE),
    (("/accountmainid",), LogicalField.DETAIL_ACCOUNT_MAIN_ID),
    (("/accountsubid",), LogicalField.DETAIL_ACCOUNT_SUB_ID),
    (("/documentnumber", "/documentreference"), LogicalField.DETAIL_DOCUMENT_NUMBER),
    (("/postingdate", "/documentdate"), LogicalField.DETAIL_POSTING_DATE),
    (("/detailcomment", "/documenttypedescription"), LogicalField.DETAIL_DESCRIPTION),
)


def local_name(tag) -> str:
    """Strip the ``{namespace}`` part of an lxml tag."""
    text = tag if isinstance(tag, str) else str(tag)
    return text.split("}", 1)[-1] if "}" in text else text


def open_secure_iterparse(source, events):
    """Return an iterparse context that never loads DTDs or external entities."""
    return etree.iterparse(
        source,
        events=events,
        resolve_entities=False,
        load_dtd=False,
        no_network=True,
        huge_tree=True,
    )


@dataclass
class _HeaderState:
    entry_number: Optional[str] = None
    posting_date: Optional[date] = None
    note: Optional[str] = None
    document_number: Optional[str] = None
    detail_index: int = 0


@dataclass
class _DetailState:
    main_id: Optional[str] = None
    main_description: Optional[str] = None
    sub_id: Optional[str] = None
    sub_description: Optional[str] = None
    debit_credit_code: Optional[str] = None
    amount: Decimal = ZERO
    note: Optional[str] = None
    line_number: Optional[int] = None
    posting_date: Optional[date] = None


class EdefterParser:
    """Parser turning e-Defter XML files into canonical ledger rows."""

    def __init__(
        self,
        field_map: Optional[FieldMap] = None,
        header_tag: str = "entryheader",
        detail_tag: str = "entrydetail",
    ):
        """Initialize the parser.

        Args:
            field_map: Path configuration; the process-wide map is used if None
            header_tag: Local name of the voucher header element
            detail_tag: Local name of the voucher line element
        """
        self.field_map = field_map
        self.header_tag = header_tag.lower()
        self.detail_tag = detail_tag.lower()
        self.stats = ParseStats()
        self._lookup: Optional[dict[str, LogicalField]] = None

    def _path_lookup(self) -> dict[str, LogicalField]:
        if self._lookup is None:
            field_map = self.field_map or current_field_map()
            lookup: dict[str, LogicalField] = {}
            for logical_field in MATCH_PRIORITY:
                for path in field_map.get(logical_field):
                    lookup.setdefault(path, logical_field)
            self._lookup = lookup
        return self._lookup

    def parse(self, xml_path: Union[str, Path]) -> list[LedgerRow]:
        """Parse an e-Defter file into ledger rows.

        Args:
            xml_path: Path to the XML file

        Returns:
            Rows in document order

        Raises:
            NotFoundError: If the file does not exist
            LedgerParseError: If the XML is not well-formed
            FieldMapNotFoundError: If no field map is configured
        """
        return list(self.iter_rows(xml_path))

    def iter_rows(self, xml_path: Union[str, Path]) -> Iterator[LedgerRow]:
        """Yield ledger rows while streaming through the file."""
        path = Path(xml_path)
        if not path.is_file():
            raise NotFoundError(input_not_found(str(path)))

        lookup = self._path_lookup()
        self.stats = ParseStats()
        missed: set[str] = set()
        source_file = path.name

        builder = NamespacePathBuilder()
        header = _HeaderState()
        detail = _DetailState()
        in_detail = False

        logger.info("Parsing e-Defter file %s", path)
        try:
            for event, el in open_secure_iterparse(str(path), ("start", "end")):
                name = local_name(el.tag).lower()

                if event == "start":
                    builder.push(name)
                    if name == self.header_tag:
                        in_detail = False
                        header = _HeaderState()
                    elif name == self.detail_tag:
                        in_detail = True
                        header.detail_index += 1
                    for attr_name, attr_value in el.attrib.items():
                        attr_path = builder.build_path("@" + local_name(attr_name))
                        field = lookup.get(attr_path)
                        if field is not None and attr_value.strip():
                            self._apply(field, attr_value.strip(), header, detail)
                            self.stats.hits += 1
                    continue

                value = (el.text or "").strip()
                if value:
                    text_path = builder.path
                    field = lookup.get(text_path)
                    if field is None and in_detail:
                        field = _fallback_field(text_path)
                    if field is not None:
                        self._apply(field, value, header, detail)
                        self.stats.hits += 1
                    else:
                        self.stats.misses += 1
                        if text_path not in missed:
                            missed.add(text_path)
                            logger.info("MISS %s", text_path)

                if name == self.detail_tag:
                    row = self._flush(header, detail, source_file)
                    detail = _DetailState()
                    in_detail = False
                    if row is not None:
                        self.stats.rows += 1
                        yield row

                builder.pop()
                el.clear(keep_tail=True)
                parent = el.getparent()
                if parent is not None:
                    while el.getprevious() is not None:
                        del parent[0]
        except etree.XMLSyntaxError as e:
            raise LedgerParseError(malformed_xml(str(path), str(e)), source_file=source_file) from e

        row = self._flush(header, detail, source_file)
        if row is not None:
            self.stats.rows += 1
            yield row

        self.stats.unmatched_paths = sorted(missed)
        logger.info(
            "Finished %s: hits=%d, misses=%d, rows=%d",
            path.name,
            self.stats.hits,
            self.stats.misses,
            self.stats.rows,
        )

    @staticmethod
    def _apply(field: LogicalField, value: str, header: _HeaderState, detail: _DetailState) -> None:
        """Store a matched value in the header or detail accumulator."""
        if field is LogicalField.HEADER_ENTRY_NUMBER:
            header.entry_number = value
        elif field is LogicalField.HEADER_POSTING_DATE:
            header.posting_date = parse_ledger_date(value)
        elif field is LogicalField.HEADER_DESCRIPTION:
            header.note = combine_text(header.note, value)
        elif field is LogicalField.HEADER_ENTRY_COUNTER:
            pass
        elif field in (LogicalField.HEADER_DOCUMENT_NUMBER, LogicalField.DETAIL_DOCUMENT_NUMBER):
            header.document_number = value
        elif field is LogicalField.DETAIL_ACCOUNT_MAIN_ID:
            detail.main_id = value
        elif field is LogicalField.DETAIL_ACCOUNT_MAIN_DESCRIPTION:
            detail.main_description = value
        elif field is LogicalField.DETAIL_ACCOUNT_SUB_ID:
            detail.sub_id = value
        elif field is LogicalField.DETAIL_ACCOUNT_SUB_DESCRIPTION:
            detail.sub_description = value
        elif field is LogicalField.DETAIL_DEBIT_CREDIT_CODE:
            detail.debit_credit_code = value
        elif field is LogicalField.DETAIL_AMOUNT:
            detail.amount = parse_ledger_amount(value, comma_decimal=False)
        elif field is LogicalField.DETAIL_DESCRIPTION:
            detail.note = combine_text(detail.note, value)
        elif field is LogicalField.DETAIL_ENTRY_COUNTER:
            if value.isdigit():
                detail.line_number = int(value)
        elif field is LogicalField.DETAIL_POSTING_DATE:
            detail.posting_date = parse_ledger_date(value)

    @staticmethod
    def _flush(header: _HeaderState, detail: _DetailState, source_file: str) -> Optional[LedgerRow]:
        """Turn the accumulated detail line into a row, or None if it is empty."""
        if not any(
            (value or "").strip() for value in (detail.main_id, detail.sub_id, detail.debit_credit_code)
        ):
            return None

        posting_date = header.posting_date or detail.posting_date
        if posting_date is None:
            return None

        side = normalize_side(detail.debit_credit_code)
        magnitude = detail.amount
        if magnitude < 0 and side:
            magnitude = -magnitude
            side = Side.CREDIT if side == Side.DEBIT else Side.DEBIT

        account_code = build_account_code(detail.main_id, detail.sub_id)
        description = combine_text(header.note, detail.note)
        if detail.line_number is not None:
            entry_counter = detail.line_number
        elif header.detail_index > 0:
            entry_counter = header.detail_index
        else:
            entry_counter = 1

        row = LedgerRow(
            posting_date=posting_date,
            entry_number_raw=header.entry_number,
            entry_number=strip_leading_zeros(header.entry_number) or None,
            entry_counter=entry_counter,
            document_number=header.document_number or extract_document_number(description),
            account_main_id=detail.main_id,
            account_main_description=detail.main_description,
            account_sub_id=detail.sub_id,
            account_sub_description=detail.sub_description,
            account_code=account_code,
            account_name=combine_text(detail.main_description, detail.sub_description),
            ledger_code=guess_ledger_code(account_code),
            debit_credit_code=side,
            amount=detail.amount,
            debit=magnitude if side == Side.DEBIT else ZERO,
            credit=magnitude if side == Side.CREDIT else ZERO,
            description=description,
            source_file=source_file,
        )

        if not row.entry_number:
            row.entry_number = xml_entry_number(
                posting_date,
                account_code,
                row.debit,
                row.credit,
                entry_counter,
                description,
            )

        row.voucher_type, row.voucher_subtype = infer_voucher_type_xml(description, posting_date)
        return row

    def parse_company_info(self, xml_path: Union[str, Path]) -> CompanyInfo:
        """Read the company title and tax number of an e-Defter file.

        Returns the first non-empty ``entityName`` and ``taxID`` values; a
        missing file yields empty info.
        """
        path = Path(xml_path)
        if not path.is_file():
            return CompanyInfo(entity_name=None, tax_id=None)

        entity_name = None
        tax_id = None
        try:
            for _, el in open_secure_iterparse(str(path), ("end",)):
                name = local_name(el.tag).lower()
                value = (el.text or "").strip()
                if value:
                    if entity_name is None and name == "entityname":
                        entity_name = value
                    elif tax_id is None and name == "taxid":
                        tax_id = value
                if entity_name is not None and tax_id is not None:
                    break
                el.clear(keep_tail=True)
        except etree.XMLSyntaxError as e:
            raise LedgerParseError(malformed_xml(str(path), str(e)), source_file=path.name) from e
        return CompanyInfo(entity_name=entity_name, tax_id=tax_id)


def _fallback_field(path: str) -> Optional[LogicalField]:
    for suffixes, field in FALLBACK_SUFFIXES:
        if path.endswith(suffixes):
            return field
    return None
