"""Mapper functions to convert between domain models and SQLAlchemy models.

Decimal amounts become integer minor units on the way in and are restored
with two decimal places on the way out.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from muavin.domain import entities as domain
from muavin.database.models import (
    ImportBatchRecord as ORMImportBatch,
    LedgerRowRecord as ORMLedgerRow,
)

MINOR_UNITS = Decimal(100)
CENT = Decimal("0.01")


def to_minor_units(amount: Optional[Decimal]) -> int:
    """Convert an amount to kuruş, rounding halves away from zero."""
    if amount is None:
        return 0
    return int((amount * MINOR_UNITS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(value: Optional[int]) -> Decimal:
    """Convert kuruş back to a two-decimal amount."""
    return (Decimal(value or 0) / MINOR_UNITS).quantize(CENT)


def ledger_row_to_record(
    row: domain.LedgerRow, company_code: str, source_file: str, import_batch_id: Optional[int] = None
) -> ORMLedgerRow:
    """Convert a domain LedgerRow into a new SQLAlchemy record."""
    group_key = row.group_key
    return ORMLedgerRow(
        company_code=company_code,
        period_year=row.posting_date.year,
        period_month=row.posting_date.month,
        source_file=source_file,
        import_batch_id=import_batch_id,
        posting_date=row.posting_date,
        entry_number=row.entry_number,
        entry_number_raw=row.entry_number_raw,
        entry_counter=row.entry_counter,
        document_number=row.document_number,
        account_main_id=row.account_main_id,
        account_main_description=row.account_main_description,
        account_sub_id=row.account_sub_id,
        account_sub_description=row.account_sub_description,
        ledger_code=row.ledger_code,
        account_code=row.account_code,
        account_name=row.account_name,
        debit_credit_code=row.debit_credit_code,
        amount_minor=to_minor_units(row.amount),
        debit_minor=to_minor_units(row.debit),
        credit_minor=to_minor_units(row.credit),
        running_balance_minor=to_minor_units(row.running_balance),
        description=row.description,
        voucher_type=row.voucher_type,
        voucher_subtype=row.voucher_subtype,
        side=row.side or "",
        group_entry_number=group_key.entry_number if group_key else None,
        group_posting_date=group_key.posting_date if group_key else None,
        group_document_number=group_key.document_number if group_key else None,
        counter_account=row.counter_account or "",
        counter_account_codes_csv=row.counter_account_codes_csv or "",
        counter_ledger_codes_csv=row.counter_ledger_codes_csv or "",
    )


def ledger_row_to_domain(record: ORMLedgerRow) -> domain.LedgerRow:
    """Convert a SQLAlchemy LedgerRowRecord to a domain LedgerRow."""
    group_key = None
    if record.group_entry_number is not None or record.group_posting_date is not None:
        group_key = domain.GroupKey(
            entry_number=record.group_entry_number or "",
            posting_date=record.group_posting_date,
            document_number=record.group_document_number,
        )
    return domain.LedgerRow(
        posting_date=record.posting_date,
        entry_number=record.entry_number,
        entry_number_raw=record.entry_number_raw,
        entry_counter=record.entry_counter,
        document_number=record.document_number,
        account_main_id=record.account_main_id,
        account_main_description=record.account_main_description,
        account_sub_id=record.account_sub_id,
        account_sub_description=record.account_sub_description,
        ledger_code=record.ledger_code,
        account_code=record.account_code,
        account_name=record.account_name,
        debit_credit_code=record.debit_credit_code,
        amount=from_minor_units(record.amount_minor),
        debit=from_minor_units(record.debit_minor),
        credit=from_minor_units(record.credit_minor),
        description=record.description,
        voucher_type=record.voucher_type,
        voucher_subtype=record.voucher_subtype,
        source_file=record.source_file,
        running_balance=from_minor_units(record.running_balance_minor),
        side=record.side or "",
        group_key=group_key,
        counter_account=record.counter_account or "",
        counter_account_codes_csv=record.counter_account_codes_csv or "",
        counter_ledger_codes_csv=record.counter_ledger_codes_csv or "",
    )


def import_batch_to_domain(record: ORMImportBatch) -> domain.ImportBatch:
    """Convert a SQLAlchemy ImportBatchRecord to a domain ImportBatch."""
    return domain.ImportBatch(
        id=record.id,
        company_code=record.company_code,
        source_file=record.source_file,
        row_count=record.row_count,
        min_date=record.min_date,
        max_date=record.max_date,
        imported_at=record.imported_at,
    )
