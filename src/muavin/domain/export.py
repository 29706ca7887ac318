"""CSV export of enriched ledger rows."""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from muavin.domain.entities import LedgerRow

EXPORT_COLUMNS = (
    "Kayıt No",
    "Kebir",
    "Hesap Kodu",
    "Hesap Adı",
    "Fiş Tarihi",
    "Fiş Numarası",
    "Fiş Türü",
    "Açıklama",
    "Borç",
    "Alacak",
    "Bakiye",
    "Tutar",
    "Fiş Tipi",
    "Fatura No",
    "Karşı Hesap",
)


def format_amount(value: Optional[Decimal]) -> str:
    return f"{(value or Decimal('0')):.2f}"


def _export_record(index: int, row: LedgerRow) -> list[str]:
    return [
        str(index),
        row.ledger_code or "",
        row.account_code or "",
        row.account_name or "",
        row.posting_date.strftime("%d.%m.%Y") if row.posting_date else "",
        row.entry_number or "",
        row.voucher_type or "",
        row.description or "",
        format_amount(row.debit),
        format_amount(row.credit),
        format_amount(row.running_balance),
        format_amount(row.amount),
        row.voucher_subtype or "",
        row.document_number or "",
        row.counter_account,
    ]


def export_rows_csv(rows: Iterable[LedgerRow], path: Union[str, Path]) -> int:
    """Write rows as a semicolon separated UTF-8 (BOM) CSV file.

    Args:
        rows: Rows to write, in output order
        path: Target file; parent directories are created

    Returns:
        Number of rows written
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(target, "w", newline="", encoding="utf-8-sig") as f:
        writer = csv.writer(f, delimiter=";")
        writer.writerow(EXPORT_COLUMNS)
        for count, row in enumerate(rows, start=1):
            writer.writerow(_export_record(count, row))
    return count
