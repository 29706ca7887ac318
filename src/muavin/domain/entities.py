"""Domain model entities for muavin.

These are plain data classes for the canonical ledger row and the reports
derived from it, independent of the database schema and of the source
format the rows were read from.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0")


class VoucherType:
    """Voucher (fiş) type labels as they appear in ledger exports."""

    COMPOUND = "Mahsup"
    OPENING = "Açılış"
    CLOSING = "Kapanış"
    INCOME_STATEMENT_CLOSING = "Gelir Tablosu Kapanış"
    REFLECTION_CLOSING = "Yansıtma Kapama"

    SPECIAL = (OPENING, CLOSING, INCOME_STATEMENT_CLOSING, REFLECTION_CLOSING)

    @classmethod
    def is_special(cls, value: Optional[str]) -> bool:
        """Return True for opening/closing style vouchers."""
        if not value:
            return False
        text = value.strip().casefold()
        return any(text == special.casefold() for special in cls.SPECIAL)


class Side:
    """Movement side codes."""

    DEBIT = "D"
    CREDIT = "C"
    NONE = ""


class ActivityFilter(Enum):
    """Which trial balance rows to keep by period activity."""

    ALL = "all"
    ACTIVE_ONLY = "active"
    INACTIVE_ONLY = "inactive"


class ViewMode(Enum):
    """Trial balance detail level."""

    DETAILED = "detailed"
    LEDGERS_ONLY = "ledgers"


@dataclass(frozen=True)
class GroupKey:
    """Voucher grouping key.

    The document number only participates for ordinary vouchers read from
    XML sources; see :func:`muavin.domain.post_processors.build_group_key`.
    """

    entry_number: str
    posting_date: Optional[date]
    document_number: Optional[str] = None

    def __str__(self) -> str:
        day = self.posting_date.isoformat() if self.posting_date else ""
        if self.document_number:
            return f"{self.entry_number}|{day}|DOC:{self.document_number}"
        return f"{self.entry_number}|{day}"


@dataclass
class LedgerRow:
    """One debit or credit movement line (muavin satırı).

    Parsers fill identity, account, monetary and classification fields.
    Post-processors only write ``side``, ``group_key``, the counter-account
    fields and ``running_balance``.
    """

    posting_date: Optional[date] = None
    entry_number: Optional[str] = None
    entry_number_raw: Optional[str] = None
    entry_counter: Optional[int] = None
    document_number: Optional[str] = None

    account_main_id: Optional[str] = None
    account_main_description: Optional[str] = None
    account_sub_id: Optional[str] = None
    account_sub_description: Optional[str] = None
    ledger_code: Optional[str] = None
    account_code: Optional[str] = None
    account_name: Optional[str] = None

    debit_credit_code: Optional[str] = None
    amount: Decimal = ZERO
    debit: Decimal = ZERO
    credit: Decimal = ZERO

    description: Optional[str] = None
    voucher_type: Optional[str] = None
    voucher_subtype: Optional[str] = None
    source_file: Optional[str] = None

    # Enrichment
    running_balance: Decimal = ZERO
    side: str = Side.NONE
    group_key: Optional[GroupKey] = None
    counter_account: str = ""
    counter_account_codes_csv: str = ""
    counter_ledger_codes_csv: str = ""


@dataclass(frozen=True)
class VoucherBalance:
    """Debit/credit totals of one voucher group."""

    group_key: GroupKey
    line_count: int
    total_debit: Decimal
    total_credit: Decimal

    @property
    def imbalance(self) -> Decimal:
        return self.total_debit - self.total_credit

    @property
    def is_balanced(self) -> bool:
        return self.imbalance == ZERO


@dataclass(frozen=True)
class MizanRow:
    """Trial balance row: a ledger header (level 0) or an account (level 1)."""

    ledger_code: str
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    debit_balance: Decimal
    credit_balance: Decimal
    opening_net_balance: Decimal
    closing_net_balance: Decimal
    is_active: bool
    is_ledger_row: bool
    level: int


AGING_BOUNDARIES = (30, 60, 90, 120, 150, 180, 210, 240, 270, 300, 330, 365)


def aging_bucket_labels() -> list[str]:
    """Return day-range labels: "0-30", "31-60", ..., "331-365", "365+"."""
    labels = []
    lower = 0
    for upper in AGING_BOUNDARIES:
        labels.append(f"{lower}-{upper}")
        lower = upper + 1
    labels.append(f"{AGING_BOUNDARIES[-1]}+")
    return labels


@dataclass(frozen=True)
class AgingReportRow:
    """Net balance of one account split into opening and day-distance buckets."""

    account_code: str
    account_name: str
    ledger_code: str
    net_balance: Decimal
    opening: Decimal
    buckets: tuple[Decimal, ...]
    overflow: Decimal

    @property
    def total(self) -> Decimal:
        return self.opening + sum(self.buckets, ZERO) + self.overflow


@dataclass(frozen=True)
class ParseMeta:
    """Statistics about one text ledger parse."""

    min_date: Optional[date]
    max_date: Optional[date]
    distinct_period_count: int
    parsed_row_count: int
    skipped_row_count: int
    used_fallback_encoding: bool
    delimiter: str


@dataclass
class ParseStats:
    """Path matching statistics of one XML parse."""

    hits: int = 0
    misses: int = 0
    rows: int = 0
    unmatched_paths: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CompanyInfo:
    """Company identity found in an e-Defter file."""

    entity_name: Optional[str]
    tax_id: Optional[str]


@dataclass(frozen=True)
class ImportBatch:
    """Record of one repository insert."""

    id: int
    company_code: str
    source_file: str
    row_count: int
    min_date: Optional[date]
    max_date: Optional[date]
    imported_at: datetime
