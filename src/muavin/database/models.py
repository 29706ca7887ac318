"""SQLAlchemy models for muavin database.

Amounts are stored as integer minor units (kuruş).
"""

from datetime import datetime, UTC
from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class ImportBatchRecord(Base):
    """One import of a source file for a company."""

    __tablename__ = "import_batches"

    id = Column(Integer, primary_key=True)
    company_code = Column(String, nullable=False)
    source_file = Column(String, nullable=False)
    row_count = Column(Integer, nullable=False, default=0)
    min_date = Column(Date, nullable=True)
    max_date = Column(Date, nullable=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    rows = relationship("LedgerRowRecord", back_populates="import_batch")


class LedgerRowRecord(Base):
    """Stored ledger movement line."""

    __tablename__ = "ledger_rows"

    id = Column(Integer, primary_key=True)
    company_code = Column(String, nullable=False)
    period_year = Column(Integer, nullable=False)
    period_month = Column(Integer, nullable=False)
    source_file = Column(String, nullable=False)
    import_batch_id = Column(Integer, ForeignKey("import_batches.id"), nullable=True)

    posting_date = Column(Date, nullable=False)
    entry_number = Column(String, nullable=True)
    entry_number_raw = Column(String, nullable=True)
    entry_counter = Column(Integer, nullable=True)
    document_number = Column(String, nullable=True)

    account_main_id = Column(String, nullable=True)
    account_main_description = Column(String, nullable=True)
    account_sub_id = Column(String, nullable=True)
    account_sub_description = Column(String, nullable=True)
    ledger_code = Column(String, nullable=True)
    account_code = Column(String, nullable=True)
    account_name = Column(String, nullable=True)

    debit_credit_code = Column(String, nullable=True)
    amount_minor = Column(BigInteger, nullable=False, default=0)
    debit_minor = Column(BigInteger, nullable=False, default=0)
    credit_minor = Column(BigInteger, nullable=False, default=0)
    running_balance_minor = Column(BigInteger, nullable=False, default=0)

    description = Column(String, nullable=True)
    voucher_type = Column(String, nullable=True)
    voucher_subtype = Column(String, nullable=True)

    side = Column(String, nullable=False, default="")
    group_entry_number = Column(String, nullable=True)
    group_posting_date = Column(Date, nullable=True)
    group_document_number = Column(String, nullable=True)
    counter_account = Column(String, nullable=False, default="")
    counter_account_codes_csv = Column(String, nullable=False, default="")
    counter_ledger_codes_csv = Column(String, nullable=False, default="")

    __table_args__ = (
        Index("ix_ledger_rows_period", "company_code", "period_year", "period_month"),
        Index("ix_ledger_rows_source", "company_code", "source_file", "period_year", "period_month"),
    )

    import_batch = relationship("ImportBatchRecord", back_populates="rows")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
