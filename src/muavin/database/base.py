"""Abstract ledger repository interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from muavin.domain.entities import ImportBatch, LedgerRow


class LedgerRepository(ABC):
    """Abstract storage of ledger rows per company and period."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def bulk_insert(
        self,
        company_code: str,
        rows: Sequence[LedgerRow],
        source_file: str,
        replace_existing_for_same_source: bool = True,
    ) -> int:
        """Store rows of one source file in a single transaction.

        The period of every row comes from its posting date. When replacing,
        previously stored rows of the same company, source file and period
        are deleted for each period present in ``rows``.

        Returns:
            Number of rows inserted
        """
        pass

    @abstractmethod
    def fetch_rows(self, company_code: str, year: int, month: Optional[int] = None) -> list[LedgerRow]:
        """Return stored rows ordered by posting date, entry number and counter."""
        pass

    @abstractmethod
    def count_rows(self, company_code: str) -> int:
        """Return the number of stored rows of a company."""
        pass

    @abstractmethod
    def list_import_batches(self, company_code: Optional[str] = None) -> list[ImportBatch]:
        """List import batches, newest first."""
        pass
