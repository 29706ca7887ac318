"""Batch conversion of e-Defter and text ledger files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from muavin.domain.entities import LedgerRow
from muavin.domain.errors import DomainError
from muavin.domain.field_map import FieldMap
from muavin.domain.inputs import LEDGER_SUFFIXES, expand_inputs
from muavin.domain.post_processors import (
    compute_running_balance,
    compute_running_balance_per_account,
    fill_counter_accounts,
)
from muavin.domain.text_parser import TextLedgerParser
from muavin.domain.xml_parser import EdefterParser

logger = logging.getLogger(__name__)

__all__ = ["BatchResult", "LedgerBatch", "expand_inputs"]


@dataclass
class BatchResult:
    """Rows and per-file outcome of one batch run."""

    rows: list[LedgerRow] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def all_failed(self) -> bool:
        return bool(self.files) and len(self.errors) == len(self.files)

    def rows_by_source(self) -> dict[str, list[LedgerRow]]:
        """Group rows by source file name, keeping file order."""
        grouped: dict[str, list[LedgerRow]] = {}
        for row in self.rows:
            grouped.setdefault(row.source_file or "", []).append(row)
        return grouped


class LedgerBatch:
    """Parses every ledger file of an input and enriches the combined rows."""

    def __init__(self, field_map: Optional[FieldMap] = None):
        self.field_map = field_map

    def parse_file(self, path: Path, company_code: str = "") -> list[LedgerRow]:
        """Parse one file with the parser matching its suffix."""
        if path.suffix.lower() == ".xml":
            return EdefterParser(self.field_map).parse(path)
        rows, _, _ = TextLedgerParser().parse(path, company_code=company_code)
        return rows

    def run(
        self,
        input_path: Union[str, Path],
        per_account: bool = True,
        include_account_codes: bool = False,
        company_code: str = "",
    ) -> BatchResult:
        """Parse all files under ``input_path`` and enrich the rows.

        A file that fails to parse is recorded in ``errors`` and skipped.
        Counter accounts and running balances are computed once over the
        rows of all files.

        Args:
            input_path: A ledger file, a directory or a zip archive
            per_account: Restart the running balance for every account code
            include_account_codes: Also fill account-level counter codes
            company_code: Company the files belong to, used for logging

        Returns:
            BatchResult with the enriched rows

        Raises:
            NotFoundError: If the input path does not exist
        """
        result = BatchResult()
        with expand_inputs(input_path, LEDGER_SUFFIXES) as files:
            for path in files:
                result.files.append(path.name)
                try:
                    parsed = self.parse_file(path, company_code)
                except DomainError as e:
                    logger.exception("Failed to parse %s", path)
                    result.errors[path.name] = str(e)
                    continue
                logger.info("Parsed %d rows from %s", len(parsed), path.name)
                result.rows.extend(parsed)

        fill_counter_accounts(result.rows, include_account_codes=include_account_codes)
        if per_account:
            compute_running_balance_per_account(result.rows)
        else:
            compute_running_balance(result.rows)

        logger.info(
            "Batch finished: %d files, %d failed, %d rows",
            len(result.files),
            len(result.errors),
            len(result.rows),
        )
        return result
