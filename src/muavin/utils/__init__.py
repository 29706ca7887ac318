"""Utility functions for muavin."""

from muavin.utils.date_parser import parse_date, parse_ledger_date
from muavin.utils.amount_parser import parse_amount, parse_ledger_amount
from muavin.utils.path_normalizer import NamespacePathBuilder, normalize_path

__all__ = [
    "parse_date",
    "parse_ledger_date",
    "parse_amount",
    "parse_ledger_amount",
    "NamespacePathBuilder",
    "normalize_path",
]
