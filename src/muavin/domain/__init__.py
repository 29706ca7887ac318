"""Domain layer for muavin application."""

from muavin.domain.aging import AgingCalculator
from muavin.domain.batch import LedgerBatch
from muavin.domain.mizan import MizanCalculator
from muavin.domain.text_parser import TextLedgerParser
from muavin.domain.xml_parser import EdefterParser

__all__ = [
    "AgingCalculator",
    "LedgerBatch",
    "MizanCalculator",
    "TextLedgerParser",
    "EdefterParser",
]
