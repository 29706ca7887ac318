"""Chart-of-accounts (hesap planı) lookup for ledger header names."""

import logging
import os
import re
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

CHART_ENV_VAR = "MUAVIN_CHART_PATH"
DEFAULT_CHART_PATH = Path(__file__).resolve().parent.parent / "config" / "hesap_plani.txt"

FREE_ACCOUNTS_NAME = "Serbest Hesaplar"
OFF_BALANCE_SHEET_NAME = "Nazım Hesaplar"

_LEADING_DIGITS = re.compile(r"^(\d+)")
_SPACES = re.compile(r"\s{2,}")


def _clean_name(name: str) -> str:
    return _SPACES.sub(" ", name.strip())


def parse_chart_line(line: str) -> Optional[tuple[str, str]]:
    """Parse "code=name", "code. name" or "code name" into (code, name).

    Codes are cut to three digits, or one digit for short codes on the
    ``code=name`` form.
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    if "=" in text and text.index("=") > 0:
        left, right = text.split("=", 1)
        digits = "".join(ch for ch in left if ch.isdigit())
        name = _clean_name(right)
        if not digits or not name:
            return None
        return (digits[:3] if len(digits) >= 3 else digits[:1]), name

    match = _LEADING_DIGITS.match(text)
    if not match:
        return None
    digits = match.group(1)
    rest = text[len(digits):].lstrip()
    if rest.startswith("."):
        rest = rest[1:]
    name = _clean_name(rest)
    if not name:
        return None
    return (digits[:3] if len(digits) >= 3 else digits), name


class AccountPlan:
    """Ledger code -> name lookup read from a line-oriented text file."""

    def __init__(self, names: Optional[dict[str, str]] = None):
        self._names: dict[str, str] = dict(names or {})
        self._names.setdefault("8", FREE_ACCOUNTS_NAME)
        self._names.setdefault("9", OFF_BALANCE_SHEET_NAME)

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "AccountPlan":
        """Load a chart of accounts; a missing file gives an empty lookup.

        Args:
            path: Chart file. Defaults to ``MUAVIN_CHART_PATH`` or the packaged
                ``config/hesap_plani.txt``.
        """
        chart_path = Path(path) if path is not None else default_chart_path()
        if not chart_path.is_file():
            logger.warning("Chart of accounts not found: %s", chart_path)
            return cls()

        names: dict[str, str] = {}
        for line in chart_path.read_text(encoding="utf-8-sig").splitlines():
            pair = parse_chart_line(line)
            if pair is None:
                continue
            code, name = pair
            if len(code) in (1, 3):
                names[code] = name
        logger.info("Loaded %d ledger names from %s", len(names), chart_path)
        return cls(names)

    def get(self, code: str) -> Optional[str]:
        return self._names.get((code or "").strip())

    def header_name(self, ledger_code: str, fallback: Optional[str] = None) -> str:
        """Return the display name of a ledger header row.

        Codes starting with 8 or 9 always use the free / off-balance-sheet
        group names. Other codes are looked up by their first three digits
        before falling back to the given name.
        """
        code = (ledger_code or "").strip()
        if code.startswith("8"):
            return self._names["8"]
        if code.startswith("9"):
            return self._names["9"]
        if len(code) >= 3:
            name = self._names.get(code[:3])
            if name:
                return name
        return (fallback or "").strip()

    def __len__(self) -> int:
        return len(self._names)


def default_chart_path() -> Path:
    """Return the configured chart-of-accounts location."""
    env_path = os.environ.get(CHART_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CHART_PATH
