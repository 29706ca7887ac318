"""Canonical XML path keys.

e-Defter exports from different vendors wrap the same ledger content in
different roots, prefixes and schema reference elements. Paths are reduced
to a lowercase, slash-separated key that starts at the ledger root so the
field map can address them independently of those differences.
"""

from typing import Optional

TEXT_SUFFIX = "/#text"
ROOT_SEGMENTS = ("defter", "xbrl")
SCHEMAREF_SEGMENT = "schemaref"


def _rooted(segments: list[str]) -> list[str]:
    """Drop everything before the first recognized root segment."""
    for root in ROOT_SEGMENTS:
        if root in segments:
            return segments[segments.index(root):]
    return segments


def normalize_path(raw_path: Optional[str]) -> str:
    """Normalize a raw traversal path into its canonical key.

    Lowercases, strips a trailing ``/#text``, removes ``schemaref`` segments,
    truncates everything before the ledger root, collapses repeated slashes
    and drops a trailing slash.

    Args:
        raw_path: Path such as ``/edefter:defter/xbrli:xbrl/...``. Prefixes are
            expected to be stripped already; only local names are meaningful.

    Returns:
        Canonical path, or an empty string for empty input
    """
    if not raw_path:
        return ""

    path = raw_path.strip().lower()
    while path.endswith(TEXT_SUFFIX):
        path = path[: -len(TEXT_SUFFIX)]

    segments = [s for s in path.split("/") if s and s != SCHEMAREF_SEGMENT]
    segments = _rooted(segments)
    if not segments:
        return ""
    return "/" + "/".join(segments)


class NamespacePathBuilder:
    """Element stack mirroring the current XML nesting.

    Pushes local names as elements open and pops them as they close. The
    built path follows :func:`normalize_path` and additionally collapses
    consecutive duplicate segments, which some wrapper schemas produce.
    """

    def __init__(self):
        self._stack: list[str] = []
        self._path = ""

    @property
    def path(self) -> str:
        """Canonical path of the current element."""
        return self._path

    @property
    def depth(self) -> int:
        return len(self._stack)

    def push(self, local_name: str) -> None:
        self._stack.append((local_name or "").lower())
        self._rebuild()

    def pop(self) -> None:
        if self._stack:
            self._stack.pop()
        self._rebuild()

    def build_path(self, tail: str) -> str:
        """Return the canonical path of a child node such as ``@attr`` or ``#text``."""
        if not tail:
            return self._path
        return self._compose(self._stack + [tail.lower()])

    def _rebuild(self) -> None:
        self._path = self._compose(self._stack)

    @staticmethod
    def _compose(segments: list[str]) -> str:
        parts = [s for s in segments if s and s != SCHEMAREF_SEGMENT]
        parts = _rooted(parts)

        collapsed: list[str] = []
        for part in parts:
            if not collapsed or collapsed[-1] != part:
                collapsed.append(part)

        if not collapsed:
            return ""
        return "/" + "/".join(collapsed)
