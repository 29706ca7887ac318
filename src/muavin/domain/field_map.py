"""Configurable mapping from logical ledger fields to canonical XML paths."""

import json
import logging
import os
import threading
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from muavin.domain.errors import (
    ConfigurationError,
    FieldMapNotFoundError,
    field_map_invalid,
    field_map_not_found,
)
from muavin.utils.path_normalizer import TEXT_SUFFIX, normalize_path

logger = logging.getLogger(__name__)

FIELDMAP_ENV_VAR = "MUAVIN_FIELDMAP_PATH"
DEFAULT_FIELDMAP_PATH = Path(__file__).resolve().parent.parent / "config" / "fieldmap.json"

# Both placeholders mean "the root element is named defter or edefter"
ROOT_PLACEHOLDERS = ("(defter|edefter)", "(ROOT)")
ROOT_ALTERNATIVES = ("defter", "edefter")


class LogicalField(Enum):
    """Logical fields the e-Defter parser extracts."""

    HEADER_ENTRY_NUMBER = "Header.EntryNumber"
    HEADER_ENTRY_COUNTER = "Header.EntryCounter"
    HEADER_POSTING_DATE = "Header.PostingDate"
    HEADER_DESCRIPTION = "Header.Description"
    HEADER_DOCUMENT_NUMBER = "Header.DocumentNumber"

    DETAIL_ACCOUNT_MAIN_ID = "Detail.AccountMainID"
    DETAIL_ACCOUNT_MAIN_DESCRIPTION = "Detail.AccountMainDescription"
    DETAIL_ACCOUNT_SUB_ID = "Detail.AccountSubID"
    DETAIL_ACCOUNT_SUB_DESCRIPTION = "Detail.AccountSubDescription"
    DETAIL_DEBIT_CREDIT_CODE = "Detail.DebitCreditCode"
    DETAIL_AMOUNT = "Detail.Amount"
    DETAIL_DOCUMENT_NUMBER = "Detail.DocumentNumber"
    DETAIL_DESCRIPTION = "Detail.Description"
    DETAIL_ENTRY_COUNTER = "Detail.EntryCounter"
    DETAIL_POSTING_DATE = "Detail.PostingDate"


def expand_template(template: str) -> list[str]:
    """Expand root placeholders into one template per root name."""
    for placeholder in ROOT_PLACEHOLDERS:
        if placeholder in template:
            expanded = []
            for root in ROOT_ALTERNATIVES:
                expanded.extend(expand_template(template.replace(placeholder, root)))
            return expanded
    return [template]


def candidate_paths(templates: list[str]) -> tuple[str, ...]:
    """Normalize templates into an ordered, deduplicated candidate tuple.

    Element paths also get a ``/#text`` variant so callers that address
    element text that way match too.
    """
    seen: dict[str, None] = {}
    for template in templates:
        for raw in expand_template(template):
            norm = normalize_path(raw)
            if not norm:
                continue
            seen.setdefault(norm, None)
            if "/@" not in norm:
                seen.setdefault(norm + TEXT_SUFFIX, None)
    return tuple(seen)


class FieldMap:
    """Read-only lookup from logical field name to candidate paths.

    Names are matched case-insensitively; paths are compared exactly.
    """

    def __init__(self, entries: Mapping[str, tuple[str, ...]], source: Optional[str] = None):
        self._entries = MappingProxyType({name.lower(): tuple(paths) for name, paths in entries.items()})
        self._sets = MappingProxyType({name: frozenset(paths) for name, paths in self._entries.items()})
        self.source = source

    @classmethod
    def from_mapping(cls, raw: Mapping[str, list[str]], source: Optional[str] = None) -> "FieldMap":
        """Build a field map from logical name -> list of path templates."""
        entries: dict[str, tuple[str, ...]] = {}
        for name, templates in raw.items():
            if name.startswith("_"):
                continue
            if isinstance(templates, str):
                templates = [templates]
            if not isinstance(templates, list) or not all(isinstance(t, str) for t in templates):
                raise ConfigurationError(
                    field_map_invalid(source or "<mapping>", f"'{name}' must be a list of paths")
                )
            key = name.lower()
            merged = list(entries.get(key, ())) + templates
            entries[key] = candidate_paths(merged)
        return cls(entries, source=source)

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "FieldMap":
        """Load a field map from a JSON file.

        Args:
            path: Configuration file. Defaults to ``MUAVIN_FIELDMAP_PATH`` or the
                packaged ``config/fieldmap.json``.

        Returns:
            Loaded FieldMap

        Raises:
            FieldMapNotFoundError: If the file does not exist
            ConfigurationError: If the file is not a valid field map
        """
        config_path = Path(path) if path is not None else default_fieldmap_path()
        if not config_path.is_file():
            raise FieldMapNotFoundError(field_map_not_found(str(config_path)))

        try:
            raw = json.loads(config_path.read_text(encoding="utf-8-sig"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(field_map_invalid(str(config_path), str(e))) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(field_map_invalid(str(config_path), "top level must be an object"))

        field_map = cls.from_mapping(raw, source=str(config_path))
        logger.info("Loaded field map %s (%d fields)", config_path, len(field_map))
        return field_map

    def get(self, name: Union[str, LogicalField]) -> tuple[str, ...]:
        """Return the candidate paths of a logical field, empty if unknown."""
        return self._entries.get(_key(name), ())

    def matches(self, name: Union[str, LogicalField], path: str) -> bool:
        """Return True if the canonical path is a candidate of the field."""
        paths = self._sets.get(_key(name))
        return paths is not None and path in paths

    def names(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, (str, LogicalField)):
            return False
        return _key(name) in self._entries


def _key(name: Union[str, LogicalField]) -> str:
    if isinstance(name, LogicalField):
        name = name.value
    return name.lower()


def default_fieldmap_path() -> Path:
    """Return the configured field map location."""
    env_path = os.environ.get(FIELDMAP_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_FIELDMAP_PATH


_current: Optional[FieldMap] = None
_current_lock = threading.Lock()


def current_field_map() -> FieldMap:
    """Return the process-wide field map, loading it on first use.

    Raises:
        FieldMapNotFoundError: If the configuration file cannot be found
    """
    global _current
    if _current is None:
        with _current_lock:
            if _current is None:
                _current = FieldMap.load()
    return _current


def reset_current_field_map() -> None:
    """Forget the cached field map so the next access reloads it."""
    global _current
    with _current_lock:
        _current = None
