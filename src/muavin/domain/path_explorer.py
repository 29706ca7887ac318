"""Path statistics for discovering new e-Defter vendor layouts.

Not used while parsing; the output helps writing field map entries for
exports whose paths the parser reports as unmatched.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from lxml import etree

from muavin.domain.errors import LedgerParseError, malformed_xml
from muavin.domain.inputs import XML_SUFFIXES, expand_inputs
from muavin.domain.xml_parser import local_name, open_secure_iterparse
from muavin.utils.path_normalizer import NamespacePathBuilder

logger = logging.getLogger(__name__)

ELEMENT = "Element"
ATTRIBUTE = "Attribute"
TEXT = "Text"

MAX_SAMPLES = 3
MAX_SAMPLE_LENGTH = 200


@dataclass
class PathStats:
    """Occurrences of one element, attribute or text path."""

    kind: str
    path: str
    count: int = 0
    namespace_uri: Optional[str] = None
    attribute_names: set[str] = field(default_factory=set)
    sample_values: list[str] = field(default_factory=list)

    def touch(self, sample: Optional[str] = None, times: int = 1) -> None:
        self.count += times
        if sample is None:
            return
        value = sample.strip()[:MAX_SAMPLE_LENGTH]
        if value and len(self.sample_values) < MAX_SAMPLES and value not in self.sample_values:
            self.sample_values.append(value)

    def merge(self, other: "PathStats") -> None:
        self.attribute_names |= other.attribute_names
        for sample in other.sample_values:
            self.touch(sample, times=0)
        self.count += other.count


@dataclass(frozen=True)
class PathListResult:
    """Unique paths of one or more files, ordered by depth then text."""

    all: tuple[str, ...] = ()
    elements: tuple[str, ...] = ()
    attributes: tuple[str, ...] = ()
    texts: tuple[str, ...] = ()
    stats: dict[str, PathStats] = field(default_factory=dict, compare=False, repr=False)

    @property
    def total_paths(self) -> int:
        return len(self.all)


def _namespace(tag) -> Optional[str]:
    text = tag if isinstance(tag, str) else str(tag)
    if text.startswith("{"):
        return text[1:].split("}", 1)[0]
    return None


class TagExplorer:
    """Collects element, attribute and text path statistics of one XML file."""

    def analyze(self, xml_path: Union[str, Path]) -> dict[str, PathStats]:
        """Scan a file and return statistics keyed by canonical path.

        Raises:
            LedgerParseError: If the XML is not well-formed
        """
        stats: dict[str, PathStats] = {}
        builder = NamespacePathBuilder()

        def touch(path: str, kind: str, namespace: Optional[str], sample: Optional[str] = None) -> PathStats:
            entry = stats.get(path)
            if entry is None:
                entry = stats[path] = PathStats(kind=kind, path=path, namespace_uri=namespace)
            entry.touch(sample)
            return entry

        try:
            for event, el in open_secure_iterparse(str(xml_path), ("start", "end")):
                namespace = _namespace(el.tag)
                if event == "start":
                    builder.push(local_name(el.tag))
                    element = touch(builder.path, ELEMENT, namespace)
                    for attr_name, attr_value in el.attrib.items():
                        name = local_name(attr_name)
                        touch(builder.build_path("@" + name), ATTRIBUTE, _namespace(attr_name), attr_value)
                        element.attribute_names.add(name)
                    continue

                text = (el.text or "").strip()
                if text:
                    touch(builder.build_path("#text"), TEXT, namespace, text)
                builder.pop()
                el.clear(keep_tail=True)
        except etree.XMLSyntaxError as e:
            raise LedgerParseError(malformed_xml(str(xml_path), str(e)), source_file=Path(xml_path).name) from e

        return stats


def merge_stats(target: dict[str, PathStats], other: dict[str, PathStats]) -> None:
    """Merge path statistics of another file into ``target``."""
    for path, entry in other.items():
        existing = target.get(path)
        if existing is None:
            target[path] = existing = PathStats(kind=entry.kind, path=path, namespace_uri=entry.namespace_uri)
        existing.merge(entry)


def _sort_paths(paths) -> tuple[str, ...]:
    return tuple(sorted(set(paths), key=lambda p: (p.count("/"), p)))


class PathLister:
    """Builds unique path lists over a file, a directory or a zip archive."""

    def __init__(self, explorer: Optional[TagExplorer] = None):
        self.explorer = explorer or TagExplorer()

    def collect(self, input_path: Union[str, Path]) -> dict[str, PathStats]:
        """Merge statistics of every XML file under the input.

        Files that fail to parse are logged and skipped.
        """
        merged: dict[str, PathStats] = {}
        with expand_inputs(input_path, XML_SUFFIXES) as files:
            for xml_file in files:
                try:
                    merge_stats(merged, self.explorer.analyze(xml_file))
                except LedgerParseError as e:
                    logger.error("Skipping %s: %s", xml_file, e)
        return merged

    def list_paths(self, input_path: Union[str, Path]) -> PathListResult:
        """Return sorted unique element, attribute and text paths of the input."""
        return self.to_result(self.collect(input_path))

    @staticmethod
    def to_result(stats: dict[str, PathStats]) -> PathListResult:
        elements = [s.path for s in stats.values() if s.kind == ELEMENT]
        attributes = [s.path for s in stats.values() if s.kind == ATTRIBUTE]
        texts = [s.path for s in stats.values() if s.kind == TEXT]
        return PathListResult(
            all=_sort_paths(elements + attributes + texts),
            elements=_sort_paths(elements),
            attributes=_sort_paths(attributes),
            texts=_sort_paths(texts),
            stats=stats,
        )

    @staticmethod
    def write_to_files(result: PathListResult, out_dir: Union[str, Path]) -> list[Path]:
        """Write ``paths_all.txt``, the per-kind lists and ``paths_detailed.csv``."""
        directory = Path(out_dir)
        directory.mkdir(parents=True, exist_ok=True)
        written = []
        for name, paths in (
            ("paths_all.txt", result.all),
            ("paths_elements.txt", result.elements),
            ("paths_attributes.txt", result.attributes),
            ("paths_texts.txt", result.texts),
        ):
            target = directory / name
            target.write_text("".join(f"{p}\n" for p in paths), encoding="utf-8")
            written.append(target)
        written.append(write_detailed_csv(result.stats, directory / "paths_detailed.csv"))
        return written


def write_detailed_csv(stats: dict[str, PathStats], target: Union[str, Path]) -> Path:
    """Write per-path statistics as ``paths_detailed.csv``."""
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    ordered = sorted(stats.values(), key=lambda s: (s.path.count("/"), s.path, s.kind))
    with open(target, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Kind", "Path", "Count", "NamespaceUri", "AttributeList", "SampleValues"])
        for entry in ordered:
            writer.writerow(
                [
                    entry.kind,
                    entry.path,
                    entry.count,
                    entry.namespace_uri or "",
                    ";".join(sorted(entry.attribute_names)),
                    " | ".join(entry.sample_values),
                ]
            )
    return target
