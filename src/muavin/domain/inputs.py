"""Discovery of ledger files in a file, directory or zip archive."""

import logging
import tempfile
import zipfile
from collections import Counter
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Iterator, Sequence, Union

from muavin.domain.errors import NotFoundError, input_not_found
from muavin.utils.text_keys import short_digest

logger = logging.getLogger(__name__)

XML_SUFFIXES = (".xml",)
LEDGER_SUFFIXES = (".xml", ".txt", ".csv")


def _matches(name: str, suffixes: Sequence[str]) -> bool:
    return name.lower().endswith(tuple(suffixes))


def _member_parts(filename: str) -> list[str]:
    return [part for part in PurePosixPath(filename.replace("\\", "/")).parts if part not in ("", ".", "..", "/")]


def flat_member_names(filenames: Sequence[str]) -> dict[str, str]:
    """Map archive member names to file names for a flat directory.

    A base name used by a single member is kept. Base names shared by
    several members are replaced by the member's archive path joined with
    ``_``, so the name of a member does not depend on member order.
    Names that still clash get a digest of the member name appended.
    """
    parts = {filename: _member_parts(filename) for filename in filenames}
    base_counts = Counter(p[-1] for p in parts.values() if p)

    names: dict[str, str] = {}
    for filename, member_parts in parts.items():
        if not member_parts:
            continue
        if base_counts[member_parts[-1]] == 1:
            names[filename] = member_parts[-1]
        else:
            names[filename] = "_".join(member_parts)

    name_counts = Counter(names.values())
    for filename, name in names.items():
        if name_counts[name] > 1:
            stem, dot, suffix = name.rpartition(".")
            tag = short_digest(filename, 8)
            names[filename] = f"{stem}_{tag}{dot}{suffix}" if dot else f"{name}_{tag}"
    return names


def extract_zip_members(archive: Path, target_dir: Path, suffixes: Sequence[str]) -> list[Path]:
    """Extract matching members of a zip into a flat directory.

    Members are written under names from :func:`flat_member_names`, so
    archive paths can never escape ``target_dir``.
    """
    extracted = []
    with zipfile.ZipFile(archive) as zf:
        members = [info for info in zf.infolist() if not info.is_dir() and _matches(info.filename, suffixes)]
        names = flat_member_names([info.filename for info in members])
        for info in members:
            name = names.get(info.filename)
            if name is None:
                continue
            out_path = target_dir / name
            with zf.open(info) as src, open(out_path, "wb") as dst:
                dst.write(src.read())
            extracted.append(out_path)
    logger.info("Extracted %d files from %s", len(extracted), archive)
    return extracted


@contextmanager
def expand_inputs(
    input_path: Union[str, Path], suffixes: Sequence[str] = LEDGER_SUFFIXES
) -> Iterator[list[Path]]:
    """Yield the ledger files found at ``input_path``.

    A directory is searched recursively; a zip archive is extracted to a
    temporary directory that is removed when the context exits.

    Raises:
        NotFoundError: If the input path does not exist
    """
    path = Path(input_path)
    if path.is_dir():
        yield sorted(p for p in path.rglob("*") if p.is_file() and _matches(p.name, suffixes))
    elif path.is_file() and path.suffix.lower() == ".zip":
        with tempfile.TemporaryDirectory(prefix="muavin_") as temp_dir:
            yield sorted(extract_zip_members(path, Path(temp_dir), suffixes))
    elif path.is_file():
        yield [path] if _matches(path.name, suffixes) else []
    else:
        raise NotFoundError(input_not_found(str(path)))
