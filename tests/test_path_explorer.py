"""Tests for the XML path explorer."""

import csv
import zipfile

import pytest

from muavin.domain.errors import LedgerParseError

from muavin.domain.path_explorer import (
    ATTRIBUTE,
    ELEMENT,
    TEXT,
    PathLister,
    PathStats,
    TagExplorer,
)

GL_COR = "http://www.xbrl.org/int/gl/cor/2006-10-25"
DETAIL = "/defter/xbrl/accountingentries/entryheader/entrydetail"
AMOUNT = DETAIL + "/amount"


def test_path_stats_keeps_three_distinct_samples():
    stats = PathStats(kind=TEXT, path="/a")
    for value in (" x ", "x", "y", "", "z", "w"):
        stats.touch(value)

    assert stats.count == 6
    assert stats.sample_values == ["x", "y", "z"]


class TestTagExplorer:
    """Tests for TagExplorer.analyze."""

    def test_element_attribute_and_text_paths(self, write_edefter):
        stats = TagExplorer().analyze(write_edefter())

        assert stats[AMOUNT].kind == ELEMENT
        assert stats[AMOUNT].count == 5
        assert stats[AMOUNT].namespace_uri == GL_COR
        assert stats[AMOUNT].attribute_names == {"decimals", "unitRef"}

        assert stats[AMOUNT + "/@unitref"].kind == ATTRIBUTE
        assert stats[AMOUNT + "/@unitref"].sample_values == ["try"]

        text = stats[AMOUNT + "/#text"]
        assert text.kind == TEXT
        assert text.count == 5
        assert text.sample_values == ["5000.00", "1180.00", "1000.00"]

    def test_whitespace_only_text_is_not_a_path(self, write_edefter):
        stats = TagExplorer().analyze(write_edefter())
        assert DETAIL + "/#text" not in stats

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<defter><xbrl></defter>", encoding="utf-8")

        with pytest.raises(LedgerParseError):
            TagExplorer().analyze(path)
        assert PathLister().list_paths(path).total_paths == 0


class TestPathLister:
    """Tests for PathLister over files, directories and archives."""

    def test_sorted_by_depth(self, write_edefter):
        result = PathLister().list_paths(write_edefter())

        assert result.all[0] == "/defter"
        depths = [path.count("/") for path in result.all]
        assert depths == sorted(depths)
        assert set(result.all) == set(result.elements) | set(result.attributes) | set(result.texts)
        assert result.total_paths == len(result.all)

    def test_directory_merges_counts(self, write_edefter):
        write_edefter(name="ocak.xml")
        path = write_edefter(name="subat.xml")
        (path.parent / "notes.txt").write_text("not xml", encoding="utf-8")

        stats = PathLister().collect(path.parent)
        assert stats[AMOUNT].count == 10

    def test_zip_archive(self, write_edefter, tmp_path):
        xml_path = write_edefter()
        archive = tmp_path / "defter.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.write(xml_path, "2024/01/defter.xml")
            zf.writestr("readme.md", "ignored")

        result = PathLister().list_paths(archive)
        assert AMOUNT in result.elements

    def test_broken_file_in_directory_is_skipped(self, write_edefter):
        path = write_edefter()
        (path.parent / "broken.xml").write_text("<defter>", encoding="utf-8")

        result = PathLister().list_paths(path.parent)
        assert AMOUNT in result.elements

    def test_write_to_files(self, write_edefter, tmp_path):
        lister = PathLister()
        result = lister.list_paths(write_edefter())
        written = lister.write_to_files(result, tmp_path / "paths")

        assert [path.name for path in written] == [
            "paths_all.txt",
            "paths_elements.txt",
            "paths_attributes.txt",
            "paths_texts.txt",
            "paths_detailed.csv",
        ]
        all_paths = (tmp_path / "paths" / "paths_all.txt").read_text(encoding="utf-8").splitlines()
        assert all_paths == list(result.all)

        with open(tmp_path / "paths" / "paths_detailed.csv", newline="", encoding="utf-8") as f:
            records = list(csv.DictReader(f))
        by_path = {(r["Kind"], r["Path"]): r for r in records}
        amount_text = by_path[(TEXT, AMOUNT + "/#text")]
        assert amount_text["Count"] == "5"
        assert amount_text["SampleValues"] == "5000.00 | 1180.00 | 1000.00"
        assert by_path[(ELEMENT, AMOUNT)]["AttributeList"] == "decimals;unitRef"
