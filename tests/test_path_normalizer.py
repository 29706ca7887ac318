"""Tests for canonical XML path keys."""

import pytest

from muavin.utils.path_normalizer import NamespacePathBuilder, normalize_path

RAW_PATHS = [
    "/Defter/xbrl/accountingEntries/entryHeader/entryNumber/#text",
    "/edefter/XBRL/schemaRef/accountingEntries",
    "/envelope/body/defter/xbrl/accountingentries/entryheader/entrydetail/amount",
    "//a//b/",
    "/defter/xbrl/accountingentries/entryheader/@id",
    "",
]


@pytest.mark.parametrize("raw", RAW_PATHS)
def test_normalize_is_idempotent(raw):
    once = normalize_path(raw)
    assert normalize_path(once) == once


def test_normalize_lowercases_and_strips_text_suffix():
    assert (
        normalize_path("/Defter/xbrl/accountingEntries/entryHeader/entryNumber/#text")
        == "/defter/xbrl/accountingentries/entryheader/entrynumber"
    )


def test_normalize_drops_schemaref_and_roots_at_xbrl():
    assert normalize_path("/edefter/XBRL/schemaRef/accountingEntries") == "/xbrl/accountingentries"


def test_normalize_truncates_before_defter_root():
    assert (
        normalize_path("/envelope/body/defter/xbrl/accountingentries")
        == "/defter/xbrl/accountingentries"
    )


def test_normalize_collapses_empty_segments():
    assert normalize_path("//a//b/") == "/a/b"


def test_normalize_empty():
    assert normalize_path("") == ""
    assert normalize_path(None) == ""


class TestNamespacePathBuilder:
    """Tests for the element stack path builder."""

    def test_push_and_pop(self):
        builder = NamespacePathBuilder()
        for name in ("Defter", "xbrl", "accountingEntries"):
            builder.push(name)
        assert builder.path == "/defter/xbrl/accountingentries"
        assert builder.depth == 3

        builder.pop()
        assert builder.path == "/defter/xbrl"
        assert builder.depth == 2

    def test_consecutive_duplicates_collapse(self):
        builder = NamespacePathBuilder()
        for name in ("defter", "xbrl", "xbrl", "accountingentries"):
            builder.push(name)
        assert builder.path == "/defter/xbrl/accountingentries"

    def test_build_path_for_attribute_and_text(self):
        builder = NamespacePathBuilder()
        for name in ("defter", "xbrl", "amount"):
            builder.push(name)
        assert builder.build_path("@unitRef") == "/defter/xbrl/amount/@unitref"
        assert builder.build_path("#text") == "/defter/xbrl/amount/#text"
        assert builder.build_path("") == builder.path

    def test_pop_on_empty_stack(self):
        builder = NamespacePathBuilder()
        builder.pop()
        assert builder.path == ""
        assert builder.depth == 0
