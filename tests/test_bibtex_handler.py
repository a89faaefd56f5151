"""Tests for BibTeX parsing, writing and the bibliography index."""

import pytest

from citeharvest.bibtex_handler import (
    BibliographicEntry,
    BibliographyIndex,
    BibTeXParser,
)
from citeharvest.errors import StructuralParseError


SAMPLE = """
@comment{generated by the extractor}

@article{smith2020,
  author = {Smith, J.},
  title = {A {Protected} Title},
  journal = {Journal of the American Chemical Society},
  date = {2020},
  volume = 142,
  pages = {1999--2005},
}

@book{doe2019,
  author = "Doe, A.",
  title = {Book},
}
"""


class TestBibTeXParser:
    """Test parsing structured entries."""

    def test_parses_entries_in_order(self):
        """Test entries, types and citekeys."""
        entries = BibTeXParser().parse_string(SAMPLE)
        assert [e.citekey for e in entries] == ["smith2020", "doe2019"]
        assert entries[1].entry_type == "book"

    def test_field_values_cleaned(self):
        """Test braces, quotes and bare numbers."""
        entry = BibTeXParser().parse_string(SAMPLE)[0]
        assert entry.fields["title"] == "A Protected Title"
        assert entry.fields["volume"] == "142"
        assert entry.fields["pages"] == "1999--2005"
        assert BibTeXParser().parse_string(SAMPLE)[1].fields["author"] == "Doe, A."

    def test_strict_unbalanced_braces(self):
        """Test strict mode rejects an unterminated entry."""
        with pytest.raises(StructuralParseError, match="Unbalanced"):
            BibTeXParser(strict=True).parse_string("@article{bad,\n  author = {Smith\n")

    def test_strict_missing_citekey(self):
        """Test strict mode rejects an entry without a key."""
        with pytest.raises(StructuralParseError, match="no citekey"):
            BibTeXParser(strict=True).parse_string("@article{,\n  author = {Smith},\n}\n")

    def test_lenient_skips_malformed(self):
        """Test lenient mode keeps the good entries."""
        text = "@article{,\n author = {X},\n}\n\n@article{good,\n author = {Y},\n}\n"
        entries = BibTeXParser(strict=False).parse_string(text)
        assert [e.citekey for e in entries] == ["good"]

    def test_parse_missing_file(self, tmp_path):
        """Test a missing file yields no entries."""
        assert BibTeXParser().parse_file(tmp_path / "missing.bib") == []


class TestBibliographicEntry:
    """Test entry helpers."""

    def test_get_default(self):
        """Test missing fields yield the placeholder."""
        entry = BibliographicEntry("k", fields={"author": "A"})
        assert entry.get("journal") == "N/A"
        assert entry.get("author") == "A"

    def test_with_edits_returns_new_entry(self):
        """Test edits do not mutate the original."""
        entry = BibliographicEntry("k", fields={"journal": "Old"})
        edited = entry.with_edits([("journal", "New"), ("verb", "N")])
        assert entry.fields == {"journal": "Old"}
        assert edited.fields == {"journal": "New", "verb": "N"}


class TestBibliographyIndex:
    """Test citekey lookups against .bib files."""

    def test_lookup_from_files(self, tmp_path):
        """Test entries from several files are indexed."""
        first = tmp_path / "a.bib"
        first.write_text("@article{alpha,\n title = {A},\n}\n", encoding="utf-8")
        second = tmp_path / "b.bib"
        second.write_text("@article{beta,\n file = {/tmp/beta.pdf},\n}\n", encoding="utf-8")

        index = BibliographyIndex([first, second])

        assert "alpha" in index
        assert "gamma" not in index
        assert index.lookup("beta").source_file == "/tmp/beta.pdf"
        assert len(index) == 2

    def test_preloaded_entries(self):
        """Test in-memory entries are indexed."""
        index = BibliographyIndex(entries=[BibliographicEntry("k")])
        assert index.lookup("k").citekey == "k"

    def test_files_loaded_on_first_lookup(self, tmp_path):
        """Test files are read lazily, not at construction."""
        path = tmp_path / "lib.bib"
        index = BibliographyIndex([path])

        path.write_text("@article{late,\n title = {Late},\n}\n", encoding="utf-8")
        assert "late" in index
