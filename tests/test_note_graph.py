"""Tests for the note graph database and source resolution."""

import pytest

from citeharvest.bibtex_handler import BibliographicEntry, BibliographyIndex
from citeharvest.errors import SourceNotFoundError
from citeharvest.note_graph import NoteGraphDatabase
from citeharvest.resolver import SourceResolver


@pytest.fixture
def db(tmp_path):
    return NoteGraphDatabase(str(tmp_path / "notes.db"))


class TestNoteGraphDatabase:
    """Test node and reference lookups."""

    def test_has_reference(self, db):
        """Test exact citekey matches."""
        node = db.add_node("/notes/smith.org", "Smith 2020")
        db.add_reference(node, "smith2020")
        assert db.has_reference("smith2020")
        assert not db.has_reference("smith")

    def test_file_for_reference(self, db):
        """Test the note file carrying a citekey."""
        node = db.add_node("/notes/smith.org", "Smith 2020")
        db.add_reference(node, "smith2020")
        assert db.file_for_reference("smith2020") == "/notes/smith.org"
        assert db.file_for_reference("missing") is None

    def test_node_for_reference(self, db):
        """Test the node record is returned."""
        node_id = db.add_node("/notes/a.org", "A", node_id="abc")
        db.add_reference(node_id, "a2001")
        node = db.node_for_reference("a2001")
        assert node.id == "abc"
        assert node.title == "A"

    def test_persists_across_instances(self, tmp_path):
        """Test data survives reopening the database."""
        path = str(tmp_path / "notes.db")
        first = NoteGraphDatabase(path)
        first.add_reference(first.add_node("/notes/a.org"), "a2001")
        assert NoteGraphDatabase(path).has_reference("a2001")


class TestSourceResolver:
    """Test locating source documents and notes."""

    def test_source_from_file_field(self, tmp_path):
        """Test a plain path in the file field."""
        pdf = tmp_path / "smith.pdf"
        pdf.write_bytes(b"%PDF")
        bib = BibliographyIndex(entries=[BibliographicEntry("smith2020", fields={"file": str(pdf)})])
        assert SourceResolver(bib).resolve_source("smith2020") == pdf

    def test_source_from_triple_file_field(self, tmp_path):
        """Test description:path:type entries separated by semicolons."""
        pdf = tmp_path / "smith.pdf"
        pdf.write_bytes(b"%PDF")
        field = f"Missing:{tmp_path / 'gone.pdf'}:PDF;Full text:{pdf}:PDF"
        bib = BibliographyIndex(entries=[BibliographicEntry("smith2020", fields={"file": field})])
        assert SourceResolver(bib).resolve_source("smith2020") == pdf

    def test_source_from_library(self, tmp_path):
        """Test <library>/<citekey>.pdf is used without a file field."""
        library = tmp_path / "library"
        library.mkdir()
        (library / "doe2019.pdf").write_bytes(b"%PDF")
        resolver = SourceResolver(BibliographyIndex(), library_paths=[library])
        assert resolver.resolve_source("doe2019") == library / "doe2019.pdf"

    def test_source_missing(self, tmp_path):
        """Test no candidate raises."""
        resolver = SourceResolver(BibliographyIndex(), library_paths=[tmp_path])
        with pytest.raises(SourceNotFoundError):
            resolver.resolve_source("nobody")

    def test_document_explicit(self, tmp_path, db):
        """Test an explicit document wins over the note graph."""
        resolver = SourceResolver(note_graph=db)
        assert resolver.resolve_document("k", tmp_path / "note.org") == (tmp_path / "note.org").resolve()

    def test_relative_document_made_absolute(self, tmp_path, db, monkeypatch):
        """Test a relative document is anchored to the directory it was given in."""
        monkeypatch.chdir(tmp_path)
        document = SourceResolver(note_graph=db).resolve_document("k", "note.org")
        assert document.is_absolute()
        assert document == (tmp_path / "note.org").resolve()

    def test_document_from_note_graph(self, db):
        """Test the note carrying the citekey is the report target."""
        db.add_reference(db.add_node("/notes/smith.org"), "smith2020")
        resolver = SourceResolver(note_graph=db)
        assert str(resolver.resolve_document("smith2020")) == "/notes/smith.org"

    def test_document_missing(self, db):
        """Test an unknown citekey without a document raises."""
        with pytest.raises(SourceNotFoundError):
            SourceResolver(note_graph=db).resolve_document("nobody")
