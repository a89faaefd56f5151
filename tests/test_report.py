"""Tests for report rendering and document insertion."""

import pytest

from citeharvest.classifier import ClassificationGroups, ClassifiedReference, ProvenanceGroup
from citeharvest.file_handler import DocumentHandler
from citeharvest.report import ReportRenderer


@pytest.fixture
def groups():
    groups = ClassificationGroups()
    groups.add(ProvenanceGroup.IN_GRAPH, ClassifiedReference("a", "cite:a"))
    groups.add(ProvenanceGroup.INVALID, ClassifiedReference("b", "Roe N/A"))
    return groups


class TestReportRenderer:
    """Test the References section."""

    def test_org_report(self, groups):
        """Test org headings and only non-empty groups."""
        assert ReportRenderer("org").render(groups) == (
            "* References\n"
            "** In note graph\n"
            "- cite:a\n"
            "** Invalid keys\n"
            "- Roe N/A\n"
        )

    def test_markdown_report(self, groups):
        """Test markdown headings."""
        text = ReportRenderer("markdown").render(groups)
        assert text.startswith("# References\n## In note graph\n")

    def test_empty_groups(self):
        """Test the top heading is written even with nothing classified."""
        assert ReportRenderer().render(ClassificationGroups()) == "* References\n"

    def test_unknown_markup(self):
        """Test unsupported markup is rejected."""
        with pytest.raises(ValueError):
            ReportRenderer("html")


class TestDocumentHandler:
    """Test appending to the originating document."""

    def test_append_adds_separator(self, tmp_path):
        """Test a newline is inserted when the document lacks one."""
        note = tmp_path / "note.org"
        note.write_text("* Notes", encoding="utf-8")
        DocumentHandler(note).append("* References\n")
        assert note.read_text(encoding="utf-8") == "* Notes\n* References\n"

    def test_append_keeps_existing_content(self, tmp_path):
        """Test existing text is untouched."""
        note = tmp_path / "note.org"
        note.write_text("* Notes\nbody\n", encoding="utf-8")
        DocumentHandler(note).append("* References\n")
        assert note.read_text(encoding="utf-8") == "* Notes\nbody\n* References\n"

    def test_append_with_backup(self, tmp_path):
        """Test the backup holds the original contents."""
        note = tmp_path / "note.org"
        note.write_text("original\n", encoding="utf-8")
        backup = DocumentHandler(note).append("added\n", backup=True)
        assert backup.read_text(encoding="utf-8") == "original\n"

    def test_missing_document(self, tmp_path):
        """Test a missing document is rejected."""
        with pytest.raises(FileNotFoundError):
            DocumentHandler(tmp_path / "missing.org")
