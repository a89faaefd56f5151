"""
Tests for the Reference Classifier module.

Tests cover:
- Each provenance group and its line format
- Priority order (note graph before bibliography)
- Exclusive membership and counts
- Group reset between passes
- Duplicate keys within a group
"""

from unittest.mock import MagicMock

import pytest

from citeharvest.bibtex_handler import BibliographicEntry, BibliographyIndex
from citeharvest.classifier import (
    ClassificationGroups,
    ProvenanceGroup,
    ReferenceClassifier,
)
from citeharvest.key_generator import KeyCandidate, Validity
from citeharvest.note_graph import NoteGraphDatabase


def candidate(key="2020-JACS-142-1999", valid=True, display="Smith J JACS 2020 142 1999"):
    return KeyCandidate(
        new_key=key,
        validity=Validity.VALID if valid else Validity.INVALID,
        field_edits=(),
        display=display,
    )


@pytest.fixture
def note_graph(tmp_path):
    db = NoteGraphDatabase(str(tmp_path / "notes.db"))
    node = db.add_node(str(tmp_path / "smith.org"), "Smith 2020")
    db.add_reference(node, "smith2020")
    return db


@pytest.fixture
def bibliography():
    return BibliographyIndex(entries=[
        BibliographicEntry("doe2019"),
        BibliographicEntry("smith2020"),
    ])


@pytest.fixture
def classifier(note_graph, bibliography):
    return ReferenceClassifier(note_graph, bibliography)


class TestGroups:
    """Test each group's membership and format."""

    def test_in_graph(self, classifier):
        """Test a citekey in the note graph."""
        groups = classifier.classify([("smith2020", candidate())])
        assert groups.lines(ProvenanceGroup.IN_GRAPH) == ["cite:2020-JACS-142-1999"]

    def test_in_bibliography(self, classifier):
        """Test a citekey found only in the bibliography."""
        groups = classifier.classify([("doe2019", candidate("2019-PRL-122-1"))])
        assert groups.lines(ProvenanceGroup.IN_BIBLIOGRAPHY) == ["cite:2019-PRL-122-1"]

    def test_valid(self, classifier):
        """Test a valid key found nowhere carries its display string."""
        groups = classifier.classify([("lee2018", candidate("2018-Nature-550-100", display="Lee"))])
        assert groups.lines(ProvenanceGroup.VALID) == ["cite:2018-Nature-550-100 Lee"]

    def test_invalid_omits_key(self, classifier):
        """Test an invalid key is reported by display string only."""
        groups = classifier.classify([
            ("roe", candidate("N/A-Unknown-15", valid=False, display="Roe Unknown N/A N/A 15")),
        ])
        assert groups.lines(ProvenanceGroup.INVALID) == ["Roe Unknown N/A N/A 15"]
        assert "cite:" not in groups.lines(ProvenanceGroup.INVALID)[0]

    def test_invalid_key_found_in_graph_still_in_graph(self, classifier):
        """Test lookups take priority over validity."""
        groups = classifier.classify([("smith2020", candidate(valid=False))])
        assert groups.lines(ProvenanceGroup.IN_GRAPH) == ["cite:2020-JACS-142-1999"]
        assert groups.lines(ProvenanceGroup.INVALID) == []


class TestPriority:
    """Test the fixed priority order."""

    def test_rule_order(self, classifier):
        """Test the rules are listed in priority order."""
        assert [rule.group for rule in classifier.rules] == list(ProvenanceGroup)

    def test_graph_checked_before_bibliography(self):
        """Test the bibliography is not consulted for a graph hit."""
        graph = MagicMock()
        graph.has_reference.return_value = True
        bibliography = MagicMock()
        bibliography.__contains__.return_value = True

        groups = ReferenceClassifier(graph, bibliography).classify([("k", candidate())])

        graph.has_reference.assert_called_once_with("k")
        bibliography.__contains__.assert_not_called()
        assert groups.total() == 1

    def test_bibliography_checked_after_graph_miss(self):
        """Test a graph miss falls through to the bibliography."""
        graph = MagicMock()
        graph.has_reference.return_value = False
        bibliography = MagicMock()
        bibliography.__contains__.return_value = True

        groups = ReferenceClassifier(graph, bibliography).classify([("k", candidate())])

        assert groups.lines(ProvenanceGroup.IN_BIBLIOGRAPHY) == ["cite:2020-JACS-142-1999"]

    @pytest.mark.parametrize("citekey,valid,expected", [
        ("smith2020", True, ProvenanceGroup.IN_GRAPH),
        ("smith2020", False, ProvenanceGroup.IN_GRAPH),
        ("doe2019", True, ProvenanceGroup.IN_BIBLIOGRAPHY),
        ("doe2019", False, ProvenanceGroup.IN_BIBLIOGRAPHY),
        ("nowhere", True, ProvenanceGroup.VALID),
        ("nowhere", False, ProvenanceGroup.INVALID),
    ])
    def test_exactly_one_group(self, classifier, citekey, valid, expected):
        """Test exactly one group receives each reference."""
        groups = classifier.classify([(citekey, candidate(valid=valid))])
        assert groups.total() == 1
        assert groups.non_empty() == [expected]


class TestGroupLifecycle:
    """Test ordering, duplicates and reset."""

    def test_insertion_order_preserved(self, classifier):
        """Test lines keep input order within a group."""
        groups = classifier.classify([
            ("a", candidate("2001-X-1", display="first")),
            ("b", candidate("2002-X-2", display="second")),
            ("c", candidate("2003-X-3", display="third")),
        ])
        assert groups.lines(ProvenanceGroup.VALID) == [
            "cite:2001-X-1 first", "cite:2002-X-2 second", "cite:2003-X-3 third",
        ]

    def test_duplicate_keys_not_deduplicated(self, classifier):
        """Test the same key twice appears twice in its group."""
        groups = classifier.classify([
            ("doe2019", candidate("2019-PRL-122-1")),
            ("doe2019", candidate("2019-PRL-122-1")),
        ])
        assert groups.lines(ProvenanceGroup.IN_BIBLIOGRAPHY) == [
            "cite:2019-PRL-122-1", "cite:2019-PRL-122-1",
        ]

    def test_total_matches_input(self, classifier):
        """Test the group sizes sum to the number of pairs."""
        pairs = [
            ("smith2020", candidate()),
            ("doe2019", candidate()),
            ("x", candidate()),
            ("y", candidate(valid=False)),
            ("y", candidate(valid=False)),
        ]
        assert classifier.classify(pairs).total() == len(pairs)

    def test_groups_reset_each_pass(self, classifier):
        """Test a second pass does not keep the first pass's lines."""
        groups = ClassificationGroups()
        classifier.classify([("x", candidate("2001-X-1"))], groups)
        classifier.classify([("y", candidate("2002-Y-2"))], groups)
        assert groups.total() == 1
        assert groups.lines(ProvenanceGroup.VALID) == ["cite:2002-Y-2 Smith J JACS 2020 142 1999"]

    def test_clear(self):
        """Test clearing empties every group."""
        groups = ClassificationGroups()
        ReferenceClassifier(MagicMock(**{"has_reference.return_value": True}), set()).classify(
            [("k", candidate())], groups
        )
        groups.clear()
        assert groups.total() == 0
        assert groups.non_empty() == []
