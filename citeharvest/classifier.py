"""Reference Classifier Module.

Buckets each generated key into exactly one provenance group. The priority
order lives in ``ReferenceClassifier.rules``: note graph first, then the
bibliography index, then the candidate's validity, then the catch-all
invalid bucket.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Tuple

from loguru import logger

from .key_generator import KeyCandidate


class ProvenanceGroup(Enum):
    """Provenance groups in report order."""
    IN_GRAPH = "in-graph"
    IN_BIBLIOGRAPHY = "in-bibliography"
    VALID = "valid"
    INVALID = "invalid"

    @property
    def heading(self) -> str:
        return GROUP_HEADINGS[self]


GROUP_HEADINGS = {
    ProvenanceGroup.IN_GRAPH: "In note graph",
    ProvenanceGroup.IN_BIBLIOGRAPHY: "In bibliography",
    ProvenanceGroup.VALID: "Valid keys",
    ProvenanceGroup.INVALID: "Invalid keys",
}


@dataclass(frozen=True)
class ClassifiedReference:
    key: str
    line: str


class ClassificationGroups:
    """Ordered backing lists, one per provenance group."""

    def __init__(self):
        self._groups: Dict[ProvenanceGroup, List[ClassifiedReference]] = {
            group: [] for group in ProvenanceGroup
        }

    def add(self, group: ProvenanceGroup, reference: ClassifiedReference):
        self._groups[group].append(reference)

    def lines(self, group: ProvenanceGroup) -> List[str]:
        return [ref.line for ref in self._groups[group]]

    def items(self) -> Iterable[Tuple[ProvenanceGroup, List[ClassifiedReference]]]:
        return ((group, self._groups[group]) for group in ProvenanceGroup)

    def non_empty(self) -> List[ProvenanceGroup]:
        return [group for group, refs in self.items() if refs]

    def total(self) -> int:
        return sum(len(refs) for refs in self._groups.values())

    def clear(self):
        for refs in self._groups.values():
            refs.clear()


Predicate = Callable[[str, KeyCandidate], bool]
Formatter = Callable[[KeyCandidate], str]


@dataclass(frozen=True)
class ClassificationRule:
    group: ProvenanceGroup
    predicate: Predicate
    formatter: Formatter


def cite_link(candidate: KeyCandidate) -> str:
    return f"cite:{candidate.new_key}"


def cite_link_with_display(candidate: KeyCandidate) -> str:
    return f"cite:{candidate.new_key} {candidate.display}"


def display_only(candidate: KeyCandidate) -> str:
    return candidate.display


class ReferenceClassifier:
    """
    Classifies (original citekey, candidate) pairs by provenance.

    Args:
        note_graph: object with ``has_reference(ref) -> bool``
        bibliography: object supporting ``citekey in bibliography``
    """

    def __init__(self, note_graph, bibliography):
        self.note_graph = note_graph
        self.bibliography = bibliography
        self.rules: List[ClassificationRule] = [
            ClassificationRule(
                ProvenanceGroup.IN_GRAPH,
                lambda citekey, _: self.note_graph.has_reference(citekey),
                cite_link,
            ),
            ClassificationRule(
                ProvenanceGroup.IN_BIBLIOGRAPHY,
                lambda citekey, _: citekey in self.bibliography,
                cite_link,
            ),
            ClassificationRule(
                ProvenanceGroup.VALID,
                lambda _, candidate: candidate.is_valid,
                cite_link_with_display,
            ),
            ClassificationRule(
                ProvenanceGroup.INVALID,
                lambda _, candidate: True,
                display_only,
            ),
        ]

    def classify_one(self, citekey: str, candidate: KeyCandidate) -> Tuple[ProvenanceGroup, ClassifiedReference]:
        for rule in self.rules:
            if rule.predicate(citekey, candidate):
                return rule.group, ClassifiedReference(candidate.new_key, rule.formatter(candidate))
        # The last rule always matches; reaching here means the rule list was altered
        raise LookupError(f"No classification rule matched {citekey}")

    def classify(
        self,
        pairs: Iterable[Tuple[str, KeyCandidate]],
        groups: ClassificationGroups = None,
    ) -> ClassificationGroups:
        """
        Fill ``groups`` from scratch with one line per pair.

        Groups are cleared first so a previous pass never leaks into this one.
        Order within each group follows input order; duplicates are kept.
        """
        groups = groups if groups is not None else ClassificationGroups()
        groups.clear()
        for citekey, candidate in pairs:
            group, reference = self.classify_one(citekey, candidate)
            groups.add(group, reference)
        summary = ", ".join(f"{g.value}={len(refs)}" for g, refs in groups.items())
        logger.info(f"Classified {groups.total()} reference(s): {summary}")
        return groups
