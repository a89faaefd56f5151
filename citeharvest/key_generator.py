"""Key Generator Module - Derives deterministic citation keys from entries.

A key has the shape ``year-verb[-volume]-page``, for example
``2020-JACS-142-1999``. The verb comes from the journal abbreviation table,
falling back to the literal journal name. Any missing component leaves the
``N/A`` placeholder (or an empty ``--`` slot) in the key, which marks the
candidate invalid.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from loguru import logger

from .abbreviations import AbbreviationTable
from .bibtex_handler import MISSING, BibliographicEntry
from .errors import StructuralParseError

YEAR_PATTERN = re.compile(r'\d{4}')
NUMBER_PATTERN = re.compile(r'\d+')


class Validity(Enum):
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class KeyCandidate:
    """Output of the key generator for one entry."""
    new_key: str
    validity: Validity
    field_edits: Tuple[Tuple[str, str], ...]
    display: str

    @property
    def is_valid(self) -> bool:
        return self.validity is Validity.VALID


class KeyGenerator:
    """Pure key generator over a fixed abbreviation table."""

    def __init__(self, abbreviations: AbbreviationTable = None):
        self.abbreviations = abbreviations or AbbreviationTable()

    def generate(self, entry: BibliographicEntry) -> KeyCandidate:
        self._check_structure(entry)

        author = entry.get('author')
        journal = entry.get('journal')
        date = entry.get('date', entry.get('year'))
        volume = entry.get('volume')
        pages = entry.get('pages')

        year_match = YEAR_PATTERN.search(date)
        year = year_match.group(0) if year_match else date

        abbreviation = self.abbreviations.lookup(journal) if journal != MISSING else None
        if abbreviation:
            corrected_journal = abbreviation.corrected_journal
            verb = abbreviation.verb
            parts = [year, verb]
            if abbreviation.takes_volume:
                parts.append(volume)
        else:
            corrected_journal = journal
            verb = journal
            parts = [year, verb]

        page_match = NUMBER_PATTERN.search(pages)
        parts.append(page_match.group(0) if page_match else MISSING)

        new_key = "-".join(parts)
        validity = Validity.INVALID if (MISSING in new_key or "--" in new_key) else Validity.VALID

        return KeyCandidate(
            new_key=new_key,
            validity=validity,
            field_edits=(("journal", corrected_journal), ("verb", verb)),
            display=" ".join([author, journal, year, volume, pages]),
        )

    def generate_all(
        self, entries: List[BibliographicEntry]
    ) -> List[Tuple[BibliographicEntry, KeyCandidate]]:
        """Generate candidates for every entry, returning entries with edits applied."""
        results = []
        for entry in entries:
            candidate = self.generate(entry)
            logger.debug(f"{entry.citekey} -> {candidate.new_key} ({candidate.validity.value})")
            results.append((entry.with_edits(candidate.field_edits), candidate))
        return results

    def _check_structure(self, entry: BibliographicEntry):
        if not entry.citekey:
            raise StructuralParseError("Entry has no citekey")
        for name, value in entry.fields.items():
            if not isinstance(value, str):
                raise StructuralParseError(
                    f"Field '{name}' of entry '{entry.citekey}' is not text"
                )
