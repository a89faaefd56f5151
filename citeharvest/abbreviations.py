"""Journal Abbreviation Table Module.

Loads the tab-separated journal abbreviation table consumed by the key
generator. Each row has three columns:

    journal name <TAB> abbreviation <TAB> canonical journal name

Rows are indexed by a whitespace/punctuation tolerant pattern built from both
the journal name and the canonical name, so a journal that has already been
corrected still resolves to the same abbreviation.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional
from loguru import logger


WORD_PATTERN = re.compile(r'[^\W_]+')


@dataclass(frozen=True)
class JournalAbbreviation:
    """One row of the abbreviation table."""
    name: str
    abbreviation: str
    canonical: str = ""

    @property
    def corrected_journal(self) -> str:
        return self.canonical or self.name

    @property
    def takes_volume(self) -> bool:
        """Abbreviations ending in a separator are followed by the volume."""
        return self.abbreviation.endswith('-')

    @property
    def verb(self) -> str:
        return self.abbreviation.rstrip('-') if self.takes_volume else self.abbreviation


def journal_pattern(name: str) -> str:
    """
    Build the lookup key for a journal name.

    Word runs are lowercased, regex-escaped and joined by ``\\W+`` so that
    "J. Am. Chem. Soc." and "J Am Chem Soc" share a key.
    """
    words = WORD_PATTERN.findall(name.lower())
    return r'\W+'.join(re.escape(word) for word in words)


class AbbreviationTable:
    """Read-only mapping from normalized journal pattern to abbreviation."""

    COLUMNS = 3

    def __init__(self, rows: Iterable[JournalAbbreviation] = ()):
        self._index: Dict[str, JournalAbbreviation] = {}
        for row in rows:
            self._add(row)

    def _add(self, row: JournalAbbreviation):
        for name in (row.name, row.canonical):
            key = journal_pattern(name) if name else ""
            if key and key not in self._index:
                self._index[key] = row

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> 'AbbreviationTable':
        """
        Build a table in memory.

        Values are either an abbreviation string or a
        ``(abbreviation, canonical)`` tuple.
        """
        rows = []
        for name, value in mapping.items():
            if isinstance(value, tuple):
                abbreviation, canonical = value
            else:
                abbreviation, canonical = value, ""
            rows.append(JournalAbbreviation(name, abbreviation, canonical))
        return cls(rows)

    @classmethod
    def from_tsv(cls, path) -> 'AbbreviationTable':
        """
        Load the table from a tab-separated file.

        Missing files yield an empty table; malformed rows are skipped.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Abbreviation table not found: {path}")
            return cls()

        rows = []
        with open(path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                line = line.rstrip('\n')
                if not line.strip() or line.startswith('#'):
                    continue
                columns = line.split('\t')
                if len(columns) != cls.COLUMNS:
                    logger.warning(
                        f"{path}:{line_number}: expected {cls.COLUMNS} columns, got {len(columns)}"
                    )
                    continue
                name, abbreviation, canonical = (c.strip() for c in columns)
                rows.append(JournalAbbreviation(name, abbreviation, canonical))

        table = cls(rows)
        logger.info(f"Loaded {len(rows)} journal abbreviations from {path}")
        return table

    def lookup(self, journal: str) -> Optional[JournalAbbreviation]:
        if not journal:
            return None
        return self._index.get(journal_pattern(journal))

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, journal: str) -> bool:
        return self.lookup(journal) is not None
