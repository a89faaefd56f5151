"""BibTeX Handler Module.

Provides functionality to:
- Parse structured reference output (BibTeX) into bibliographic entries
- Look up citekeys in the user's bibliography files
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from loguru import logger

from .errors import StructuralParseError

MISSING = "N/A"


@dataclass(frozen=True)
class BibliographicEntry:
    """A single bibliographic entry keyed by its extracted citekey."""
    citekey: str
    entry_type: str = "article"
    fields: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: str = MISSING) -> str:
        """Return a field value, or ``default`` when it is missing or blank."""
        value = self.fields.get(name)
        if value is None or not str(value).strip():
            return default
        return value

    def with_edits(self, edits: Sequence[Tuple[str, str]]) -> 'BibliographicEntry':
        fields = dict(self.fields)
        for name, value in edits:
            fields[name] = value
        return BibliographicEntry(self.citekey, self.entry_type, fields)

    @property
    def source_file(self) -> Optional[str]:
        return self.fields.get('file')


class BibTeXParser:
    """
    Parser for BibTeX text.

    In strict mode malformed entries raise ``StructuralParseError``; this is
    used for scratch artifacts the user can repair. Lenient mode logs and
    skips them, which suits large personal bibliographies.
    """

    # Pattern to match entry start
    ENTRY_PATTERN = re.compile(r'@(\w+)\s*\{\s*([^,\s{}]*)\s*,?', re.IGNORECASE)

    # Pattern to match field
    FIELD_PATTERN = re.compile(
        r'(\w[\w-]*)\s*=\s*(?:\{([^{}]*(?:\{[^{}]*\}[^{}]*)*)\}|"([^"]*)"|(\w+))'
    )

    IGNORED_TYPES = {'comment', 'preamble', 'string'}

    def __init__(self, strict: bool = True):
        self.strict = strict

    def parse_file(self, filepath) -> List[BibliographicEntry]:
        path = Path(filepath)
        if not path.exists():
            logger.error(f"BibTeX file not found: {filepath}")
            return []

        try:
            content = path.read_text(encoding='utf-8')
        except UnicodeDecodeError:
            content = path.read_text(encoding='latin-1')
        return self.parse_string(content)

    def parse_string(self, content: str) -> List[BibliographicEntry]:
        """
        Parse BibTeX content from a string.

        Args:
            content: BibTeX content string

        Returns:
            List of BibliographicEntry objects in file order
        """
        entries = []
        entry_starts = list(self.ENTRY_PATTERN.finditer(content))

        for i, match in enumerate(entry_starts):
            entry_type = match.group(1).lower()
            if entry_type in self.IGNORED_TYPES:
                continue
            cite_key = match.group(2).strip()

            start = match.end()
            end = entry_starts[i + 1].start() if i + 1 < len(entry_starts) else len(content)
            body = self._entry_body(content[start:end])

            problem = None
            if not cite_key:
                problem = f"@{entry_type} entry at offset {match.start()} has no citekey"
            elif body is None:
                problem = f"Unbalanced braces in entry '{cite_key}'"

            if problem:
                if self.strict:
                    raise StructuralParseError(problem)
                logger.warning(f"Skipping malformed entry: {problem}")
                continue

            entries.append(BibliographicEntry(
                citekey=cite_key,
                entry_type=entry_type,
                fields=self._parse_fields(body),
            ))

        return entries

    def _entry_body(self, entry_content: str) -> Optional[str]:
        """Return the text up to the entry's closing brace, or None if unbalanced."""
        brace_count = 1
        for j, char in enumerate(entry_content):
            if char == '{':
                brace_count += 1
            elif char == '}':
                brace_count -= 1
                if brace_count == 0:
                    return entry_content[:j]
        return None

    def _parse_fields(self, content: str) -> Dict[str, str]:
        fields = {}
        for match in self.FIELD_PATTERN.finditer(content):
            key = match.group(1).lower()
            value = match.group(2) or match.group(3) or match.group(4) or ""
            value = self._clean_value(value)
            if value:
                fields[key] = value
        return fields

    def _clean_value(self, value: str) -> str:
        """Clean up a BibTeX field value."""
        value = value.strip()

        # Remove LaTeX commands for special chars
        value = re.sub(r'\\[\'"`^~=.uvHtcdb]\{?(\w)\}?', r'\1', value)

        # Remove remaining braces used for case protection
        value = re.sub(r'\{([^{}]*)\}', r'\1', value)

        return ' '.join(value.split())


class BibliographyIndex:
    """
    Bibliography-completion data source backed by one or more .bib files.

    Files are loaded on first lookup; later lookups are dictionary hits.
    """

    def __init__(self, paths: Iterable = (), entries: Iterable[BibliographicEntry] = ()):
        self.paths = [Path(p) for p in paths]
        self._entries: Optional[Dict[str, BibliographicEntry]] = None
        self._preloaded = list(entries)

    def _load(self) -> Dict[str, BibliographicEntry]:
        if self._entries is None:
            index = {entry.citekey: entry for entry in self._preloaded}
            parser = BibTeXParser(strict=False)
            for path in self.paths:
                entries = parser.parse_file(path)
                logger.debug(f"Indexed {len(entries)} entries from {path}")
                for entry in entries:
                    index.setdefault(entry.citekey, entry)
            self._entries = index
        return self._entries

    def lookup(self, citekey: str) -> Optional[BibliographicEntry]:
        return self._load().get(citekey)

    def __contains__(self, citekey: str) -> bool:
        return citekey in self._load()

    def __len__(self) -> int:
        return len(self._load())
