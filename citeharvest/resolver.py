"""Resolves the source document and the originating note for a citekey."""

import os
from pathlib import Path
from typing import Iterable

from loguru import logger

from .errors import SourceNotFoundError


class SourceResolver:
    """
    Finds the PDF to extract references from, and the note to report into.

    Sources are taken from the bibliography entry's ``file`` field, which may
    be a plain path or a ``description:path:type`` triple (several separated
    by ``;``), and otherwise from ``<library>/<citekey>.pdf``.
    """

    def __init__(self, bibliography=None, note_graph=None, library_paths: Iterable = ()):
        self.bibliography = bibliography
        self.note_graph = note_graph
        self.library_paths = [Path(os.path.expanduser(str(p))) for p in library_paths]

    def resolve_source(self, citekey: str) -> Path:
        for candidate in self._candidates(citekey):
            if candidate.exists():
                logger.debug(f"Source for {citekey}: {candidate}")
                return candidate
        raise SourceNotFoundError(f"No source document found for {citekey}")

    def resolve_document(self, citekey: str, explicit=None) -> Path:
        """
        The explicit path if given, else the note carrying the citekey.

        The result is absolute so a session resumed from another working
        directory still appends to the same file.
        """
        if explicit:
            return Path(os.path.expanduser(str(explicit))).resolve()
        file = self.note_graph.file_for_reference(citekey) if self.note_graph else None
        if file:
            return Path(os.path.expanduser(file)).resolve()
        raise SourceNotFoundError(f"No note document references {citekey}; pass --document")

    def _candidates(self, citekey: str):
        entry = self.bibliography.lookup(citekey) if self.bibliography else None
        if entry and entry.source_file:
            for path in self._split_file_field(entry.source_file):
                yield Path(os.path.expanduser(path))
        for library in self.library_paths:
            yield library / f"{citekey}.pdf"

    @staticmethod
    def _split_file_field(value: str) -> Iterable[str]:
        for item in value.split(';'):
            item = item.strip()
            if not item:
                continue
            parts = item.split(':')
            # description:path:type, where path may itself contain a drive colon
            if len(parts) >= 3:
                yield ':'.join(parts[1:-1])
            else:
                yield item
