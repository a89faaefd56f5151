"""Extraction Adapter Module.

Wraps the external reference extractor (anystyle by default):

- ``extract_raw``: ``<tool> find --no-layout <source> -`` turns a source
  document into raw reference text.
- ``parse_structured``: ``<tool> parse <raw-text> -`` turns sanitized text into
  BibTeX entries, written to a new scratch artifact.

Both calls block until the subprocess exits. Without a configured timeout a
hung extractor blocks the workflow indefinitely.

``sanitize`` runs locally and leaves one reference per line.
"""

import itertools
import re
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from .errors import AdapterError
from .file_handler import ScratchArtifacts

# Markers open a line or follow a space: "(12) ", "[3] ", "(a) "
NUMBERED_MARKER = re.compile(r'(?:^|(?<= ))(?:\(\d+\)|\[\d+\]) ')
LETTER_MARKER = re.compile(r'(?:^|(?<= ))\([a-z]\) ')


def _has_markers(line: str) -> bool:
    return bool(NUMBERED_MARKER.search(line) or LETTER_MARKER.search(line))


def sanitize(raw_text: str) -> str:
    """
    Normalize extracted reference text to one reference per line.

    Text containing reference markers is flattened (embedded line breaks
    collapsed) and split on numbered markers, then on letter markers. Text
    without markers keeps its lines. Either way the result holds no markers
    and no redundant whitespace, so sanitizing twice changes nothing.
    """
    lines = [" ".join(line.split()) for line in raw_text.splitlines()]
    lines = [line for line in lines if line]
    if not any(_has_markers(line) for line in lines):
        return "\n".join(lines)

    flattened = " ".join(lines)
    nested = [LETTER_MARKER.split(part) for part in NUMBERED_MARKER.split(flattened)]
    references = (part.strip() for part in itertools.chain.from_iterable(nested))
    return "\n".join(ref for ref in references if ref)


class ExtractionAdapter:
    """Runs the external reference extractor in a blocking subprocess."""

    def __init__(
        self,
        command: str = "anystyle",
        find_args: str = "",
        parse_args: str = "",
        timeout: Optional[float] = None,
        scratch: ScratchArtifacts = None,
    ):
        self.command = command
        self.find_args = shlex.split(find_args or "")
        self.parse_args = shlex.split(parse_args or "")
        self.timeout = timeout
        self.scratch = scratch or ScratchArtifacts()

    @classmethod
    def from_config(cls, config, scratch: ScratchArtifacts = None) -> 'ExtractionAdapter':
        return cls(
            command=config.ANYSTYLE_COMMAND,
            find_args=config.ANYSTYLE_FIND_ARGS,
            parse_args=config.ANYSTYLE_PARSE_ARGS,
            timeout=config.extraction_timeout,
            scratch=scratch or ScratchArtifacts(config.SCRATCH_DIR),
        )

    def find_command(self, document) -> List[str]:
        return [self.command, *self.find_args, "find", "--no-layout", str(document), "-"]

    def parse_command(self, raw_text_path) -> List[str]:
        return [self.command, *self.parse_args, "parse", str(raw_text_path), "-"]

    def extract_raw(self, document) -> str:
        """Return the raw reference text the extractor finds in ``document``."""
        document = Path(document)
        if not document.exists():
            raise AdapterError(f"Source document not found: {document}")
        logger.info(f"Extracting references from {document}")
        return self._run(self.find_command(document))

    def parse_structured(self, raw_text_path) -> Path:
        """Parse the raw-text artifact and return the new structured artifact."""
        logger.info(f"Parsing references in {raw_text_path}")
        output = self._run(self.parse_command(raw_text_path))
        return self.scratch.create("structured", suffix=".bib", text=output)

    def _run(self, cmd: Sequence[str]) -> str:
        logger.debug(f"Running: {' '.join(shlex.quote(c) for c in cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise AdapterError(
                f"Reference extractor not found: {self.command}", command=list(cmd)
            ) from e
        except subprocess.TimeoutExpired as e:
            raise AdapterError(
                f"Reference extractor timed out after {self.timeout}s", command=list(cmd)
            ) from e

        if result.returncode != 0:
            detail = (result.stderr or "").strip()
            raise AdapterError(
                f"Reference extractor exited with status {result.returncode}: {detail}",
                command=list(cmd),
                returncode=result.returncode,
                output=result.stdout or "",
            )
        return result.stdout
