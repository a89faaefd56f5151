"""File Handler Module - Scratch artifacts and the originating document."""

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional
from loguru import logger


class ScratchArtifacts:
    """Creates and releases the temporary files a workflow edits."""

    def __init__(self, directory=None):
        self.directory = Path(directory).resolve() if directory else None

    def create(self, prefix: str, suffix: str = ".txt", text: str = "") -> Path:
        """Create a new scratch file holding ``text`` and return its path."""
        if self.directory:
            self.directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix=f"citeharvest-{prefix}-",
            suffix=suffix,
            dir=str(self.directory) if self.directory else None,
        )
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.debug(f"Scratch artifact created: {name}")
        return Path(name)

    def write(self, path, text: str) -> Path:
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def read(self, path) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def release(self, path) -> bool:
        """Delete a scratch file. Releasing a missing file is a no-op."""
        if not path:
            return False
        path = Path(path)
        if path.exists():
            path.unlink()
            logger.debug(f"Scratch artifact released: {path}")
            return True
        return False


class DocumentHandler:
    """Append-only access to the document a report is inserted into."""

    def __init__(self, input_path):
        self.input_path = Path(input_path).resolve()
        if not self.input_path.exists():
            raise FileNotFoundError(f"File not found: {self.input_path}")

    def read_file(self) -> str:
        with open(self.input_path, 'r', encoding='utf-8') as f:
            return f.read()

    def create_backup(self) -> Path:
        """Create a timestamped backup."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_name = f"{self.input_path.stem}_backup_{timestamp}{self.input_path.suffix}"
        backup_path = self.input_path.parent / backup_name
        shutil.copy2(self.input_path, backup_path)
        logger.info(f"Backup created: {backup_path}")
        return backup_path

    def append(self, text: str, backup: bool = False) -> Optional[Path]:
        """
        Append ``text`` to the end of the document.

        A separating newline is added when the document does not already end
        with one. Returns the backup path when one was requested.
        """
        backup_path = self.create_backup() if backup else None
        existing = self.read_file()
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        with open(self.input_path, 'a', encoding='utf-8') as f:
            f.write(prefix + text)
        logger.info(f"Appended {len(text)} characters to {self.input_path}")
        return backup_path
