"""Session State Module.

Holds the single workflow context. Every read goes through ``get`` and every
write through ``put``; ``clear`` returns the context to its defaults and
releases any scratch artifacts it still references.

When constructed with a path, the context is persisted as JSON after each
mutation so a later process can resume at the recorded stage.
"""

import json
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .file_handler import ScratchArtifacts


class Stage(Enum):
    """Workflow stages."""
    IDLE = "idle"
    EXTRACTING = "extracting"
    EDITING_RAW = "editing-raw"
    EDITING_STRUCTURED = "editing-structured"
    CHECKING_OUT = "checking-out"
    BLOCKED = "blocked"
    ABORTED = "aborted"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STAGES


TERMINAL_STAGES = {Stage.IDLE, Stage.ABORTED, Stage.ERROR}

ARTIFACT_FIELDS = ('raw_text_path', 'structured_path')


@dataclass
class SessionContext:
    """The mutable record a workflow runs against."""
    stage: Stage = Stage.IDLE
    running: bool = False
    blocked: bool = False
    pending_key: Optional[str] = None
    pending_document: Optional[str] = None
    citekey: Optional[str] = None
    source_document: Optional[str] = None
    document: Optional[str] = None
    raw_text_path: Optional[str] = None
    structured_path: Optional[str] = None
    origin_view: Any = None
    interactive: bool = False
    retried: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data['stage'] = self.stage.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionContext':
        known_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in known_keys}
        if 'stage' in filtered:
            filtered['stage'] = Stage(filtered['stage'])
        return cls(**filtered)


class SessionState:
    """Key-value access to the one live SessionContext."""

    def __init__(self, path=None, scratch: ScratchArtifacts = None):
        self.path = Path(path) if path else None
        self.scratch = scratch or ScratchArtifacts()
        self._context = SessionContext()
        self._known = {f.name for f in fields(SessionContext)}
        if self.path and self.path.exists():
            self.load()

    def put(self, key: str, value: Any):
        """Merge one field into the context, replacing any previous value."""
        if key not in self._known:
            raise KeyError(f"Unknown session field: {key}")
        if key == 'stage' and not isinstance(value, Stage):
            value = Stage(value)
        if isinstance(value, Path):
            value = str(value)
        setattr(self._context, key, value)
        self._save()

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._known:
            return default
        value = getattr(self._context, key)
        return default if value is None else value

    @property
    def stage(self) -> Stage:
        return self._context.stage

    def snapshot(self) -> dict:
        """A copy of the context for display; never a live reference."""
        return self._context.to_dict()

    def clear(self):
        """Reset every field and release held scratch artifacts."""
        for name in ARTIFACT_FIELDS:
            self.scratch.release(getattr(self._context, name))
        self._context = SessionContext()
        if self.path and self.path.exists():
            self.path.unlink()
        logger.debug("Session cleared")

    def load(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._context = SessionContext.from_dict(data)
            logger.debug(f"Loaded session from {self.path} (stage={self._context.stage.value})")
        except (json.JSONDecodeError, ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {e}")
            self._context = SessionContext()

    def _save(self):
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._context.to_dict(), f, indent=2)
