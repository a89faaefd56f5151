"""
Configuration module for CiteHarvest.

Centralizes all configuration settings, environment variables, and defaults.
Settings can be overridden via environment variables or .env file.

Usage:
    from citeharvest.config import config

    # Access settings
    tool = config.ANYSTYLE_COMMAND
    timeout = config.extraction_timeout
"""

import os
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load from project root .env file
PROJECT_ROOT = Path(__file__).parent.parent
env_path = PROJECT_ROOT / '.env'
if env_path.exists():
    load_dotenv(env_path)

DATA_DIR = PROJECT_ROOT / '.data'


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    val = os.environ.get(key, "")
    try:
        return int(val) if val else default
    except ValueError:
        return default


def _get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    val = os.environ.get(key, "")
    try:
        return float(val) if val else default
    except ValueError:
        return default


def _get_env_paths(key: str) -> List[str]:
    """Get an os.pathsep separated list of paths."""
    val = os.environ.get(key, "")
    return [os.path.expanduser(p) for p in val.split(os.pathsep) if p.strip()]


@dataclass
class Config:
    """
    CiteHarvest configuration settings.

    All settings can be overridden via environment variables.
    """

    # ==========================================================================
    # Reference Extractor Settings
    # ==========================================================================

    # Executable used for both the find and parse steps
    ANYSTYLE_COMMAND: str = field(default_factory=lambda: _get_env(
        "ANYSTYLE_COMMAND", "anystyle"
    ))

    # Global options placed before the "find" subcommand
    ANYSTYLE_FIND_ARGS: str = field(default_factory=lambda: _get_env(
        "ANYSTYLE_FIND_ARGS", "-f ref"
    ))

    # Global options placed before the "parse" subcommand
    ANYSTYLE_PARSE_ARGS: str = field(default_factory=lambda: _get_env(
        "ANYSTYLE_PARSE_ARGS", "-f bib"
    ))

    # Seconds before an external process is abandoned; 0 blocks indefinitely
    EXTRACTION_TIMEOUT: float = field(default_factory=lambda: _get_env_float(
        "EXTRACTION_TIMEOUT", 0.0
    ))

    # ==========================================================================
    # Lookup Sources
    # ==========================================================================

    # Tab-separated journal abbreviation table (name, abbreviation, canonical)
    ABBREVIATIONS_PATH: str = field(default_factory=lambda: _get_env(
        "ABBREVIATIONS_PATH", str(PROJECT_ROOT / "data" / "journal_abbreviations.tsv")
    ))

    # SQLite note-graph database
    NOTE_GRAPH_DB: str = field(default_factory=lambda: _get_env(
        "NOTE_GRAPH_DB", str(DATA_DIR / "notes.db")
    ))

    # BibTeX files backing the bibliography index
    BIBLIOGRAPHY_PATHS: List[str] = field(default_factory=lambda: _get_env_paths(
        "BIBLIOGRAPHY_PATHS"
    ))

    # Directories searched for <citekey>.pdf
    LIBRARY_PATHS: List[str] = field(default_factory=lambda: _get_env_paths(
        "LIBRARY_PATHS"
    ))

    # ==========================================================================
    # Session Settings
    # ==========================================================================

    # Directory holding the raw-text and structured-entries scratch files
    SCRATCH_DIR: str = field(default_factory=lambda: _get_env(
        "SCRATCH_DIR", str(DATA_DIR / "scratch")
    ))

    # Persisted session context, so "continue" works across invocations
    SESSION_FILE: str = field(default_factory=lambda: _get_env(
        "SESSION_FILE", str(DATA_DIR / "session.json")
    ))

    # ==========================================================================
    # Output Settings
    # ==========================================================================

    # Report markup: org or markdown
    REPORT_MARKUP: str = field(default_factory=lambda: _get_env(
        "REPORT_MARKUP", "org"
    ))

    # Create backup files before appending the report
    CREATE_BACKUP: bool = field(default_factory=lambda: _get_env_bool(
        "CREATE_BACKUP", False
    ))

    # ==========================================================================
    # Logging Settings
    # ==========================================================================

    # Log level: DEBUG, INFO, WARNING, ERROR
    LOG_LEVEL: str = field(default_factory=lambda: _get_env(
        "LOG_LEVEL", "INFO"
    ))

    # Enable verbose logging
    VERBOSE: bool = field(default_factory=lambda: _get_env_bool(
        "VERBOSE", False
    ))

    # Enable file logging
    ENABLE_FILE_LOGGING: bool = field(default_factory=lambda: _get_env_bool(
        "ENABLE_FILE_LOGGING", True
    ))

    # Log file rotation size (MB)
    LOG_ROTATION_SIZE_MB: int = field(default_factory=lambda: _get_env_int(
        "LOG_ROTATION_SIZE_MB", 10
    ))

    # Number of log files to retain
    LOG_RETENTION_COUNT: int = field(default_factory=lambda: _get_env_int(
        "LOG_RETENTION_COUNT", 5
    ))

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.LOG_LEVEL.upper() not in valid_levels:
            self.LOG_LEVEL = 'INFO'

        if self.REPORT_MARKUP.lower() not in ('org', 'markdown'):
            self.REPORT_MARKUP = 'org'
        self.REPORT_MARKUP = self.REPORT_MARKUP.lower()

        if self.EXTRACTION_TIMEOUT < 0:
            self.EXTRACTION_TIMEOUT = 0.0
        if self.LOG_ROTATION_SIZE_MB < 1:
            self.LOG_ROTATION_SIZE_MB = 10

    @property
    def extraction_timeout(self) -> Optional[float]:
        """Timeout for subprocess calls, or None to block until exit."""
        return self.EXTRACTION_TIMEOUT or None

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging/debugging."""
        return {
            'ANYSTYLE_COMMAND': self.ANYSTYLE_COMMAND,
            'EXTRACTION_TIMEOUT': self.EXTRACTION_TIMEOUT,
            'ABBREVIATIONS_PATH': self.ABBREVIATIONS_PATH,
            'NOTE_GRAPH_DB': self.NOTE_GRAPH_DB,
            'BIBLIOGRAPHY_PATHS': self.BIBLIOGRAPHY_PATHS,
            'REPORT_MARKUP': self.REPORT_MARKUP,
            'LOG_LEVEL': self.LOG_LEVEL,
        }


# Global config instance
config = Config()


VERSION = "0.4.0"


__all__ = ['config', 'Config', 'VERSION', 'DATA_DIR']
