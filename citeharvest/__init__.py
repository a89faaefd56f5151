"""CiteHarvest Modules"""

from .abbreviations import AbbreviationTable, JournalAbbreviation
from .bibtex_handler import BibliographicEntry, BibliographyIndex, BibTeXParser
from .classifier import ClassificationGroups, ProvenanceGroup, ReferenceClassifier
from .dispatcher import WorkflowDispatcher, build_dispatcher
from .errors import AdapterError, CiteHarvestError, InternalStateError, StructuralParseError
from .extraction import ExtractionAdapter, sanitize
from .key_generator import KeyCandidate, KeyGenerator, Validity
from .note_graph import NoteGraphDatabase
from .report import ReportRenderer
from .session import SessionContext, SessionState, Stage

__version__ = '0.4.0'
