"""Workflow Dispatcher Module.

A finite-state dispatcher over the session context:

    idle -> extracting -> editing-raw
        -> editing-structured (interactive review) -> checking-out
        -> checking-out (parse happens inside checkout)
    checking-out -> insertion -> idle

Each ``resume`` call is one "continue" signal from the user. Human edits
happen between calls, so every transition reads and writes the session
state instead of keeping anything on the dispatcher itself. ``kill`` and any
failure resolve through a terminal stage that clears the session, releases
scratch artifacts and restores the originating view.
"""

import random
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .bibtex_handler import BibTeXParser
from .classifier import ClassificationGroups, ReferenceClassifier
from .errors import CiteHarvestError, InternalStateError, SourceNotFoundError, StructuralParseError
from .extraction import ExtractionAdapter, sanitize
from .file_handler import DocumentHandler
from .interface import UserInterface
from .key_generator import KeyCandidate, KeyGenerator
from .report import ReportRenderer
from .resolver import SourceResolver
from .session import SessionState, Stage

KEY_GENERATION_MESSAGES: Sequence[Tuple[str, float]] = (
    ("Consulting the oracle of journal abbreviations...", 1.0),
    ("The oracle mumbles something about ISO 4.", 1.0),
    ("Fine. Generating keys the boring way.", 0.5),
)

UNKNOWN_STAGE_MESSAGES: Sequence[Tuple[str, float]] = (
    ("Hmm. Where was I?", 1.0),
    ("I have wandered into a stage nobody told me about.", 1.0),
)


class WorkflowDispatcher:
    """
    Sequences extraction, review checkpoints, key generation and
    classification for one citekey at a time.
    """

    EASTER_EGG_PROBABILITY = 0.02

    def __init__(
        self,
        state: SessionState,
        adapter: ExtractionAdapter,
        key_generator: KeyGenerator,
        classifier: ReferenceClassifier,
        renderer: ReportRenderer,
        ui: UserInterface,
        resolver: SourceResolver,
        groups: ClassificationGroups = None,
        rng: random.Random = None,
        sleep: Callable[[float], None] = time.sleep,
        create_backup: bool = False,
    ):
        self.state = state
        self.adapter = adapter
        self.key_generator = key_generator
        self.classifier = classifier
        self.renderer = renderer
        self.ui = ui
        self.resolver = resolver
        self.groups = groups if groups is not None else ClassificationGroups()
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.create_backup = create_backup
        self._handlers: Dict[Stage, Callable[[], Stage]] = {
            Stage.EDITING_RAW: self._continue_raw,
            Stage.EDITING_STRUCTURED: self._continue_structured,
            Stage.CHECKING_OUT: self._checkout,
        }

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def status(self) -> Stage:
        if self.state.get('blocked'):
            return Stage.BLOCKED
        return self.state.stage

    def is_running(self) -> bool:
        return bool(self.state.get('running')) and not self.state.stage.is_terminal

    def run(self, citekey: str, document=None) -> Stage:
        """Start a workflow for ``citekey``, or ask to replace the running one."""
        if self.is_running():
            return self._reenter(citekey, document)
        return self._guarded(lambda: self._start(citekey, document))

    def resume(self) -> Stage:
        """The user's "continue" signal."""
        if not self.is_running():
            self.ui.notify("No workflow is running.")
            return self.status()
        return self._guarded(self.dispatch)

    def kill(self) -> Stage:
        """Abort the session without inserting anything."""
        logger.info(f"Killing workflow at stage {self.state.stage.value}")
        self.groups.clear()
        return self._finish(Stage.ABORTED)

    def dispatch(self) -> Stage:
        stage = self.state.stage
        handler = self._handlers.get(stage)
        if handler is None:
            self._easter_egg(UNKNOWN_STAGE_MESSAGES)
            raise InternalStateError(f"Unrecognized workflow stage: {stage.value}")
        logger.debug(f"Dispatching stage {stage.value}")
        return handler()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _reenter(self, citekey: str, document) -> Stage:
        current = self.state.get('citekey')
        self.state.put('blocked', True)
        self.state.put('pending_key', citekey)
        self.state.put('pending_document', str(Path(document).expanduser().resolve()) if document else None)
        logger.info(f"Run for {citekey} requested while {current} is at {self.state.stage.value}")

        try:
            accepted = self.ui.confirm(f"A workflow for {current} is running. Kill it and start {citekey}?")
        finally:
            pending_key = self.state.get('pending_key')
            pending_document = self.state.get('pending_document')
            self.state.put('blocked', False)
            self.state.put('pending_key', None)
            self.state.put('pending_document', None)

        if not accepted:
            return self.state.stage

        self._finish(Stage.ABORTED)
        return self.run(pending_key, pending_document)

    def _start(self, citekey: str, document) -> Stage:
        self.state.clear()
        self.state.put('running', True)
        self.state.put('stage', Stage.EXTRACTING)
        self.state.put('citekey', citekey)
        self.state.put('origin_view', self.ui.capture_view())
        logger.info(f"Starting workflow for {citekey}")

        document_path = self.resolver.resolve_document(citekey, document)
        if not Path(document_path).exists():
            raise SourceNotFoundError(f"Document not found: {document_path}")
        self.state.put('document', document_path)

        source = self.resolver.resolve_source(citekey)
        self.state.put('source_document', source)

        raw_text = self.adapter.extract_raw(source)
        raw_path = self.state.scratch.create("raw", text=sanitize(raw_text) + "\n")
        self.state.put('raw_text_path', raw_path)

        self.state.put('stage', Stage.EDITING_RAW)
        self.ui.open_for_editing(raw_path, f"Review extracted references for {citekey}")
        return Stage.EDITING_RAW

    def _continue_raw(self) -> Stage:
        raw_path = self.state.get('raw_text_path')
        self.state.scratch.write(raw_path, self.ui.collect_edits(raw_path))

        if self.ui.confirm("Review the parsed entries before generating keys?"):
            structured = self.adapter.parse_structured(raw_path)
            self.state.put('structured_path', structured)
            self.state.put('interactive', True)
            return self._await_structured_edits("Review parsed entries")

        self.state.put('interactive', False)
        self.state.put('stage', Stage.CHECKING_OUT)
        return self._checkout()

    def _continue_structured(self) -> Stage:
        structured = self.state.get('structured_path')
        self.state.scratch.write(structured, self.ui.collect_edits(structured))
        self.state.put('interactive', True)
        self.state.put('stage', Stage.CHECKING_OUT)
        return self._checkout()

    def _await_structured_edits(self, label: str) -> Stage:
        self.state.put('stage', Stage.EDITING_STRUCTURED)
        self.ui.open_for_editing(Path(self.state.get('structured_path')), label)
        return Stage.EDITING_STRUCTURED

    def _checkout(self) -> Stage:
        if not self.state.get('interactive'):
            self.state.scratch.release(self.state.get('structured_path'))
            structured = self.adapter.parse_structured(self.state.get('raw_text_path'))
            self.state.put('structured_path', structured)

        try:
            pairs = self._generate_keys(self.state.get('structured_path'))
        except StructuralParseError as e:
            if self.state.get('retried'):
                raise
            logger.warning(f"Malformed entry, returning to manual repair: {e}")
            self.ui.notify(f"Malformed entry: {e}. Fix it and continue.")
            self.state.put('retried', True)
            self.state.put('interactive', True)
            return self._await_structured_edits("Repair malformed entries")

        self.classifier.classify(pairs, self.groups)
        self._insert()
        return self._finish(Stage.IDLE)

    def _generate_keys(self, structured_path) -> List[Tuple[str, KeyCandidate]]:
        self._easter_egg(KEY_GENERATION_MESSAGES)
        text = self.state.scratch.read(structured_path)
        entries = BibTeXParser(strict=True).parse_string(text)
        keyed = self.key_generator.generate_all(entries)
        logger.info(f"Generated {len(keyed)} key(s)")
        return [(entry.citekey, candidate) for entry, candidate in keyed]

    def _insert(self):
        """Append the report once, then empty every group."""
        try:
            handler = DocumentHandler(self.state.get('document'))
            handler.append(self.renderer.render(self.groups), backup=self.create_backup)
            logger.info(f"Inserted {self.groups.total()} reference(s) into {handler.input_path}")
        finally:
            self.groups.clear()

    # ------------------------------------------------------------------
    # Terminal handling
    # ------------------------------------------------------------------

    def _guarded(self, transition: Callable[[], Stage]) -> Stage:
        try:
            return transition()
        except CiteHarvestError as e:
            return self._fail(e)
        except Exception as e:
            logger.exception("Workflow transition failed")
            return self._fail(e)

    def _fail(self, error: Exception) -> Stage:
        logger.error(f"Workflow failed at stage {self.state.stage.value}: {error}")
        self.groups.clear()
        stage = self._finish(Stage.ERROR)
        self.ui.error(str(error))
        return stage

    def _finish(self, stage: Stage) -> Stage:
        """Resolve a terminal stage: clear the session and restore the view."""
        origin = self.state.get('origin_view')
        logger.info(f"Workflow finished: {stage.value}")
        self.state.clear()
        self.ui.restore_view(origin)
        return stage

    def _easter_egg(self, messages: Sequence[Tuple[str, float]]):
        if self.rng.random() >= self.EASTER_EGG_PROBABILITY:
            return
        for message, delay in messages:
            self.ui.notify(message)
            self.sleep(delay)


def build_dispatcher(config, ui: UserInterface, groups: Optional[ClassificationGroups] = None) -> WorkflowDispatcher:
    """Wire a dispatcher from configuration."""
    from .abbreviations import AbbreviationTable
    from .bibtex_handler import BibliographyIndex
    from .file_handler import ScratchArtifacts
    from .note_graph import NoteGraphDatabase

    scratch = ScratchArtifacts(config.SCRATCH_DIR)
    bibliography = BibliographyIndex(config.BIBLIOGRAPHY_PATHS)
    note_graph = NoteGraphDatabase(config.NOTE_GRAPH_DB)
    return WorkflowDispatcher(
        state=SessionState(config.SESSION_FILE, scratch=scratch),
        adapter=ExtractionAdapter.from_config(config, scratch=scratch),
        key_generator=KeyGenerator(AbbreviationTable.from_tsv(config.ABBREVIATIONS_PATH)),
        classifier=ReferenceClassifier(note_graph, bibliography),
        renderer=ReportRenderer(config.REPORT_MARKUP),
        ui=ui,
        resolver=SourceResolver(bibliography, note_graph, config.LIBRARY_PATHS),
        groups=groups,
        create_backup=config.CREATE_BACKUP,
    )
