"""Note Graph Database Module.

SQLite-backed note graph used for provenance lookups:
- Nodes (one per note file or heading)
- References attached to nodes (citekeys, URLs)
"""

import sqlite3
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from loguru import logger


@dataclass
class NoteNode:
    """A node in the note graph."""
    id: str
    file: str
    title: str


class NoteGraphDatabase:
    """
    Point lookups against a note graph of nodes and their references.
    """

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS nodes (
        id TEXT PRIMARY KEY,
        file TEXT NOT NULL,
        title TEXT
    );

    CREATE TABLE IF NOT EXISTS refs (
        node_id TEXT NOT NULL,
        ref TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'cite',
        FOREIGN KEY (node_id) REFERENCES nodes(id) ON DELETE CASCADE
    );

    CREATE INDEX IF NOT EXISTS idx_refs_ref ON refs(ref);
    """

    def __init__(self, db_path: str = None):
        """
        Initialize the note graph database.

        Args:
            db_path: Path to SQLite database file. Defaults to .data/notes.db
        """
        if db_path is None:
            data_dir = Path(__file__).parent.parent / ".data"
            data_dir.mkdir(exist_ok=True)
            db_path = str(data_dir / "notes.db")
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(db_path)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript(self.SCHEMA)
            conn.commit()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def add_node(self, file: str, title: str = "", node_id: str = None) -> str:
        """Add a node and return its id."""
        node_id = node_id or uuid.uuid4().hex
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO nodes (id, file, title) VALUES (?, ?, ?)",
                (node_id, str(file), title),
            )
            conn.commit()
        return node_id

    def add_reference(self, node_id: str, ref: str, ref_type: str = "cite"):
        """Attach a reference to a node."""
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO refs (node_id, ref, type) VALUES (?, ?, ?)",
                (node_id, ref, ref_type),
            )
            conn.commit()
        logger.debug(f"Reference {ref} attached to node {node_id}")

    def has_reference(self, ref: str) -> bool:
        """Return True when some node carries exactly this reference."""
        with self._get_conn() as conn:
            cursor = conn.execute("SELECT 1 FROM refs WHERE ref = ? LIMIT 1", (ref,))
            return cursor.fetchone() is not None

    def node_for_reference(self, ref: str) -> Optional[NoteNode]:
        with self._get_conn() as conn:
            cursor = conn.execute("""
                SELECT n.id, n.file, n.title FROM nodes n
                JOIN refs r ON r.node_id = n.id
                WHERE r.ref = ?
                LIMIT 1
            """, (ref,))
            row = cursor.fetchone()
            if row:
                return NoteNode(**dict(row))
            return None

    def file_for_reference(self, ref: str) -> Optional[str]:
        node = self.node_for_reference(ref)
        return node.file if node else None
