"""
Repository Pattern - Abstract document store.

Items are stored as plain documents (see VocabularyItem.to_document) keyed
by id and scoped by owner. Enables switching between an in-memory store
and SQLite without changing business logic.
"""

import copy
import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from ..config import Config
from ..errors import PersistenceError, ValidationError
from ..models.vocabulary import VocabularyItem
from ..utils.parsing import TextParser

logger = logging.getLogger(__name__)

# Set at creation, never patched
IMMUTABLE_FIELDS = frozenset({"id", "owner_id", "created_at"})


class BaseRepository(ABC):
    """
    Abstract base class for vocabulary document stores.

    Defines the contract for all data access operations. Every failure
    surfaces as PersistenceError; callers never see backend error types.
    """

    def load(self) -> None:
        """Prepare the backend (create schema, open files). No-op by default."""

    @abstractmethod
    def list(self, owner_id: str) -> List[VocabularyItem]:
        """Get all items of one owner, in creation order."""
        pass

    @abstractmethod
    def create(self, item: VocabularyItem) -> str:
        """Store a new item. Returns its id."""
        pass

    @abstractmethod
    def patch(self, item_id: str, fields: Dict[str, Any]) -> None:
        """Atomically replace the given top-level document fields."""
        pass

    @abstractmethod
    def delete(self, item_id: str) -> None:
        """Remove an item."""
        pass

    @staticmethod
    def _check_patch(item_id: str, fields: Dict[str, Any]) -> None:
        if not fields:
            raise ValueError(f"Empty patch for item {item_id}")
        forbidden = IMMUTABLE_FIELDS.intersection(fields)
        if forbidden:
            raise ValueError(f"Cannot patch immutable fields {sorted(forbidden)}")


class InMemoryRepository(BaseRepository):
    """
    Dictionary-backed repository.

    Keeps deep copies of the documents so callers can never mutate
    stored state by accident. Used by tests and short-lived tools.
    """

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def list(self, owner_id: str) -> List[VocabularyItem]:
        with self._lock:
            docs = [copy.deepcopy(d) for d in self._documents.values() if d["owner_id"] == owner_id]
        return [VocabularyItem.from_document(d) for d in docs]

    def create(self, item: VocabularyItem) -> str:
        key = TextParser.word_key(item.text)
        with self._lock:
            if item.id in self._documents:
                raise PersistenceError(f"Item {item.id} already exists")
            for doc in self._documents.values():
                if doc["owner_id"] == item.owner_id and TextParser.word_key(doc["text"]) == key:
                    raise ValidationError(f"'{item.text}' is already in your collection")
            self._documents[item.id] = item.to_document()
        return item.id

    def patch(self, item_id: str, fields: Dict[str, Any]) -> None:
        self._check_patch(item_id, fields)
        with self._lock:
            if item_id not in self._documents:
                raise PersistenceError(f"Item {item_id} not found")
            self._documents[item_id].update(copy.deepcopy(fields))

    def delete(self, item_id: str) -> None:
        with self._lock:
            if self._documents.pop(item_id, None) is None:
                raise PersistenceError(f"Item {item_id} not found")

    def count(self) -> int:
        """Get total document count (all owners)."""
        with self._lock:
            return len(self._documents)

    def get_document(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Raw stored document, for inspection."""
        with self._lock:
            doc = self._documents.get(item_id)
            return copy.deepcopy(doc) if doc is not None else None


class SQLiteRepository(BaseRepository):
    """
    SQLite-based repository implementation.

    Provides:
    - One JSON document per item, patched inside a single transaction
    - Case-insensitive uniqueness of words per owner (unique index)
    - Schema versioning for migrations
    """

    # Schema version for migrations
    SCHEMA_VERSION = 1

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize SQLite repository.

        Args:
            db_path: Path to SQLite database file (":memory:" is not supported,
                every operation opens its own connection)
        """
        self.db_path = Path(db_path or Config.DB_PATH)
        self._ensure_db_dir()
        self._initialized = False

    def _ensure_db_dir(self) -> None:
        """Ensure database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection with context manager."""
        if not self._initialized:
            self.load()
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            cursor = conn.cursor()

            # Schema versioning table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS vocabulary (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    text_key TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    body TEXT NOT NULL,
                    updated_at TEXT
                )
            """)

            cursor.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_vocab_owner_text ON vocabulary(owner_id, text_key)"
            )
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_vocab_owner ON vocabulary(owner_id, created_at)")

            # Record schema version
            cursor.execute("INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                          (self.SCHEMA_VERSION, datetime.now().isoformat()))

            conn.commit()
        finally:
            conn.close()

    def load(self) -> None:
        """Initialize database and schema."""
        try:
            self._init_schema()
            self._initialized = True
        except sqlite3.Error as e:
            logger.error("Error initializing SQLite at %s: %s", self.db_path, e)
            raise PersistenceError(f"Cannot initialize database: {e}") from e

    def list(self, owner_id: str) -> List[VocabularyItem]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT body FROM vocabulary WHERE owner_id = ? ORDER BY created_at, rowid",
                    (owner_id,)
                ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error reading vocabulary: %s", e)
            raise PersistenceError(f"Cannot list items: {e}") from e

        return [VocabularyItem.from_document(json.loads(row["body"])) for row in rows]

    def create(self, item: VocabularyItem) -> str:
        document = item.to_document()
        try:
            with self._get_connection() as conn:
                with conn:
                    conn.execute(
                        "INSERT INTO vocabulary (id, owner_id, text_key, created_at, body, updated_at) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        (item.id, item.owner_id, TextParser.word_key(item.text), item.created_at,
                         json.dumps(document), datetime.now().isoformat())
                    )
        except sqlite3.IntegrityError as e:
            if "text_key" in str(e):
                raise ValidationError(f"'{item.text}' is already in your collection") from e
            logger.error("Error adding item %s: %s", item.id, e)
            raise PersistenceError(f"Cannot create item: {e}") from e
        except sqlite3.Error as e:
            logger.error("Error adding item %s: %s", item.id, e)
            raise PersistenceError(f"Cannot create item: {e}") from e
        return item.id

    def patch(self, item_id: str, fields: Dict[str, Any]) -> None:
        self._check_patch(item_id, fields)
        try:
            with self._get_connection() as conn:
                # Read-modify-write inside one transaction
                with conn:
                    row = conn.execute("SELECT body FROM vocabulary WHERE id = ?", (item_id,)).fetchone()
                    if row is None:
                        raise PersistenceError(f"Item {item_id} not found")

                    document = json.loads(row["body"])
                    document.update(fields)
                    conn.execute(
                        "UPDATE vocabulary SET body = ?, text_key = ?, updated_at = ? WHERE id = ?",
                        (json.dumps(document), TextParser.word_key(document.get("text", "")),
                         datetime.now().isoformat(), item_id)
                    )
        except sqlite3.Error as e:
            logger.error("Error updating item %s: %s", item_id, e)
            raise PersistenceError(f"Cannot update item: {e}") from e

    def delete(self, item_id: str) -> None:
        try:
            with self._get_connection() as conn:
                with conn:
                    cursor = conn.execute("DELETE FROM vocabulary WHERE id = ?", (item_id,))
                    deleted = cursor.rowcount
        except sqlite3.Error as e:
            logger.error("Error deleting item %s: %s", item_id, e)
            raise PersistenceError(f"Cannot delete item: {e}") from e
        if not deleted:
            raise PersistenceError(f"Item {item_id} not found")

    def count(self, owner_id: Optional[str] = None) -> int:
        """Get row count, optionally for one owner."""
        try:
            with self._get_connection() as conn:
                if owner_id is None:
                    row = conn.execute("SELECT COUNT(*) FROM vocabulary").fetchone()
                else:
                    row = conn.execute("SELECT COUNT(*) FROM vocabulary WHERE owner_id = ?", (owner_id,)).fetchone()
                return row[0]
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot count items: {e}") from e
