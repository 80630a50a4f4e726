"""
Vocabulary Service - the owner's collection and its only writer.

Holds the in-memory copy of the current owner's items and routes every
change through the repository first, so memory never runs ahead of the
store. Review sessions and backfill jobs mutate items only through it.
"""

import asyncio
import functools
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from ..errors import NotAuthenticatedError, PersistenceError, ValidationError
from ..models.vocabulary import Definition, ScheduleState, VocabularyItem, now_millis
from ..srs.selector import catalog_order, due_count, mastery_status, MasteryStatus
from ..utils.parsing import TextParser
from .identity import IdentityProvider
from .repository import BaseRepository

logger = logging.getLogger(__name__)

# Fields the backfill jobs (and the add flow) may fill in
ENRICHMENT_FIELDS = frozenset({"definitions", "phonetic", "audio_url", "image_url", "source_attribution"})

# Callback signature: callback(event, item) with event in {"added", "updated", "deleted"}
ChangeCallback = Callable[[str, VocabularyItem], None]


class VocabularyService:
    """
    Store facade for one owner's vocabulary.

    Usage:
        service = VocabularyService(SQLiteRepository(), StaticIdentity("uid"))
        await service.load()
        item = await service.add_item("serendipity")
        await service.update_schedule(item.id, new_state)
    """

    # Thread pool for blocking I/O operations
    _executor = ThreadPoolExecutor(max_workers=2)

    def __init__(
        self,
        repository: BaseRepository,
        identity: IdentityProvider,
        clock: Callable[[], int] = now_millis
    ):
        """
        Initialize vocabulary service.

        Args:
            repository: Document store
            identity: Supplies the current owner
            clock: Epoch-millis clock, injectable for tests
        """
        self.repository = repository
        self.identity = identity
        self.clock = clock

        self._items: Dict[str, VocabularyItem] = {}
        self._owner_id: Optional[str] = None
        self._change_callbacks: List[ChangeCallback] = []
        self._job_lock: Optional[asyncio.Lock] = None

    @property
    def is_loaded(self) -> bool:
        """Check if data is loaded."""
        return self._owner_id is not None

    @property
    def count(self) -> int:
        """Get total word count."""
        return len(self._items)

    @property
    def items(self) -> List[VocabularyItem]:
        """
        Snapshot of the collection in creation order.

        Items are replaced (never edited) on change, so a snapshot stays
        consistent while the caller iterates it.
        """
        return list(self._items.values())

    @property
    def job_lock(self) -> asyncio.Lock:
        """Serializes bulk jobs for this owner (lazy: needs a running loop)."""
        if self._job_lock is None:
            self._job_lock = asyncio.Lock()
        return self._job_lock

    def get(self, item_id: str) -> Optional[VocabularyItem]:
        return self._items.get(item_id)

    def find_by_text(self, text: str) -> Optional[VocabularyItem]:
        """Case-insensitive lookup of a word."""
        key = TextParser.word_key(text)
        for item in self._items.values():
            if TextParser.word_key(item.text) == key:
                return item
        return None

    def on_change(self, callback: ChangeCallback) -> None:
        """
        Register a callback for data changes.

        Args:
            callback: Called as callback(event, item) after each committed change
        """
        self._change_callbacks.append(callback)

    def remove_listener(self, callback: ChangeCallback) -> None:
        if callback in self._change_callbacks:
            self._change_callbacks.remove(callback)

    def _notify_change(self, event: str, item: VocabularyItem) -> None:
        """Notify all registered callbacks of data change."""
        for callback in list(self._change_callbacks):
            try:
                callback(event, item)
            except Exception:
                # The change is already committed; a broken listener must not undo it
                logger.exception("Change listener failed for %s %s", event, item.id)

    def _require_owner(self) -> str:
        owner_id = self.identity.current_owner_id()
        if not owner_id:
            raise NotAuthenticatedError("No user logged in")
        if self._owner_id is not None and owner_id != self._owner_id:
            # Signed in as someone else since load(): drop the stale collection
            self._items = {}
            self._owner_id = None
        return owner_id

    async def _run(self, func: Callable, *args: Any) -> Any:
        """Run a blocking repository call on the executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    async def _ensure_loaded(self) -> None:
        if not self.is_loaded:
            await self.load()

    def _require_item(self, item_id: str) -> VocabularyItem:
        item = self._items.get(item_id)
        if item is None:
            raise ValidationError(f"Unknown item: {item_id}")
        return item

    async def load(self) -> List[VocabularyItem]:
        """
        Load the current owner's collection from the store.

        Returns:
            Snapshot of the loaded items
        """
        owner_id = self._require_owner()
        loaded = await self._run(self.repository.list, owner_id)

        self._items = {item.id: item for item in loaded}
        self._owner_id = owner_id
        logger.debug("Loaded %d items for %s", len(self._items), owner_id)
        return self.items

    async def add_item(
        self,
        text: str,
        definitions: Optional[Iterable[Definition]] = None,
        phonetic: Optional[str] = None,
        audio_url: Optional[str] = None,
        image_url: Optional[str] = None,
        source_attribution: Optional[str] = None
    ) -> VocabularyItem:
        """
        Add a new word to the collection.

        Raises:
            ValidationError: Empty text, or the word (case-insensitive) already exists
            NotAuthenticatedError: No current owner
            PersistenceError: Store write failed; nothing was added
        """
        owner_id = self._require_owner()
        text = TextParser.normalize_word(text)
        if not text:
            raise ValidationError("Word text must not be empty")

        await self._ensure_loaded()
        if self.find_by_text(text) is not None:
            raise ValidationError(f"'{text}' is already in your collection")

        now = self.clock()
        item = VocabularyItem(
            id=uuid.uuid4().hex,
            text=text,
            owner_id=owner_id,
            created_at=now,
            definitions=list(definitions or []),
            schedule=ScheduleState.new(now),
            phonetic=phonetic or None,
            audio_url=audio_url or None,
            image_url=image_url or None,
            source_attribution=source_attribution or None,
        )

        item.id = await self._run(self.repository.create, item)
        self._items[item.id] = item
        self._notify_change("added", item)
        return item

    async def update_schedule(self, item_id: str, schedule: ScheduleState) -> VocabularyItem:
        """
        Replace an item's schedule as one unit.

        The in-memory copy changes only after the store write succeeded.
        """
        self._require_owner()
        item = self._require_item(item_id)

        await self._run(self.repository.patch, item_id, {"schedule": schedule.to_document()})

        updated = item.copy(schedule=schedule)
        self._items[item_id] = updated
        self._notify_change("updated", updated)
        return updated

    async def patch_enrichment(self, item_id: str, **fields: Any) -> VocabularyItem:
        """
        Set enrichment fields (definitions, phonetic, audio_url, image_url,
        source_attribution). Never touches the schedule.
        """
        unknown = set(fields) - ENRICHMENT_FIELDS
        if unknown:
            raise ValueError(f"Not enrichment fields: {sorted(unknown)}")

        self._require_owner()
        item = self._require_item(item_id)

        document_fields = dict(fields)
        if "definitions" in fields:
            document_fields["definitions"] = [d.to_document() for d in fields["definitions"]]

        await self._run(self.repository.patch, item_id, document_fields)

        changes = dict(fields)
        if "definitions" in changes:
            changes["definitions"] = list(changes["definitions"])
        updated = item.copy(**changes)
        self._items[item_id] = updated
        self._notify_change("updated", updated)
        return updated

    async def delete_item(self, item_id: str) -> None:
        """Delete a word from the store and from memory (and active sessions)."""
        self._require_owner()
        item = self._require_item(item_id)

        await self._run(self.repository.delete, item_id)

        del self._items[item_id]
        self._notify_change("deleted", item)

    def get_statistics(self, now: Optional[int] = None) -> Dict[str, int]:
        """
        Get vocabulary statistics.

        Returns:
            Dictionary with stats
        """
        items = self.items
        stats = {
            "total_words": len(items),
            "due": due_count(items, self.clock() if now is None else now),
            "new": 0,
            "learning": 0,
            "mastered": 0,
            "has_image": sum(1 for i in items if i.image_url),
            "has_examples": sum(1 for i in items if i.has_examples),
            "has_audio": sum(1 for i in items if i.audio_url),
        }
        for item in items:
            status = mastery_status(item.schedule.interval)
            if status is MasteryStatus.NEW:
                stats["new"] += 1
            elif status is MasteryStatus.LEARNING:
                stats["learning"] += 1
            else:
                stats["mastered"] += 1
        return stats

    def to_dataframe(self) -> pd.DataFrame:
        """Catalog view as a DataFrame, one row per word, in catalog order."""
        rows = []
        for item in catalog_order(self.items):
            rows.append({
                "Word": item.text,
                "Definition": item.first_definition,
                "Status": mastery_status(item.schedule.interval).value,
                "Interval": item.schedule.interval,
                "Repetitions": item.schedule.repetitions,
                "EaseFactor": round(item.schedule.ease_factor, 2),
                "NextReviewAt": item.schedule.next_review_at,
                "Phonetic": item.phonetic or "",
                "ImageUrl": item.image_url or "",
                "Source": item.source_attribution or "",
            })
        return pd.DataFrame(rows, columns=[
            "Word", "Definition", "Status", "Interval", "Repetitions",
            "EaseFactor", "NextReviewAt", "Phonetic", "ImageUrl", "Source",
        ])

    def export_to_csv(self, csv_path: str) -> Path:
        """
        Export the catalog to a pipe-separated CSV file.

        Raises:
            PersistenceError: The file could not be written
        """
        path = Path(csv_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.to_dataframe().to_csv(path, sep='|', index=False, encoding='utf-8-sig')
        except OSError as e:
            raise PersistenceError(f"Cannot export to {path}: {e}") from e
        return path
