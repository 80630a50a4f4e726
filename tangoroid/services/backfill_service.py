"""
Backfill Service - fill in missing enrichment data for existing words.

Each job scans the owner's whole collection one item at a time. Items that
already carry what the job provides are skipped, so a second run over an
unchanged collection does nothing. A failed lookup or write is counted and
the job moves on to the next item; it is never retried within the run.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from ..config import Config
from ..errors import LookupFailedError, PersistenceError
from ..fetchers.base import DefinitionLookup, ImageSearch
from ..models.vocabulary import Definition, VocabularyItem
from .vocabulary_service import VocabularyService

logger = logging.getLogger(__name__)

# Example sentences kept per definition
MAX_EXAMPLES = 2


class ItemOutcome(Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class BackfillTally:
    """Final counts of one job run."""
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.updated + self.skipped + self.failed

    def record(self, outcome: ItemOutcome) -> None:
        if outcome is ItemOutcome.UPDATED:
            self.updated += 1
        elif outcome is ItemOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


# enrich(item) returns the fields to patch, or None when there is nothing to patch
Enricher = Callable[[VocabularyItem], Awaitable[Optional[Dict[str, Any]]]]
ProgressCallback = Callable[[VocabularyItem, ItemOutcome], None]


class BackfillService:
    """
    Reconciliation jobs over the current owner's collection.

    Usage:
        async with DictionaryLookup() as dictionary, PixabayImageSearch() as images:
            jobs = BackfillService(service, dictionary, images)
            tally = await jobs.backfill_examples()
    """

    def __init__(
        self,
        vocabulary: VocabularyService,
        dictionary: Optional[DefinitionLookup] = None,
        image_search: Optional[ImageSearch] = None,
        delay: Optional[float] = None,
        timeout: Optional[float] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize backfill service.

        Args:
            vocabulary: Store facade; all writes go through it
            dictionary: Definition lookup collaborator
            image_search: Image search collaborator
            delay: Pause in seconds after each lookup (defaults to Config.BACKFILL_DELAY)
            timeout: Per-lookup timeout in seconds; None or 0 disables it
            progress_callback: Called after each item with its outcome
        """
        self.vocabulary = vocabulary
        self.dictionary = dictionary
        self.image_search = image_search
        self.delay = Config.BACKFILL_DELAY if delay is None else delay
        self.timeout = timeout
        self.progress_callback = progress_callback

    # ==================== Jobs ====================

    async def backfill_examples(self) -> BackfillTally:
        """Fetch definitions with example sentences and their source."""
        if self.dictionary is None:
            raise ValueError("backfill_examples needs a dictionary lookup")
        return await self._run_job("examples", self._needs_examples, self._enrich_examples)

    async def backfill_images(self) -> BackfillTally:
        """Find an image for every word without one."""
        if self.image_search is None:
            raise ValueError("backfill_images needs an image search")
        return await self._run_job("images", self._needs_image, self._enrich_image)

    async def backfill_audio(self) -> BackfillTally:
        """Fetch phonetic spelling and pronunciation audio."""
        if self.dictionary is None:
            raise ValueError("backfill_audio needs a dictionary lookup")
        return await self._run_job("audio", self._needs_audio, self._enrich_audio)

    async def run_all(self) -> Dict[str, BackfillTally]:
        """Run every job the configured collaborators allow, one after another."""
        results: Dict[str, BackfillTally] = {}
        if self.dictionary is not None:
            results["examples"] = await self.backfill_examples()
            results["audio"] = await self.backfill_audio()
        if self.image_search is not None:
            results["images"] = await self.backfill_images()
        return results

    # ==================== Skip predicates ====================

    @staticmethod
    def _needs_examples(item: VocabularyItem) -> bool:
        return not (item.source_attribution and item.has_examples)

    @staticmethod
    def _needs_image(item: VocabularyItem) -> bool:
        return not item.image_url

    @staticmethod
    def _needs_audio(item: VocabularyItem) -> bool:
        return not (item.phonetic and item.audio_url)

    # ==================== Enrichers ====================

    async def _enrich_examples(self, item: VocabularyItem) -> Optional[Dict[str, Any]]:
        result = await self._call(self.dictionary.lookup(item.text))
        definitions = [
            Definition(
                part_of_speech=d.part_of_speech,
                definition=d.definition,
                examples=list(d.examples[:MAX_EXAMPLES]),
            )
            for d in result.definitions
        ]
        return {"definitions": definitions, "source_attribution": result.source_attribution}

    async def _enrich_image(self, item: VocabularyItem) -> Optional[Dict[str, Any]]:
        url = await self._call(self.image_search.search(item.text))
        if not url:
            return None
        return {"image_url": url}

    async def _enrich_audio(self, item: VocabularyItem) -> Optional[Dict[str, Any]]:
        result = await self._call(self.dictionary.lookup(item.text))
        phonetic = item.phonetic or result.phonetic
        audio_url = item.audio_url or result.audio_url
        if phonetic == item.phonetic and audio_url == item.audio_url:
            return None
        return {"phonetic": phonetic, "audio_url": audio_url}

    async def _call(self, awaitable: Awaitable[Any]) -> Any:
        if self.timeout:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        return await awaitable

    # ==================== Job loop ====================

    async def _run_job(
        self,
        name: str,
        needs_update: Callable[[VocabularyItem], bool],
        enrich: Enricher
    ) -> BackfillTally:
        async with self.vocabulary.job_lock:
            if not self.vocabulary.is_loaded:
                await self.vocabulary.load()

            logger.info("Starting %s backfill over %d item(s)", name, self.vocabulary.count)
            tally = BackfillTally()

            for item in self.vocabulary.items:
                outcome = await self._process_item(item, needs_update, enrich)
                tally.record(outcome)
                if self.progress_callback:
                    self.progress_callback(item, outcome)

            logger.info(
                "Done %s backfill: %d processed, %d updated, %d skipped, %d failed",
                name, tally.processed, tally.updated, tally.skipped, tally.failed
            )
            return tally

    async def _process_item(
        self,
        item: VocabularyItem,
        needs_update: Callable[[VocabularyItem], bool],
        enrich: Enricher
    ) -> ItemOutcome:
        # Deleted since the scan started
        current = self.vocabulary.get(item.id)
        if current is None:
            logger.info("  skip  \"%s\" (deleted)", item.text)
            return ItemOutcome.SKIPPED

        if not needs_update(current):
            logger.info("  skip  \"%s\" (already has data)", current.text)
            return ItemOutcome.SKIPPED

        logger.info("  fetch \"%s\"...", current.text)
        try:
            fields = await enrich(current)
            if self.vocabulary.get(current.id) is None:
                logger.info("  skip  \"%s\" (deleted during lookup)", current.text)
                return ItemOutcome.SKIPPED
            if fields is None:
                logger.info("  skip  \"%s\" (nothing found)", current.text)
                return ItemOutcome.SKIPPED
            await self.vocabulary.patch_enrichment(current.id, **fields)
        except asyncio.TimeoutError:
            logger.warning("  FAIL  \"%s\" (timed out)", current.text)
            return ItemOutcome.FAILED
        except (LookupFailedError, PersistenceError) as e:
            logger.warning("  FAIL  \"%s\": %s", current.text, e)
            return ItemOutcome.FAILED
        finally:
            # Rate limiting between provider calls
            if self.delay > 0:
                await asyncio.sleep(self.delay)

        logger.info("  OK    \"%s\" (%s)", current.text, ", ".join(sorted(fields)))
        return ItemOutcome.UPDATED
