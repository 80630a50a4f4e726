import sys
import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest


# Ensure local package imports work without editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tangoroid.errors import NotFoundError, PersistenceError
from tangoroid.fetchers.base import DefinitionLookup, ImageSearch
from tangoroid.models.vocabulary import (
    Definition,
    DefinitionLookupResult,
    ScheduleState,
    VocabularyItem,
)
from tangoroid.services.identity import StaticIdentity
from tangoroid.services.repository import InMemoryRepository
from tangoroid.services.vocabulary_service import VocabularyService


T0 = 1_700_000_000_000
OWNER = "user-1"


# =============================================================================
# Test doubles
# =============================================================================

class FixedClock:
    """Epoch-millis clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class SpyRepository(InMemoryRepository):
    """In-memory store that records patches and can be told to fail."""

    def __init__(self):
        super().__init__()
        self.patches: List[tuple] = []
        self.fail_patch_for: set = set()
        self.fail_all_patches = False

    def patch(self, item_id, fields):
        if self.fail_all_patches or item_id in self.fail_patch_for:
            raise PersistenceError(f"Simulated write failure for {item_id}")
        self.patches.append((item_id, dict(fields)))
        super().patch(item_id, fields)


Answer = Union[DefinitionLookupResult, Exception]


class FakeDictionary(DefinitionLookup):
    """Definition lookup answering from a dict; unknown words are NotFound."""

    def __init__(self, answers: Optional[Dict[str, Answer]] = None, delay: float = 0.0):
        super().__init__()
        self.answers = answers or {}
        self.delay = delay
        self.calls: List[str] = []

    async def lookup(self, text):
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.answers.get(text)
        if answer is None:
            raise NotFoundError(text)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeImageSearch(ImageSearch):
    """Image search answering from a dict; unknown words have no image."""

    def __init__(self, answers: Optional[Dict[str, Union[str, Exception, None]]] = None):
        super().__init__()
        self.answers = answers or {}
        self.calls: List[str] = []

    async def search(self, text):
        self.calls.append(text)
        answer = self.answers.get(text)
        if isinstance(answer, Exception):
            raise answer
        return answer


def lookup_result(word: str, examples=("An example.", "Another one.", "A third."), source="Free Dictionary"):
    return DefinitionLookupResult(
        definitions=[Definition("noun", f"Meaning of {word}", list(examples))],
        source_attribution=source,
        phonetic=f"/{word}/",
        audio_url=f"https://audio.example/{word}-uk.mp3",
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def repository():
    return SpyRepository()


@pytest.fixture
def identity():
    return StaticIdentity(OWNER)


@pytest.fixture
def service(repository, identity, clock):
    return VocabularyService(repository, identity, clock=clock)


@pytest.fixture
def make_item():
    """Factory for detached items with a chosen schedule."""

    def _make(
        item_id: str,
        next_review_at: Optional[int] = T0,
        created_at: int = T0,
        interval: int = 0,
        text: Optional[str] = None,
        **fields
    ) -> VocabularyItem:
        return VocabularyItem(
            id=item_id,
            text=text or f"word-{item_id}",
            owner_id=OWNER,
            created_at=created_at,
            schedule=ScheduleState(interval=interval, next_review_at=next_review_at),
            **fields
        )

    return _make
