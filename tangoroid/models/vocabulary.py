"""Vocabulary item, scheduling state and lookup result models."""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

# Interval multiplier: days -> epoch milliseconds
DAY_MS = 86_400_000

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class Rating(Enum):
    """How well the user recalled an item."""
    AGAIN = "AGAIN"
    HARD = "HARD"
    GOOD = "GOOD"
    EASY = "EASY"


@dataclass
class Definition:
    """One sense of a word."""
    
    part_of_speech: str
    definition: str
    examples: List[str] = field(default_factory=list)
    
    def to_document(self) -> Dict[str, Any]:
        return {
            "part_of_speech": self.part_of_speech,
            "definition": self.definition,
            "examples": list(self.examples),
        }
    
    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Definition":
        return cls(
            part_of_speech=str(data.get("part_of_speech") or ""),
            definition=str(data.get("definition") or ""),
            examples=[str(e) for e in data.get("examples") or []],
        )


@dataclass(frozen=True)
class ScheduleState:
    """
    SRS state embedded in a vocabulary item.
    
    Frozen: a review replaces the whole state, it never edits a field.
    
    Attributes:
        interval: Days until the next review (0 = never reviewed successfully)
        repetitions: Consecutive successful reviews
        ease_factor: Interval growth multiplier, never below 1.3
        next_review_at: Epoch millis of the next review, None if unset
    """
    
    interval: int = 0
    repetitions: int = 0
    ease_factor: float = INITIAL_EASE_FACTOR
    next_review_at: Optional[int] = None
    
    @classmethod
    def new(cls, now: Optional[int] = None) -> "ScheduleState":
        """Initial state of a freshly created item: due immediately."""
        return cls(
            interval=0,
            repetitions=0,
            ease_factor=INITIAL_EASE_FACTOR,
            next_review_at=now_millis() if now is None else now,
        )
    
    def to_document(self) -> Dict[str, Any]:
        return {
            "interval": self.interval,
            "repetitions": self.repetitions,
            "ease_factor": self.ease_factor,
            "next_review_at": self.next_review_at,
        }
    
    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> "ScheduleState":
        if not data:
            return cls()
        next_review_at = data.get("next_review_at")
        return cls(
            interval=max(0, int(data.get("interval") or 0)),
            repetitions=max(0, int(data.get("repetitions") or 0)),
            ease_factor=max(MIN_EASE_FACTOR, float(data.get("ease_factor") or INITIAL_EASE_FACTOR)),
            next_review_at=int(next_review_at) if next_review_at is not None else None,
        )


@dataclass
class VocabularyItem:
    """Структура даних для одного слова."""
    
    id: str
    text: str
    owner_id: str
    created_at: int
    definitions: List[Definition] = field(default_factory=list)
    schedule: ScheduleState = field(default_factory=ScheduleState)
    
    # Enrichment filled in on add or by the backfill jobs
    phonetic: Optional[str] = None
    audio_url: Optional[str] = None
    image_url: Optional[str] = None
    source_attribution: Optional[str] = None
    
    @property
    def has_examples(self) -> bool:
        """True if at least one definition carries an example sentence."""
        return any(d.examples for d in self.definitions)
    
    @property
    def first_definition(self) -> str:
        return self.definitions[0].definition if self.definitions else ""
    
    def copy(self, **changes: Any) -> "VocabularyItem":
        """Return a copy with some fields replaced (definitions are copied too)."""
        if "definitions" not in changes:
            changes["definitions"] = [replace(d, examples=list(d.examples)) for d in self.definitions]
        return replace(self, **changes)
    
    def to_document(self) -> Dict[str, Any]:
        """Serialize to the plain dict shape kept in the document store."""
        return {
            "id": self.id,
            "text": self.text,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
            "definitions": [d.to_document() for d in self.definitions],
            "schedule": self.schedule.to_document(),
            "phonetic": self.phonetic,
            "audio_url": self.audio_url,
            "image_url": self.image_url,
            "source_attribution": self.source_attribution,
        }
    
    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "VocabularyItem":
        return cls(
            id=str(data["id"]),
            text=str(data.get("text") or ""),
            owner_id=str(data.get("owner_id") or ""),
            created_at=int(data.get("created_at") or 0),
            definitions=[Definition.from_document(d) for d in data.get("definitions") or []],
            schedule=ScheduleState.from_document(data.get("schedule")),
            phonetic=data.get("phonetic") or None,
            audio_url=data.get("audio_url") or None,
            image_url=data.get("image_url") or None,
            source_attribution=data.get("source_attribution") or None,
        )


@dataclass
class DefinitionLookupResult:
    """Normalized answer of a definition lookup provider."""
    
    definitions: List[Definition]
    source_attribution: str
    phonetic: Optional[str] = None
    audio_url: Optional[str] = None
