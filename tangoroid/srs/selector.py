"""
Due-set selection and catalog ordering.

Everything here is read-only over a snapshot of the collection.
"""

from enum import Enum
from typing import Iterable, List, Optional

from ..models.vocabulary import VocabularyItem, now_millis


class MasteryStatus(Enum):
    """Catalog badge derived from the current interval."""
    NEW = "New"
    LEARNING = "Learning"
    MASTERED = "Mastered"


LEARNING_MAX_INTERVAL = 3


def is_due(item: VocabularyItem, now: int) -> bool:
    """An item is due when its next review time has arrived or was never set."""
    next_review_at = item.schedule.next_review_at
    return next_review_at is None or next_review_at <= now


def _queue_key(item: VocabularyItem):
    next_review_at = item.schedule.next_review_at
    # Unset sorts first: it has been waiting the longest
    return (
        next_review_at is not None,
        next_review_at or 0,
        item.created_at,
        item.id,
    )


def select_due(items: Iterable[VocabularyItem], now: Optional[int] = None) -> List[VocabularyItem]:
    """
    Build the review queue.
    
    Order is next_review_at ascending (unset first), then created_at
    ascending, then id, so the queue is stable for a given snapshot.
    
    Args:
        items: Collection snapshot
        now: Epoch millis (wall clock if None)
        
    Returns:
        Due items in queue order
    """
    if now is None:
        now = now_millis()
    return sorted((item for item in items if is_due(item, now)), key=_queue_key)


def due_count(items: Iterable[VocabularyItem], now: Optional[int] = None) -> int:
    """Number of items due for review."""
    if now is None:
        now = now_millis()
    return sum(1 for item in items if is_due(item, now))


def catalog_order(items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
    """Browse order: least mastered first, newest first among equals."""
    return sorted(items, key=lambda item: (item.schedule.interval, -item.created_at))


def search_catalog(items: Iterable[VocabularyItem], query: str = "") -> List[VocabularyItem]:
    """
    Filter the catalog by a case-insensitive substring.
    
    Matches the word itself or its first definition. An empty query
    returns the whole catalog.
    """
    needle = (query or "").strip().casefold()
    if not needle:
        return catalog_order(items)
    
    matches = [
        item for item in items
        if needle in item.text.casefold() or needle in item.first_definition.casefold()
    ]
    return catalog_order(matches)


def mastery_status(interval: int) -> MasteryStatus:
    if interval == 0:
        return MasteryStatus.NEW
    if interval < LEARNING_MAX_INTERVAL:
        return MasteryStatus.LEARNING
    return MasteryStatus.MASTERED
