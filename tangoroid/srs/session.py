"""
Review session - one sitting through the due queue.

States:
    IDLE            current card shows its front (flipped = False)
    AWAITING_RATING current card is flipped, a rating is expected
    COMPLETE        queue exhausted (or nothing was due); terminal

A rating is committed to the store before the session moves on: if the
write fails, the same card stays current and flipped so the rating can
be retried.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple

from ..errors import SessionStateError
from ..models.vocabulary import Rating, ScheduleState, VocabularyItem, now_millis
from .calculator import compute
from .selector import select_due

if TYPE_CHECKING:
    from ..services.vocabulary_service import VocabularyService

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_RATING = "awaiting_rating"
    COMPLETE = "complete"


@dataclass
class SessionStats:
    """Ratings given so far in a session."""

    counts: Dict[Rating, int] = field(default_factory=lambda: {r: 0 for r in Rating})

    def record(self, rating: Rating) -> None:
        self.counts[rating] += 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class ReviewSession:
    """
    Drives a single review sitting over the due items of a collection.

    Usage:
        session = ReviewSession(service)
        session.start(service.items)
        while session.state is not SessionState.COMPLETE:
            session.flip()
            await session.rate(Rating.GOOD)
        session.close()
    """

    def __init__(self, vocabulary: "VocabularyService", clock: Optional[Callable[[], int]] = None):
        """
        Initialize a session. It holds an empty queue (COMPLETE) until start().

        Args:
            vocabulary: Store facade that persists each rating
            clock: Epoch-millis clock (defaults to the facade's clock)
        """
        self._vocabulary = vocabulary
        self._clock = clock or getattr(vocabulary, "clock", None) or now_millis

        self._queue: List[VocabularyItem] = []
        self._index = 0
        self._flipped = False
        self._rating_in_progress = False
        self.stats = SessionStats()

        vocabulary.on_change(self._on_collection_change)

    # ==================== State ====================

    @property
    def state(self) -> SessionState:
        if self._index >= len(self._queue):
            return SessionState.COMPLETE
        return SessionState.AWAITING_RATING if self._flipped else SessionState.IDLE

    @property
    def queue(self) -> Tuple[VocabularyItem, ...]:
        return tuple(self._queue)

    @property
    def index(self) -> int:
        return self._index

    @property
    def flipped(self) -> bool:
        return self._flipped

    @property
    def current(self) -> Optional[VocabularyItem]:
        """Card being shown, None when complete."""
        if self._index >= len(self._queue):
            return None
        item = self._queue[self._index]
        # Prefer the facade's copy: enrichment may have landed since start()
        return self._vocabulary.get(item.id) or item

    @property
    def total(self) -> int:
        """Cards in the queue; 0 means nothing was due."""
        return len(self._queue)

    @property
    def reviewed(self) -> int:
        return min(self._index, len(self._queue))

    @property
    def remaining(self) -> int:
        return len(self._queue) - self.reviewed

    # ==================== Transitions ====================

    def start(self, items: Optional[Iterable[VocabularyItem]] = None, now: Optional[int] = None) -> SessionState:
        """
        Build the queue from the due subset of items.

        Args:
            items: Collection snapshot (defaults to the facade's items)
            now: Epoch millis used for the due check

        Returns:
            IDLE if anything is due, otherwise COMPLETE
        """
        if items is None:
            items = self._vocabulary.items
        self._queue = select_due(items, self._clock() if now is None else now)
        self._index = 0
        self._flipped = False
        self.stats = SessionStats()

        logger.debug("Session started with %d due item(s)", len(self._queue))
        return self.state

    def flip(self) -> bool:
        """
        Show or hide the answer of the current card.

        Returns:
            The new flipped value
        """
        if self.state is SessionState.COMPLETE:
            raise SessionStateError("Session is complete; nothing to flip")
        if self._rating_in_progress:
            raise SessionStateError("Rating is still being saved")
        self._flipped = not self._flipped
        return self._flipped

    async def rate(self, rating: Rating) -> ScheduleState:
        """
        Rate the current card, persist its new schedule and advance.

        Raises:
            SessionStateError: Card not flipped, session complete, or another
                rating is still being saved. Nothing changes.
            PersistenceError: The store write failed. Nothing changes; the
                same rating may be retried.
        """
        if self.state is SessionState.COMPLETE:
            raise SessionStateError("Session is complete; no more ratings accepted")
        if not self._flipped:
            raise SessionStateError("Flip the card before rating it")
        if self._rating_in_progress:
            raise SessionStateError("Previous rating is still being saved")

        item = self.current
        new_schedule = compute(rating, item.schedule, self._clock())

        self._rating_in_progress = True
        try:
            await self._vocabulary.update_schedule(item.id, new_schedule)
        finally:
            self._rating_in_progress = False

        # The queue may have shifted while the write was in flight
        position = self._position(item.id)
        if position is not None:
            self._index = position + 1
        self._flipped = False
        self.stats.record(rating)

        logger.debug(
            "Rated '%s' %s -> interval %d, reps %d, ease %.2f",
            item.text, rating.value, new_schedule.interval,
            new_schedule.repetitions, new_schedule.ease_factor
        )
        return new_schedule

    def close(self) -> None:
        """Stop listening to collection changes."""
        self._vocabulary.remove_listener(self._on_collection_change)

    # ==================== Collection changes ====================

    def _position(self, item_id: str) -> Optional[int]:
        for position, queued in enumerate(self._queue):
            if queued.id == item_id:
                return position
        return None

    def _on_collection_change(self, event: str, item: VocabularyItem) -> None:
        if event != "deleted":
            return

        position = self._position(item.id)
        if position is None:
            return

        del self._queue[position]
        if position < self._index:
            self._index -= 1
        elif position == self._index:
            # Next card takes its place, front side up
            self._flipped = False
