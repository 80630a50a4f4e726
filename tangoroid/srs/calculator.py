"""
Review outcome calculator - simplified SM-2.

AGAIN is a full reset (repetitions 0, interval 1 day) that leaves the
ease factor untouched, unlike textbook SM-2 which also lowers the ease.
"""

import math
from typing import Optional

from ..models.vocabulary import DAY_MS, MIN_EASE_FACTOR, Rating, ScheduleState, now_millis

# SM-2 quality grade for each passing rating
GRADES = {
    Rating.HARD: 3,
    Rating.GOOD: 4,
    Rating.EASY: 5,
}

FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


def round_half_up(value: float) -> int:
    """Round a non-negative float with .5 going up (round() would go to even)."""
    return int(math.floor(value + 0.5))


def grade_for(rating: Rating) -> int:
    """SM-2 quality grade of a passing rating."""
    return GRADES[rating]


def compute(rating: Rating, previous: ScheduleState, now: Optional[int] = None) -> ScheduleState:
    """
    Compute the schedule that follows a review.
    
    Args:
        rating: How well the item was recalled
        previous: Schedule before the review
        now: Review time in epoch millis (wall clock if None)
        
    Returns:
        A complete new ScheduleState; callers replace the old one wholesale.
    """
    if now is None:
        now = now_millis()
    
    interval = previous.interval
    repetitions = previous.repetitions
    ease_factor = previous.ease_factor
    
    if rating is Rating.AGAIN:
        repetitions = 0
        interval = FIRST_INTERVAL
    else:
        q = 5 - grade_for(rating)
        ease_factor = max(MIN_EASE_FACTOR, ease_factor + (0.1 - q * (0.08 + q * 0.02)))
        
        repetitions += 1
        
        # Order matters: the ladder is not a single formula
        if repetitions == 1:
            interval = FIRST_INTERVAL
        elif repetitions == 2:
            interval = SECOND_INTERVAL
        else:
            interval = round_half_up(interval * ease_factor)
    
    return ScheduleState(
        interval=interval,
        repetitions=repetitions,
        ease_factor=ease_factor,
        next_review_at=now + interval * DAY_MS,
    )
