"""Spaced repetition scheduling: calculator, due selection and review sessions."""

from .calculator import compute, grade_for, round_half_up
from .selector import (
    MasteryStatus,
    catalog_order,
    due_count,
    is_due,
    mastery_status,
    search_catalog,
    select_due,
)
from .session import ReviewSession, SessionState, SessionStats

__all__ = [
    'compute',
    'grade_for',
    'round_half_up',
    'MasteryStatus',
    'catalog_order',
    'due_count',
    'is_due',
    'mastery_status',
    'search_catalog',
    'select_due',
    'ReviewSession',
    'SessionState',
    'SessionStats',
]
