"""Data models for Tangoroid."""

from .vocabulary import (
    Definition,
    DefinitionLookupResult,
    Rating,
    ScheduleState,
    VocabularyItem,
    now_millis,
)

__all__ = [
    'Definition',
    'DefinitionLookupResult',
    'Rating',
    'ScheduleState',
    'VocabularyItem',
    'now_millis',
]
