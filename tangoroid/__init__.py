"""Tangoroid - spaced repetition core for vocabulary learning"""

__version__ = "1.0.0"
__author__ = "Tangoroid Team"

from .config import Config
from .errors import (
    TangoroidError,
    ValidationError,
    NotAuthenticatedError,
    LookupFailedError,
    NotFoundError,
    ServiceError,
    PersistenceError,
    SessionStateError,
)
from .models import Definition, Rating, ScheduleState, VocabularyItem
from .srs import ReviewSession, SessionState, compute, select_due
from .services import BackfillService, BackfillTally, VocabularyService

__all__ = [
    'Config',
    'TangoroidError',
    'ValidationError',
    'NotAuthenticatedError',
    'LookupFailedError',
    'NotFoundError',
    'ServiceError',
    'PersistenceError',
    'SessionStateError',
    'Definition',
    'Rating',
    'ScheduleState',
    'VocabularyItem',
    'ReviewSession',
    'SessionState',
    'compute',
    'select_due',
    'BackfillService',
    'BackfillTally',
    'VocabularyService',
]
