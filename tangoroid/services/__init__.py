"""Services layer for business logic separation."""

from .repository import BaseRepository, InMemoryRepository, SQLiteRepository
from .identity import IdentityProvider, StaticIdentity
from .vocabulary_service import VocabularyService
from .backfill_service import BackfillService, BackfillTally, ItemOutcome

__all__ = [
    "BaseRepository",
    "InMemoryRepository",
    "SQLiteRepository",
    "IdentityProvider",
    "StaticIdentity",
    "VocabularyService",
    "BackfillService",
    "BackfillTally",
    "ItemOutcome",
]
