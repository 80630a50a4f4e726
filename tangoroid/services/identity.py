"""Identity collaborator: who owns the collection being worked on."""

from abc import ABC, abstractmethod
from typing import Optional


class IdentityProvider(ABC):
    """Supplies the currently authenticated owner."""
    
    @abstractmethod
    def current_owner_id(self) -> Optional[str]:
        """Owner id, or None when nobody is signed in."""
        pass


class StaticIdentity(IdentityProvider):
    """
    Fixed owner, e.g. from a command-line argument.
    
    Usage:
        identity = StaticIdentity("uid-123")
        identity.sign_out()   # later store calls raise NotAuthenticatedError
    """
    
    def __init__(self, owner_id: Optional[str] = None):
        self._owner_id = owner_id or None
    
    def current_owner_id(self) -> Optional[str]:
        return self._owner_id
    
    def sign_in(self, owner_id: str) -> None:
        self._owner_id = owner_id
    
    def sign_out(self) -> None:
        self._owner_id = None
