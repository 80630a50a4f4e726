"""Base classes for the lookup collaborators."""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Optional

import aiohttp

from ..config import Config
from ..models.vocabulary import DefinitionLookupResult


class BaseFetcher(ABC):
    """
    Abstract base class for all HTTP-backed fetchers.
    
    Provides a lazily created shared aiohttp session and async context
    manager support. Subclasses call _get_session() and may override close().
    """
    
    def __init__(self, timeout: Optional[float] = None, headers: Optional[Dict[str, str]] = None):
        """
        Initialize fetcher.
        
        Args:
            timeout: Total request timeout in seconds (defaults to Config.LOOKUP_TIMEOUT)
            headers: Extra headers sent with every request
        """
        self.timeout = Config.LOOKUP_TIMEOUT if timeout is None else timeout
        self.headers = {"User-Agent": Config.USER_AGENT, **(headers or {})}
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()
    
    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a shared aiohttp session (connection pooling)."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    headers=self.headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                )
            return self._session
    
    async def close(self) -> None:
        """Close the aiohttp session. Call this when done with the fetcher."""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
            self._session = None
    
    async def __aenter__(self) -> "BaseFetcher":
        """Async context manager entry."""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - ensure resources are closed."""
        await self.close()


class DefinitionLookup(BaseFetcher):
    """Looks up definitions, examples and pronunciation of a word."""
    
    @abstractmethod
    async def lookup(self, text: str) -> DefinitionLookupResult:
        """
        Look up a word.
        
        Args:
            text: Word to look up
            
        Returns:
            Normalized definitions and pronunciation
            
        Raises:
            NotFoundError: The word is unknown to the provider
            ServiceError: The provider failed or answered garbage
        """
        pass


class ImageSearch(BaseFetcher):
    """Finds an illustrative image for a word."""
    
    @abstractmethod
    async def search(self, text: str) -> Optional[str]:
        """
        Search an image for a word.
        
        Returns:
            Image URL, or None when nothing suitable was found
            
        Raises:
            ServiceError: The provider failed
        """
        pass
