"""Image search - find an illustration for a word via the Pixabay API."""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from ..config import Config
from ..errors import ServiceError
from .base import ImageSearch

logger = logging.getLogger(__name__)

# Illustrations suit abstract words better; photos are the fallback
IMAGE_TYPES = ("illustration", "photo")


def parse_pixabay_hits(data: Any) -> Optional[str]:
    """First hit's web-format URL, or None."""
    if not isinstance(data, dict):
        return None
    hits = data.get("hits")
    if not isinstance(hits, list) or not hits:
        return None
    first = hits[0]
    if not isinstance(first, dict):
        return None
    return first.get("webformatURL") or None


class PixabayImageSearch(ImageSearch):
    """Handle image search via the Pixabay API with session pooling."""
    
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs):
        """
        Initialize image search.
        
        Args:
            api_key: Pixabay key (defaults to Config.PIXABAY_API_KEY)
            base_url: API endpoint (defaults to Config.PIXABAY_API_URL)
        """
        super().__init__(**kwargs)
        self.api_key = Config.PIXABAY_API_KEY if api_key is None else api_key
        self.base_url = base_url or Config.PIXABAY_API_URL
        self._warned_no_key = False
    
    async def _search_type(self, text: str, image_type: str) -> Optional[str]:
        """Query one image type."""
        session = await self._get_session()
        params = {
            "key": self.api_key,
            "q": text,
            "image_type": image_type,
            "safesearch": "true",
            "per_page": "3",
        }
        try:
            async with session.get(self.base_url, params=params) as response:
                if response.status != 200:
                    raise ServiceError(text, f"Pixabay error {response.status}")
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ServiceError(text, "Pixabay timeout") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise ServiceError(text, f"Pixabay request failed: {e}") from e
        
        return parse_pixabay_hits(data)
    
    async def search(self, text: str) -> Optional[str]:
        """
        Find an image URL for a word.
        
        Args:
            text: Search query (the word)
            
        Returns:
            Image URL, or None if nothing was found or no API key is configured
        """
        query = str(text).strip()
        if not query:
            return None
        
        if not self.api_key:
            if not self._warned_no_key:
                logger.warning("No Pixabay API key configured - set PIXABAY_API_KEY")
                self._warned_no_key = True
            return None
        
        for image_type in IMAGE_TYPES:
            url = await self._search_type(query, image_type)
            if url:
                return url
        return None
