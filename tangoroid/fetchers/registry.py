"""
Fetcher Registry - Strategy Pattern for swappable lookup providers.

Enables runtime selection of dictionary/image providers without modifying
core code, e.g. from a command-line flag.
"""

from typing import Callable, Dict, List, Optional

from .base import DefinitionLookup, ImageSearch


class FetcherRegistry:
    """
    Registry for definition lookup and image search providers.
    
    Usage:
        # Register a provider
        FetcherRegistry.register_image("pixabay", PixabayImageSearch)
        
        # Get a provider instance
        search = FetcherRegistry.get_image_search("pixabay")
    """
    
    _dictionaries: Dict[str, Callable[..., DefinitionLookup]] = {}
    _image_searches: Dict[str, Callable[..., ImageSearch]] = {}
    
    # Default providers
    _default_dictionary: str = "default"
    _default_image: str = "pixabay"
    
    @classmethod
    def register_dictionary(
        cls,
        name: str,
        factory: Callable[..., DefinitionLookup],
        set_default: bool = False
    ) -> None:
        """
        Register a definition lookup provider.
        
        Args:
            name: Provider name (e.g., "free-dictionary", "wiktionary")
            factory: Class or factory function returning a DefinitionLookup
            set_default: If True, set this as the default provider
        """
        cls._dictionaries[name] = factory
        if set_default:
            cls._default_dictionary = name
    
    @classmethod
    def register_image(
        cls,
        name: str,
        factory: Callable[..., ImageSearch],
        set_default: bool = False
    ) -> None:
        """
        Register an image search provider.
        
        Args:
            name: Provider name (e.g., "pixabay")
            factory: Class or factory function returning an ImageSearch
            set_default: If True, set this as the default provider
        """
        cls._image_searches[name] = factory
        if set_default:
            cls._default_image = name
    
    @classmethod
    def get_dictionary(cls, name: Optional[str] = None, **kwargs) -> DefinitionLookup:
        """
        Get a definition lookup instance.
        
        Raises:
            KeyError: If provider not found
        """
        provider = name or cls._default_dictionary
        if provider not in cls._dictionaries:
            available = list(cls._dictionaries.keys())
            raise KeyError(f"Dictionary provider '{provider}' not found. Available: {available}")
        return cls._dictionaries[provider](**kwargs)
    
    @classmethod
    def get_image_search(cls, name: Optional[str] = None, **kwargs) -> ImageSearch:
        """
        Get an image search instance.
        
        Raises:
            KeyError: If provider not found
        """
        provider = name or cls._default_image
        if provider not in cls._image_searches:
            available = list(cls._image_searches.keys())
            raise KeyError(f"Image provider '{provider}' not found. Available: {available}")
        return cls._image_searches[provider](**kwargs)
    
    @classmethod
    def list_dictionary_providers(cls) -> List[str]:
        """List all registered dictionary providers."""
        return list(cls._dictionaries.keys())
    
    @classmethod
    def list_image_providers(cls) -> List[str]:
        """List all registered image providers."""
        return list(cls._image_searches.keys())
