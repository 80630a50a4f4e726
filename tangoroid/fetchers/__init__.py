"""Fetchers module - lookup collaborators with Strategy pattern."""

from .base import BaseFetcher, DefinitionLookup, ImageSearch
from .registry import FetcherRegistry
from .dictionary import DictionaryLookup, FreeDictionaryLookup, WiktionaryLookup
from .images import PixabayImageSearch

# Register built-in providers
FetcherRegistry.register_dictionary("default", DictionaryLookup, set_default=True)
FetcherRegistry.register_dictionary("free-dictionary", FreeDictionaryLookup)
FetcherRegistry.register_dictionary("wiktionary", WiktionaryLookup)
FetcherRegistry.register_image("pixabay", PixabayImageSearch, set_default=True)

__all__ = [
    'BaseFetcher',
    'DefinitionLookup',
    'ImageSearch',
    'FetcherRegistry',
    'DictionaryLookup',
    'FreeDictionaryLookup',
    'WiktionaryLookup',
    'PixabayImageSearch',
]
