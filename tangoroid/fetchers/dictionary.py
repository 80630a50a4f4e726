"""Definition lookup - Free Dictionary API with Wiktionary as fallback."""

import asyncio
import logging
import urllib.parse
from typing import Any, List, Optional, Sequence, Tuple

import aiohttp

from ..config import Config
from ..errors import NotFoundError, ServiceError
from ..models.vocabulary import Definition, DefinitionLookupResult
from ..utils.parsing import TextParser
from .base import DefinitionLookup

logger = logging.getLogger(__name__)

# Audio file name fragments that mark a British recording
UK_AUDIO_PATTERNS = ('-uk.mp3', '-uk-', 'uk.mp3', '-gb.mp3', '-gb-', 'gb.mp3')


def _absolute_url(url: str) -> str:
    """Protocol-relative URLs (//host/path) get https."""
    if url.startswith('//'):
        return 'https:' + url
    return url


def pick_pronunciation(entry: dict) -> Tuple[Optional[str], Optional[str]]:
    """
    Choose phonetic text and an audio URL from a Free Dictionary entry.

    UK recordings are preferred; any recording is the fallback.

    Returns:
        (phonetic, audio_url), either may be None
    """
    phonetic = entry.get('phonetic') or None
    phonetics = entry.get('phonetics')
    if not isinstance(phonetics, list):
        return phonetic, None

    phonetics = [p for p in phonetics if isinstance(p, dict)]
    with_audio = [p for p in phonetics if p.get('audio')]

    audio_entry = next(
        (p for p in with_audio if any(pat in str(p['audio']).lower() for pat in UK_AUDIO_PATTERNS)),
        None
    )
    if audio_entry is None and with_audio:
        audio_entry = with_audio[0]

    audio_url = _absolute_url(str(audio_entry['audio'])) if audio_entry else None

    if not phonetic:
        text_entry = next((p for p in phonetics if p.get('text')), None)
        if text_entry:
            phonetic = str(text_entry['text'])

    return phonetic, audio_url


def parse_free_dictionary(text: str, data: Any) -> DefinitionLookupResult:
    """
    Normalize a Free Dictionary payload.

    The API answers with a list of entries; the first one is used. Each
    meaning becomes one Definition carrying its first definition text and
    the examples of all its senses.
    """
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise ServiceError(text, "Unexpected Free Dictionary payload")

    entry = data[0]
    definitions: List[Definition] = []
    for meaning in entry.get('meanings') or []:
        if not isinstance(meaning, dict):
            continue
        senses = [s for s in meaning.get('definitions') or [] if isinstance(s, dict)]
        texts = [TextParser.strip_html(s.get('definition')) for s in senses]
        texts = [t for t in texts if t]
        if not texts:
            continue
        examples = [TextParser.strip_html(s.get('example')) for s in senses]
        definitions.append(Definition(
            part_of_speech=str(meaning.get('partOfSpeech') or ''),
            definition=texts[0],
            examples=[e for e in examples if e],
        ))

    if not definitions:
        raise NotFoundError(text, f"No definitions for '{text}' in Free Dictionary")

    phonetic, audio_url = pick_pronunciation(entry)
    return DefinitionLookupResult(
        definitions=definitions,
        source_attribution=FreeDictionaryLookup.SOURCE,
        phonetic=phonetic,
        audio_url=audio_url,
    )


def parse_wiktionary(text: str, data: Any) -> DefinitionLookupResult:
    """
    Normalize a Wiktionary REST payload (English section only).

    Definition and example strings arrive as HTML fragments.
    """
    if not isinstance(data, dict):
        raise ServiceError(text, "Unexpected Wiktionary payload")

    definitions: List[Definition] = []
    for entry in data.get('en') or []:
        if not isinstance(entry, dict):
            continue
        senses = [s for s in entry.get('definitions') or [] if isinstance(s, dict)]
        texts = [TextParser.strip_html(s.get('definition')) for s in senses]
        texts = [t for t in texts if t]
        if not texts:
            continue
        examples: List[str] = []
        for sense in senses:
            examples.extend(TextParser.clean_list(sense.get('examples')))
        definitions.append(Definition(
            part_of_speech=str(entry.get('partOfSpeech') or ''),
            definition=texts[0],
            examples=examples,
        ))

    if not definitions:
        raise NotFoundError(text, f"No English entry for '{text}' in Wiktionary")

    return DefinitionLookupResult(definitions=definitions, source_attribution=WiktionaryLookup.SOURCE)


class _JsonLookup(DefinitionLookup):
    """GET a JSON document for a word; 404 means not found."""

    SOURCE = ""

    async def _get_json(self, text: str, url: str) -> Any:
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if response.status == 404:
                    raise NotFoundError(text, f"'{text}' not found in {self.SOURCE}")
                if response.status != 200:
                    body = await response.text()
                    raise ServiceError(text, f"{self.SOURCE} error {response.status}: {body[:200]}")
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ServiceError(text, f"{self.SOURCE} timeout") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise ServiceError(text, f"{self.SOURCE} request failed: {e}") from e


class FreeDictionaryLookup(_JsonLookup):
    """Free Dictionary API (dictionaryapi.dev) provider."""

    SOURCE = "Free Dictionary"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = (base_url or Config.DICTIONARY_API_URL).rstrip('/')

    async def lookup(self, text: str) -> DefinitionLookupResult:
        url = f"{self.base_url}/{urllib.parse.quote(text.strip())}"
        data = await self._get_json(text, url)
        return parse_free_dictionary(text, data)


class WiktionaryLookup(_JsonLookup):
    """Wiktionary REST API provider."""

    SOURCE = "Wiktionary"

    def __init__(self, base_url: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = (base_url or Config.WIKTIONARY_API_URL).rstrip('/')

    async def lookup(self, text: str) -> DefinitionLookupResult:
        slug = text.strip().replace(' ', '_')
        url = f"{self.base_url}/{urllib.parse.quote(slug)}"
        data = await self._get_json(text, url)
        return parse_wiktionary(text, data)


class DictionaryLookup(DefinitionLookup):
    """
    Tries providers in order and returns the first hit.

    Raises NotFoundError only if every provider reported a miss; if any
    provider failed for another reason the word may exist, so the result
    is a ServiceError instead.
    """

    def __init__(self, providers: Optional[Sequence[DefinitionLookup]] = None):
        super().__init__()
        self.providers = list(providers) if providers is not None else [
            FreeDictionaryLookup(),
            WiktionaryLookup(),
        ]

    async def lookup(self, text: str) -> DefinitionLookupResult:
        last_error: Optional[ServiceError] = None
        for provider in self.providers:
            try:
                return await provider.lookup(text)
            except NotFoundError:
                logger.debug("%s: '%s' not found", type(provider).__name__, text)
            except ServiceError as e:
                logger.warning("%s failed for '%s': %s", type(provider).__name__, text, e)
                last_error = e

        if last_error is not None:
            raise ServiceError(text, f"Lookup failed for '{text}': {last_error}") from last_error
        raise NotFoundError(text, f"'{text}' not found in any dictionary")

    async def close(self) -> None:
        for provider in self.providers:
            await provider.close()
        await super().close()
