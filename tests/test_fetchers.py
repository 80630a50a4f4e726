"""Tests for payload parsing and provider chaining (no network)."""

import pytest

from tangoroid.errors import NotFoundError, ServiceError
from tangoroid.fetchers import (
    DictionaryLookup,
    FetcherRegistry,
    PixabayImageSearch,
    WiktionaryLookup,
)
from tangoroid.fetchers.dictionary import (
    parse_free_dictionary,
    parse_wiktionary,
    pick_pronunciation,
)
from tangoroid.fetchers.images import parse_pixabay_hits
from tangoroid.models.vocabulary import Definition

from tests.conftest import FakeDictionary, lookup_result


FREE_DICTIONARY_PAYLOAD = [
    {
        "word": "serendipity",
        "phonetic": "/ˌsɛɹənˈdɪpɪti/",
        "phonetics": [
            {"text": "/ˌsɛɹənˈdɪpɪti/", "audio": ""},
            {"audio": "https://api.dictionaryapi.dev/media/pronunciations/en/serendipity-us.mp3"},
            {"audio": "//api.dictionaryapi.dev/media/pronunciations/en/serendipity-uk.mp3"},
        ],
        "meanings": [
            {
                "partOfSpeech": "noun",
                "definitions": [
                    {"definition": "A combination of events which have come together by chance.",
                     "example": "It was pure serendipity that we met."},
                    {"definition": "The faculty of making fortunate discoveries by accident."},
                    {"definition": "An unexpected discovery.", "example": "A happy serendipity."},
                ],
            },
            {"partOfSpeech": "verb", "definitions": []},
        ],
    },
    {"word": "serendipity", "meanings": [{"partOfSpeech": "adjective", "definitions": [{"definition": "ignored"}]}]},
]


class TestFreeDictionary:

    def test_one_definition_per_meaning(self):
        result = parse_free_dictionary("serendipity", FREE_DICTIONARY_PAYLOAD)

        assert result.source_attribution == "Free Dictionary"
        assert result.definitions == [
            Definition(
                part_of_speech="noun",
                definition="A combination of events which have come together by chance.",
                examples=["It was pure serendipity that we met.", "A happy serendipity."],
            )
        ]

    def test_prefers_uk_audio_and_fixes_scheme(self):
        phonetic, audio_url = pick_pronunciation(FREE_DICTIONARY_PAYLOAD[0])

        assert phonetic == "/ˌsɛɹənˈdɪpɪti/"
        assert audio_url == "https://api.dictionaryapi.dev/media/pronunciations/en/serendipity-uk.mp3"

    def test_any_audio_when_no_uk_recording(self):
        entry = {"phonetics": [{"text": "/ɹʌn/", "audio": "https://audio.example/run-us.mp3"}]}

        assert pick_pronunciation(entry) == ("/ɹʌn/", "https://audio.example/run-us.mp3")

    def test_no_phonetics(self):
        assert pick_pronunciation({}) == (None, None)

    def test_no_definitions_is_not_found(self):
        payload = [{"word": "x", "meanings": [{"partOfSpeech": "noun", "definitions": []}]}]

        with pytest.raises(NotFoundError):
            parse_free_dictionary("x", payload)

    @pytest.mark.parametrize("payload", [{"title": "No Definitions Found"}, [], ["text"], None])
    def test_unexpected_payload(self, payload):
        with pytest.raises(ServiceError):
            parse_free_dictionary("x", payload)


class TestWiktionary:

    def test_english_entries_with_html_stripped(self):
        payload = {
            "en": [{
                "partOfSpeech": "Noun",
                "definitions": [
                    {
                        "definition": "A <a href=\"/wiki/thing\">thing</a> that is &quot;nice&quot;.",
                        "examples": ["<i>What</i> a nice thing.", "", 42],
                    },
                    {"definition": "Another sense.", "examples": ["Second <b>example</b>."]},
                ],
            }],
            "fr": [{"partOfSpeech": "Nom", "definitions": [{"definition": "chose"}]}],
        }

        result = parse_wiktionary("thing", payload)

        assert result.source_attribution == "Wiktionary"
        assert result.phonetic is None
        assert result.definitions == [
            Definition("Noun", 'A thing that is "nice".', ["What a nice thing.", "Second example."])
        ]

    def test_no_english_entry(self):
        with pytest.raises(NotFoundError):
            parse_wiktionary("chose", {"fr": [{"partOfSpeech": "Nom", "definitions": [{"definition": "x"}]}]})

    @pytest.mark.asyncio
    async def test_url_uses_underscores(self, monkeypatch):
        lookup = WiktionaryLookup(base_url="https://wiki.example/definition/")
        requested = []

        async def fake_get_json(text, url):
            requested.append(url)
            return {"en": [{"partOfSpeech": "Noun", "definitions": [{"definition": "d"}]}]}

        monkeypatch.setattr(lookup, "_get_json", fake_get_json)

        await lookup.lookup("ice cream")

        assert requested == ["https://wiki.example/definition/ice_cream"]


class TestDictionaryChain:

    @pytest.mark.asyncio
    async def test_falls_back_to_second_provider(self):
        first = FakeDictionary()
        second = FakeDictionary({"word": lookup_result("word", source="Wiktionary")})

        result = await DictionaryLookup([first, second]).lookup("word")

        assert result.source_attribution == "Wiktionary"
        assert first.calls == ["word"]

    @pytest.mark.asyncio
    async def test_first_hit_wins(self):
        first = FakeDictionary({"word": lookup_result("word")})
        second = FakeDictionary({"word": lookup_result("word", source="Wiktionary")})

        result = await DictionaryLookup([first, second]).lookup("word")

        assert result.source_attribution == "Free Dictionary"
        assert second.calls == []

    @pytest.mark.asyncio
    async def test_all_miss_is_not_found(self):
        with pytest.raises(NotFoundError):
            await DictionaryLookup([FakeDictionary(), FakeDictionary()]).lookup("word")

    @pytest.mark.asyncio
    async def test_any_failure_is_service_error(self):
        broken = FakeDictionary({"word": ServiceError("word", "HTTP 503")})

        with pytest.raises(ServiceError):
            await DictionaryLookup([broken, FakeDictionary()]).lookup("word")


class TestPixabay:

    def test_parse_hits(self):
        data = {"hits": [{"webformatURL": "https://pixabay.example/1.png"}, {"webformatURL": "x"}]}

        assert parse_pixabay_hits(data) == "https://pixabay.example/1.png"
        assert parse_pixabay_hits({"hits": []}) is None
        assert parse_pixabay_hits({"hits": [{}]}) is None
        assert parse_pixabay_hits(None) is None

    @pytest.mark.asyncio
    async def test_illustration_then_photo(self, monkeypatch):
        search = PixabayImageSearch(api_key="key")
        tried = []

        async def fake_search_type(text, image_type):
            tried.append(image_type)
            return "https://pixabay.example/photo.jpg" if image_type == "photo" else None

        monkeypatch.setattr(search, "_search_type", fake_search_type)

        assert await search.search("word") == "https://pixabay.example/photo.jpg"
        assert tried == ["illustration", "photo"]

    @pytest.mark.asyncio
    async def test_without_key_finds_nothing(self, monkeypatch):
        search = PixabayImageSearch(api_key="")

        async def unexpected(text, image_type):
            raise AssertionError("no request expected")

        monkeypatch.setattr(search, "_search_type", unexpected)

        assert await search.search("word") is None
        assert await search.search("   ") is None


class TestRegistry:

    def test_builtin_providers(self):
        assert {"default", "free-dictionary", "wiktionary"} <= set(FetcherRegistry.list_dictionary_providers())
        assert "pixabay" in FetcherRegistry.list_image_providers()
        assert isinstance(FetcherRegistry.get_dictionary(), DictionaryLookup)
        assert isinstance(FetcherRegistry.get_dictionary("wiktionary"), WiktionaryLookup)

    def test_unknown_provider(self):
        with pytest.raises(KeyError):
            FetcherRegistry.get_image_search("flickr")
