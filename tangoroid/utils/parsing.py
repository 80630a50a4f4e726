"""Text parsing utilities for consistent text processing across the application."""

import html
import re
import unicodedata
from typing import Any, List


class TextParser:
    """
    Centralized text parsing utilities.
    
    Single source of truth for word normalization and for cleaning
    text that arrives from third-party dictionary payloads.
    """
    
    # HTML tag removal pattern
    HTML_TAG_PATTERN = re.compile(r'<[^>]+>')
    
    # Whitespace normalization pattern
    WHITESPACE_PATTERN = re.compile(r'\s+')
    
    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.
        
        Prevents issues with characters like é being represented as
        either a single codepoint (NFC) or base + combining accent (NFD).
        
        Args:
            text: Input text
            
        Returns:
            NFC-normalized text
        """
        if not text:
            return ""
        return unicodedata.normalize('NFC', str(text))
    
    @classmethod
    def normalize_word(cls, text: str) -> str:
        """
        Normalize a vocabulary word as entered by the user.
        
        Collapses inner whitespace and strips the ends; case is kept.
        """
        text = cls.normalize_unicode(text)
        return cls.WHITESPACE_PATTERN.sub(' ', text).strip()
    
    @classmethod
    def word_key(cls, text: str) -> str:
        """
        Case-insensitive comparison key for a word.
        
        Two words with the same key are duplicates for one owner.
        """
        return cls.normalize_word(text).casefold()
    
    @classmethod
    def strip_html(cls, text: Any) -> str:
        """
        Remove HTML tags and entities from a payload string.
        
        Args:
            text: Raw text (Wiktionary returns HTML fragments)
            
        Returns:
            Plain text with normalized whitespace
        """
        if not text:
            return ""
        
        text = cls.HTML_TAG_PATTERN.sub('', str(text))
        text = html.unescape(text)
        text = cls.WHITESPACE_PATTERN.sub(' ', text).strip()
        return cls.normalize_unicode(text)
    
    @classmethod
    def clean_list(cls, values: Any, limit: int = 0) -> List[str]:
        """
        Turn a payload value into a list of non-empty cleaned strings.
        
        Args:
            values: List of strings (anything else yields an empty list)
            limit: Keep at most this many entries (0 = no limit)
        """
        if not isinstance(values, list):
            return []
        
        cleaned = [cls.strip_html(v) for v in values if isinstance(v, str)]
        cleaned = [v for v in cleaned if v]
        if limit > 0:
            cleaned = cleaned[:limit]
        return cleaned
