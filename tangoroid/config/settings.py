"""Global settings and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on bad values."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Config:
    """Application-wide configuration."""
    
    # Definition lookup (Free Dictionary first, Wiktionary as fallback)
    DICTIONARY_API_URL: str = os.environ.get(
        "DICTIONARY_API_URL", "https://api.dictionaryapi.dev/api/v2/entries/en"
    )
    WIKTIONARY_API_URL: str = os.environ.get(
        "WIKTIONARY_API_URL", "https://en.wiktionary.org/api/rest_v1/page/definition"
    )
    
    # Pixabay image search
    # Store in environment variable or .env file: PIXABAY_API_KEY
    PIXABAY_API_KEY: str = os.environ.get("PIXABAY_API_KEY", "")
    PIXABAY_API_URL: str = os.environ.get("PIXABAY_API_URL", "https://pixabay.com/api/")
    
    # Wiktionary rejects requests without a descriptive agent
    USER_AGENT: str = os.environ.get("USER_AGENT", "TangoroidApp/1.0 (vocab learning app)")
    
    # Асинхронні налаштування
    LOOKUP_TIMEOUT: float = _env_float("LOOKUP_TIMEOUT", 15.0)
    BACKFILL_DELAY: float = _env_float("BACKFILL_DELAY", 0.1)
    
    # BASE_DIR is the project root (parent of tangoroid/)
    BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()
    
    DATA_DIR: str = str(BASE_DIR / "data")
    DB_PATH: str = os.environ.get("TANGOROID_DB", str(BASE_DIR / "data" / "tangoroid.db"))
    
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
