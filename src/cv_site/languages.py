"""
Supported languages and request-language resolution.

The supported set is fixed; the first declared code is the default and is
what any missing or unrecognized language tag falls back to.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Supported languages, default first
SUPPORTED_LANGUAGES = ("vi", "en", "ru")
DEFAULT_LANGUAGE = SUPPORTED_LANGUAGES[0]

LANGUAGE_METADATA: Dict[str, Dict[str, Any]] = {
    "vi": {
        "name": "Vietnamese",
        "name_native": "Tiếng Việt",
    },
    "en": {
        "name": "English",
        "name_native": "English",
    },
    "ru": {
        "name": "Russian",
        "name_native": "Русский",
    },
}


def _clean(value: Optional[str]) -> str:
    if not value:
        return ""
    return str(value).strip().lower()


def is_supported_language(value: Optional[str]) -> bool:
    """Return True if value, once trimmed and lower-cased, is a supported code."""
    return _clean(value) in SUPPORTED_LANGUAGES


def normalize_language(value: Optional[str] = None) -> str:
    """
    Resolve a requested language tag to a supported code.

    Input is trimmed and lower-cased; anything unsupported (including None
    and the empty string) resolves to DEFAULT_LANGUAGE.

    Args:
        value: Requested language tag, e.g. from a URL segment.

    Returns:
        A code from SUPPORTED_LANGUAGES.
    """
    normalized = _clean(value)
    if normalized in SUPPORTED_LANGUAGES:
        return normalized
    if normalized:
        logger.debug(f"Unsupported language '{value}', falling back to '{DEFAULT_LANGUAGE}'")
    return DEFAULT_LANGUAGE


def language_priority(language: Optional[str]) -> List[str]:
    """
    Build the preference chain for a language: itself, then the default.

    >>> language_priority("en")
    ['en', 'vi']
    >>> language_priority("vi")
    ['vi']
    """
    primary = normalize_language(language)
    chain = [primary]
    if primary != DEFAULT_LANGUAGE:
        chain.append(DEFAULT_LANGUAGE)
    return chain


def get_language_name(language: str, native: bool = False) -> str:
    """Display name of a supported language; the code itself if unknown."""
    info = LANGUAGE_METADATA.get(_clean(language))
    if info is None:
        return language
    return info["name_native"] if native else info["name"]


def all_profile_paths() -> List[Dict[str, str]]:
    """One path parameter set per supported language, for enumerating pages."""
    return [{"lang": lang} for lang in SUPPORTED_LANGUAGES]
