"""
CV Site - a data-driven, multilingual CV website.

This package provides:
- Language resolution with a fixed set of supported languages
- Translation selection and metadata merging per entity
- Resolution of the stored profile into a language-specific view tree
- SQLite storage, a Flask web surface and the `cvsite` CLI
"""

__version__ = "1.0.0"
__author__ = "CV Site Contributors"

from .languages import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    is_supported_language,
    language_priority,
    normalize_language,
)
from .metadata import merge_metadata
from .models import ResolvedProfile
from .profile import ProfileResolver, get_profile
from .store import InMemoryProfileStore, ProfileStore
from .translation import pick_translation

__all__ = [
    # Languages
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    "is_supported_language",
    "normalize_language",
    "language_priority",
    # Resolution
    "pick_translation",
    "merge_metadata",
    "ProfileResolver",
    "get_profile",
    "ResolvedProfile",
    # Stores
    "ProfileStore",
    "InMemoryProfileStore",
    # Version
    "__version__",
]
