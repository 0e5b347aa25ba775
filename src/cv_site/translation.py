"""
Selection of the translation row to display for an entity.
"""

from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def pick_translation(translations: Sequence[T], languages: Sequence[str]) -> Optional[T]:
    """
    Pick the translation that best matches a language preference chain.

    Languages are tried in order and the first translation carrying that
    language wins. When none of the preferred languages exist the first
    translation in input order is returned, so a partially translated
    entity still renders something. That fallback depends on the order the
    rows were stored in.

    Args:
        translations: Rows exposing a ``language`` attribute.
        languages: Preference chain, e.g. from languages.language_priority().

    Returns:
        The selected row, or None if there are no translations at all.
    """
    for language in languages:
        for translation in translations:
            if translation.language == language:
                return translation
    if translations:
        return translations[0]
    return None
