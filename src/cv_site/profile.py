"""
Profile resolution: turns stored rows into the language-resolved view tree.

For a requested language the resolver fetches the active profile, picks the
best translation for the profile, every section and every item, and layers
each item's translation metadata over the item's own metadata. Section
metadata is passed through untouched.

Empty states (no profile, no translation, no metadata) come back as None or
defaults. Errors raised by the store propagate to the caller as they are.
"""

import logging
from typing import List, Optional

from .languages import language_priority, normalize_language
from .metadata import as_record, merge_metadata
from .models import (
    ProfileRecord,
    ProfileView,
    ResolvedProfile,
    SectionItemRecord,
    SectionItemView,
    SectionRecord,
    SectionView,
    SeoView,
    TranslationView,
)
from .store import ProfileStore, active_in_order
from .translation import pick_translation

logger = logging.getLogger(__name__)


class ProfileResolver:
    """Resolves the active profile for a requested language."""

    def __init__(self, store: ProfileStore):
        self.store = store

    def resolve(self, language_input: Optional[str] = None) -> Optional[ResolvedProfile]:
        """
        Build the resolved tree for a language.

        Args:
            language_input: Requested language tag; anything unsupported
                falls back to the default language.

        Returns:
            The resolved profile, or None when no active profile exists.
        """
        language = normalize_language(language_input)
        languages = language_priority(language)

        record = self.store.fetch_active_profile()
        if record is None:
            logger.info("No active profile found")
            return None

        sections = [
            self._resolve_section(section, languages)
            for section in active_in_order(record.sections)
        ]
        logger.debug(
            f"Resolved profile '{record.slug}' for '{language}' "
            f"({len(sections)} sections)"
        )
        return ResolvedProfile(
            language=language,
            profile=self._resolve_profile(record, languages),
            sections=sections,
        )

    def _resolve_profile(self, record: ProfileRecord, languages: List[str]) -> ProfileView:
        translation = pick_translation(record.translations, languages)
        if translation is None:
            logger.warning(f"Profile '{record.slug}' has no translations")
            return ProfileView(
                id=record.id,
                slug=record.slug,
                level=record.level,
                full_name=record.slug,
                date_of_birth=_isoformat(record.date_of_birth),
                metadata=as_record(record.metadata),
            )

        return ProfileView(
            id=record.id,
            slug=record.slug,
            level=record.level,
            full_name=_coalesce(translation.full_name, record.slug),
            date_of_birth=_isoformat(record.date_of_birth),
            metadata=as_record(record.metadata),
            headline=translation.headline,
            summary=translation.summary,
            seo=SeoView(
                title=_coalesce(translation.seo_title, translation.full_name),
                description=_coalesce(translation.seo_description, translation.summary),
                keywords=list(translation.seo_keywords or []),
                metadata=as_record(translation.seo_metadata),
            ),
        )

    def _resolve_section(self, section: SectionRecord, languages: List[str]) -> SectionView:
        translation = pick_translation(section.translations, languages)
        return SectionView(
            id=section.id,
            key=section.key,
            display_order=section.display_order,
            is_active=section.is_active,
            ui_config=as_record(section.ui_config),
            metadata=as_record(section.metadata),
            translation=TranslationView.from_record(translation),
            items=[
                self._resolve_item(item, languages)
                for item in active_in_order(section.items)
            ],
        )

    def _resolve_item(self, item: SectionItemRecord, languages: List[str]) -> SectionItemView:
        translation = pick_translation(item.translations, languages)
        override = translation.metadata if translation is not None else None
        return SectionItemView(
            id=item.id,
            item_type=item.item_type,
            display_order=item.display_order,
            is_active=item.is_active,
            metadata=merge_metadata(item.metadata, override),
            translation=TranslationView.from_record(translation),
        )


def get_profile(store: ProfileStore, language_input: Optional[str] = None) -> Optional[ResolvedProfile]:
    """Resolve the active profile from a store. See ProfileResolver.resolve."""
    return ProfileResolver(store).resolve(language_input)


def _isoformat(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _coalesce(value, fallback):
    """value unless it is None; empty strings are kept."""
    return fallback if value is None else value
