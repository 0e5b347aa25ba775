"""
Record and view-model types.

Records mirror what the data store holds (one per table row, with their
children attached). Views are the language-resolved tree handed to the
renderer and the JSON API; ``to_dict()`` produces the camelCase shape the
API publishes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .metadata import as_record

JsonRecord = Dict[str, Any]


# ==============================================================================
# Stored records
# ==============================================================================

@dataclass
class TranslationRecord:
    """A section or item translation row."""

    language: str
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[JsonRecord] = None


@dataclass
class ProfileTranslationRecord:
    language: str
    full_name: str
    headline: Optional[str] = None
    summary: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: List[str] = field(default_factory=list)
    seo_metadata: Optional[JsonRecord] = None


@dataclass
class SectionItemRecord:
    id: str
    item_type: str
    display_order: int = 0
    is_active: bool = True
    metadata: Optional[JsonRecord] = None
    translations: List[TranslationRecord] = field(default_factory=list)


@dataclass
class SectionRecord:
    id: str
    key: str
    display_order: int = 0
    is_active: bool = True
    ui_config: Optional[JsonRecord] = None
    metadata: Optional[JsonRecord] = None
    translations: List[TranslationRecord] = field(default_factory=list)
    items: List[SectionItemRecord] = field(default_factory=list)


@dataclass
class ProfileRecord:
    id: str
    slug: str
    level: str
    created_at: datetime
    date_of_birth: Optional[date] = None
    metadata: Optional[JsonRecord] = None
    is_active: bool = True
    translations: List[ProfileTranslationRecord] = field(default_factory=list)
    sections: List[SectionRecord] = field(default_factory=list)


# ==============================================================================
# Resolved views
# ==============================================================================

@dataclass
class TranslationView:
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    metadata: JsonRecord = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Optional[TranslationRecord]) -> Optional["TranslationView"]:
        if record is None:
            return None
        return cls(
            title=record.title,
            subtitle=record.subtitle,
            description=record.description,
            metadata=as_record(record.metadata),
        )

    def to_dict(self) -> JsonRecord:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "description": self.description,
            "metadata": self.metadata,
        }


@dataclass
class SectionItemView:
    id: str
    item_type: str
    display_order: int
    is_active: bool
    metadata: JsonRecord
    translation: Optional[TranslationView] = None

    def to_dict(self) -> JsonRecord:
        return {
            "id": self.id,
            "itemType": self.item_type,
            "displayOrder": self.display_order,
            "isActive": self.is_active,
            "metadata": self.metadata,
            "translation": self.translation.to_dict() if self.translation else None,
        }


@dataclass
class SectionView:
    id: str
    key: str
    display_order: int
    is_active: bool
    ui_config: JsonRecord
    metadata: JsonRecord
    translation: Optional[TranslationView] = None
    items: List[SectionItemView] = field(default_factory=list)

    @property
    def variant(self) -> Optional[str]:
        value = self.ui_config.get("variant")
        return value if isinstance(value, str) else None

    def to_dict(self) -> JsonRecord:
        return {
            "id": self.id,
            "key": self.key,
            "displayOrder": self.display_order,
            "isActive": self.is_active,
            "uiConfig": self.ui_config,
            "metadata": self.metadata,
            "translation": self.translation.to_dict() if self.translation else None,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class SeoView:
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    metadata: JsonRecord = field(default_factory=dict)

    def to_dict(self) -> JsonRecord:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": list(self.keywords),
            "metadata": self.metadata,
        }


@dataclass
class ProfileView:
    id: str
    slug: str
    level: str
    full_name: str
    date_of_birth: Optional[str] = None
    metadata: JsonRecord = field(default_factory=dict)
    headline: Optional[str] = None
    summary: Optional[str] = None
    seo: SeoView = field(default_factory=SeoView)

    def to_dict(self) -> JsonRecord:
        return {
            "id": self.id,
            "slug": self.slug,
            "level": self.level,
            "dateOfBirth": self.date_of_birth,
            "metadata": self.metadata,
            "fullName": self.full_name,
            "headline": self.headline,
            "summary": self.summary,
            "seo": self.seo.to_dict(),
        }


@dataclass
class ResolvedProfile:
    """The language-resolved tree for one profile."""

    language: str
    profile: ProfileView
    sections: List[SectionView] = field(default_factory=list)

    def to_dict(self) -> JsonRecord:
        return {
            "language": self.language,
            "profile": self.profile.to_dict(),
            "sections": [section.to_dict() for section in self.sections],
        }
