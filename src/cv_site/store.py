"""
Data-access interface used by the profile resolver.

A store answers one composite query: the earliest-created active profile
with its translations, its active sections ordered by display order and,
per section, the active items ordered by display order, every entity with
its translations. ``cv_site.db.SQLiteProfileStore`` is the real
implementation; ``InMemoryProfileStore`` serves tests and embedding.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Protocol, TypeVar

from .models import ProfileRecord, SectionItemRecord, SectionRecord

logger = logging.getLogger(__name__)

_Ordered = TypeVar("_Ordered", SectionRecord, SectionItemRecord)


class ProfileStore(Protocol):
    """Anything that can produce the active profile tree."""

    def fetch_active_profile(self) -> Optional[ProfileRecord]:
        ...


def active_in_order(records: Iterable[_Ordered]) -> List[_Ordered]:
    """Active records sorted by display_order; ties keep their input order."""
    return sorted(
        (record for record in records if record.is_active),
        key=lambda record: record.display_order,
    )


class InMemoryProfileStore:
    """
    Profile store over a list of records held in memory.

    Applies the same selection the SQL query does, so records can be given
    in any order and with inactive entries mixed in.
    """

    def __init__(self, profiles: Optional[Iterable[ProfileRecord]] = None):
        self._profiles = list(profiles or [])

    def add(self, profile: ProfileRecord) -> None:
        self._profiles.append(profile)

    def fetch_active_profile(self) -> Optional[ProfileRecord]:
        active = [p for p in self._profiles if p.is_active]
        if not active:
            logger.debug("No active profile in memory store")
            return None

        # min() keeps the first of equal created_at values
        profile = min(active, key=lambda p: p.created_at)
        sections = [
            replace(section, items=active_in_order(section.items))
            for section in active_in_order(profile.sections)
        ]
        return replace(profile, sections=sections)
