"""Test configuration and fixtures for CV Site tests."""

import copy
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for development testing
_src_dir = Path(__file__).parent.parent / "src"
if _src_dir.exists():
    sys.path.insert(0, str(_src_dir))

from cv_site.models import (  # noqa: E402
    ProfileRecord,
    ProfileTranslationRecord,
    SectionItemRecord,
    SectionRecord,
    TranslationRecord,
)


# ==============================================================================
# Fixture paths
# ==============================================================================

FIXTURES_DIR = Path(__file__).parent / "fixtures"
PROFILE_FIXTURE = FIXTURES_DIR / "profile.json"


def load_json_fixture(fixture_path: Path) -> dict:
    """Load a JSON fixture file."""
    with open(fixture_path, "r", encoding="utf-8") as f:
        return json.load(f)


# ==============================================================================
# Record builders
# ==============================================================================

def make_profile(
    slug: str = "jane",
    created_at: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
    is_active: bool = True,
    translations=None,
    sections=None,
    **kwargs,
) -> ProfileRecord:
    """Build a ProfileRecord with sensible defaults."""
    return ProfileRecord(
        id=kwargs.pop("id", slug),
        slug=slug,
        level=kwargs.pop("level", "senior"),
        created_at=created_at,
        is_active=is_active,
        translations=list(translations or []),
        sections=list(sections or []),
        **kwargs,
    )


def make_section(key: str, display_order: int = 0, variant: str = "cards", **kwargs) -> SectionRecord:
    """Build a SectionRecord with a variant in its uiConfig."""
    return SectionRecord(
        id=kwargs.pop("id", key),
        key=key,
        display_order=display_order,
        ui_config=kwargs.pop("ui_config", {"variant": variant}),
        **kwargs,
    )


def make_item(item_id: str, display_order: int = 0, item_type: str = "job", **kwargs) -> SectionItemRecord:
    """Build a SectionItemRecord."""
    return SectionItemRecord(id=item_id, item_type=item_type, display_order=display_order, **kwargs)


# ==============================================================================
# Shared pytest fixtures
# ==============================================================================

@pytest.fixture
def profile_document() -> dict:
    """Return the multilingual profile document fixture."""
    return copy.deepcopy(load_json_fixture(PROFILE_FIXTURE))


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Return an initialized, empty database."""
    from cv_site.db import init_db

    return init_db(tmp_path / "cv.db")


@pytest.fixture
def seeded_db(db_path, profile_document) -> Path:
    """Return a database holding the profile document fixture."""
    from cv_site.db import import_profile

    import_profile(profile_document, db_path)
    return db_path


@pytest.fixture
def go_profile() -> ProfileRecord:
    """
    One profile in vi/en/ru with one section holding one item whose
    metadata is {"techStack": ["Go"]}; only the English item translation
    carries metadata ({"location": "Remote"}).
    """
    item = make_item(
        "item-1",
        metadata={"techStack": ["Go"]},
        translations=[
            TranslationRecord(language="vi", title="Kỹ sư"),
            TranslationRecord(language="en", title="Engineer", metadata={"location": "Remote"}),
            TranslationRecord(language="ru", title="Инженер"),
        ],
    )
    section = make_section(
        "experience",
        variant="timeline",
        translations=[
            TranslationRecord(language="vi", title="Kinh nghiệm"),
            TranslationRecord(language="en", title="Experience"),
            TranslationRecord(language="ru", title="Опыт"),
        ],
        items=[item],
    )
    return make_profile(
        slug="manh",
        translations=[
            ProfileTranslationRecord(language="vi", full_name="Mạnh", headline="Kỹ sư"),
            ProfileTranslationRecord(language="en", full_name="Manh", headline="Engineer"),
            ProfileTranslationRecord(language="ru", full_name="Мань", headline="Инженер"),
        ],
        sections=[section],
    )
