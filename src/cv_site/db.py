"""
SQLite3 storage module for CV Site.

Provides functions for:
- Initializing the database with schema
- Importing a profile document (JSON) into the database
- Listing stored profiles
- The composite read used by the profile resolver (SQLiteProfileStore)

Record-valued fields (metadata, uiConfig, SEO keywords/metadata) are stored
as JSON text; booleans as 0/1; timestamps as ISO-8601 UTC strings.
"""

import json
import logging
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError, ValidationError
from .languages import SUPPORTED_LANGUAGES
from .models import (
    ProfileRecord,
    ProfileTranslationRecord,
    SectionItemRecord,
    SectionRecord,
    TranslationRecord,
)
from .paths import get_default_db_path

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    """Return current UTC time as ISO format string."""
    return datetime.now(timezone.utc).isoformat()


# Schema version for migrations
SCHEMA_VERSION = 1

_LANGUAGE_CHECK = ", ".join(f"'{lang}'" for lang in SUPPORTED_LANGUAGES)

# SQL schema for the database
SCHEMA_SQL = f"""
-- Meta table for schema version tracking
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS profile (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT UNIQUE NOT NULL,
    level TEXT NOT NULL,
    date_of_birth TEXT,
    metadata_json TEXT NOT NULL DEFAULT '{{}}',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS profile_translation (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    profile_id INTEGER NOT NULL,
    language TEXT NOT NULL CHECK (language IN ({_LANGUAGE_CHECK})),
    full_name TEXT NOT NULL,
    headline TEXT,
    summary TEXT,
    seo_title TEXT,
    seo_description TEXT,
    seo_keywords_json TEXT NOT NULL DEFAULT '[]',
    seo_metadata_json TEXT,
    UNIQUE (profile_id, language),
    FOREIGN KEY (profile_id) REFERENCES profile(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS section (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    profile_id INTEGER NOT NULL,
    key TEXT NOT NULL,
    display_order INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    ui_config_json TEXT NOT NULL DEFAULT '{{}}',
    metadata_json TEXT NOT NULL DEFAULT '{{}}',
    UNIQUE (profile_id, key),
    FOREIGN KEY (profile_id) REFERENCES profile(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS section_translation (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    section_id INTEGER NOT NULL,
    language TEXT NOT NULL CHECK (language IN ({_LANGUAGE_CHECK})),
    title TEXT NOT NULL,
    subtitle TEXT,
    description TEXT,
    metadata_json TEXT,
    UNIQUE (section_id, language),
    FOREIGN KEY (section_id) REFERENCES section(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS section_item (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    section_id INTEGER NOT NULL,
    item_type TEXT NOT NULL,
    display_order INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    metadata_json TEXT NOT NULL DEFAULT '{{}}',
    FOREIGN KEY (section_id) REFERENCES section(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS section_item_translation (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id INTEGER NOT NULL,
    language TEXT NOT NULL CHECK (language IN ({_LANGUAGE_CHECK})),
    title TEXT,
    subtitle TEXT,
    description TEXT,
    metadata_json TEXT,
    UNIQUE (item_id, language),
    FOREIGN KEY (item_id) REFERENCES section_item(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_profile_active ON profile(is_active, created_at);
CREATE INDEX IF NOT EXISTS idx_section_profile ON section(profile_id, display_order);
CREATE INDEX IF NOT EXISTS idx_item_section ON section_item(section_id, display_order);
"""


def get_db_path(db_path: Optional[Path] = None) -> Path:
    """
    Get the database path.

    Args:
        db_path: Explicit database path. If None, uses the default.

    Returns:
        Path to the database file.
    """
    if db_path is not None:
        return Path(db_path)
    return get_default_db_path()


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _require_db(db_path: Optional[Path]) -> Path:
    db_path = get_db_path(db_path)
    if not db_path.exists():
        raise ConfigurationError(f"Database not found: {db_path}. Run 'cvsite db init' first.")
    return db_path


def init_db(db_path: Optional[Path] = None, force: bool = False) -> Path:
    """
    Initialize the database with schema.

    Args:
        db_path: Path to the database file. Uses default if None.
        force: If True, recreate the database even if it exists.

    Returns:
        Path to the database file.
    """
    db_path = get_db_path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    if db_path.exists():
        if force:
            logger.info(f"Removing existing database: {db_path}")
            db_path.unlink()
        else:
            logger.info(f"Database already exists: {db_path}")
            conn = sqlite3.connect(db_path)
            try:
                row = conn.execute(
                    "SELECT value FROM meta WHERE key = 'schema_version'"
                ).fetchone()
                if row and int(row[0]) != SCHEMA_VERSION:
                    logger.warning(
                        f"Schema version mismatch: DB has v{row[0]}, "
                        f"expected v{SCHEMA_VERSION}"
                    )
            finally:
                conn.close()
            return db_path

    logger.info(f"Creating database: {db_path}")

    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.execute(
            "INSERT OR REPLACE INTO meta (key, value, updated_at) VALUES (?, ?, ?)",
            ("schema_version", str(SCHEMA_VERSION), _utcnow())
        )
        conn.commit()
        logger.info(f"Database initialized with schema version {SCHEMA_VERSION}")
    finally:
        conn.close()

    return db_path


# ==============================================================================
# JSON column helpers
# ==============================================================================

def _dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _load_json(text: Optional[str], default: Any = None) -> Any:
    if text is None or text == "":
        return default
    return json.loads(text)


def _record_field(owner: str, name: str, value: Any) -> Optional[Dict[str, Any]]:
    """None or a JSON object; lists, strings and numbers are rejected."""
    if value is None or isinstance(value, dict):
        return value
    raise ValidationError(f"{owner}: '{name}' must be an object, got {type(value).__name__}")


def _list_field(owner: str, name: str, value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    raise ValidationError(f"{owner}: '{name}' must be a list, got {type(value).__name__}")


def _display_order(owner: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{owner}: 'displayOrder' must be an integer, got {value!r}")


def _parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


# ==============================================================================
# Import
# ==============================================================================

def _translation_entries(owner: str, translations: Any) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Normalize a translations block into (language, fields) pairs.

    Accepts either a mapping keyed by language or a list of objects that
    carry a "language" key. Order is preserved.

    Raises:
        ValidationError: On unsupported languages or duplicate languages.
    """
    if translations is None:
        return []

    if isinstance(translations, dict):
        pairs = list(translations.items())
    elif isinstance(translations, list):
        pairs = []
        for entry in translations:
            if not isinstance(entry, dict) or "language" not in entry:
                raise ValidationError(f"{owner}: translation entries need a 'language' key")
            fields = {k: v for k, v in entry.items() if k != "language"}
            pairs.append((entry["language"], fields))
    else:
        raise ValidationError(f"{owner}: 'translations' must be an object or a list")

    seen = set()
    result = []
    for language, fields in pairs:
        code = str(language).strip().lower()
        if code not in SUPPORTED_LANGUAGES:
            raise ValidationError(
                f"{owner}: unsupported language '{language}' "
                f"(supported: {', '.join(SUPPORTED_LANGUAGES)})"
            )
        if code in seen:
            raise ValidationError(f"{owner}: duplicate translation for '{code}'")
        if not isinstance(fields, dict):
            raise ValidationError(f"{owner}: translation '{code}' must be an object")
        seen.add(code)
        result.append((code, fields))
    return result


def _insert_profile(cursor: sqlite3.Cursor, data: Dict[str, Any]) -> int:
    owner = f"profile '{data['slug']}'"
    try:
        created_at = _parse_timestamp(data.get("createdAt")).isoformat(timespec="microseconds")
        date_of_birth = _parse_date(data.get("dateOfBirth"))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"profile '{data['slug']}': invalid date: {e}")
    cursor.execute(
        """INSERT INTO profile (slug, level, date_of_birth, metadata_json, is_active, created_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (
            data["slug"],
            data.get("level", ""),
            date_of_birth.isoformat() if date_of_birth else None,
            _dump_json(_record_field(owner, "metadata", data.get("metadata")) or {}),
            1 if data.get("isActive", True) else 0,
            created_at,
        )
    )
    profile_id = cursor.lastrowid

    for language, fields in _translation_entries(owner, data.get("translations")):
        if not fields.get("fullName"):
            raise ValidationError(f"profile '{data['slug']}': translation '{language}' needs 'fullName'")
        cursor.execute(
            """INSERT INTO profile_translation
               (profile_id, language, full_name, headline, summary,
                seo_title, seo_description, seo_keywords_json, seo_metadata_json)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                profile_id,
                language,
                fields["fullName"],
                fields.get("headline"),
                fields.get("summary"),
                fields.get("seoTitle"),
                fields.get("seoDescription"),
                _dump_json(_list_field(owner, "seoKeywords", fields.get("seoKeywords"))),
                _dump_json(_record_field(owner, "seoMetadata", fields.get("seoMetadata"))),
            )
        )
    return profile_id


def _insert_section(cursor: sqlite3.Cursor, profile_id: int, section: Dict[str, Any], stats: Dict[str, Any]) -> None:
    key = section.get("key")
    if not key:
        raise ValidationError("Every section needs a 'key'")

    owner = f"section '{key}'"
    ui_config = _record_field(owner, "uiConfig", section.get("uiConfig")) or {}
    if "variant" not in ui_config:
        logger.warning(f"Section '{key}' has no uiConfig.variant; it will render with the default layout")

    cursor.execute(
        """INSERT INTO section (profile_id, key, display_order, is_active, ui_config_json, metadata_json)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (
            profile_id,
            key,
            _display_order(owner, section.get("displayOrder", 0)),
            1 if section.get("isActive", True) else 0,
            _dump_json(ui_config),
            _dump_json(_record_field(owner, "metadata", section.get("metadata")) or {}),
        )
    )
    section_id = cursor.lastrowid
    stats["sections"] += 1

    for language, fields in _translation_entries(owner, section.get("translations")):
        if not fields.get("title"):
            raise ValidationError(f"section '{key}': translation '{language}' needs 'title'")
        cursor.execute(
            """INSERT INTO section_translation (section_id, language, title, subtitle, description, metadata_json)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                section_id,
                language,
                fields["title"],
                fields.get("subtitle"),
                fields.get("description"),
                _dump_json(_record_field(owner, "metadata", fields.get("metadata"))),
            )
        )
        stats["translations"] += 1

    for idx, item in enumerate(_list_field(owner, "items", section.get("items"))):
        item_owner = f"section '{key}' item {idx}"
        if not isinstance(item, dict):
            raise ValidationError(f"{item_owner}: must be an object")
        item_type = item.get("itemType")
        if not item_type:
            raise ValidationError(f"{item_owner} needs an 'itemType'")
        cursor.execute(
            """INSERT INTO section_item (section_id, item_type, display_order, is_active, metadata_json)
               VALUES (?, ?, ?, ?, ?)""",
            (
                section_id,
                item_type,
                _display_order(item_owner, item.get("displayOrder", 0)),
                1 if item.get("isActive", True) else 0,
                _dump_json(_record_field(item_owner, "metadata", item.get("metadata")) or {}),
            )
        )
        item_id = cursor.lastrowid
        stats["items"] += 1

        for language, fields in _translation_entries(item_owner, item.get("translations")):
            cursor.execute(
                """INSERT INTO section_item_translation
                   (item_id, language, title, subtitle, description, metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    item_id,
                    language,
                    fields.get("title"),
                    fields.get("subtitle"),
                    fields.get("description"),
                    _dump_json(_record_field(item_owner, "metadata", fields.get("metadata"))),
                )
            )
            stats["translations"] += 1


def import_profile(
    data: Dict[str, Any],
    db_path: Optional[Path] = None,
    overwrite: bool = False,
) -> Dict[str, Any]:
    """
    Import one profile document into the database.

    The document uses the same field names as the API (slug, level,
    dateOfBirth, isActive, createdAt, metadata, translations, sections with
    key/displayOrder/isActive/uiConfig/metadata/translations/items).
    Translations are either an object keyed by language or a list of
    objects with a "language" key.

    Args:
        data: The profile document.
        db_path: Path to the database file. Uses default if None.
        overwrite: If True, replace an existing profile with the same slug.

    Returns:
        Dict with import statistics.

    Raises:
        ConfigurationError: If the database doesn't exist.
        ValidationError: If the document is invalid or the slug exists.
    """
    db_path = _require_db(db_path)

    if not isinstance(data, dict):
        raise ValidationError("Profile document must be a JSON object")
    slug = data.get("slug")
    if not slug:
        raise ValidationError("Profile document needs a 'slug'")

    stats = {"profile": slug, "sections": 0, "items": 0, "translations": 0}

    conn = _connect(db_path)
    try:
        cursor = conn.cursor()

        existing = cursor.execute("SELECT id FROM profile WHERE slug = ?", (slug,)).fetchone()
        if existing:
            if not overwrite:
                raise ValidationError(f"Profile '{slug}' already exists (use --overwrite to replace it)")
            cursor.execute("DELETE FROM profile WHERE id = ?", (existing["id"],))
            logger.info(f"Deleted existing profile: {slug}")

        profile_id = _insert_profile(cursor, data)
        stats["translations"] += len(data.get("translations") or [])

        for idx, section in enumerate(_list_field(f"profile '{slug}'", "sections", data.get("sections"))):
            if not isinstance(section, dict):
                raise ValidationError(f"profile '{slug}': section {idx} must be an object")
            _insert_section(cursor, profile_id, section, stats)

        conn.commit()
        logger.info(
            f"Imported profile '{slug}': {stats['sections']} sections, {stats['items']} items"
        )
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    return stats


def import_profile_file(
    path: Path,
    db_path: Optional[Path] = None,
    overwrite: bool = False,
) -> Dict[str, Any]:
    """
    Load a profile document from a JSON file and import it.

    Raises:
        ConfigurationError: If the file doesn't exist.
        ValidationError: If the file isn't valid JSON or the document is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Profile file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}")
    return import_profile(data, db_path, overwrite=overwrite)


def list_profiles(db_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """
    List all profiles in the database, oldest first.

    Returns:
        List of dicts with slug, level, is_active, created_at and section_count.
    """
    db_path = _require_db(db_path)

    conn = _connect(db_path)
    try:
        rows = conn.execute(
            """SELECT p.slug, p.level, p.is_active, p.created_at, COUNT(s.id) AS section_count
               FROM profile p
               LEFT JOIN section s ON s.profile_id = p.id
               GROUP BY p.id
               ORDER BY p.created_at, p.id"""
        ).fetchall()
    finally:
        conn.close()

    return [
        {
            "slug": row["slug"],
            "level": row["level"],
            "is_active": bool(row["is_active"]),
            "created_at": row["created_at"],
            "section_count": row["section_count"],
        }
        for row in rows
    ]


# ==============================================================================
# Composite read
# ==============================================================================

def _translation_record(row: sqlite3.Row) -> TranslationRecord:
    return TranslationRecord(
        language=row["language"],
        title=row["title"],
        subtitle=row["subtitle"],
        description=row["description"],
        metadata=_load_json(row["metadata_json"]),
    )


def _group_by(rows: Iterable[sqlite3.Row], column: str) -> Dict[int, List[sqlite3.Row]]:
    grouped: Dict[int, List[sqlite3.Row]] = {}
    for row in rows:
        grouped.setdefault(row[column], []).append(row)
    return grouped


class SQLiteProfileStore:
    """
    Profile store backed by the SQLite database.

    Each fetch opens its own connection, so one instance can serve
    concurrent requests.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = get_db_path(db_path)

    def fetch_active_profile(self) -> Optional[ProfileRecord]:
        """
        Read the earliest-created active profile with its active sections and items.

        Raises:
            ConfigurationError: If the database file doesn't exist.
            sqlite3.Error: On any database failure.
        """
        db_path = _require_db(self.db_path)

        conn = _connect(db_path)
        try:
            profile = conn.execute(
                """SELECT * FROM profile
                   WHERE is_active = 1
                   ORDER BY created_at, id
                   LIMIT 1"""
            ).fetchone()
            if profile is None:
                return None

            profile_id = profile["id"]
            translations = conn.execute(
                "SELECT * FROM profile_translation WHERE profile_id = ? ORDER BY id",
                (profile_id,)
            ).fetchall()
            sections = conn.execute(
                """SELECT * FROM section
                   WHERE profile_id = ? AND is_active = 1
                   ORDER BY display_order, id""",
                (profile_id,)
            ).fetchall()
            section_translations = conn.execute(
                """SELECT st.* FROM section_translation st
                   JOIN section s ON s.id = st.section_id
                   WHERE s.profile_id = ? AND s.is_active = 1
                   ORDER BY st.id""",
                (profile_id,)
            ).fetchall()
            items = conn.execute(
                """SELECT si.* FROM section_item si
                   JOIN section s ON s.id = si.section_id
                   WHERE s.profile_id = ? AND s.is_active = 1 AND si.is_active = 1
                   ORDER BY si.display_order, si.id""",
                (profile_id,)
            ).fetchall()
            item_translations = conn.execute(
                """SELECT sit.* FROM section_item_translation sit
                   JOIN section_item si ON si.id = sit.item_id
                   JOIN section s ON s.id = si.section_id
                   WHERE s.profile_id = ? AND s.is_active = 1 AND si.is_active = 1
                   ORDER BY sit.id""",
                (profile_id,)
            ).fetchall()
        finally:
            conn.close()

        section_translations_by_id = _group_by(section_translations, "section_id")
        items_by_section = _group_by(items, "section_id")
        item_translations_by_id = _group_by(item_translations, "item_id")

        section_records = []
        for section in sections:
            item_records = [
                SectionItemRecord(
                    id=str(item["id"]),
                    item_type=item["item_type"],
                    display_order=item["display_order"],
                    is_active=bool(item["is_active"]),
                    metadata=_load_json(item["metadata_json"], {}),
                    translations=[
                        _translation_record(row)
                        for row in item_translations_by_id.get(item["id"], [])
                    ],
                )
                for item in items_by_section.get(section["id"], [])
            ]
            section_records.append(
                SectionRecord(
                    id=str(section["id"]),
                    key=section["key"],
                    display_order=section["display_order"],
                    is_active=bool(section["is_active"]),
                    ui_config=_load_json(section["ui_config_json"], {}),
                    metadata=_load_json(section["metadata_json"], {}),
                    translations=[
                        _translation_record(row)
                        for row in section_translations_by_id.get(section["id"], [])
                    ],
                    items=item_records,
                )
            )

        return ProfileRecord(
            id=str(profile_id),
            slug=profile["slug"],
            level=profile["level"],
            created_at=_parse_timestamp(profile["created_at"]),
            date_of_birth=_parse_date(profile["date_of_birth"]),
            metadata=_load_json(profile["metadata_json"], {}),
            is_active=bool(profile["is_active"]),
            translations=[
                ProfileTranslationRecord(
                    language=row["language"],
                    full_name=row["full_name"],
                    headline=row["headline"],
                    summary=row["summary"],
                    seo_title=row["seo_title"],
                    seo_description=row["seo_description"],
                    seo_keywords=_load_json(row["seo_keywords_json"], []),
                    seo_metadata=_load_json(row["seo_metadata_json"]),
                )
                for row in translations
            ],
            sections=section_records,
        )
