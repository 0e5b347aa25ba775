"""
HTML rendering of a resolved profile.

Each section picks its layout from ``uiConfig.variant``. The set of layouts
is closed (SectionVariant); any other tag, or no tag at all, renders with
the cards layout. Templates live in ``cv_site/templates`` and share the
helpers registered by install_helpers().
"""

import enum
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from jinja2 import Environment, PackageLoader, select_autoescape
from jinja2.exceptions import TemplateError as JinjaTemplateError
from markupsafe import Markup

from .errors import TemplateError
from .languages import LANGUAGE_METADATA, SUPPORTED_LANGUAGES, normalize_language
from .models import ResolvedProfile, SectionItemView, SectionView

logger = logging.getLogger(__name__)


class SectionVariant(str, enum.Enum):
    """Known section layouts."""

    HERO = "hero"
    TIMELINE = "timeline"
    CARDS = "cards"
    BADGES = "badges"
    ICONS = "icons"
    LIST = "list"


DEFAULT_VARIANT = SectionVariant.CARDS

VARIANT_TEMPLATES: Dict[SectionVariant, str] = {
    variant: f"sections/{variant.value}.html" for variant in SectionVariant
}

# Keys the timeline layout shows in its header instead of the metadata list
TIMELINE_OMIT_KEYS = ("actions", "highlights", "startDate", "endDate")

MAX_PROFILE_BADGES = 6


def resolve_variant(section: SectionView) -> SectionVariant:
    """Layout for a section; unknown or missing tags fall back to DEFAULT_VARIANT."""
    tag = section.variant
    try:
        return SectionVariant(tag)
    except ValueError:
        logger.debug(
            f"Section '{section.key}' has variant {tag!r}; "
            f"rendering with '{DEFAULT_VARIANT.value}'"
        )
        return DEFAULT_VARIANT


def section_template(section: SectionView) -> str:
    return VARIANT_TEMPLATES[resolve_variant(section)]


# ==============================================================================
# Template helpers
# ==============================================================================

def pretty_label(key: str) -> str:
    """
    Turn a metadata key into a label.

    >>> pretty_label("techStack")
    'Tech Stack'
    >>> pretty_label("start_date")
    'Start Date'
    """
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", str(key))
    text = re.sub(r"[-_]", " ", text)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def is_link_list(value: Any) -> bool:
    """True for a non-empty list of objects that all carry an href."""
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(v, dict) and "href" in v for v in value)
    )


def metadata_entries(
    metadata: Optional[Dict[str, Any]],
    order: Optional[Sequence[str]] = None,
    omit: Iterable[str] = (),
) -> List[Tuple[str, Any]]:
    """
    Metadata key/value pairs for display.

    None values and omitted keys are dropped. Keys listed in order come
    first, in that order; the rest keep their original order.
    """
    order = list(order or [])
    omitted = set(omit)
    entries = [
        (key, value)
        for key, value in (metadata or {}).items()
        if key not in omitted and value is not None
    ]

    def position(entry: Tuple[str, Any]) -> int:
        key = entry[0]
        return order.index(key) if key in order else len(order)

    return sorted(entries, key=position)


def profile_badges(metadata: Optional[Dict[str, Any]], limit: int = MAX_PROFILE_BADGES) -> List[str]:
    """Short "Label: value" strings for the profile header."""
    badges = []
    for key, value in (metadata or {}).items():
        if value is None:
            continue
        if isinstance(value, list):
            text = ", ".join(str(v) for v in value)
        else:
            text = str(value)
        badges.append(f"{pretty_label(key)}: {text}")
        if len(badges) >= limit:
            break
    return badges


def date_range(item: SectionItemView, keys: Sequence[str] = ("startDate", "endDate")) -> Optional[str]:
    """
    "start -> end" for an item, or None when neither date is present.

    A missing end date reads as "Present".
    """
    start = item.metadata.get(keys[0])
    end = item.metadata.get(keys[1])
    if not start and not end:
        return None
    start_text = str(start) if start else "-"
    end_text = f"-> {end}" if end else "-> Present"
    return f"{start_text} {end_text}"


def first_present(*values: Any) -> Optional[str]:
    """First value that is not None, as text."""
    for value in values:
        if value is not None:
            return str(value)
    return None


def translation_meta(view: Any, key: str) -> Any:
    """Look up a key in a view's translation metadata; None when absent."""
    translation = getattr(view, "translation", None)
    if translation is None:
        return None
    return translation.metadata.get(key)


def install_helpers(env: Environment) -> Environment:
    """Register the layout helpers on a Jinja2 environment (also Flask's)."""
    env.filters["pretty_label"] = pretty_label
    env.filters["as_list"] = as_list
    env.tests["link_list"] = is_link_list
    env.globals.update(
        metadata_entries=metadata_entries,
        profile_badges=profile_badges,
        date_range=date_range,
        first_present=first_present,
        translation_meta=translation_meta,
        section_template=section_template,
        supported_languages=SUPPORTED_LANGUAGES,
        language_metadata=LANGUAGE_METADATA,
        timeline_omit_keys=TIMELINE_OMIT_KEYS,
    )
    return env


def create_render_env() -> Environment:
    """Create a standalone Jinja2 environment for the package templates."""
    env = Environment(
        loader=PackageLoader("cv_site", "templates"),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return install_helpers(env)


# ==============================================================================
# Page metadata
# ==============================================================================

def build_page_metadata(payload: Optional[ResolvedProfile], language: Optional[str] = None) -> Dict[str, Any]:
    """
    Head metadata for a profile page: title, description, keywords,
    Open Graph block, canonical URL and per-language alternates.
    """
    if payload is None:
        return {"title": "Profile not found"}

    lang = normalize_language(language or payload.language)
    profile = payload.profile
    title = profile.seo.title or profile.full_name
    description = profile.seo.description or profile.summary

    return {
        "title": title,
        "description": description,
        "keywords": list(profile.seo.keywords),
        "open_graph": {
            "title": title,
            "description": description,
            "url": f"/{lang}",
            "locale": lang,
            "type": "profile",
        },
        "canonical": f"/{lang}",
        "alternates": {code: f"/{code}" for code in SUPPORTED_LANGUAGES},
    }


# ==============================================================================
# Rendering
# ==============================================================================

def _render(env: Environment, template_name: str, **context: Any) -> str:
    try:
        return env.get_template(template_name).render(**context)
    except JinjaTemplateError as e:
        raise TemplateError(f"Failed to render {template_name}: {e}") from e


def render_section(env: Environment, section: SectionView) -> Markup:
    """Render one section with the layout its variant selects."""
    if not section.is_active:
        return Markup("")
    return Markup(_render(env, section_template(section), section=section))


def render_profile_page(env: Environment, payload: ResolvedProfile) -> str:
    """Render the full page for a resolved profile."""
    return _render(
        env,
        "profile.html",
        data=payload,
        profile=payload.profile,
        sections=payload.sections,
        language=payload.language,
        meta=build_page_metadata(payload),
    )


def render_not_found_page(env: Environment, language: Optional[str] = None) -> str:
    """Page shown when there is no active profile."""
    return _render(
        env,
        "not_found.html",
        language=normalize_language(language),
        meta=build_page_metadata(None),
    )
