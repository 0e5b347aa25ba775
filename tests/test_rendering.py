"""
Tests for cv_site.rendering module.

Tests variant selection, template helpers, page metadata and the HTML
produced for a resolved profile.
"""

import pytest
from jinja2 import DictLoader, Environment

from conftest import make_item, make_profile, make_section
from cv_site.db import SQLiteProfileStore
from cv_site.errors import TemplateError
from cv_site.models import SectionItemView, SectionView, TranslationView
from cv_site.profile import get_profile
from cv_site.rendering import (
    DEFAULT_VARIANT,
    SectionVariant,
    as_list,
    build_page_metadata,
    create_render_env,
    date_range,
    first_present,
    install_helpers,
    is_link_list,
    metadata_entries,
    pretty_label,
    profile_badges,
    render_not_found_page,
    render_profile_page,
    render_section,
    resolve_variant,
    section_template,
    translation_meta,
)
from cv_site.store import InMemoryProfileStore


def section_view(key="s", variant=None, items=None, is_active=True, **kwargs):
    ui_config = {"variant": variant} if variant is not None else {}
    return SectionView(
        id=key,
        key=key,
        display_order=0,
        is_active=is_active,
        ui_config=kwargs.pop("ui_config", ui_config),
        metadata=kwargs.pop("metadata", {}),
        translation=kwargs.pop("translation", TranslationView(title=key.title())),
        items=list(items or []),
    )


def item_view(item_id="i", metadata=None, title="Item", **kwargs):
    return SectionItemView(
        id=item_id,
        item_type=kwargs.pop("item_type", "entry"),
        display_order=0,
        is_active=True,
        metadata=dict(metadata or {}),
        translation=kwargs.pop("translation", TranslationView(title=title)),
    )


@pytest.fixture
def env():
    return create_render_env()


class TestResolveVariant:
    """Tests for variant selection."""

    @pytest.mark.parametrize("variant", [v.value for v in SectionVariant])
    def test_known_variants(self, variant):
        """Test that each known tag selects its own layout."""
        assert resolve_variant(section_view(variant=variant)).value == variant

    @pytest.mark.parametrize("variant", ["carousel", "", "HERO", None])
    def test_unknown_variant_uses_cards(self, variant):
        """Test that unknown or missing tags fall back to cards."""
        assert resolve_variant(section_view(variant=variant)) is DEFAULT_VARIANT
        assert DEFAULT_VARIANT is SectionVariant.CARDS

    def test_non_string_variant(self):
        """Test that a non-string tag is treated as missing."""
        section = section_view(ui_config={"variant": 3})
        assert resolve_variant(section) is SectionVariant.CARDS

    def test_section_template(self):
        """Test the template name for a section."""
        assert section_template(section_view(variant="timeline")) == "sections/timeline.html"
        assert section_template(section_view(variant="carousel")) == "sections/cards.html"


class TestHelpers:
    """Tests for template helper functions."""

    def test_pretty_label(self):
        """Test camelCase and snake_case keys become labels."""
        assert pretty_label("techStack") == "Tech Stack"
        assert pretty_label("start_date") == "Start Date"
        assert pretty_label("url") == "Url"

    def test_as_list(self):
        """Test that only lists pass through."""
        assert as_list([1, 2]) == [1, 2]
        assert as_list("abc") == []
        assert as_list(None) == []
        assert as_list({"a": 1}) == []

    def test_is_link_list(self):
        """Test the link list detection."""
        assert is_link_list([{"href": "/a"}, {"href": "/b", "label": "B"}])
        assert not is_link_list([])
        assert not is_link_list([{"href": "/a"}, {"label": "x"}])
        assert not is_link_list(["a"])

    def test_metadata_entries_order_and_omit(self):
        """Test that ordered keys come first and omitted or null keys are dropped."""
        metadata = {"a": 1, "b": None, "c": 3, "techStack": ["Go"], "startDate": "2021"}
        entries = metadata_entries(metadata, order=["techStack"], omit=["startDate"])

        assert entries == [("techStack", ["Go"]), ("a", 1), ("c", 3)]

    def test_metadata_entries_empty(self):
        """Test that missing metadata yields no entries."""
        assert metadata_entries(None) == []

    def test_profile_badges(self):
        """Test header badges and their limit."""
        badges = profile_badges({"location": "Hanoi", "languages": ["vi", "en"], "none": None})
        assert badges == ["Location: Hanoi", "Languages: vi, en"]

        many = {f"k{i}": i for i in range(10)}
        assert len(profile_badges(many, limit=3)) == 3

    def test_date_range(self):
        """Test the period text for timeline entries."""
        assert date_range(item_view(metadata={"startDate": "2021-01"})) == "2021-01 -> Present"
        assert date_range(item_view(metadata={"startDate": "2019", "endDate": "2021"})) == "2019 -> 2021"
        assert date_range(item_view(metadata={"endDate": "2021"})) == "- -> 2021"
        assert date_range(item_view()) is None

    def test_first_present(self):
        """Test that the first non-null value is returned as text."""
        assert first_present(None, 0, "x") == "0"
        assert first_present(None, None) is None

    def test_translation_meta(self):
        """Test lookups in translation metadata."""
        view = item_view(translation=TranslationView(title="t", metadata={"location": "Remote"}))
        assert translation_meta(view, "location") == "Remote"
        assert translation_meta(view, "missing") is None
        assert translation_meta(item_view(translation=None), "location") is None


class TestBuildPageMetadata:
    """Tests for build_page_metadata function."""

    def test_not_found(self):
        """Test metadata when there is no profile."""
        assert build_page_metadata(None) == {"title": "Profile not found"}

    def test_profile_metadata(self, go_profile):
        """Test title, canonical URL and alternates."""
        payload = get_profile(InMemoryProfileStore([go_profile]), "en")
        meta = build_page_metadata(payload)

        assert meta["title"] == "Manh"
        assert meta["canonical"] == "/en"
        assert meta["alternates"] == {"vi": "/vi", "en": "/en", "ru": "/ru"}
        assert meta["open_graph"]["locale"] == "en"
        assert meta["open_graph"]["type"] == "profile"

    def test_seo_fields_used(self, seeded_db):
        """Test that stored SEO fields reach the page head."""
        payload = get_profile(SQLiteProfileStore(seeded_db), "vi")
        meta = build_page_metadata(payload)

        assert meta["title"] == "Nguyễn Thành Mạnh | Kỹ sư Full-Stack"
        assert meta["description"] == "Hồ sơ kỹ sư Full-Stack."
        assert meta["keywords"] == ["Full-Stack", "PostgreSQL"]


class TestRenderSection:
    """Tests for render_section function."""

    def test_inactive_section_renders_nothing(self, env):
        """Test that an inactive section produces no markup."""
        assert str(render_section(env, section_view(variant="list", is_active=False))) == ""

    def test_unknown_variant_renders_as_cards(self, env):
        """Test that an unknown variant uses the cards layout."""
        html = str(render_section(env, section_view("contacts", "carousel", [item_view(title="GitHub")])))

        assert 'class="card"' in html
        assert "GitHub" in html

    def test_timeline_shows_period_and_stack(self, env):
        """Test the timeline layout."""
        section = section_view(
            "experience",
            ui_config={"variant": "timeline", "showMetadataKeys": ["techStack"]},
            items=[item_view(metadata={"techStack": ["Go"], "startDate": "2021-01", "location": "Remote"})],
        )
        html = str(render_section(env, section))

        assert 'class="timeline"' in html
        assert "2021-01 -&gt; Present" in html
        assert "Tech Stack" in html
        assert "Remote" in html
        assert "Start Date" not in html

    def test_badges_layout(self, env):
        """Test the badges layout shows skill levels."""
        section = section_view("skills", "badges", [item_view(title="Python", metadata={"level": "expert"})])
        html = str(render_section(env, section))

        assert 'class="badge"' in html
        assert "expert" in html

    def test_icons_layout(self, env):
        """Test the icons layout links item URLs."""
        section = section_view(
            "contacts", "icons",
            [item_view(title="GitHub", metadata={"url": "https://github.com/x", "username": "x"})],
        )
        html = str(render_section(env, section))

        assert 'href="https://github.com/x"' in html
        assert 'class="icon">G<' in html

    def test_list_layout_link_metadata(self, env):
        """Test that lists of links render as anchors."""
        section = section_view(
            "projects", "list",
            [item_view(metadata={"links": [{"href": "https://example.com", "label": "Demo"}]})],
        )
        html = str(render_section(env, section))

        assert 'href="https://example.com"' in html
        assert "Demo" in html

    def test_mapping_metadata_rendered_as_json(self, env):
        """Test that record-valued metadata is shown as JSON, not as a list."""
        section = section_view("projects", "list", [item_view(metadata={"extra": {"a": 1}})])
        html = str(render_section(env, section))

        assert "meta-object" in html
        assert "meta-list" not in html

    def test_hero_layout(self, env):
        """Test the hero layout reads location from translation metadata."""
        section = section_view(
            "hero", "hero",
            [item_view(
                metadata={"tags": ["Python"], "actions": [{"label": "Contact", "href": "mailto:a@b.c"}]},
                translation=TranslationView(title="Hello", metadata={"location": "Remote"}),
            )],
            metadata={"stats": [{"label": "Years", "value": 8}]},
        )
        html = str(render_section(env, section))

        assert "Hello" in html
        assert "Remote" in html
        assert 'href="mailto:a@b.c"' in html
        assert "Years" in html

    def test_hero_without_items(self, env):
        """Test that an empty hero renders nothing."""
        assert str(render_section(env, section_view("hero", "hero"))).strip() == ""

    def test_untranslated_section_uses_key(self, env):
        """Test that a section without translation shows its key."""
        html = str(render_section(env, section_view("awards", "list", translation=None)))
        assert "<h2>awards</h2>" in html

    def test_content_is_escaped(self, env):
        """Test that stored text is HTML-escaped."""
        html = str(render_section(env, section_view("s", "list", [item_view(title="<script>")])))

        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestRenderPages:
    """Tests for full page rendering."""

    def test_profile_page(self, env, seeded_db):
        """Test the profile page in English."""
        payload = get_profile(SQLiteProfileStore(seeded_db), "en")
        html = render_profile_page(env, payload)

        assert '<html lang="en"' in html
        assert "<h1>Nguyen Thanh Manh</h1>" in html
        assert "Senior Full-Stack Engineer" in html
        assert "Software Engineer" in html
        assert "Hidden job" not in html
        assert "Archive" not in html
        assert 'hreflang="ru"' in html
        assert 'class="card"' in html

    def test_sections_in_display_order(self, env, seeded_db):
        """Test that sections appear in display order."""
        payload = get_profile(SQLiteProfileStore(seeded_db), "en")
        html = render_profile_page(env, payload)

        positions = [html.index(f'id="{key}"') for key in ("hero", "experience", "skills", "contacts")]
        assert positions == sorted(positions)

    def test_not_found_page(self, env):
        """Test the page for an empty database."""
        html = render_not_found_page(env, "ru")

        assert '<html lang="ru"' in html
        assert "No profiles found" in html
        assert "<title>Profile not found</title>" in html

    def test_profile_without_sections(self, env):
        """Test a profile with no sections still renders its header."""
        payload = get_profile(InMemoryProfileStore([make_profile(slug="solo")]), "vi")
        html = render_profile_page(env, payload)
        assert "<h1>solo</h1>" in html

    def test_in_memory_profile_page(self, env):
        """Test rendering straight from in-memory records."""
        section = make_section("work", variant="list", items=[make_item("w1", metadata={"role": "lead"})])
        payload = get_profile(InMemoryProfileStore([make_profile(sections=[section])]), "en")
        html = render_profile_page(env, payload)

        assert 'id="work"' in html
        assert "lead" in html

    def test_template_errors_wrapped(self):
        """Test that Jinja failures surface as TemplateError."""
        env = install_helpers(Environment(loader=DictLoader({"not_found.html": "{{ missing() }}"})))

        with pytest.raises(TemplateError, match="not_found.html"):
            render_not_found_page(env)
