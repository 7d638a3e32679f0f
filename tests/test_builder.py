"""End-to-end build tests against the bundled theme."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
from pathlib import Path

import pytest

from gopedia.builder import BuildOptions, build_site, check_url_collisions
from gopedia.config import SiteConfig
from gopedia.content import ContentDocument
from gopedia.errors import ConfigError, ContentError
from tests.helpers import NOW, all_text, read_output, site_mapping, write_doc


def positions(text: str, *needles: str) -> list[int]:
    return [text.index(needle) for needle in needles]


class TestPublishing:
    def test_draft_excluded(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        artifact = build_site(site_config, build_options)

        assert "study/constants/index.html" not in artifact.files
        assert "Константы" not in all_text(artifact.root)
        assert artifact.pages == 4

    def test_drafts_included_on_request(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        artifact = build_site(site_config.with_overrides(build_drafts=True), build_options)
        assert "study/constants/index.html" in artifact.files

    def test_section_order_follows_weight(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        build_site(site_config, build_options)
        listing = read_output(build_options.output_dir, "study/index.html")

        intro, variables, functions = positions(listing, "Введение", "Переменные", "Функции")
        assert intro < variables < functions

    def test_nav_links_skip_drafts(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        build_site(site_config, build_options)
        page = read_output(build_options.output_dir, "study/variables/index.html")

        assert 'href="https://gopedia.ru/study/intro/"' in page
        assert 'href="https://gopedia.ru/study/functions/"' in page
        assert "study/constants/" not in page

    def test_future_pages(self, content_dir: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        tomorrow = (NOW + dt.timedelta(days=1)).isoformat()
        write_doc(content_dir, "study/later.md", title="Позже", date=tomorrow)
        write_doc(content_dir, "study/now.md", title="Сейчас", date="2025-05-01")

        artifact = build_site(site_config, build_options)
        assert "study/later/index.html" not in artifact.files
        assert "study/now/index.html" in artifact.files

        artifact = build_site(site_config.with_overrides(build_future=True), build_options)
        assert "study/later/index.html" in artifact.files

    def test_expired_pages(self, content_dir: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        write_doc(content_dir, "faq/old.md", title="Устарело", date="2024-01-01", expiryDate="2025-01-01")

        artifact = build_site(site_config, build_options)
        assert "faq/old/index.html" not in artifact.files


class TestDeterminism:
    def test_identical_builds(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        first = build_site(site_config, build_options)
        second = build_site(site_config, dataclasses.replace(build_options, workers=4))

        assert first.files == second.files
        assert first.digest == second.digest

    def test_base_url_override(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        staging = site_config.with_overrides(base_url="https://staging.example.com/")
        artifact = build_site(staging, build_options)
        text = all_text(artifact.root)

        assert "https://gopedia.ru" not in text
        assert 'href="https://staging.example.com/study/intro/"' in read_output(artifact.root, "study/variables/index.html")

    def test_weight_only_changes_ordered_views(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        before = build_site(site_config, build_options)
        write_doc(
            sample_site,
            "study/intro.md",
            "## Что такое Go\n\nGo — компилируемый язык.",
            title="Введение",
            date="2025-04-01",
            weight=70,
            tags=["основы"],
        )
        after = build_site(site_config, build_options)

        assert before.files["study/index.html"] != after.files["study/index.html"]
        assert before.files["tags/основы/index.html"] == after.files["tags/основы/index.html"]
        assert before.files["index.xml"] == after.files["index.xml"]
        listing = read_output(build_options.output_dir, "study/index.html")
        variables, functions, intro = positions(listing, "Переменные", "Функции", "Введение")
        assert variables < functions < intro


class TestFailures:
    def test_malformed_content_keeps_previous_output(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        build_site(site_config, build_options)
        previous = read_output(build_options.output_dir, "study/index.html")
        (sample_site / "study" / "broken.md").write_text("---\ntitle: [oops\n---\n", encoding="utf-8")

        with pytest.raises(ContentError, match="study/broken.md"):
            build_site(site_config, build_options)

        assert read_output(build_options.output_dir, "study/index.html") == previous
        assert not list(build_options.output_dir.parent.glob(".*.staging"))

    def test_broken_reference(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        write_doc(sample_site, "study/links.md", '[x]({{< ref "nowhere.md" >}})', title="Ссылки", date="2025-04-01")
        with pytest.raises(ContentError, match="nowhere.md"):
            build_site(site_config, build_options)
        assert not build_options.output_dir.exists()

    def test_reference_to_draft_is_broken(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        write_doc(sample_site, "study/links.md", '[x]({{< ref "constants.md" >}})', title="Ссылки", date="2025-04-01")
        with pytest.raises(ContentError, match="constants.md"):
            build_site(site_config, build_options)

    def test_missing_theme(self, sample_site: Path, build_options: BuildOptions) -> None:
        config = SiteConfig.from_mapping(site_mapping(theme="missing"))
        with pytest.raises(ConfigError, match="missing"):
            build_site(config, build_options)

    def test_refuses_to_clean_project_root(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions, tmp_path: Path
    ) -> None:
        options = dataclasses.replace(build_options, output_dir=tmp_path, project_root=tmp_path)
        with pytest.raises(ConfigError, match="project root"):
            build_site(site_config, options)
        assert (sample_site / "study" / "intro.md").exists()

    def test_url_collision(self) -> None:
        date = dt.datetime(2025, 4, 1, tzinfo=dt.timezone.utc)
        docs = [
            ContentDocument(path="study/a.md", title="A", date=date, slug="b"),
            ContentDocument(path="study/b.md", title="B", date=date),
        ]
        with pytest.raises(ContentError, match="study/b/"):
            check_url_collisions(docs)


class TestOutputs:
    def test_pagination(self, sample_site: Path, build_options: BuildOptions) -> None:
        config = SiteConfig.from_mapping(site_mapping(pagination={"pagerSize": 1}))
        artifact = build_site(config, build_options)

        assert "study/page/2/index.html" in artifact.files
        assert "study/page/3/index.html" in artifact.files
        assert "study/page/4/index.html" not in artifact.files
        first = read_output(artifact.root, "study/index.html")
        assert 'href="https://gopedia.ru/study/page/2/"' in first

    def test_site_files(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        artifact = build_site(site_config, build_options)
        root = artifact.root

        for rel in ("index.html", "404.html", "search/index.html", "tags/index.html", "study/index.xml"):
            assert rel in artifact.files
        assert "css/style.css" in artifact.files
        assert "Sitemap: https://gopedia.ru/sitemap.xml" in read_output(root, "robots.txt")

        sitemap = read_output(root, "sitemap.xml")
        assert "<loc>https://gopedia.ru/study/intro/</loc>" in sitemap
        assert "<lastmod>2025-04-01T00:00:00Z</lastmod>" in sitemap

        feed = read_output(root, "index.xml")
        assert feed.index("Функции") < feed.index("Переменные") < feed.index("Введение")

        entries = json.loads(read_output(root, "index.json"))
        assert sorted(entry["title"] for entry in entries) == ["Введение", "Переменные", "Функции"]
        assert entries[0]["permalink"] == "https://gopedia.ru/study/functions/"

    def test_single_page(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        build_site(site_config, build_options)
        page = read_output(build_options.output_dir, "study/variables/index.html")

        assert '<link rel="canonical" href="https://gopedia.ru/study/variables/">' in page
        assert '<meta name="keywords" content="var">' in page
        assert 'href="https://gopedia.ru/tags/основы/"' in page
        assert 'class="highlight"' in page
        assert "3 апреля, 2025" in page

    def test_tags_differing_in_case_share_a_page(
        self, content_dir: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        write_doc(content_dir, "study/a.md", title="Первая", date="2025-04-01", tags=["Go"])
        write_doc(content_dir, "study/b.md", title="Вторая", date="2025-04-02", tags=["go", "GO"])

        artifact = build_site(site_config, build_options)

        assert "tags/go/index.html" in artifact.files
        assert "tags/go/index.xml" in artifact.files
        term_page = read_output(artifact.root, "tags/go/index.html")
        assert "Первая" in term_page
        assert "Вторая" in term_page
        index = read_output(artifact.root, "tags/index.html")
        assert index.count('href="https://gopedia.ru/tags/go/"') == 1
        assert "<sup>2</sup>" in index
        second = read_output(artifact.root, "study/b/index.html")
        assert second.count('href="https://gopedia.ru/tags/go/"') == 1
        assert '>Go</a></li>' in second

    def test_robots_disabled(self, sample_site: Path, build_options: BuildOptions) -> None:
        config = SiteConfig.from_mapping(site_mapping(enableRobotsTXT=False))
        artifact = build_site(config, build_options)
        assert "robots.txt" not in artifact.files

    def test_minify(self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions) -> None:
        plain = build_site(site_config, build_options)
        plain_size = len(read_output(plain.root, "study/index.html"))
        minified = build_site(site_config, dataclasses.replace(build_options, minify=True))

        assert len(read_output(minified.root, "study/index.html")) < plain_size

    def test_clean_removes_stale_files(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
    ) -> None:
        build_options.output_dir.mkdir()
        (build_options.output_dir / "stale.html").write_text("old", encoding="utf-8")

        artifact = build_site(site_config, dataclasses.replace(build_options, clean=False))
        assert "stale.html" in artifact.files

        artifact = build_site(site_config, build_options)
        assert "stale.html" not in artifact.files

    def test_site_static_overrides_theme(
        self, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions, tmp_path: Path
    ) -> None:
        static = tmp_path / "static"
        (static / "css").mkdir(parents=True)
        (static / "css" / "style.css").write_text("body{}", encoding="utf-8")
        (static / "img").mkdir()
        (static / "img" / "book_icon.png").write_bytes(b"\x89PNG")

        artifact = build_site(site_config, dataclasses.replace(build_options, static_dir=static))

        assert read_output(artifact.root, "css/style.css") == "body{}"
        assert "img/book_icon.png" in artifact.files

    def test_profile_home(self, sample_site: Path, build_options: BuildOptions) -> None:
        params = dict(site_mapping()["params"])
        params["profileMode"] = {"enabled": True, "title": "go pedia", "buttons": [{"name": "Учебник", "url": "study"}]}
        config = SiteConfig.from_mapping(site_mapping(params=params))
        build_site(config, build_options)

        home = read_output(build_options.output_dir, "index.html")
        assert "go pedia" in home
        assert 'href="https://gopedia.ru/study"' in home
