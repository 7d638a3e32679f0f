from __future__ import annotations

import datetime as dt
import hashlib
import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .config import SiteConfig
from .content import ContentDocument, filter_published, load_content
from .errors import ConfigError, ContentError
from .hashing import hash_file, list_files
from .markup import RefResolver, render_markdown, summarize
from .pages import (
    Layout,
    RenderedPage,
    SiteIndex,
    build_404,
    build_feeds,
    build_home,
    build_robots,
    build_search,
    build_search_index,
    build_sections,
    build_single,
    build_sitemap,
    build_taxonomies,
)
from .render import copy_static, minify_tree, read_template, write_text
from .utils import as_utc, clean_output_dir

LOGGER = logging.getLogger(__name__)
MAX_WORKERS = 32


@dataclass(frozen=True)
class Theme:
    name: str
    root: Path
    base_template: str

    @property
    def static_dir(self) -> Path:
        return self.root / "static"


def load_theme(themes_dir: Path, name: str) -> Theme:
    root = themes_dir / name
    if not root.is_dir():
        raise ConfigError(f"Theme '{name}' not found in {themes_dir}")
    return Theme(name=name, root=root, base_template=read_template(root / "templates" / "base.html"))


@dataclass
class BuildOptions:
    content_dir: Path = Path("content")
    output_dir: Path = Path("public")
    themes_dir: Path = Path("themes")
    static_dir: Optional[Path] = Path("static")
    project_root: Path = field(default_factory=Path.cwd)
    minify: bool = False
    clean: bool = True
    workers: int = 0
    toc_depth: str = "2-4"
    now: Optional[dt.datetime] = None

    def worker_count(self, jobs: int) -> int:
        workers = self.workers if self.workers > 0 else (os.cpu_count() or 1)
        return max(1, min(workers, MAX_WORKERS, jobs or 1))


@dataclass(frozen=True)
class BuildArtifact:
    """The generated tree plus a SHA-256 manifest keyed by relative POSIX path."""

    root: Path
    files: Mapping[str, str]
    pages: int = 0

    @classmethod
    def scan(cls, root: Path, pages: int = 0) -> "BuildArtifact":
        files = {path.relative_to(root).as_posix(): hash_file(path) for path in list_files(root)}
        return cls(root=root, files=files, pages=pages)

    @property
    def digest(self) -> str:
        digest = hashlib.sha256()
        for rel in sorted(self.files):
            digest.update(rel.encode("utf-8"))
            digest.update(b"\0")
            digest.update(self.files[rel].encode("ascii"))
            digest.update(b"\0")
        return digest.hexdigest()


def check_url_collisions(docs: list[ContentDocument]) -> None:
    seen: dict[str, str] = {}
    for doc in docs:
        other = seen.get(doc.url_path)
        if other is not None:
            raise ContentError(f"URL /{doc.url_path} is also produced by {other}", doc.path)
        seen[doc.url_path] = doc.path


def render_site(
    config: SiteConfig, theme: Theme, docs: list[ContentDocument], options: BuildOptions, now: dt.datetime
) -> tuple[dict[str, str], int]:
    """Render every output document in memory, keyed by relative output path."""
    published = filter_published(docs, config, now)
    skipped = len(docs) - len(published)
    if skipped:
        LOGGER.info("Skipping %d draft, future or expired document(s)", skipped)
    check_url_collisions(published)
    resolver = RefResolver(published, config)

    def render_page(doc: ContentDocument) -> RenderedPage:
        html_content, toc_html = render_markdown(doc, resolver, options.toc_depth)
        summary = doc.summary or doc.description or summarize(html_content)
        return RenderedPage(doc=doc, content=html_content, toc=toc_html, summary=summary)

    workers = options.worker_count(len(published))
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            pages = list(executor.map(render_page, published))
    else:
        pages = [render_page(doc) for doc in published]

    index = SiteIndex.from_pages(pages, config)
    layout = Layout(config, theme.base_template, now, index)
    outputs: dict[str, str] = {}

    def write(rel_path: str, text: str) -> None:
        if rel_path in outputs:
            raise ContentError(f"output path collision: {rel_path}")
        outputs[rel_path] = text

    list_totals = {"": build_home(layout, write)}
    for page in index.regular_pages:
        build_single(layout, write, page)
    list_totals.update(build_sections(layout, write))
    list_totals.update(build_taxonomies(layout, write))
    build_search(layout, write)
    build_search_index(layout, write)
    build_404(layout, write)
    build_feeds(layout, write)
    build_sitemap(layout, write, list_totals)
    build_robots(layout, write)
    return outputs, len(pages)


def build_site(config: SiteConfig, options: BuildOptions) -> BuildArtifact:
    now = as_utc(options.now or dt.datetime.now(dt.timezone.utc))
    theme = load_theme(options.themes_dir, config.theme)
    docs = load_content(options.content_dir)
    LOGGER.info("Loaded %d document(s) from %s", len(docs), options.content_dir)
    outputs, page_count = render_site(config, theme, docs, options, now)

    output_dir = options.output_dir
    staging_dir = output_dir.parent / f".{output_dir.name}.staging"
    if staging_dir.exists():
        shutil.rmtree(staging_dir)
    staging_dir.mkdir(parents=True)
    try:
        if theme.static_dir.is_dir():
            copy_static(theme.static_dir, staging_dir)
        if options.static_dir is not None and options.static_dir.is_dir():
            copy_static(options.static_dir, staging_dir)
        for rel_path in sorted(outputs):
            write_text(staging_dir / rel_path, outputs[rel_path])
        if options.minify:
            count = minify_tree(staging_dir, disable_xml=config.minify_disable_xml)
            LOGGER.debug("Minified %d file(s)", count)
        if options.clean:
            clean_output_dir(output_dir, options.project_root)
        if output_dir.exists():
            shutil.copytree(staging_dir, output_dir, dirs_exist_ok=True)
        else:
            staging_dir.rename(output_dir)
    finally:
        if staging_dir.exists():
            shutil.rmtree(staging_dir)

    artifact = BuildArtifact.scan(output_dir, pages=page_count)
    LOGGER.info("Wrote %d file(s) for %d page(s) to %s", len(artifact.files), page_count, output_dir)
    return artifact
