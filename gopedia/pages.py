from __future__ import annotations

import datetime as dt
import html
import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .config import SiteConfig
from .content import ContentDocument, string_list, count_words, reading_time, slugify, sort_pages
from .render import render_template, strip_tags
from .utils import format_go_date, iso_date, parse_bool, parse_int, rfc822_date

FEED_LIMIT = 20
YANDEX_METRIKA = (
    '<script type="text/javascript">'
    "(function(m,e,t,r,i,k,a){{m[i]=m[i]||function(){{(m[i].a=m[i].a||[]).push(arguments)}};"
    "m[i].l=1*new Date();k=e.createElement(t),a=e.getElementsByTagName(t)[0],k.async=1,k.src=r,"
    'a.parentNode.insertBefore(k,a)}})(window,document,"script","https://mc.yandex.ru/metrika/tag.js","ym");'
    'ym({id},"init",{{clickmap:true,trackLinks:true,accurateTrackBounce:true}});'
    "</script>"
    '<noscript><div><img src="https://mc.yandex.ru/watch/{id}" style="position:absolute;left:-9999px;" alt=""/>'
    "</div></noscript>"
)
LABELS = {
    "en": {
        "home": "Home",
        "prev": "Prev",
        "next": "Next",
        "prev_page": "Previous",
        "next_page": "Next",
        "toc": "Table of Contents",
        "min": "min",
        "words": "words",
        "search": "Search",
        "search_placeholder": "Search ↵",
        "not_found": "Page not found",
        "rss": "RSS",
    },
    "ru": {
        "home": "Главная",
        "prev": "Назад",
        "next": "Далее",
        "prev_page": "Предыдущая",
        "next_page": "Следующая",
        "toc": "Содержание",
        "min": "мин",
        "words": "слов",
        "search": "Поиск",
        "search_placeholder": "Поиск ↵",
        "not_found": "Страница не найдена",
        "rss": "RSS",
    },
}


@dataclass
class RenderedPage:
    doc: ContentDocument
    content: str
    toc: str
    summary: str
    words: int = field(init=False)

    def __post_init__(self) -> None:
        self.words = count_words(strip_tags(self.content))

    @property
    def plain_text(self) -> str:
        return " ".join(html.unescape(strip_tags(self.content)).split())


@dataclass
class TaxonomyTerm:
    """Pages sharing a term slug; ``name`` is the first spelling seen in path order."""

    name: str
    slug: str
    pages: list[RenderedPage] = field(default_factory=list)


@dataclass
class SiteIndex:
    """Published pages grouped the way list, taxonomy and feed pages need them."""

    home: Optional[RenderedPage]
    sections: dict[str, list[RenderedPage]]
    section_indexes: dict[str, RenderedPage]
    taxonomies: dict[str, dict[str, TaxonomyTerm]]

    @classmethod
    def from_pages(cls, pages: list[RenderedPage], config: SiteConfig) -> "SiteIndex":
        home = None
        sections: dict[str, list[RenderedPage]] = {}
        section_indexes: dict[str, RenderedPage] = {}
        for page in pages:
            doc = page.doc
            if doc.is_home:
                home = page
            elif doc.is_section_index and doc.directory == doc.section:
                section_indexes[doc.section] = page
                sections.setdefault(doc.section, [])
            else:
                sections.setdefault(doc.section, []).append(page)
        order = {doc.path: idx for idx, doc in enumerate(sort_pages(p.doc for p in pages))}
        for items in sections.values():
            items.sort(key=lambda p: order[p.doc.path])

        taxonomies: dict[str, dict[str, TaxonomyTerm]] = {}
        regular = sorted((page for items in sections.values() for page in items), key=lambda p: p.doc.path)
        for plural in sorted(set(config.taxonomies.values())):
            terms: dict[str, TaxonomyTerm] = {}
            for page in regular:
                for term in document_terms(page.doc, plural):
                    slug = slugify(term)
                    entry = terms.setdefault(slug, TaxonomyTerm(name=term, slug=slug))
                    if not entry.pages or entry.pages[-1] is not page:
                        entry.pages.append(page)
            for entry in terms.values():
                entry.pages.sort(key=by_date)
            taxonomies[plural] = terms
        return cls(home=home, sections=sections, section_indexes=section_indexes, taxonomies=taxonomies)

    @property
    def listed_sections(self) -> list[str]:
        """Sections with their own list page; root-level pages have none."""
        return sorted(section for section in self.sections if section)

    @property
    def regular_pages(self) -> list[RenderedPage]:
        pages = [page for items in self.sections.values() for page in items]
        pages.sort(key=by_date)
        return pages


def by_date(page: RenderedPage) -> tuple:
    date = page.doc.date or dt.datetime.min.replace(tzinfo=dt.timezone.utc)
    return (-date.timestamp(), page.doc.path)


def document_terms(doc: ContentDocument, plural: str) -> tuple[str, ...]:
    if plural == "tags":
        return doc.tags
    return string_list(doc.extra.get(plural), plural, doc.path)


class Layout:
    """Wraps page bodies in the theme's base template."""

    def __init__(self, config: SiteConfig, base_template: str, now: dt.datetime, index: SiteIndex) -> None:
        self.config = config
        self.base_template = base_template
        self.now = now
        self.index = index
        self.labels = LABELS.get(config.language, LABELS["en"])

    def url(self, path: str = "") -> str:
        return self.config.absolute_url(path)

    def page_flag(self, doc: Optional[ContentDocument], key: str, default: bool = False) -> bool:
        if doc is not None and key.lower() in doc.extra:
            return parse_bool(doc.extra[key.lower()])
        return self.config.flag(key, default)

    def section_title(self, section: str) -> str:
        page = self.index.section_indexes.get(section)
        if page is not None:
            return page.doc.title
        return section.replace("-", " ").capitalize()

    def build_menu(self) -> str:
        items = []
        for entry in self.config.menu:
            items.append(
                f'<li><a href="{html.escape(self.url(entry.url))}" title="{html.escape(entry.name)}">'
                f"<span>{html.escape(entry.name)}</span></a></li>"
            )
        return f'<ul id="menu">{"".join(items)}</ul>'

    def build_head(
        self, title: str, description: str, keywords: tuple[str, ...], canonical: str, kind: str
    ) -> str:
        config = self.config
        parts = [f'<link rel="canonical" href="{html.escape(canonical)}">']
        if description:
            parts.append(f'<meta name="description" content="{html.escape(description)}">')
        if keywords:
            parts.append(f'<meta name="keywords" content="{html.escape(", ".join(keywords))}">')
        if config.favicon:
            parts.append(f'<link rel="icon" href="{html.escape(self.url(config.favicon))}">')
        if config.yandex_verification:
            parts.append(f'<meta name="yandex-verification" content="{html.escape(config.yandex_verification)}">')
        parts.append(
            f'<link rel="alternate" type="application/rss+xml" href="{self.url("index.xml")}" '
            f'title="{html.escape(config.title)}">'
        )
        if config.is_production:
            parts.extend(
                [
                    f'<meta property="og:title" content="{html.escape(title)}">',
                    f'<meta property="og:description" content="{html.escape(description)}">',
                    f'<meta property="og:type" content="{kind}">',
                    f'<meta property="og:url" content="{html.escape(canonical)}">',
                    f'<meta name="twitter:card" content="summary">',
                    f'<meta name="twitter:title" content="{html.escape(title)}">',
                ]
            )
        return "".join(parts)

    def build_analytics(self) -> str:
        metrika_id = self.config.yandex_metrika_id
        if not metrika_id or not self.config.is_production:
            return ""
        return YANDEX_METRIKA.format(id=html.escape(metrika_id))

    def render(
        self,
        title: str,
        content: str,
        canonical_path: str,
        description: str = "",
        keywords: tuple[str, ...] = (),
        kind: str = "website",
        extra_head: str = "",
        body_class: str = "list",
    ) -> str:
        config = self.config
        canonical = self.url(canonical_path)
        extra_scripts = ""
        if config.flag("ShowCodeCopyButtons"):
            extra_scripts = f'<script src="{self.url("js/code-copy.js")}" defer></script>'
        return render_template(
            self.base_template,
            lang=html.escape(config.language),
            title=html.escape(title),
            head=self.build_head(title, description or config.description, keywords or config.keywords, canonical, kind),
            base_url=html.escape(config.base_url),
            site_name=html.escape(config.title),
            label=html.escape(self.site_label()),
            theme_default=html.escape(str(config.param("defaultTheme") or "auto")),
            menu=self.build_menu(),
            body_class=body_class,
            content=content,
            year=str(self.now.year),
            extra_head=extra_head + extra_scripts,
            analytics=self.build_analytics(),
        )

    def site_label(self) -> str:
        label = self.config.param("label")
        if isinstance(label, dict):
            text = str(label.get("text") or "").strip()
            if text:
                return text
        return self.config.title

    def format_date(self, value: Optional[dt.datetime]) -> str:
        if value is None:
            return ""
        return format_go_date(value, self.config.date_format, self.config.language)

    def build_meta(self, page: RenderedPage) -> str:
        doc = page.doc
        if self.page_flag(doc, "hidemeta"):
            return ""
        items = []
        if doc.date is not None:
            items.append(
                f'<span title="{iso_date(doc.date)}">{html.escape(self.format_date(doc.date))}</span>'
            )
        if self.page_flag(doc, "ShowReadingTime"):
            items.append(f'<span>{reading_time(page.words)} {self.labels["min"]}</span>')
        if self.page_flag(doc, "ShowWordCount"):
            items.append(f'<span>{page.words} {self.labels["words"]}</span>')
        if not items:
            return ""
        return f'<div class="post-meta">{"&nbsp;·&nbsp;".join(items)}</div>'

    def build_breadcrumbs(self, doc: ContentDocument) -> str:
        if not self.page_flag(doc, "ShowBreadCrumbs"):
            return ""
        crumbs = [f'<a href="{self.url()}">{html.escape(self.labels["home"])}</a>']
        if doc.section and not (doc.is_section_index and doc.directory == doc.section):
            crumbs.append(
                f'<a href="{self.url(doc.section + "/")}">{html.escape(self.section_title(doc.section))}</a>'
            )
        return f'<div class="breadcrumbs">{"&nbsp;»&nbsp;".join(crumbs)}</div>'

    def build_toc(self, page: RenderedPage) -> str:
        doc = page.doc
        if not (self.page_flag(doc, "ShowToc") and page.toc and "<li" in page.toc):
            return ""
        open_attr = " open" if self.page_flag(doc, "TocOpen") else ""
        return (
            f'<div class="toc"><details{open_attr}><summary><span class="title">'
            f'{html.escape(self.labels["toc"])}</span></summary>'
            f'<div class="inner">{page.toc}</div></details></div>'
        )

    def build_tags(self, doc: ContentDocument) -> str:
        plural = "tags"
        if not doc.tags or plural not in self.index.taxonomies:
            return ""
        terms = self.index.taxonomies[plural]
        links = "".join(
            f'<li><a href="{self.url(f"{plural}/{slug}/")}">{html.escape(terms[slug].name)}</a></li>'
            for slug in dict.fromkeys(slugify(tag) for tag in doc.tags)
        )
        return f'<ul class="post-tags">{links}</ul>'

    def build_nav_links(self, doc: ContentDocument) -> str:
        if not self.page_flag(doc, "ShowPostNavLinks"):
            return ""
        siblings = self.index.sections.get(doc.section, [])
        paths = [page.doc.path for page in siblings]
        if doc.path not in paths:
            return ""
        idx = paths.index(doc.path)
        links = []
        if idx > 0:
            prev_doc = siblings[idx - 1].doc
            links.append(
                f'<a class="prev" href="{self.url(prev_doc.url_path)}">'
                f'<span class="title">« {html.escape(self.labels["prev"])}</span><br>'
                f"<span>{html.escape(prev_doc.title)}</span></a>"
            )
        if idx + 1 < len(siblings):
            next_doc = siblings[idx + 1].doc
            links.append(
                f'<a class="next" href="{self.url(next_doc.url_path)}">'
                f'<span class="title">{html.escape(self.labels["next"])} »</span><br>'
                f"<span>{html.escape(next_doc.title)}</span></a>"
            )
        if not links:
            return ""
        return f'<nav class="paginav">{"".join(links)}</nav>'

    def build_edit_link(self, doc: ContentDocument) -> str:
        edit = self.config.edit_post
        if edit is None:
            return ""
        url = edit.url.rstrip("/")
        if edit.append_file_path:
            url = f"{url}/{doc.path}"
        return f'<div class="edit-post"><a href="{html.escape(url)}" rel="noopener noreferrer" target="_blank">{html.escape(edit.text)}</a></div>'

    def build_entry_cards(self, pages: list[RenderedPage]) -> str:
        cards = []
        hide_summary = self.config.flag("hideSummary")
        for page in pages:
            doc = page.doc
            url = self.url(doc.url_path)
            summary = "" if hide_summary else f'<div class="entry-content"><p>{html.escape(page.summary)}</p></div>'
            meta = ""
            if doc.date is not None and not self.page_flag(doc, "hidemeta"):
                meta = f'<footer class="entry-footer"><span>{html.escape(self.format_date(doc.date))}</span></footer>'
            cards.append(
                '<article class="post-entry">'
                f'<header class="entry-header"><h2><a href="{url}">{html.escape(doc.title)}</a></h2></header>'
                f"{summary}{meta}"
                f'<a class="entry-link" aria-label="{html.escape(doc.title)}" href="{url}"></a>'
                "</article>"
            )
        return "\n".join(cards)

    def build_pagination(self, list_path: str, page: int, total_pages: int) -> str:
        if total_pages <= 1:
            return ""
        items = []
        if page > 1:
            items.append(
                f'<a class="prev" href="{self.url(pager_path(list_path, page - 1))}">'
                f'« {html.escape(self.labels["prev_page"])}</a>'
            )
        if page < total_pages:
            items.append(
                f'<a class="next" href="{self.url(pager_path(list_path, page + 1))}">'
                f'{html.escape(self.labels["next_page"])} »</a>'
            )
        return f'<footer class="page-footer"><nav class="pagination">{"".join(items)}</nav></footer>'


def pager_path(list_path: str, page: int) -> str:
    if page == 1:
        return list_path
    return f"{list_path}page/{page}/"


def paginate(items: list, per_page: int) -> list[list]:
    per_page = max(1, per_page)
    total = max(1, math.ceil(len(items) / per_page))
    return [items[(num - 1) * per_page : num * per_page] for num in range(1, total + 1)]


Writer = Callable[[str, str], None]


def build_list(
    layout: Layout,
    write: Writer,
    list_path: str,
    title: str,
    pages: list[RenderedPage],
    intro: str = "",
    description: str = "",
    rss: bool = False,
) -> int:
    chunks = paginate(pages, layout.config.pager_size)
    rss_link = ""
    if rss and layout.config.flag("ShowRssButtonInSectionTermList"):
        rss_link = (
            f' <a href="{layout.url(list_path + "index.xml")}" title="{layout.labels["rss"]}" class="rss-link">'
            f'{layout.labels["rss"]}</a>'
        )
    for number, chunk in enumerate(chunks, start=1):
        breadcrumbs = ""
        if list_path and layout.config.flag("ShowBreadCrumbs"):
            breadcrumbs = f'<div class="breadcrumbs"><a href="{layout.url()}">{html.escape(layout.labels["home"])}</a></div>'
        header = f'<header class="page-header">{breadcrumbs}<h1>{html.escape(title)}{rss_link}</h1></header>'
        intro_html = f'<div class="post-content">{intro}</div>' if intro and number == 1 else ""
        content = (
            f"{header}"
            f"{intro_html}"
            f"{layout.build_entry_cards(chunk)}"
            f"{layout.build_pagination(list_path, number, len(chunks))}"
        )
        page_title = title if number == 1 else f"{title} | {number}"
        path = pager_path(list_path, number)
        html_doc = layout.render(
            title=f"{page_title} | {layout.config.title}" if list_path else layout.config.title,
            content=content,
            canonical_path=path,
            description=description,
        )
        write(f"{path}index.html", html_doc)
    return len(chunks)


def build_home(layout: Layout, write: Writer) -> int:
    config = layout.config
    profile = config.profile_mode
    if not profile.enabled:
        intro = layout.index.home.content if layout.index.home else ""
        return build_list(layout, write, "", config.title, layout.index.regular_pages, intro=intro)

    image = ""
    if profile.image_url:
        size = ""
        if profile.image_width:
            size += f' width="{profile.image_width}"'
        if profile.image_height:
            size += f' height="{profile.image_height}"'
        image = (
            f'<img draggable="false" src="{html.escape(layout.url(profile.image_url))}" '
            f'alt="{html.escape(profile.image_title)}" title="{html.escape(profile.image_title)}"{size}>'
        )
    buttons = "".join(
        f'<a class="button" href="{html.escape(layout.url(button.url))}" rel="noopener" title="{html.escape(button.name)}">'
        f'<span class="button-inner">{html.escape(button.name)}</span></a>'
        for button in profile.buttons
    )
    socials = "".join(
        f'<a href="{html.escape(icon.url)}" target="_blank" rel="noopener noreferrer me" title="{html.escape(icon.name)}">'
        f"{html.escape(icon.name)}</a>"
        for icon in config.social_icons
    )
    content = (
        '<div class="profile"><div class="profile_inner">'
        f"{image}"
        f"<h1>{html.escape(profile.title)}</h1>"
        f"<span>{html.escape(profile.subtitle)}</span>"
        f'<div class="social-icons">{socials}</div>'
        f'<div class="buttons">{buttons}</div>'
        "</div></div>"
    )
    write("index.html", layout.render(title=config.title, content=content, canonical_path="", body_class="list"))
    return 1


def build_single(layout: Layout, write: Writer, page: RenderedPage) -> None:
    doc = page.doc
    description = doc.description
    if description:
        description_html = f'<div class="post-description">{html.escape(description)}</div>'
    else:
        description_html = ""
    content = (
        '<article class="post-single">'
        '<header class="post-header">'
        f"{layout.build_breadcrumbs(doc)}"
        f'<h1 class="post-title entry-hint-parent">{html.escape(doc.title)}</h1>'
        f"{description_html}"
        f"{layout.build_meta(page)}"
        "</header>"
        f"{layout.build_toc(page)}"
        f'<div class="post-content">{page.content}</div>'
        '<footer class="post-footer">'
        f"{layout.build_tags(doc)}"
        f"{layout.build_nav_links(doc)}"
        f"{layout.build_edit_link(doc)}"
        "</footer>"
        "</article>"
    )
    html_doc = layout.render(
        title=f"{doc.title} | {layout.config.title}",
        content=content,
        canonical_path=doc.url_path,
        description=description or page.summary,
        keywords=doc.keywords,
        kind="article",
        body_class="single",
    )
    write(f"{doc.url_path}index.html", html_doc)


def build_sections(layout: Layout, write: Writer) -> dict[str, int]:
    totals = {}
    for section in layout.index.listed_sections:
        index_page = layout.index.section_indexes.get(section)
        totals[f"{section}/"] = build_list(
            layout,
            write,
            f"{section}/",
            layout.section_title(section),
            layout.index.sections[section],
            intro=index_page.content if index_page else "",
            description=index_page.doc.description if index_page else "",
            rss=True,
        )
    return totals


def build_taxonomies(layout: Layout, write: Writer) -> dict[str, int]:
    totals = {}
    for plural, terms in sorted(layout.index.taxonomies.items()):
        rows = []
        for term in sorted(terms.values(), key=lambda item: (item.name.lower(), item.slug)):
            rows.append(
                f'<li><a href="{layout.url(f"{plural}/{term.slug}/")}">{html.escape(term.name)} '
                f"<sup><strong><sup>{len(term.pages)}</sup></strong></sup></a></li>"
            )
        content = (
            f'<header class="page-header"><h1>{html.escape(plural.capitalize())}</h1></header>'
            f'<ul class="terms-tags">{"".join(rows)}</ul>'
        )
        write(
            f"{plural}/index.html",
            layout.render(title=f"{plural.capitalize()} | {layout.config.title}", content=content, canonical_path=f"{plural}/"),
        )
        for slug, term in sorted(terms.items()):
            list_path = f"{plural}/{slug}/"
            totals[list_path] = build_list(layout, write, list_path, term.name, term.pages, rss=True)
    return totals


def build_search(layout: Layout, write: Writer) -> None:
    content = (
        f'<header class="page-header"><h1>{html.escape(layout.labels["search"])}</h1></header>'
        '<div id="searchbox">'
        f'<input id="searchInput" autofocus placeholder="{html.escape(layout.labels["search_placeholder"])}" '
        'aria-label="search" type="search" autocomplete="off" maxlength="64">'
        '<ul id="searchResults" aria-label="search results"></ul>'
        "</div>"
    )
    options = json.dumps(layout.config.param("fuseOpts") or {}, ensure_ascii=False, sort_keys=True)
    extra_head = (
        f'<script id="search-options" type="application/json">{html.escape(options, quote=False)}</script>'
        f'<script src="{layout.url("js/search.js")}" defer></script>'
    )
    write(
        "search/index.html",
        layout.render(
            title=f'{layout.labels["search"]} | {layout.config.title}',
            content=content,
            canonical_path="search/",
            extra_head=extra_head,
        ),
    )


def build_search_index(layout: Layout, write: Writer) -> None:
    keys = layout.config.fuse_keys
    entries = []
    for page in layout.index.regular_pages:
        values: dict[str, Any] = {
            "title": page.doc.title,
            "permalink": layout.url(page.doc.url_path),
            "summary": page.summary,
            "content": page.plain_text,
        }
        entries.append({key: values[key] for key in keys if key in values})
    write("index.json", json.dumps(entries, ensure_ascii=False, indent=None, sort_keys=True))


def build_404(layout: Layout, write: Writer) -> None:
    content = (
        f'<div class="not-found">404</div>'
        f'<p class="not-found-text">{html.escape(layout.labels["not_found"])}</p>'
        f'<a href="{layout.url()}">{html.escape(layout.labels["home"])}</a>'
    )
    write("404.html", layout.render(title=f"404 | {layout.config.title}", content=content, canonical_path="404.html"))


def build_rss(layout: Layout, write: Writer, list_path: str, title: str, pages: list[RenderedPage]) -> None:
    config = layout.config
    limit = parse_int(config.setting("rssLimit"), FEED_LIMIT)
    ordered = sorted(pages, key=by_date)
    if limit > 0:
        ordered = ordered[:limit]
    items = []
    for page in ordered:
        link = layout.url(page.doc.url_path)
        date = page.doc.date or layout.now
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(page.doc.title)}</title>",
                    f"<link>{link}</link>",
                    f"<pubDate>{rfc822_date(date)}</pubDate>",
                    f"<guid>{link}</guid>",
                    f"<description>{html.escape(page.summary)}</description>",
                    "</item>",
                ]
            )
        )
    last_build = rfc822_date(ordered[0].doc.date) if ordered and ordered[0].doc.date else rfc822_date(layout.now)
    rss = "\n".join(
        [
            '<?xml version="1.0" encoding="utf-8" standalone="yes"?>',
            '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
            "<channel>",
            f"<title>{html.escape(title)}</title>",
            f"<link>{layout.url(list_path)}</link>",
            f"<description>{html.escape(config.description)}</description>",
            f"<language>{html.escape(config.language)}</language>",
            f"<lastBuildDate>{last_build}</lastBuildDate>",
            f'<atom:link href="{layout.url(list_path + "index.xml")}" rel="self" type="application/rss+xml" />',
            "\n".join(items),
            "</channel>",
            "</rss>",
        ]
    )
    write(f"{list_path}index.xml", rss)


def build_feeds(layout: Layout, write: Writer) -> None:
    build_rss(layout, write, "", layout.config.title, layout.index.regular_pages)
    for section in layout.index.listed_sections:
        build_rss(layout, write, f"{section}/", layout.section_title(section), layout.index.sections[section])
    for plural, terms in sorted(layout.index.taxonomies.items()):
        for slug, term in sorted(terms.items()):
            build_rss(layout, write, f"{plural}/{slug}/", term.name, term.pages)


def build_sitemap(layout: Layout, write: Writer, list_totals: dict[str, int]) -> None:
    entries: dict[str, Optional[dt.datetime]] = {layout.url(): None, layout.url("search/"): None}
    for list_path, total in list_totals.items():
        for number in range(1, total + 1):
            entries[layout.url(pager_path(list_path, number))] = None
    for plural in layout.index.taxonomies:
        entries[layout.url(f"{plural}/")] = None
    for page in layout.index.regular_pages:
        entries[layout.url(page.doc.url_path)] = page.doc.lastmod or page.doc.date
    items = []
    for url in sorted(entries):
        lastmod = entries[url]
        lines = ["<url>", f"<loc>{url}</loc>"]
        if lastmod:
            lines.append(f"<lastmod>{iso_date(lastmod)}</lastmod>")
        lines.append("</url>")
        items.append("\n".join(lines))
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="utf-8" standalone="yes"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            "\n".join(items),
            "</urlset>",
        ]
    )
    write("sitemap.xml", sitemap)


def build_robots(layout: Layout, write: Writer) -> None:
    if not layout.config.enable_robots_txt:
        return
    write("robots.txt", f"User-agent: *\nDisallow:\nSitemap: {layout.url('sitemap.xml')}\n")
