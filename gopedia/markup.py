from __future__ import annotations

import html
import posixpath
import re
from typing import Iterable

import markdown

from .config import SiteConfig
from .content import ContentDocument, WORD_RE
from .errors import ContentError
from .render import absolutize_links, strip_tags

REF_RE = re.compile(r"\{\{<\s*(?P<kind>ref|relref)\s+\"(?P<target>[^\"]+)\"\s*>\}\}")
ESCAPED_SHORTCODE_RE = re.compile(r"\{\{<\s*/\*(?P<inner>.*?)\*/\s*>\}\}")
SUMMARY_WORDS = 70
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite", "sane_lists"]


class RefResolver:
    """Maps the targets of ``ref``/``relref`` shortcodes onto published pages."""

    def __init__(self, docs: Iterable[ContentDocument], config: SiteConfig) -> None:
        self.config = config
        self._by_path: dict[str, ContentDocument] = {}
        self._by_name: dict[str, list[ContentDocument]] = {}
        for doc in docs:
            stem = doc.path[: -len(".md")]
            self._by_path[doc.path] = doc
            self._by_path[stem] = doc
            if doc.is_section_index:
                self._by_path[doc.directory] = doc
            name = posixpath.basename(stem)
            self._by_name.setdefault(name, []).append(doc)
            self._by_name.setdefault(posixpath.basename(doc.path), []).append(doc)

    def find(self, target: str, origin: ContentDocument) -> ContentDocument:
        clean = target.strip()
        if clean.startswith("/"):
            candidates = [clean.strip("/")]
        else:
            relative = posixpath.normpath(posixpath.join(origin.directory, clean)).strip("/")
            candidates = [relative, clean.strip("/")]
        for candidate in candidates:
            candidate = candidate.rstrip("/")
            if candidate == ".":
                candidate = ""
            doc = self._by_path.get(candidate) or self._by_path.get(candidate.removesuffix(".md"))
            if doc is not None:
                return doc
        if "/" not in clean:
            matches = self._by_name.get(clean) or self._by_name.get(clean.removesuffix(".md")) or []
            unique = {doc.path: doc for doc in matches}
            if len(unique) == 1:
                return next(iter(unique.values()))
            if len(unique) > 1:
                raise ContentError(f"ambiguous reference {target!r}", origin.path)
        raise ContentError(f"reference {target!r} does not resolve to a published page", origin.path)

    def resolve(self, kind: str, target: str, origin: ContentDocument) -> str:
        page, _, anchor = target.partition("#")
        if page:
            doc = self.find(page, origin)
            url_path = doc.url_path
        else:
            url_path = origin.url_path
        suffix = f"#{anchor}" if anchor else ""
        if kind == "ref":
            return self.config.absolute_url(url_path) + suffix
        return "/" + url_path + suffix

    def expand(self, text: str, origin: ContentDocument) -> str:
        escaped: list[str] = []

        def hold(match: re.Match) -> str:
            escaped.append("{{<" + match.group("inner") + ">}}")
            return f"\x00{len(escaped) - 1}\x00"

        text = ESCAPED_SHORTCODE_RE.sub(hold, text)
        text = REF_RE.sub(lambda m: self.resolve(m.group("kind"), m.group("target"), origin), text)
        return re.sub(r"\x00(\d+)\x00", lambda m: escaped[int(m.group(1))], text)


def render_markdown(
    doc: ContentDocument, resolver: RefResolver, toc_depth: str = "2-4"
) -> tuple[str, str]:
    body = resolver.expand(doc.body, doc)
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs={
            "toc": {"toc_depth": toc_depth},
            "codehilite": {"css_class": "highlight", "guess_lang": False},
        },
    )
    html_content = md.convert(body)
    toc_html = md.toc
    md.reset()
    config = resolver.config
    relative_base = config.absolute_url(f"{doc.directory}/" if doc.directory else "")
    return absolutize_links(html_content, config.base_url, relative_base), toc_html


def summarize(html_text: str, limit: int = SUMMARY_WORDS) -> str:
    text = " ".join(html.unescape(strip_tags(html_text)).split())
    words = list(WORD_RE.finditer(text))
    if len(words) <= limit:
        return text
    return text[: words[limit - 1].end()] + "..."
