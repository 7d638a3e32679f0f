from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

import csscompressor
import rjsmin

from .errors import TemplateError
from .utils import join_url

LINK_ATTR_RE = re.compile(r'(?P<attr>\s(?:src|href))="(?P<url>[^"]*)"', re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
PRESERVE_RE = re.compile(r"(<(pre|code|textarea|script)\b.*?</\2>)", re.IGNORECASE | re.DOTALL)
COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
HELD_RE = re.compile(r"<\x00(\d+)\x00>")
TAG_NAME_RE = re.compile(r"</?(!?[A-Za-z][\w-]*)")
GAP_RE = re.compile(r"(<[^<>]+>)\s+(?=(<[^<>]+>))")
BLOCK_TAGS = {
    "!doctype", "html", "head", "body", "title", "meta", "link", "script", "style", "noscript",
    "header", "footer", "main", "nav", "article", "section", "aside", "div", "p", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "dl", "dt", "dd", "blockquote",
    "table", "thead", "tbody", "tfoot", "tr", "td", "th", "hr", "figure", "figcaption",
    "details", "summary", "form",
}
SKIP_PREFIXES = ("http://", "https://", "//", "data:", "mailto:", "tel:", "#")


def absolutize_links(html_text: str, base_url: str, relative_base: Optional[str] = None) -> str:
    """Make ``src``/``href`` values absolute.

    Root-relative values are joined onto ``base_url``. Other relative values
    resolve against ``relative_base`` (the URL of the source file's directory)
    when it is given, else onto ``base_url``.
    """

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(SKIP_PREFIXES):
            return match.group(0)
        if url.startswith("/"):
            resolved = join_url(base_url, url)
        elif relative_base is not None:
            resolved = urljoin(relative_base, url)
        elif url.startswith(("./", "../")):
            return match.group(0)
        else:
            resolved = join_url(base_url, url)
        return f'{match.group("attr")}="{resolved}"'

    return LINK_ATTR_RE.sub(repl, html_text)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def render_template(template: str, **context: str) -> str:
    missing = sorted(set(PLACEHOLDER_RE.findall(template)) - set(context))
    if missing:
        raise TemplateError(f"Unresolved template placeholders: {', '.join(missing)}")
    # Single pass, so substituted values are never expanded again.
    return PLACEHOLDER_RE.sub(lambda m: context[m.group(1)], template)


def read_template(path: Path) -> str:
    if not path.exists():
        raise TemplateError(f"Template not found: {path}")
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_static(static_dir: Path, output_dir: Path) -> None:
    for item in sorted(static_dir.iterdir()):
        dest = output_dir / item.name
        if item.is_dir():
            shutil.copytree(item, dest, dirs_exist_ok=True)
        else:
            shutil.copy2(item, dest)


def minify_html(text: str) -> str:
    """Collapse whitespace; it is dropped entirely only next to block-level tags."""
    preserved: list[tuple[str, str]] = []

    def hold(match: re.Match) -> str:
        preserved.append((match.group(1), match.group(2).lower()))
        return f"<\x00{len(preserved) - 1}\x00>"

    def tag_name(tag: str) -> str:
        held = HELD_RE.fullmatch(tag)
        if held:
            return preserved[int(held.group(1))][1]
        named = TAG_NAME_RE.match(tag)
        return named.group(1).lower() if named else ""

    def between_tags(match: re.Match) -> str:
        left, right = match.group(1), match.group(2)
        if tag_name(left) in BLOCK_TAGS or tag_name(right) in BLOCK_TAGS:
            return left
        return left + " "

    text = PRESERVE_RE.sub(hold, text)
    text = COMMENT_RE.sub("", text)
    text = GAP_RE.sub(between_tags, text)
    text = re.sub(r"\s{2,}", " ", text)
    text = text.strip()
    return HELD_RE.sub(lambda m: preserved[int(m.group(1))][0], text)


def minify_tree(output_dir: Path, disable_xml: bool = False) -> int:
    """Minify generated HTML, CSS, JS and (unless disabled) XML in place."""
    count = 0
    for path in sorted(output_dir.rglob("*"), key=lambda p: p.as_posix()):
        if not path.is_file():
            continue
        suffix = path.suffix.lower()
        if suffix == ".html":
            minified = minify_html(path.read_text(encoding="utf-8"))
        elif suffix == ".css":
            minified = csscompressor.compress(path.read_text(encoding="utf-8"))
        elif suffix == ".js":
            minified = rjsmin.jsmin(path.read_text(encoding="utf-8"))
        elif suffix == ".xml" and not disable_xml:
            minified = re.sub(r">\s+<", "><", path.read_text(encoding="utf-8")).strip()
        else:
            continue
        path.write_text(minified, encoding="utf-8")
        count += 1
    return count
