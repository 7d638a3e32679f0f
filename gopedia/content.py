from __future__ import annotations

import datetime as dt
import html as html_lib
import math
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Mapping, Optional

import yaml

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

from .config import SiteConfig
from .errors import ContentError
from .utils import as_utc

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
DOUBLE_QUOTE_RE = re.compile(r"^(?P<indent>[ \t]*)>>(?!>)(?P<rest>.*)$")
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")
WORD_RE = re.compile(r"[^\W_]+(?:['’][^\W_]+)?", re.UNICODE)
FENCES = {"---": "yaml", "+++": "toml"}
WORDS_PER_MINUTE = 213
SECTION_INDEX = "_index.md"
KNOWN_KEYS = {
    "title", "description", "keywords", "tags", "date", "lastmod", "expirydate", "publishdate",
    "weight", "draft", "slug", "summary",
}


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "page"


@dataclass(frozen=True)
class ContentDocument:
    path: str
    title: str
    date: Optional[dt.datetime] = None
    description: str = ""
    keywords: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    lastmod: Optional[dt.datetime] = None
    publish_date: Optional[dt.datetime] = None
    expiry_date: Optional[dt.datetime] = None
    weight: int = 0
    draft: bool = False
    slug: str = ""
    summary: str = ""
    body: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def parts(self) -> tuple[str, ...]:
        return PurePosixPath(self.path).parts

    @property
    def is_section_index(self) -> bool:
        return self.parts[-1] == SECTION_INDEX

    @property
    def is_home(self) -> bool:
        return self.path == SECTION_INDEX

    @property
    def section(self) -> str:
        return self.parts[0] if len(self.parts) > 1 else ""

    @property
    def directory(self) -> str:
        return "/".join(self.parts[:-1])

    @property
    def url_path(self) -> str:
        """Site-relative URL with a trailing slash, e.g. ``basics/variables/``."""
        if self.is_section_index:
            return f"{self.directory}/" if self.directory else ""
        name = slugify(self.slug) if self.slug else slugify(PurePosixPath(self.path).stem)
        prefix = f"{self.directory}/" if self.directory else ""
        return f"{prefix}{name}/"

    @property
    def effective_publish(self) -> Optional[dt.datetime]:
        return self.publish_date or self.date


def parse_front_matter(text: str, path: str = "") -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() not in FENCES:
        return {}, clean_text

    fence = lines[0].strip()
    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == fence:
            end = i
            break
    if end is None:
        raise ContentError(f"unterminated front matter (missing closing '{fence}')", path)

    block = "\n".join(lines[1:end])
    if FENCES[fence] == "yaml":
        try:
            meta = yaml.safe_load(block)
        except yaml.YAMLError as exc:
            raise ContentError(f"invalid YAML front matter: {exc}", path) from exc
    else:
        try:
            meta = toml.loads(block)
        except toml.TOMLDecodeError as exc:
            raise ContentError(f"invalid TOML front matter: {exc}", path) from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise ContentError("front matter must be a mapping", path)
    body = "\n".join(lines[end + 1 :])
    return {str(key).lower(): value for key, value in meta.items()}, body


def parse_timestamp(value: Any, key: str, path: str) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return as_utc(value)
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(dt.datetime.fromisoformat(text))
        except ValueError:
            pass
        try:
            day = dt.date.fromisoformat(text)
            return dt.datetime(day.year, day.month, day.day, tzinfo=dt.timezone.utc)
        except ValueError:
            pass
    raise ContentError(f"'{key}' is not a valid date: {value!r}", path)


def string_list(value: Any, key: str, path: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        raise ContentError(f"'{key}' must be a list of strings", path)
    return tuple(item for item in items if item)


def build_document(rel_path: str, meta: dict, body: str) -> ContentDocument:
    title = meta.get("title")
    if title is None or not str(title).strip():
        raise ContentError("'title' is required", rel_path)

    weight = meta.get("weight", 0)
    if isinstance(weight, bool) or not isinstance(weight, int):
        if isinstance(weight, str) and weight.strip().lstrip("-").isdigit():
            weight = int(weight.strip())
        else:
            raise ContentError(f"'weight' must be an integer, got {weight!r}", rel_path)

    draft = meta.get("draft", False)
    if isinstance(draft, str) and draft.strip().lower() in {"true", "false"}:
        draft = draft.strip().lower() == "true"
    if not isinstance(draft, bool):
        raise ContentError(f"'draft' must be a boolean, got {draft!r}", rel_path)

    date = parse_timestamp(meta.get("date"), "date", rel_path)
    if date is None and not rel_path.endswith(SECTION_INDEX):
        raise ContentError("'date' is required", rel_path)

    return ContentDocument(
        path=rel_path,
        title=str(title).strip(),
        date=date,
        description=str(meta.get("description") or "").strip(),
        keywords=string_list(meta.get("keywords"), "keywords", rel_path),
        tags=string_list(meta.get("tags"), "tags", rel_path),
        lastmod=parse_timestamp(meta.get("lastmod"), "lastmod", rel_path),
        publish_date=parse_timestamp(meta.get("publishdate"), "publishDate", rel_path),
        expiry_date=parse_timestamp(meta.get("expirydate"), "expiryDate", rel_path),
        weight=weight,
        draft=draft,
        slug=str(meta.get("slug") or "").strip(),
        summary=str(meta.get("summary") or "").strip(),
        body=normalize_list_spacing(body),
        extra={key: value for key, value in meta.items() if key not in KNOWN_KEYS},
    )


def load_document(path: Path, root: Path) -> ContentDocument:
    rel_path = path.relative_to(root).as_posix()
    try:
        raw_text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ContentError(f"not valid UTF-8: {exc}", rel_path) from exc
    meta, body = parse_front_matter(raw_text, rel_path)
    return build_document(rel_path, meta, body)


def load_content(root: Path) -> list[ContentDocument]:
    if not root.is_dir():
        raise ContentError("content directory not found", root)
    files = sorted(root.rglob("*.md"), key=lambda p: p.relative_to(root).as_posix())
    return [load_document(path, root) for path in files]


def is_published(doc: ContentDocument, config: SiteConfig, now: dt.datetime) -> bool:
    now = as_utc(now)
    if doc.draft and not config.build_drafts:
        return False
    published = doc.effective_publish
    if published is not None and published > now and not config.build_future:
        return False
    if doc.expiry_date is not None and doc.expiry_date <= now and not config.build_expired:
        return False
    return True


def filter_published(
    docs: Iterable[ContentDocument], config: SiteConfig, now: dt.datetime
) -> list[ContentDocument]:
    return [doc for doc in docs if is_published(doc, config, now)]


def page_sort_key(doc: ContentDocument) -> tuple:
    date = doc.date or dt.datetime.min.replace(tzinfo=dt.timezone.utc)
    return (doc.weight == 0, doc.weight, -date.timestamp(), doc.title.lower(), doc.path)


def sort_pages(docs: Iterable[ContentDocument]) -> list[ContentDocument]:
    """Weighted pages first (ascending), then by newest date, title and path."""
    return sorted(docs, key=page_sort_key)


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        quote_match = DOUBLE_QUOTE_RE.match(line)
        if quote_match:
            rest = quote_match.group("rest").lstrip()
            if rest:
                line = f'{quote_match.group("indent")}> {rest}'
            else:
                line = f'{quote_match.group("indent")}>'
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)


def count_words(text: str) -> int:
    text = html_lib.unescape(text)
    cjk_count = len(CJK_RE.findall(text))
    text = CJK_RE.sub(" ", text)
    word_count = len(WORD_RE.findall(text))
    return cjk_count + word_count


def reading_time(words: int) -> int:
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
