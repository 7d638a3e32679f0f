from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

import yaml

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

from .errors import ConfigError
from .utils import join_url, parse_bool, parse_int

DEFAULT_PAGER_SIZE = 10
DEFAULT_TAXONOMIES = {"tag": "tags", "category": "categories"}
DEFAULT_DATE_FORMAT = "January 2, 2006"


def load_config(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            data = {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def _lookup(mapping: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Case-insensitive key lookup, matching how theme params are addressed."""
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for name, value in mapping.items():
        if str(name).lower() == lowered:
            return value
    return default


def _require_mapping(value: Any, name: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def lookup_setting(mapping: Mapping[str, Any], dotted: str, default: Any = None) -> Any:
    """Read a nested setting such as ``deploy.bucket``."""
    node: Any = mapping
    for part in dotted.split("."):
        if not isinstance(node, Mapping):
            return default
        node = _lookup(node, part)
        if node is None:
            return default
    return node


@dataclass(frozen=True)
class MenuEntry:
    identifier: str
    name: str
    url: str
    weight: int = 0


@dataclass(frozen=True)
class ProfileButton:
    name: str
    url: str


@dataclass(frozen=True)
class ProfileMode:
    enabled: bool = False
    title: str = ""
    subtitle: str = ""
    image_url: str = ""
    image_width: int = 0
    image_height: int = 0
    image_title: str = ""
    buttons: tuple[ProfileButton, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProfileMode":
        buttons = []
        for item in _lookup(data, "buttons") or []:
            if not isinstance(item, dict) or "name" not in item or "url" not in item:
                raise ConfigError("profileMode.buttons entries need 'name' and 'url'")
            buttons.append(ProfileButton(name=str(item["name"]), url=str(item["url"])))
        return cls(
            enabled=parse_bool(_lookup(data, "enabled")),
            title=str(_lookup(data, "title", "") or ""),
            subtitle=str(_lookup(data, "subtitle", "") or ""),
            image_url=str(_lookup(data, "imageUrl", "") or ""),
            image_width=parse_int(_lookup(data, "imageWidth"), 0),
            image_height=parse_int(_lookup(data, "imageHeight"), 0),
            image_title=str(_lookup(data, "imageTitle", "") or ""),
            buttons=tuple(buttons),
        )


@dataclass(frozen=True)
class EditPost:
    url: str = ""
    text: str = "Edit"
    append_file_path: bool = False


@dataclass(frozen=True)
class SiteConfig:
    base_url: str
    theme: str
    title: str = ""
    language: str = "en"
    pager_size: int = DEFAULT_PAGER_SIZE
    build_drafts: bool = False
    build_future: bool = False
    build_expired: bool = False
    enable_robots_txt: bool = False
    minify_output: bool = False
    minify_disable_xml: bool = False
    params: Mapping[str, Any] = field(default_factory=dict)
    menu: tuple[MenuEntry, ...] = ()
    taxonomies: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_TAXONOMIES))
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        parsed = urlparse(self.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigError(f"baseURL must be an absolute http(s) URL, got {self.base_url!r}")
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        if not self.theme:
            raise ConfigError("'theme' is required")
        if self.pager_size < 1:
            raise ConfigError("pagination.pagerSize must be at least 1")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SiteConfig":
        base_url = data.get("baseURL") or data.get("baseurl")
        if not base_url:
            raise ConfigError("'baseURL' is required")
        pagination = _require_mapping(data.get("pagination"), "pagination")
        pager_value = pagination.get("pagerSize", data.get("paginate"))
        pager_size = parse_int(pager_value, -1) if pager_value is not None else DEFAULT_PAGER_SIZE
        minify = _require_mapping(data.get("minify"), "minify")
        params = _require_mapping(data.get("params"), "params")

        menu_block = _require_mapping(data.get("menu"), "menu")
        entries = []
        for item in menu_block.get("main") or []:
            if not isinstance(item, dict) or not item.get("name") or not item.get("url"):
                raise ConfigError("menu.main entries need 'name' and 'url'")
            entries.append(
                MenuEntry(
                    identifier=str(item.get("identifier") or item["name"]),
                    name=str(item["name"]),
                    url=str(item["url"]),
                    weight=parse_int(item.get("weight"), 0),
                )
            )
        entries.sort(key=lambda entry: (entry.weight, entry.name))

        taxonomies = data.get("taxonomies")
        if taxonomies is None:
            taxonomies = dict(DEFAULT_TAXONOMIES)
        else:
            taxonomies = {str(k): str(v) for k, v in _require_mapping(taxonomies, "taxonomies").items()}

        known = {
            "baseURL", "baseurl", "theme", "title", "defaultContentLanguage", "pagination", "paginate",
            "buildDrafts", "buildFuture", "buildExpired", "enableRobotsTXT", "minify", "params", "menu",
            "taxonomies",
        }
        return cls(
            base_url=str(base_url),
            theme=str(data.get("theme") or ""),
            title=str(data.get("title") or ""),
            language=str(data.get("defaultContentLanguage") or "en"),
            pager_size=pager_size,
            build_drafts=parse_bool(data.get("buildDrafts")),
            build_future=parse_bool(data.get("buildFuture")),
            build_expired=parse_bool(data.get("buildExpired")),
            enable_robots_txt=parse_bool(data.get("enableRobotsTXT")),
            minify_output=parse_bool(minify.get("minifyOutput")),
            minify_disable_xml=parse_bool(minify.get("disableXML")),
            params=params,
            menu=tuple(entries),
            taxonomies=taxonomies,
            extra={key: value for key, value in data.items() if key not in known},
        )

    @classmethod
    def load(cls, path: Path) -> "SiteConfig":
        return cls.from_mapping(load_config(path))

    def with_overrides(self, **changes: Any) -> "SiteConfig":
        changes = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **changes)

    def absolute_url(self, path: str = "") -> str:
        if path.startswith(("http://", "https://")):
            return path
        return join_url(self.base_url, path)

    def param(self, key: str, default: Any = None) -> Any:
        return _lookup(self.params, key, default)

    def flag(self, key: str, default: bool = False) -> bool:
        value = self.param(key)
        return default if value is None else parse_bool(value)

    def setting(self, dotted: str, default: Any = None) -> Any:
        return lookup_setting(self.extra, dotted, default)

    @property
    def date_format(self) -> str:
        return str(self.param("DateFormat") or DEFAULT_DATE_FORMAT)

    @property
    def description(self) -> str:
        return str(self.param("description") or "")

    @property
    def keywords(self) -> tuple[str, ...]:
        value = self.param("keywords") or []
        if isinstance(value, str):
            value = [value]
        return tuple(str(item) for item in value)

    @property
    def profile_mode(self) -> ProfileMode:
        return ProfileMode.from_mapping(_require_mapping(self.param("profileMode"), "params.profileMode"))

    @property
    def edit_post(self) -> Optional[EditPost]:
        data = _require_mapping(self.param("editPost"), "params.editPost")
        url = str(_lookup(data, "URL", "") or "")
        if not url:
            return None
        return EditPost(
            url=url,
            text=str(_lookup(data, "Text", "") or "Edit"),
            append_file_path=parse_bool(_lookup(data, "appendFilePath")),
        )

    @property
    def social_icons(self) -> tuple[ProfileButton, ...]:
        icons = []
        for item in self.param("socialIcons") or []:
            if isinstance(item, dict) and item.get("name") and item.get("url"):
                icons.append(ProfileButton(name=str(item["name"]), url=str(item["url"])))
        return tuple(icons)

    @property
    def yandex_metrika_id(self) -> str:
        return str(self.param("yandexMetrikaID") or "")

    @property
    def yandex_verification(self) -> str:
        analytics = _require_mapping(self.param("analytics"), "params.analytics")
        yandex = _require_mapping(_lookup(analytics, "yandex"), "params.analytics.yandex")
        return str(_lookup(yandex, "SiteVerificationTag", "") or "")

    @property
    def fuse_keys(self) -> tuple[str, ...]:
        opts = _require_mapping(self.param("fuseOpts"), "params.fuseOpts")
        keys = _lookup(opts, "keys") or ["title", "permalink", "summary", "content"]
        return tuple(str(key) for key in keys)

    @property
    def favicon(self) -> str:
        assets = _require_mapping(self.param("assets"), "params.assets")
        return str(_lookup(assets, "favicon", "") or "")

    @property
    def is_production(self) -> bool:
        return str(self.param("env") or "").lower() == "production"
