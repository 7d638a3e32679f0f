from __future__ import annotations

import datetime as dt
from pathlib import Path

import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]
THEMES_DIR = REPO_ROOT / "themes"
NOW = dt.datetime(2025, 6, 1, 12, 0, tzinfo=dt.timezone.utc)
BASE_URL = "https://gopedia.ru/"
BUCKET = "gopedia.ru"


def write_doc(content_dir: Path, rel: str, body: str = "Текст страницы.", **meta: object) -> Path:
    path = content_dir / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    front = yaml.safe_dump(meta, allow_unicode=True, sort_keys=True)
    path.write_text(f"---\n{front}---\n\n{body}\n", encoding="utf-8")
    return path


def site_mapping(**overrides: object) -> dict:
    data = {
        "baseURL": BASE_URL,
        "title": "gopedia",
        "theme": "paper",
        "defaultContentLanguage": "ru",
        "pagination": {"pagerSize": 5},
        "enableRobotsTXT": True,
        "params": {
            "description": "Учебник по Go",
            "DateFormat": "2 January, 2006",
            "ShowReadingTime": True,
            "ShowWordCount": True,
            "ShowBreadCrumbs": True,
            "ShowPostNavLinks": True,
            "ShowRssButtonInSectionTermList": True,
        },
        "menu": {"main": [{"identifier": "tags", "name": "Тэги", "url": "/tags/", "weight": 20}]},
        "taxonomies": {"tag": "tags"},
    }
    data.update(overrides)
    return data


def read_output(root: Path, rel: str) -> str:
    return (root / rel).read_text(encoding="utf-8")


def all_text(root: Path) -> str:
    return "\n".join(
        path.read_text(encoding="utf-8", errors="replace") for path in sorted(root.rglob("*")) if path.is_file()
    )
