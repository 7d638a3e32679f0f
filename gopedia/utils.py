from __future__ import annotations

import datetime as dt
import re
import shutil
from pathlib import Path

from .errors import ConfigError

MONTH_NAMES = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "ru": [
        "января", "февраля", "марта", "апреля", "мая", "июня",
        "июля", "августа", "сентября", "октября", "ноября", "декабря",
    ],
}
# Longest tokens first so "2006" wins over "2" and "January" over "Jan".
GO_LAYOUT_RE = re.compile(r"2006|January|Monday|Jan|Mon|MST|-0700|_2|01|02|03|04|05|06|15|PM|pm|1|2|3|4|5")
WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_ABBREVIATIONS = {
    "en": ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
    "ru": ["янв", "фев", "мар", "апр", "май", "июн", "июл", "авг", "сен", "окт", "ноя", "дек"],
}


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base + "/"
    return f"{base}/{path}"


def as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def rfc822_date(value: dt.datetime) -> str:
    return as_utc(value).strftime("%a, %d %b %Y %H:%M:%S %z")


def iso_date(value: dt.datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_go_date(value: dt.datetime, layout: str, language: str = "en") -> str:
    """Format ``value`` with a Go reference layout such as ``2 January, 2006``."""
    months = MONTH_NAMES.get(language, MONTH_NAMES["en"])

    def repl(match: re.Match) -> str:
        token = match.group(0)
        if token == "2006":
            return f"{value.year:04d}"
        if token == "06":
            return f"{value.year % 100:02d}"
        if token == "January":
            return months[value.month - 1]
        if token == "Jan":
            return MONTH_ABBREVIATIONS.get(language, MONTH_ABBREVIATIONS["en"])[value.month - 1]
        if token == "01":
            return f"{value.month:02d}"
        if token == "1":
            return str(value.month)
        if token == "02":
            return f"{value.day:02d}"
        if token == "2":
            return str(value.day)
        if token == "_2":
            return f"{value.day:>2}"
        if token == "Monday":
            return WEEKDAY_NAMES[value.weekday()]
        if token == "Mon":
            return WEEKDAY_NAMES[value.weekday()][:3]
        if token == "15":
            return f"{value.hour:02d}"
        if token == "03":
            return f"{(value.hour % 12) or 12:02d}"
        if token == "3":
            return str((value.hour % 12) or 12)
        if token == "04":
            return f"{value.minute:02d}"
        if token == "4":
            return str(value.minute)
        if token == "05":
            return f"{value.second:02d}"
        if token == "5":
            return str(value.second)
        if token == "PM":
            return "PM" if value.hour >= 12 else "AM"
        if token == "pm":
            return "pm" if value.hour >= 12 else "am"
        if token == "MST":
            return value.tzname() or "UTC"
        if token == "-0700":
            return value.strftime("%z") or "+0000"
        return token

    return GO_LAYOUT_RE.sub(repl, layout)


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise ConfigError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise ConfigError("Refusing to clean output directory outside project root.")
    shutil.rmtree(output_dir)
