from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional


class GopediaError(Exception):
    """Base class for every failure the pipeline reports."""

    exit_code = 1


class ConfigError(GopediaError):
    pass


class ContentError(GopediaError):
    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        self.path = str(path) if path is not None else None
        if self.path:
            message = f"{self.path}: {message}"
        super().__init__(message)


class TemplateError(GopediaError):
    pass


class TransportError(GopediaError):
    exit_code = 2

    def __init__(self, message: str, failed_keys: Iterable[str] = ()) -> None:
        self.failed_keys = sorted(failed_keys)
        if self.failed_keys:
            shown = ", ".join(self.failed_keys[:10])
            more = len(self.failed_keys) - 10
            if more > 0:
                shown += f" (+{more} more)"
            message = f"{message}: {shown}"
        super().__init__(message)
