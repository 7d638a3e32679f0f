"""Shared fixtures: scratch content trees, the bundled theme and a mocked bucket."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import boto3
import pytest
from moto import mock_aws

from gopedia.builder import BuildOptions
from gopedia.config import SiteConfig
from tests.helpers import BUCKET, NOW, THEMES_DIR, site_mapping, write_doc


@pytest.fixture
def site_config() -> SiteConfig:
    return SiteConfig.from_mapping(site_mapping())


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    path = tmp_path / "content"
    path.mkdir()
    return path


@pytest.fixture
def build_options(tmp_path: Path, content_dir: Path) -> BuildOptions:
    return BuildOptions(
        content_dir=content_dir,
        output_dir=tmp_path / "public",
        themes_dir=THEMES_DIR,
        static_dir=None,
        project_root=tmp_path,
        workers=1,
        now=NOW,
    )


@pytest.fixture
def sample_site(content_dir: Path) -> Path:
    """A small tutorial tree: one section with a draft between two published pages."""
    write_doc(content_dir, "study/_index.md", "Вводный текст раздела.", title="Учебник")
    write_doc(
        content_dir,
        "study/intro.md",
        "## Что такое Go\n\nGo — компилируемый язык.",
        title="Введение",
        date="2025-04-01",
        weight=10,
        tags=["основы"],
    )
    write_doc(
        content_dir,
        "study/constants.md",
        "Черновик.",
        title="Константы",
        date="2025-04-02",
        weight=54,
        draft=True,
        tags=["основы"],
    )
    write_doc(
        content_dir,
        "study/variables.md",
        "Смотрите [введение]({{< ref \"intro.md\" >}}).\n\n```go\nvar x int\n```",
        title="Переменные",
        date="2025-04-03",
        weight=56,
        tags=["основы"],
        keywords=["var"],
    )
    write_doc(
        content_dir,
        "study/functions.md",
        "Функции.",
        title="Функции",
        date="2025-04-04",
        weight=60,
    )
    return content_dir


@pytest.fixture
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_client(aws_env: None) -> Iterator[Any]:
    """A mocked S3 client with an empty bucket named after the site."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "study" / "intro").mkdir(parents=True)
    (root / "index.html").write_text("<h1>gopedia</h1>", encoding="utf-8")
    (root / "css" / "style.css").write_text("body{color:#222}", encoding="utf-8")
    (root / "study" / "intro" / "index.html").write_text("<h1>Введение</h1>", encoding="utf-8")
    return root
