"""Tests for the build-then-deploy pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from gopedia.builder import BuildOptions
from gopedia.config import SiteConfig
from gopedia.errors import ContentError
from gopedia.pipeline import DeployOptions, publish
from tests.helpers import BUCKET


def test_failed_build_never_contacts_bucket(
    sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
) -> None:
    (sample_site / "study" / "broken.md").write_text("---\ntitle: Go\n", encoding="utf-8")
    calls = []

    def factory() -> Any:
        calls.append(1)
        raise AssertionError("client requested after a failed build")

    with pytest.raises(ContentError):
        publish(site_config, build_options, DeployOptions(bucket=BUCKET), factory)
    assert calls == []


def test_publish_is_idempotent(
    s3_client: Any, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
) -> None:
    options = DeployOptions(bucket=BUCKET, transfers=1)

    artifact, first = publish(site_config, build_options, options, lambda: s3_client)
    assert sorted(first.uploaded) == sorted(artifact.files)

    _, second = publish(site_config, build_options, options, lambda: s3_client)
    assert second.modified == 0
    assert second.unchanged == len(artifact.files)


def test_publish_removes_withdrawn_pages(
    s3_client: Any, sample_site: Path, site_config: SiteConfig, build_options: BuildOptions
) -> None:
    options = DeployOptions(bucket=BUCKET, transfers=1)
    publish(site_config, build_options, options, lambda: s3_client)
    (sample_site / "study" / "functions.md").unlink()

    _, report = publish(site_config, build_options, options, lambda: s3_client)

    assert "study/functions/index.html" in report.deleted
    assert "study/index.html" in report.uploaded
