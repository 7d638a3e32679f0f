from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .builder import BuildArtifact, BuildOptions, build_site
from .config import SiteConfig
from .deploy import DEFAULT_ACL, DEFAULT_TRANSFERS, SyncReport, sync_directory

LOGGER = logging.getLogger(__name__)


@dataclass
class DeployOptions:
    bucket: str
    prefix: str = ""
    acl: str = DEFAULT_ACL
    delete: bool = True
    transfers: int = DEFAULT_TRANSFERS
    dry_run: bool = False


def publish(
    config: SiteConfig,
    build_options: BuildOptions,
    deploy_options: DeployOptions,
    client_factory: Callable[[], Any],
) -> tuple[BuildArtifact, SyncReport]:
    """Build the site, then mirror it to the bucket.

    The client is created only after the build succeeded, so a failing build
    never touches the bucket.
    """
    artifact = build_site(config, build_options)
    LOGGER.info("Build %s ready, deploying to %s", artifact.digest[:12], deploy_options.bucket)
    report = sync_directory(
        client_factory(),
        artifact.root,
        deploy_options.bucket,
        prefix=deploy_options.prefix,
        acl=deploy_options.acl,
        delete=deploy_options.delete,
        transfers=deploy_options.transfers,
        dry_run=deploy_options.dry_run,
    )
    return artifact, report
