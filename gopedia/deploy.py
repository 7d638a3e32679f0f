from __future__ import annotations

import logging
import mimetypes
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import TransportError
from .hashing import list_files, md5_file

LOGGER = logging.getLogger(__name__)

ENV_ACCESS_KEY = "GOPEDIA_S3_ACCESS_KEY_ID"
ENV_SECRET_KEY = "GOPEDIA_S3_SECRET_ACCESS_KEY"
ENV_ENDPOINT = "GOPEDIA_S3_ENDPOINT"
ENV_REGION = "GOPEDIA_S3_REGION"
DEFAULT_REGION = "ru-central1"
DEFAULT_ACL = "public-read"
DEFAULT_TRANSFERS = 4
MAX_ATTEMPTS = 5
MD5_METADATA_KEY = "md5"
EXTRA_TYPES = {".xml": "application/xml", ".json": "application/json", ".webmanifest": "application/manifest+json"}


@dataclass(frozen=True)
class DeployCredentials:
    access_key_id: str
    secret_access_key: str = field(repr=False)
    endpoint_url: str
    region: str = DEFAULT_REGION

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, endpoint_url: str = "") -> "DeployCredentials":
        env = os.environ if environ is None else environ
        values = {
            ENV_ACCESS_KEY: env.get(ENV_ACCESS_KEY, "").strip(),
            ENV_SECRET_KEY: env.get(ENV_SECRET_KEY, "").strip(),
            ENV_ENDPOINT: (endpoint_url or env.get(ENV_ENDPOINT, "")).strip(),
        }
        missing = sorted(name for name, value in values.items() if not value)
        if missing:
            raise TransportError(f"Missing deploy credentials in environment: {', '.join(missing)}")
        return cls(
            access_key_id=values[ENV_ACCESS_KEY],
            secret_access_key=values[ENV_SECRET_KEY],
            endpoint_url=values[ENV_ENDPOINT],
            region=env.get(ENV_REGION, "").strip() or DEFAULT_REGION,
        )


def make_client(credentials: DeployCredentials, max_attempts: int = MAX_ATTEMPTS) -> Any:
    config = Config(
        s3={"addressing_style": "path"},
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )
    return boto3.client(
        "s3",
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        endpoint_url=credentials.endpoint_url,
        region_name=credentials.region,
        config=config,
    )


@dataclass(frozen=True)
class LocalFile:
    key: str
    path: Path
    size: int
    md5: str


@dataclass(frozen=True)
class RemoteObject:
    key: str
    size: int
    etag: str

    @property
    def is_multipart(self) -> bool:
        return "-" in self.etag


@dataclass
class SyncPlan:
    uploads: list[LocalFile] = field(default_factory=list)
    deletes: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.uploads and not self.deletes


@dataclass
class SyncReport:
    uploaded: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: int = 0
    dry_run: bool = False

    @property
    def modified(self) -> int:
        return len(self.uploaded) + len(self.deleted)


def scan_local(source: Path, prefix: str = "") -> dict[str, LocalFile]:
    if not source.is_dir():
        raise TransportError(f"Deploy source directory not found: {source}")
    files = {}
    for path in list_files(source):
        key = prefix + path.relative_to(source).as_posix()
        files[key] = LocalFile(key=key, path=path, size=path.stat().st_size, md5=md5_file(path))
    return files


def list_remote(client: Any, bucket: str, prefix: str = "") -> dict[str, RemoteObject]:
    objects = {}
    try:
        paginator = client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for item in page.get("Contents", []):
                objects[item["Key"]] = RemoteObject(
                    key=item["Key"], size=int(item["Size"]), etag=str(item.get("ETag", "")).strip('"')
                )
    except (BotoCoreError, ClientError) as exc:
        raise TransportError(f"Could not list bucket {bucket}: {exc}") from exc
    return objects


def remote_md5(client: Any, bucket: str, remote: RemoteObject) -> str:
    if not remote.is_multipart:
        return remote.etag
    try:
        head = client.head_object(Bucket=bucket, Key=remote.key)
    except (BotoCoreError, ClientError) as exc:
        raise TransportError(f"Could not inspect s3://{bucket}/{remote.key}: {exc}") from exc
    return head.get("Metadata", {}).get(MD5_METADATA_KEY, "")


def plan_sync(
    local: Mapping[str, LocalFile],
    remote: Mapping[str, RemoteObject],
    delete: bool = True,
    checksum: Any = None,
) -> SyncPlan:
    """Compare the local tree with the bucket listing.

    ``checksum`` resolves the MD5 of a remote object whose ETag is not one
    (multipart uploads); without it such objects are always re-uploaded.
    """
    plan = SyncPlan()
    for key in sorted(local):
        item = local[key]
        existing = remote.get(key)
        if existing is not None and existing.size == item.size:
            digest = existing.etag
            if existing.is_multipart:
                digest = checksum(existing) if checksum is not None else ""
            if digest == item.md5:
                plan.unchanged.append(key)
                continue
        plan.uploads.append(item)
    if delete:
        plan.deletes = sorted(key for key in remote if key not in local)
    return plan


def content_type(path: Path) -> str:
    guessed = EXTRA_TYPES.get(path.suffix.lower()) or mimetypes.guess_type(path.name)[0]
    if not guessed:
        return "application/octet-stream"
    if guessed.startswith("text/") or guessed in {"application/javascript", "application/json", "application/xml"}:
        return f"{guessed}; charset=utf-8"
    return guessed


def upload_file(client: Any, bucket: str, item: LocalFile, acl: str) -> str:
    with item.path.open("rb") as body:
        client.put_object(
            Bucket=bucket,
            Key=item.key,
            Body=body,
            ACL=acl,
            ContentType=content_type(item.path),
            Metadata={MD5_METADATA_KEY: item.md5},
        )
    return item.key


def sync_directory(
    client: Any,
    source: Path,
    bucket: str,
    prefix: str = "",
    acl: str = DEFAULT_ACL,
    delete: bool = True,
    transfers: int = DEFAULT_TRANSFERS,
    dry_run: bool = False,
) -> SyncReport:
    """Mirror ``source`` into ``bucket``.

    New and changed files are uploaded first. Removed files are deleted only
    after every upload succeeded, so a failed deploy never strips pages that
    the previous deploy was still serving.
    """
    if prefix and not prefix.endswith("/"):
        prefix += "/"
    local = scan_local(source, prefix)
    remote = list_remote(client, bucket, prefix)
    plan = plan_sync(local, remote, delete=delete, checksum=lambda obj: remote_md5(client, bucket, obj))
    report = SyncReport(unchanged=len(plan.unchanged), dry_run=dry_run)
    LOGGER.info(
        "Sync plan for s3://%s/%s: %d upload(s), %d delete(s), %d unchanged",
        bucket, prefix, len(plan.uploads), len(plan.deletes), len(plan.unchanged),
    )
    if dry_run:
        report.uploaded = [item.key for item in plan.uploads]
        report.deleted = list(plan.deletes)
        return report

    failed = []
    if plan.uploads:
        workers = max(1, min(transfers, len(plan.uploads)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(upload_file, client, bucket, item, acl): item.key for item in plan.uploads}
            for future in as_completed(futures):
                key = futures[future]
                try:
                    future.result()
                except (BotoCoreError, ClientError, OSError) as exc:
                    LOGGER.error("Upload failed for %s: %s", key, exc)
                    failed.append(key)
                else:
                    LOGGER.debug("Uploaded %s", key)
                    report.uploaded.append(key)
    if failed:
        raise TransportError(f"{len(failed)} upload(s) failed, deletions skipped", failed)

    for start in range(0, len(plan.deletes), 1000):
        batch = plan.deletes[start : start + 1000]
        try:
            response = client.delete_objects(
                Bucket=bucket, Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True}
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"Delete request failed: {exc}", batch) from exc
        errors = [item.get("Key", "") for item in response.get("Errors", [])]
        if errors:
            raise TransportError("Some objects could not be deleted", errors)
        report.deleted.extend(batch)

    report.uploaded.sort()
    return report
