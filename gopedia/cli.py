from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .builder import BuildOptions, build_site
from .config import SiteConfig, load_config, lookup_setting
from .deploy import DEFAULT_ACL, DEFAULT_TRANSFERS, DeployCredentials, make_client, sync_directory
from .errors import GopediaError
from .pipeline import DeployOptions, publish
from .utils import parse_bool, parse_int

DEFAULT_CONFIG = "config.yaml"


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    if not verbose:
        for name in ("boto3", "botocore", "urllib3", "s3transfer", "MARKDOWN"):
            logging.getLogger(name).setLevel(logging.WARNING)


def build_parser(config: dict) -> argparse.ArgumentParser:
    def cfg_value(key: str, default: object) -> object:
        value = lookup_setting(config, key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(prog="gopedia", description="Build and publish the Gopedia static site.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to site config file (YAML/TOML/JSON).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    def add_common_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--config", default=argparse.SUPPRESS, help="Path to site config file (YAML/TOML/JSON).")
        sub.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Verbose logging.")

    def add_build_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--source", default=cfg_str("contentDir", "content"), help="Content directory.")
        sub.add_argument("--destination", default=cfg_str("publishDir", "public"), help="Output directory.")
        sub.add_argument("--static", default=cfg_str("staticDir", "static"), help="Site static assets directory.")
        sub.add_argument("--themes-dir", default=cfg_str("themesDir", "themes"), help="Directory holding themes.")
        sub.add_argument("--base-url", default=None, help="Override baseURL for this build.")
        sub.add_argument(
            "--minify",
            action=argparse.BooleanOptionalAction,
            default=cfg_bool("minify.minifyOutput", False),
            help="Minify HTML, CSS, JS and XML output.",
        )
        sub.add_argument("--build-drafts", "-D", action="store_true", default=None, help="Include drafts.")
        sub.add_argument("--build-future", "-F", action="store_true", default=None, help="Include future-dated pages.")
        sub.add_argument("--build-expired", "-E", action="store_true", default=None, help="Include expired pages.")
        sub.add_argument(
            "--clean",
            action=argparse.BooleanOptionalAction,
            default=cfg_bool("cleanDestinationDir", True),
            help="Remove the destination directory before writing.",
        )
        sub.add_argument(
            "--build-workers",
            default=cfg_int("buildWorkers", 0),
            type=int,
            help="Number of worker threads for rendering (0 = auto).",
        )

    def add_deploy_args(sub: argparse.ArgumentParser, with_source: bool) -> None:
        if with_source:
            sub.add_argument("--source", default=cfg_str("publishDir", "public"), help="Directory to upload.")
        sub.add_argument("--bucket", default=cfg_str("deploy.bucket", ""), help="Target bucket name.")
        sub.add_argument("--prefix", default=cfg_str("deploy.prefix", ""), help="Key prefix inside the bucket.")
        sub.add_argument("--endpoint", default=cfg_str("deploy.endpoint", ""), help="S3-compatible endpoint URL.")
        sub.add_argument("--acl", default=cfg_str("deploy.acl", DEFAULT_ACL), help="Canned ACL applied to each object.")
        sub.add_argument(
            "--delete",
            action=argparse.BooleanOptionalAction,
            default=cfg_bool("deploy.delete", True),
            help="Delete remote objects that are no longer in the build.",
        )
        sub.add_argument(
            "--transfers",
            default=cfg_int("deploy.transfers", DEFAULT_TRANSFERS),
            type=int,
            help="Number of parallel uploads.",
        )
        sub.add_argument("--dry-run", action="store_true", help="Report what would change without changing it.")

    build = commands.add_parser("build", help="Generate the static site.")
    add_common_args(build)
    add_build_args(build)
    deploy = commands.add_parser("deploy", help="Mirror a built site to the bucket.")
    add_common_args(deploy)
    add_deploy_args(deploy, with_source=True)
    publish_cmd = commands.add_parser("publish", help="Build, then deploy if the build succeeded.")
    add_common_args(publish_cmd)
    add_build_args(publish_cmd)
    add_deploy_args(publish_cmd, with_source=False)
    return parser


def site_config_from_args(raw: dict, args: argparse.Namespace) -> SiteConfig:
    config = SiteConfig.from_mapping(raw)
    return config.with_overrides(
        base_url=args.base_url,
        build_drafts=args.build_drafts,
        build_future=args.build_future,
        build_expired=args.build_expired,
    )


def build_options_from_args(args: argparse.Namespace) -> BuildOptions:
    return BuildOptions(
        content_dir=Path(args.source),
        output_dir=Path(args.destination),
        themes_dir=Path(args.themes_dir),
        static_dir=Path(args.static),
        project_root=Path.cwd(),
        minify=args.minify,
        clean=args.clean,
        workers=args.build_workers,
    )


def deploy_options_from_args(args: argparse.Namespace) -> DeployOptions:
    if not args.bucket:
        raise GopediaError("A bucket is required (--bucket or deploy.bucket in the config).")
    return DeployOptions(
        bucket=args.bucket,
        prefix=args.prefix,
        acl=args.acl,
        delete=args.delete,
        transfers=max(1, args.transfers),
        dry_run=args.dry_run,
    )


def print_report(report, bucket: str) -> None:
    verb = "Would upload" if report.dry_run else "Uploaded"
    print(
        f"{verb} {len(report.uploaded)} file(s), "
        f"{'would delete' if report.dry_run else 'deleted'} {len(report.deleted)}, "
        f"{report.unchanged} unchanged in {bucket}."
    )


def run(args: argparse.Namespace, raw: dict) -> None:
    if args.command == "build":
        config = site_config_from_args(raw, args)
        artifact = build_site(config, build_options_from_args(args))
        print(f"Site generated in: {args.destination} ({artifact.pages} pages, {len(artifact.files)} files)")
        return

    deploy_options = deploy_options_from_args(args)

    def client_factory():
        return make_client(DeployCredentials.from_env(endpoint_url=args.endpoint))

    if args.command == "deploy":
        report = sync_directory(
            client_factory(),
            Path(args.source),
            deploy_options.bucket,
            prefix=deploy_options.prefix,
            acl=deploy_options.acl,
            delete=deploy_options.delete,
            transfers=deploy_options.transfers,
            dry_run=deploy_options.dry_run,
        )
        print_report(report, deploy_options.bucket)
        return

    config = site_config_from_args(raw, args)
    artifact, report = publish(config, build_options_from_args(args), deploy_options, client_factory)
    print(f"Site generated in: {args.destination} ({artifact.pages} pages, {len(artifact.files)} files)")
    print_report(report, deploy_options.bucket)


def main(argv: Optional[Sequence[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default=DEFAULT_CONFIG)
    pre_args, _ = pre_parser.parse_known_args(argv)
    config_path = Path(pre_args.config)
    config_found = config_path.exists()
    try:
        raw = load_config(config_path) if config_found else {}
    except GopediaError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code

    parser = build_parser(raw)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    if not config_found and args.command != "deploy":
        print(f"error: Config file not found: {config_path}", file=sys.stderr)
        return 1

    start = time.perf_counter()
    try:
        run(args, raw)
    except GopediaError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    elapsed = time.perf_counter() - start
    print(f"Done in {elapsed:.2f}s.")
    return 0
