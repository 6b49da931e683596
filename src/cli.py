"""Console entry point for the rollerderby CLI."""

from __future__ import annotations

import argparse
import logging
from typing import List

from google.auth.exceptions import GoogleAuthError

from clients import ComputeRestClient
from config import CREDENTIALS_ENV, PROJECT_ENV, ToolConfig
from errors import RollerDerbyError
from log_utils import setup_logging
from metadata import MetadataSynchronizer
from models import RolloutRequest
from reports import (
    list_instance_groups,
    print_comparison,
    print_instance_groups,
    print_keys,
)
from rollout import RollingUpdateController

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description=(
            "Update Compute Engine project metadata and roll managed instance "
            "groups onto it."
        )
    )
    parser.add_argument(
        "--project",
        help=f"GCP project ID, defaults to the {PROJECT_ENV} environment variable",
    )
    parser.add_argument("--key", help="metadata key to update")
    parser.add_argument("--value", help="metadata value to set")
    parser.add_argument("--zone", help="zone of the managed instance group")
    parser.add_argument(
        "--group", help="managed instance group to roll after the update"
    )
    parser.add_argument(
        "--min-ready",
        type=int,
        default=30,
        metavar="SECONDS",
        help="seconds each new instance must be healthy before the next is replaced",
    )
    parser.add_argument(
        "--snapshot-dir",
        default=".",
        help="directory for pre-update metadata snapshots (default: .)",
    )
    parser.add_argument(
        "--compare",
        metavar="PROJECT_ID",
        help="compare this project's metadata to the default project's",
    )
    parser.add_argument(
        "--list", action="store_true", help="list project common metadata"
    )
    parser.add_argument(
        "--list-groups",
        action="store_true",
        help="list managed instance groups and their instances",
    )
    parser.add_argument("--version", action="store_true", help="print version")
    parser.add_argument("--dry-run", action="store_true", help="show changes only")
    parser.add_argument("--verbose", action="store_true")
    return parser


def run(config: ToolConfig, api: ComputeRestClient) -> None:
    """Dispatch to the mode selected by config."""
    sync = MetadataSynchronizer(
        project_id=config.project_id,
        snapshot_dir=config.snapshot_dir,
        dry_run=config.dry_run,
        api=api,
    )

    if config.compare_project:
        keys = sync.compare(config.compare_project)
        print_comparison(keys, config.project_id, config.compare_project)
        return
    if config.list_meta:
        print_keys(sync.list_keys(), config.project_id)
        return
    if config.list_groups:
        print_instance_groups(list_instance_groups(api, config.project_id))
        return

    if config.wants_metadata_update:
        sync.update_key(config.key, config.value)

    if config.group:
        controller = RollingUpdateController(dry_run=config.dry_run, api=api)
        controller.rolling_replace(
            RolloutRequest(
                project_id=config.project_id,
                zone=config.zone,
                group_name=config.group,
                min_ready_sec=config.min_ready_sec,
            )
        )


def main(argv: List[str] | None = None) -> int:
    """CLI main for console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(args=argv)

    config = ToolConfig.from_args(args)
    setup_logging(
        verbose=config.verbose,
        log_file="rollerderby.log",
        plain=config.read_only or config.show_version,
    )

    logger.info(f"version: {config.version}")
    logger.info(f"source: {config.source}")
    if config.show_version:
        return 0

    if config.credentials_path:
        logger.info(f"auth: {config.credentials_path}")
    else:
        logger.info(f"auth: <gcloud auth> ({CREDENTIALS_ENV} not set)")
    logger.info(f"project: {config.project_id}")

    try:
        run(config, ComputeRestClient())
    except GoogleAuthError as e:
        logger.error(f"authentication failed: {e}")
        return 1
    except RollerDerbyError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0
