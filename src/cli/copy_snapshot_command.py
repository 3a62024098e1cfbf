"""Snapshot copy command wiring for Nodekit CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from cli.argument_types import positive_int
from core.constants import (
    CONFLICT_POLICIES,
    DEFAULT_TRANSFER_MODE,
    TRANSFER_MODES,
)
from core.run_spec_execution import format_transfer_result
from core.types import RemoteTarget, TransferOptions, default_conflict_policy
from sdk.client import NodekitClient


def add_copy_snapshot_command(subparsers: Any) -> None:
    """Register copy-snapshot subcommand."""
    parser = subparsers.add_parser(
        "copy-snapshot",
        help="Copy a local snapshot's SSTables to a remote Cassandra node",
        description=(
            "Transfer snapshot SSTable files from the local data directory to a remote node "
            "with rsync. System keyspaces are never copied. In indirect mode colliding "
            "generation numbers are rewritten before files are moved into place."
        ),
    )
    parser.add_argument("local_data_dir", help="Local data_file_directories value")
    parser.add_argument("snapshot_tag", help="Tag name of the snapshot to copy")
    parser.add_argument("remote_user", help="User name for ssh access to the remote host")
    parser.add_argument("remote_host", help="Address of the remote host")
    parser.add_argument("remote_data_dir", help="Remote data_file_directories value")
    parser.add_argument(
        "-i",
        "--include",
        action="append",
        default=[],
        metavar="KEYSPACE[.TABLE]",
        help="Only copy this keyspace or table; repeatable",
    )
    parser.add_argument(
        "-e",
        "--exclude",
        action="append",
        default=[],
        metavar="KEYSPACE[.TABLE]",
        help="Skip this keyspace or table; repeatable",
    )
    parser.add_argument(
        "-b",
        "--bandwidth-limit",
        type=positive_int,
        metavar="KB_SEC",
        help="Maximum rsync bandwidth in kilobytes per second",
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=TRANSFER_MODES,
        default=DEFAULT_TRANSFER_MODE,
        help="Stage through a scratch directory (indirect) or copy in place (direct)",
    )
    parser.add_argument(
        "-p",
        "--conflict-policy",
        choices=CONFLICT_POLICIES,
        help=(
            "Rename colliding generations (preserve) or replace existing files (overwrite); "
            "defaults to preserve in indirect mode and overwrite in direct mode"
        ),
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to all prompts")


def run_copy_snapshot_command(client: NodekitClient, args: argparse.Namespace) -> int:
    """Handle copy-snapshot command."""
    options = TransferOptions(
        local_data_dir=Path(args.local_data_dir).expanduser(),
        snapshot_tag=args.snapshot_tag,
        remote=RemoteTarget(
            user=args.remote_user,
            host=args.remote_host,
            data_dir=args.remote_data_dir,
        ),
        include=tuple(args.include),
        exclude=tuple(args.exclude),
        bandwidth_limit=args.bandwidth_limit,
        mode=args.mode,
        conflict_policy=args.conflict_policy or default_conflict_policy(args.mode),
        assume_yes=args.yes,
    )
    result = client.copy_snapshot(options)
    for line in format_transfer_result(result):
        print(line)
    return 1 if result.cleanup_error else 0
