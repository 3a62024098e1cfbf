"""Local conflict resolution command wiring for Nodekit CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.constants import CONFLICT_POLICIES, DEFAULT_CONFLICT_POLICY
from core.run_spec_execution import format_move_plan
from sdk.client import NodekitClient


def add_resolve_conflicts_command(subparsers: Any) -> None:
    """Register resolve-conflicts subcommand."""
    parser = subparsers.add_parser(
        "resolve-conflicts",
        help="Move staged SSTables into a table directory on this host",
    )
    parser.add_argument("scratch_dir", help="Directory holding copied SSTable files")
    parser.add_argument("destination_dir", help="Final keyspace/table directory")
    parser.add_argument(
        "-p",
        "--conflict-policy",
        choices=CONFLICT_POLICIES,
        default=DEFAULT_CONFLICT_POLICY,
        help="Rename colliding generations (preserve) or replace existing files (overwrite)",
    )


def run_resolve_conflicts_command(client: NodekitClient, args: argparse.Namespace) -> int:
    """Handle resolve-conflicts command."""
    plan = client.resolve_conflicts(args.scratch_dir, args.destination_dir, args.conflict_policy)
    for move in plan.moves:
        print(f"{move.source} -> {move.destination}")
    for line in format_move_plan(plan):
        print(line)
    return 0
