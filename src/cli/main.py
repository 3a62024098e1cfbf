"""Nodekit CLI entry points.

This module exposes snapshot copy, conflict resolution, store generation,
and run-spec commands. It maps argparse commands onto SDK calls and domain
errors onto process exit codes.
"""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Sequence

from cli.copy_snapshot_command import add_copy_snapshot_command, run_copy_snapshot_command
from cli.generate_stores_command import (
    add_generate_stores_command,
    run_generate_stores_command,
)
from cli.prompts import confirm_on_terminal, prompt_password_on_terminal
from cli.resolve_conflicts_command import (
    add_resolve_conflicts_command,
    run_resolve_conflicts_command,
)
from cli.run_spec_command import add_run_spec_command, run_run_spec_command
from core.config import NodekitConfig
from core.constants import NODEKIT_VERSION
from core.errors import NodekitConfigError, NodekitError
from core.logging_config import set_log_level
from core.process_runner import SubprocessRunner
from sdk.client import ClientCapabilities, NodekitClient

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


class _NodekitArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = _NodekitArgumentParser(
        prog="nodekit",
        description="Cassandra node snapshot copy and TLS store tooling",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s version {NODEKIT_VERSION}",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Minimum structured log level written to stderr",
    )
    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_NodekitArgumentParser,
    )
    add_copy_snapshot_command(subparsers)
    add_resolve_conflicts_command(subparsers)
    add_generate_stores_command(subparsers)
    add_run_spec_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Nodekit CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    set_log_level(args.log_level)
    try:
        client = _build_client()
        return _dispatch(parser, client, args)
    except NodekitConfigError as error:
        print(f"error={error}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except NodekitError as error:
        print(f"error={error}", file=sys.stderr)
        return EXIT_FAILURE


def _build_client() -> NodekitClient:
    """Build SDK client with terminal prompts attached."""
    capabilities = ClientCapabilities(
        runner=SubprocessRunner(),
        confirm=confirm_on_terminal,
        password_prompt=prompt_password_on_terminal,
    )
    return NodekitClient(NodekitConfig.from_env(), capabilities)


def _dispatch(
    parser: argparse.ArgumentParser,
    client: NodekitClient,
    args: argparse.Namespace,
) -> int:
    if args.command == "copy-snapshot":
        return run_copy_snapshot_command(client, args)
    if args.command == "resolve-conflicts":
        return run_resolve_conflicts_command(client, args)
    if args.command == "generate-stores":
        return run_generate_stores_command(client, args)
    if args.command == "run-spec":
        return run_run_spec_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
