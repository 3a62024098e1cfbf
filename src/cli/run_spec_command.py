"""run-spec subcommand: execute or validate a YAML maintenance run."""

from __future__ import annotations

import argparse
from typing import Any

from core.run_spec import load_run_spec
from sdk.client import NodekitClient


def add_run_spec_command(subparsers: Any) -> None:
    """Register run-spec subcommand."""
    parser = subparsers.add_parser(
        "run-spec",
        help="Run a declarative YAML maintenance spec without prompts",
        description=(
            "Steps run in order with every confirmation answered yes and store "
            "passwords generated unless a step says otherwise. The first failing "
            "step stops the run."
        ),
    )
    parser.add_argument("spec_file", help="Path to YAML run-spec file")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate the file and list its steps without running them",
    )


def run_run_spec_command(client: NodekitClient, args: argparse.Namespace) -> int:
    """Handle run-spec command invocation."""
    if args.check:
        spec = load_run_spec(args.spec_file)
        for number, step in enumerate(spec.steps, 1):
            print(f"step={number} command={step.command}")
        return 0
    for line in client.run_spec(args.spec_file):
        print(line)
    return 0
