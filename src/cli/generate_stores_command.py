"""Store generation command wiring for Nodekit CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from cli.argument_types import positive_int
from core.constants import (
    CA_SCOPES,
    DEFAULT_CA_SCOPE,
    DEFAULT_KEY_SIZE,
    DEFAULT_KEYSTORE_PREFIX,
    DEFAULT_KEYSTORE_SUFFIX,
    DEFAULT_NODE_ID,
    DEFAULT_TRUSTSTORE_NAME,
    DEFAULT_VALID_DAYS,
)
from core.run_spec_execution import format_store_result
from core.types import StoreOptions
from sdk.client import NodekitClient


def add_generate_stores_command(subparsers: Any) -> None:
    """Register generate-stores subcommand."""
    parser = subparsers.add_parser(
        "generate-stores",
        help="Generate node keystores and a shared truststore for internode TLS",
        description=(
            "Passwords are read from TRUSTSTORE_PASSWORD and EXISTING_TRUSTSTORE_PASSWORD, "
            "generated with --generate-passwords, or prompted for."
        ),
    )
    parser.add_argument("ca_config", help="OpenSSL req configuration for the root authority")
    parser.add_argument(
        "-g",
        "--generate-passwords",
        action="store_true",
        help="Generate store passwords and record them in stores.password",
    )
    parser.add_argument(
        "--scope",
        choices=CA_SCOPES,
        default=DEFAULT_CA_SCOPE,
        help="One root authority per node (host) or per run (cluster)",
    )
    parser.add_argument(
        "-c",
        "--cluster-scope",
        dest="scope",
        action="store_const",
        const="cluster",
        help="Shortcut for --scope cluster",
    )
    parser.add_argument(
        "-n",
        "--nodes",
        default=DEFAULT_NODE_ID,
        help="Comma separated node list, e.g. 127.0.0.1,127.0.0.2",
    )
    parser.add_argument(
        "-p",
        "--keystore-prefix",
        default=DEFAULT_KEYSTORE_PREFIX,
        help="Keystore file name prefix",
    )
    parser.add_argument(
        "-s",
        "--keystore-suffix",
        default=DEFAULT_KEYSTORE_SUFFIX,
        help="Keystore file name suffix before .jks",
    )
    parser.add_argument(
        "-t",
        "--truststore-name",
        default=DEFAULT_TRUSTSTORE_NAME,
        help="Truststore file name; .jks is appended when missing",
    )
    parser.add_argument(
        "-z",
        "--key-size",
        type=positive_int,
        default=DEFAULT_KEY_SIZE,
        help="Keystore key size in bits",
    )
    parser.add_argument(
        "-v",
        "--valid-days",
        type=positive_int,
        default=DEFAULT_VALID_DAYS,
        help="Certificate validity in days",
    )
    parser.add_argument(
        "-e",
        "--existing-truststore",
        help="Existing truststore that also receives the new authorities",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        help="Artifact directory, defaults to ./ssl_artifacts_<timestamp>",
    )
    parser.add_argument("--dname", help="Distinguished name used instead of the config file")


def run_generate_stores_command(client: NodekitClient, args: argparse.Namespace) -> int:
    """Handle generate-stores command."""
    nodes = tuple(node.strip() for node in args.nodes.split(",") if node.strip())
    options = StoreOptions(
        ca_config_path=Path(args.ca_config).expanduser(),
        nodes=nodes,
        scope=args.scope,
        generate_passwords=args.generate_passwords,
        keystore_prefix=args.keystore_prefix,
        keystore_suffix=args.keystore_suffix,
        truststore_name=args.truststore_name,
        key_size=args.key_size,
        valid_days=args.valid_days,
        existing_truststore=Path(args.existing_truststore) if args.existing_truststore else None,
        output_dir=Path(args.output_dir) if args.output_dir else None,
        dname=args.dname,
    )
    result = client.generate_stores(options)
    for line in format_store_result(result):
        print(line)
    return 0
