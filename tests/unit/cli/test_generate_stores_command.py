"""Unit tests for generate-stores CLI wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.types import StoreGenerationResult, StoreOptions
from sdk.client import NodekitClient


def _fake_result(options: StoreOptions) -> StoreGenerationResult:
    output_dir = options.output_dir or Path("ssl_artifacts")
    return StoreGenerationResult(
        output_dir=output_dir,
        truststore_path=output_dir / options.truststore_name,
        password_file=output_dir / "stores.password",
    )


def test_cli_generate_stores_parses_node_list_and_cluster_scope(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Comma separated nodes and the cluster shortcut map onto options."""
    captured: dict[str, StoreOptions] = {}

    def _fake_generate(self: NodekitClient, options: StoreOptions) -> StoreGenerationResult:
        captured["options"] = options
        return _fake_result(options)

    monkeypatch.setattr(NodekitClient, "generate_stores", _fake_generate)
    exit_code = main(
        [
            "generate-stores",
            "ca.conf",
            "-g",
            "-c",
            "-n",
            "10.0.0.1, 10.0.0.2",
            "--keystore-suffix=-ks",
            "-t",
            "trust",
            "-z",
            "4096",
            "-v",
            "730",
            "-o",
            "/tmp/tls",
        ]
    )
    output = capsys.readouterr().out.strip().splitlines()
    options = captured["options"]

    assert exit_code == 0 and output[0] == "output_dir=/tmp/tls"
    assert options.nodes == ("10.0.0.1", "10.0.0.2") and options.scope == "cluster"
    assert options.generate_passwords and options.keystore_suffix == "-ks"
    assert (options.truststore_name, options.key_size, options.valid_days) == ("trust", 4096, 730)


def test_cli_generate_stores_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Defaults mint one host-scoped authority for a single node."""
    captured: dict[str, StoreOptions] = {}

    def _fake_generate(self: NodekitClient, options: StoreOptions) -> StoreGenerationResult:
        captured["options"] = options
        return _fake_result(options)

    monkeypatch.setattr(NodekitClient, "generate_stores", _fake_generate)
    main(["generate-stores", "ca.conf"])

    options = captured["options"]
    assert (options.nodes, options.scope, options.generate_passwords) == (
        ("cassandra-node",),
        "host",
        False,
    )
    assert options.truststore_name == "common-truststore.jks" and options.output_dir is None


@pytest.mark.parametrize(("flag", "value"), [("-z", "0"), ("-v", "-5"), ("--valid-days", "1.5")])
def test_cli_generate_stores_rejects_non_positive_numbers(
    flag: str,
    value: str,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Key size and validity must be positive whole numbers."""
    with pytest.raises(SystemExit) as exit_info:
        main(["generate-stores", "ca.conf", flag, value])

    assert exit_info.value.code == 1
    assert "positive integer" in capsys.readouterr().err
