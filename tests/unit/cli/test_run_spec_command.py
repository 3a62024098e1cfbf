"""Unit tests for run-spec CLI execution."""

from __future__ import annotations

import pytest

from cli.main import main
from core.types import StoreGenerationResult, StoreOptions, TransferOptions, TransferResult
from sdk.client import NodekitClient
from tests.fixture_paths import fixture_path


def test_cli_run_spec_executes_copy_and_store_steps(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path,
) -> None:
    """Run-spec command should route each step to SDK operations."""
    captured: dict[str, object] = {}

    def _fake_copy(self: NodekitClient, options: TransferOptions) -> TransferResult:
        captured["remote"] = options.remote.login
        captured["exclude"] = options.exclude
        return TransferResult()

    def _fake_generate(self: NodekitClient, options: StoreOptions) -> StoreGenerationResult:
        captured["nodes"] = options.nodes
        captured["scope"] = options.scope
        return StoreGenerationResult(
            output_dir=tmp_path,
            truststore_path=tmp_path / "common-truststore.jks",
            password_file=tmp_path / "stores.password",
        )

    monkeypatch.setattr(NodekitClient, "copy_snapshot", _fake_copy)
    monkeypatch.setattr(NodekitClient, "generate_stores", _fake_generate)
    exit_code = main(["run-spec", str(fixture_path("run_spec/valid_pipeline.yaml"))])
    output = capsys.readouterr().out.strip().splitlines()

    assert (
        exit_code == 0
        and output[:3] == ["jobs=0", "status=nothing-to-copy", f"output_dir={tmp_path}"]
        and captured
        == {
            "remote": "cassandra@10.0.0.2",
            "exclude": ("ks1.t1",),
            "nodes": ("10.0.0.1", "10.0.0.2"),
            "scope": "cluster",
        }
    )


def test_cli_run_spec_missing_remote_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    """Run-spec should fail when a copy step has no remote login."""
    exit_code = main(["run-spec", str(fixture_path("run_spec/missing_remote.yaml"))])

    assert exit_code == 1 and "remote_user" in capsys.readouterr().err


def test_cli_run_spec_check_lists_steps_without_running(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """--check validates the file and never calls the SDK workflows."""

    def _unexpected(self: NodekitClient, options: object) -> None:
        raise AssertionError("workflow should not run during --check")

    monkeypatch.setattr(NodekitClient, "copy_snapshot", _unexpected)
    monkeypatch.setattr(NodekitClient, "generate_stores", _unexpected)
    exit_code = main(["run-spec", "--check", str(fixture_path("run_spec/valid_pipeline.yaml"))])

    assert exit_code == 0
    assert capsys.readouterr().out.strip().splitlines() == [
        "step=1 command=copy-snapshot",
        "step=2 command=generate-stores",
    ]
