"""Unit tests for keystore and truststore generation."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pytest

from core.config import NodekitConfig
from core.errors import NodekitConfigError, StoreGenerationError
from core.types import StoreOptions
from pki.store_generator import generate_stores, truststore_file_name
from tests.fake_runner import RecordingRunner
from tests.fixture_paths import fixture_path

_RUN_TIME = datetime(2024, 1, 2, 3, 4, 5)


def _options(tmp_path: Path, **overrides: object) -> StoreOptions:
    options = StoreOptions(
        ca_config_path=fixture_path("ca/ca.conf"),
        nodes=("10.0.0.1", "10.0.0.2"),
        generate_passwords=True,
        output_dir=tmp_path / "artifacts",
    )
    return replace(options, **overrides)  # type: ignore[arg-type]


def _authority_requests(runner: RecordingRunner) -> list[tuple[str, ...]]:
    return [call for call in runner.calls_to("openssl") if call[1] == "req"]


def _truststore_imports(runner: RecordingRunner) -> list[tuple[str, ...]]:
    return [call for call in runner.calls_to("keytool") if call[1] == "-importcert"]


def test_host_scope_mints_one_authority_per_node(tmp_path: Path) -> None:
    """Host scope signs each node with its own authority."""
    runner = RecordingRunner()

    result = generate_stores(_options(tmp_path), NodekitConfig(), runner=runner, now=_RUN_TIME)

    assert len(_authority_requests(runner)) == 2 and len(_truststore_imports(runner)) == 2
    assert [authority.alias for authority in result.authorities] == [
        "10-0-0-1_CARoot_20240102_030405",
        "10-0-0-2_CARoot_20240102_030405",
    ]


def test_cluster_scope_mints_one_authority_per_run(tmp_path: Path) -> None:
    """Cluster scope shares one authority and imports it into the truststore once."""
    runner = RecordingRunner()

    result = generate_stores(
        _options(tmp_path, scope="cluster"), NodekitConfig(), runner=runner, now=_RUN_TIME
    )

    assert len(_authority_requests(runner)) == 1 and len(_truststore_imports(runner)) == 1
    assert len(result.authorities) == 1


def test_cluster_scope_runs_never_share_an_authority(tmp_path: Path) -> None:
    """Two cluster runs produce two distinct authorities."""
    first = generate_stores(
        _options(tmp_path, scope="cluster", output_dir=tmp_path / "first"),
        NodekitConfig(),
        runner=RecordingRunner(),
        now=_RUN_TIME,
    )
    second = generate_stores(
        _options(tmp_path, scope="cluster", output_dir=tmp_path / "second"),
        NodekitConfig(),
        runner=RecordingRunner(),
        now=datetime(2024, 1, 2, 3, 4, 6),
    )

    first_authority, second_authority = first.authorities[0], second.authorities[0]
    assert first_authority.alias != second_authority.alias
    assert first_authority.certificate_path != second_authority.certificate_path


def test_keystore_commands_follow_generation_order(tmp_path: Path) -> None:
    """Each node goes through genkeypair, certreq, sign, and two imports."""
    runner = RecordingRunner()

    generate_stores(
        _options(tmp_path, nodes=("10.0.0.1",)), NodekitConfig(), runner=runner, now=_RUN_TIME
    )

    assert [call[1] for call in runner.calls] == [
        "req",
        "x509",
        "-genkeypair",
        "-certreq",
        "x509",
        "-import",
        "-import",
        "-importcert",
    ]
    genkeypair = runner.calls[2]
    assert genkeypair[genkeypair.index("-dname") + 1] == (
        "C=AU, ST=NSW, L=Sydney, O=Example Org, OU=Cassandra, CN=10-0-0-1_20240102_030405"
    )
    assert genkeypair[genkeypair.index("-keystore") + 1].endswith("10-0-0-1-keystore.jks")


def test_password_ledger_lists_truststore_last(tmp_path: Path) -> None:
    """Keystore rows come first in node order, then the truststore row."""
    config = NodekitConfig(truststore_password="trust-me")

    result = generate_stores(_options(tmp_path), config, runner=RecordingRunner(), now=_RUN_TIME)

    rows = result.password_file.read_text().splitlines()
    assert [row.split(":", 1)[0] for row in rows] == [
        "10-0-0-1-keystore.jks",
        "10-0-0-2-keystore.jks",
        "common-truststore.jks",
    ]
    assert rows[-1] == "common-truststore.jks:trust-me"


def test_existing_truststore_also_receives_authority(tmp_path: Path) -> None:
    """Rotations import the new authority into the old truststore too."""
    runner = RecordingRunner()
    config = NodekitConfig(existing_truststore_password="old-secret")
    existing = tmp_path / "old-truststore.jks"

    generate_stores(
        _options(tmp_path, scope="cluster", existing_truststore=existing),
        config,
        runner=runner,
        now=_RUN_TIME,
    )

    targets = [call[call.index("-keystore") + 1] for call in _truststore_imports(runner)]
    assert targets[1:] == [str(existing)] and len(targets) == 2


def test_existing_truststore_requires_password(tmp_path: Path) -> None:
    """A rotation without the old truststore password fails before any command."""
    runner = RecordingRunner()

    with pytest.raises(NodekitConfigError):
        generate_stores(
            _options(tmp_path, existing_truststore=tmp_path / "old.jks"),
            NodekitConfig(),
            runner=runner,
        )
    assert runner.calls == [] and not (tmp_path / "artifacts").exists()


def test_missing_distinguished_name_fails_before_side_effects(tmp_path: Path) -> None:
    """A config without a distinguished name and no --dname is rejected."""
    runner = RecordingRunner()

    with pytest.raises(NodekitConfigError):
        generate_stores(
            _options(tmp_path, ca_config_path=fixture_path("ca/no_dname.conf")),
            NodekitConfig(),
            runner=runner,
        )
    assert runner.calls == [] and not (tmp_path / "artifacts").exists()


def test_explicit_dname_overrides_config(tmp_path: Path) -> None:
    """A supplied distinguished name replaces the config section."""
    runner = RecordingRunner()

    generate_stores(
        _options(
            tmp_path,
            nodes=("node1",),
            ca_config_path=fixture_path("ca/no_dname.conf"),
            dname="CN=ignored, O=Ops",
        ),
        NodekitConfig(),
        runner=runner,
        now=_RUN_TIME,
    )

    genkeypair = runner.calls_to("keytool")[0]
    assert genkeypair[genkeypair.index("-dname") + 1] == "CN=node1_20240102_030405, O=Ops"


def test_failing_tool_raises_store_generation_error(tmp_path: Path) -> None:
    """Any failing openssl or keytool step aborts the run."""
    runner = RecordingRunner(fail_when=lambda command: command[1] == "-certreq")

    with pytest.raises(StoreGenerationError):
        generate_stores(_options(tmp_path), NodekitConfig(), runner=runner, now=_RUN_TIME)
    assert runner.calls[-1][1] == "-certreq"


def test_serial_file_moves_into_output_dir(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A serial file left by openssl in the working directory is collected."""
    monkeypatch.chdir(tmp_path)
    Path(".srl").write_text("01")

    result = generate_stores(
        _options(tmp_path), NodekitConfig(), runner=RecordingRunner(), now=_RUN_TIME
    )

    assert (result.output_dir / ".srl").read_text() == "01" and not Path(".srl").exists()


def test_prompted_passwords_are_used_when_not_generated(tmp_path: Path) -> None:
    """Without --generate-passwords every store password is asked for."""
    questions: list[str] = []

    def prompt(question: str) -> str:
        questions.append(question)
        return "typed"

    generate_stores(
        _options(tmp_path, generate_passwords=False, nodes=("node1",)),
        NodekitConfig(),
        runner=RecordingRunner(),
        password_prompt=prompt,
        now=_RUN_TIME,
    )

    assert len(questions) == 2 and "node1" in questions[1]


def test_truststore_file_name_appends_extension() -> None:
    """The truststore name always ends in .jks."""
    assert (truststore_file_name("trust"), truststore_file_name("trust.jks")) == (
        "trust.jks",
        "trust.jks",
    )
