"""Declarative run-spec files for unattended maintenance.

A run-spec is a YAML document chaining snapshot copies, conflict
resolution, and store generation::

    version: 1
    defaults:
      remote_user: cassandra
      remote_host: 10.0.0.2
    steps:
      - command: copy-snapshot
        local_data_dir: /var/lib/cassandra/data
        snapshot_tag: nightly
        remote_data_dir: /var/lib/cassandra/data

Step arguments are written inline or under an ``args`` mapping. Every
argument name is checked against the command's known fields here, so a
typo fails before the first step runs instead of halfway through.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping, cast

import yaml

from core.errors import NodekitRunSpecError

RunSpecCommand = Literal["copy-snapshot", "resolve-conflicts", "generate-stores"]

RUN_SPEC_VERSION = 1
STEP_FIELDS: dict[RunSpecCommand, frozenset[str]] = {
    "copy-snapshot": frozenset(
        {
            "local_data_dir",
            "snapshot_tag",
            "remote_user",
            "remote_host",
            "remote_data_dir",
            "include",
            "exclude",
            "bandwidth_limit",
            "mode",
            "conflict_policy",
        }
    ),
    "resolve-conflicts": frozenset({"scratch_dir", "destination_dir", "conflict_policy"}),
    "generate-stores": frozenset(
        {
            "ca_config",
            "nodes",
            "scope",
            "generate_passwords",
            "keystore_prefix",
            "keystore_suffix",
            "truststore_name",
            "key_size",
            "valid_days",
            "existing_truststore",
            "output_dir",
            "dname",
        }
    ),
}
_ROOT_FIELDS = frozenset({"version", "defaults", "steps"})
_DEFAULT_FIELDS = frozenset({"remote_user", "remote_host"})


@dataclass(frozen=True)
class RunSpecDefaults:
    """Remote login shared by every copy-snapshot step."""

    remote_user: str | None = None
    remote_host: str | None = None


@dataclass(frozen=True)
class RunSpecStep:
    """One command with its raw arguments."""

    command: RunSpecCommand
    args: Mapping[str, object]


@dataclass(frozen=True)
class RunSpec:
    """Validated run-spec document."""

    version: int
    defaults: RunSpecDefaults
    steps: tuple[RunSpecStep, ...]


def load_run_spec(spec_path: str) -> RunSpec:
    """Read and validate a YAML run-spec.

    Args:
        spec_path: Path of the YAML file.

    Returns:
        Validated run-spec.

    Raises:
        NodekitRunSpecError: If the file cannot be read or fails validation.
    """
    spec_file = Path(spec_path).expanduser()
    document = _mapping(_read_yaml(spec_file), f"run spec {spec_file}")
    _reject_unknown(document, _ROOT_FIELDS, "run spec root")
    version = document.get("version")
    if version != RUN_SPEC_VERSION or isinstance(version, bool):
        raise NodekitRunSpecError(
            f"Run spec {spec_file} has version {version!r}; only version: 1 is supported."
        )
    raw_steps = document.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise NodekitRunSpecError(f"Run spec {spec_file} needs a non-empty 'steps' list.")
    return RunSpec(
        version=RUN_SPEC_VERSION,
        defaults=_defaults(document.get("defaults")),
        steps=tuple(_step(raw_step, number) for number, raw_step in enumerate(raw_steps, 1)),
    )


def _read_yaml(spec_file: Path) -> object:
    try:
        text = spec_file.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise NodekitRunSpecError(f"Run spec {spec_file} does not exist.") from error
    except OSError as error:
        raise NodekitRunSpecError(f"Cannot read run spec {spec_file}: {error}.") from error
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise NodekitRunSpecError(f"Run spec {spec_file} is not valid YAML: {error}") from error
    if document is None:
        raise NodekitRunSpecError(f"Run spec {spec_file} is empty.")
    return cast(object, document)


def _mapping(value: object, context: str) -> dict[str, object]:
    if not isinstance(value, Mapping):
        raise NodekitRunSpecError(f"{context} must be a mapping, got {type(value).__name__}.")
    if not all(isinstance(key, str) for key in value):
        raise NodekitRunSpecError(f"{context} must only use string keys.")
    return dict(value)


def _reject_unknown(mapping: Mapping[str, object], allowed: frozenset[str], context: str) -> None:
    unknown = sorted(set(mapping) - allowed)
    if unknown:
        raise NodekitRunSpecError(f"Unknown fields in {context}: {', '.join(unknown)}.")


def _defaults(raw_defaults: object) -> RunSpecDefaults:
    if raw_defaults is None:
        return RunSpecDefaults()
    defaults = _mapping(raw_defaults, "run spec defaults")
    _reject_unknown(defaults, _DEFAULT_FIELDS, "run spec defaults")
    values: dict[str, str | None] = {}
    for name in _DEFAULT_FIELDS:
        value = defaults.get(name)
        if isinstance(value, str):
            values[name] = value.strip() or None
        elif value is not None:
            raise NodekitRunSpecError(f"Run spec default '{name}' must be a string.")
    return RunSpecDefaults(**values)


def _step(raw_step: object, number: int) -> RunSpecStep:
    context = f"run spec step #{number}"
    step = _mapping(raw_step, context)
    command = step.pop("command", None)
    if not isinstance(command, str) or command not in STEP_FIELDS:
        known = ", ".join(STEP_FIELDS)
        raise NodekitRunSpecError(
            f"Unsupported command {command!r} in {context}. Use one of: {known}."
        )
    typed_command = cast(RunSpecCommand, command)
    if "args" in step:
        if len(step) > 1:
            raise NodekitRunSpecError(f"{context} mixes 'args' with inline fields.")
        step = _mapping(step["args"], f"{context} args")
    _reject_unknown(step, STEP_FIELDS[typed_command], f"{context} ({typed_command})")
    return RunSpecStep(command=typed_command, args=step)
