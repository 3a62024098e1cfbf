"""Shared run-spec execution engine for CLI and SDK workflows.

This module maps validated run-spec steps to client operations so different
entry points can execute one declarative run without drift. Steps run
strictly in order and the first failure stops the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, cast

from core.constants import CONFLICT_POLICIES, DEFAULT_CONFLICT_POLICY
from core.errors import NodekitRunSpecError
from core.run_spec import RunSpec, RunSpecDefaults, RunSpecStep, load_run_spec
from core.run_spec_fields import choice_with_default, required_string
from core.run_spec_option_builders import (
    build_store_options_for_run_spec,
    build_transfer_options_for_run_spec,
)
from core.types import (
    ConflictPolicy,
    MovePlan,
    StoreGenerationResult,
    StoreOptions,
    TransferOptions,
    TransferResult,
)


class RunSpecClient(Protocol):
    """Client API contract required by run-spec execution."""

    def copy_snapshot(self, options: TransferOptions) -> TransferResult: ...

    def resolve_conflicts(
        self,
        scratch_dir: str,
        destination_dir: str,
        policy: ConflictPolicy = DEFAULT_CONFLICT_POLICY,
    ) -> MovePlan: ...

    def generate_stores(self, options: StoreOptions) -> StoreGenerationResult: ...


@dataclass(frozen=True)
class RunSpecExecutionContext:
    """In-memory context used to execute run-spec steps."""

    client: RunSpecClient
    defaults: RunSpecDefaults


def execute_run_spec_file(client: RunSpecClient, spec_file: str) -> tuple[str, ...]:
    """Load and execute a run-spec file, returning printable output lines."""
    spec = load_run_spec(spec_file)
    return execute_run_spec(client, spec)


def execute_run_spec(client: RunSpecClient, spec: RunSpec) -> tuple[str, ...]:
    """Execute a parsed run-spec object and return output lines."""
    context = RunSpecExecutionContext(client=client, defaults=spec.defaults)
    output_lines: list[str] = []
    for step in spec.steps:
        output_lines.extend(_execute_step(context, step))
    return tuple(output_lines)


def _execute_step(context: RunSpecExecutionContext, step: RunSpecStep) -> tuple[str, ...]:
    if step.command == "copy-snapshot":
        return _execute_copy_snapshot_step(context, step)
    if step.command == "resolve-conflicts":
        return _execute_resolve_conflicts_step(context, step)
    if step.command == "generate-stores":
        return _execute_generate_stores_step(context, step)
    raise NodekitRunSpecError(f"Unsupported run-spec command '{step.command}'.")


def _execute_copy_snapshot_step(
    context: RunSpecExecutionContext,
    step: RunSpecStep,
) -> tuple[str, ...]:
    options = build_transfer_options_for_run_spec(step.args, context.defaults)
    return format_transfer_result(context.client.copy_snapshot(options))


def _execute_resolve_conflicts_step(
    context: RunSpecExecutionContext,
    step: RunSpecStep,
) -> tuple[str, ...]:
    plan = context.client.resolve_conflicts(
        scratch_dir=required_string(step.args, "scratch_dir"),
        destination_dir=required_string(step.args, "destination_dir"),
        policy=cast(
            ConflictPolicy,
            choice_with_default(
                step.args, "conflict_policy", CONFLICT_POLICIES, DEFAULT_CONFLICT_POLICY
            ),
        ),
    )
    return format_move_plan(plan)


def _execute_generate_stores_step(
    context: RunSpecExecutionContext,
    step: RunSpecStep,
) -> tuple[str, ...]:
    result = context.client.generate_stores(build_store_options_for_run_spec(step.args))
    return format_store_result(result)


def format_transfer_result(result: TransferResult) -> tuple[str, ...]:
    """Render a transfer result as ``key=value`` rows."""
    if not result.jobs:
        return ("jobs=0", "status=nothing-to-copy")
    rows = [f"jobs={len(result.jobs)}"]
    for plan in result.plans:
        rows.extend(format_move_plan(plan))
    if result.aborted:
        rows.append("status=aborted")
    elif result.cleanup_error:
        rows.append(f"cleanup_error={result.cleanup_error}")
        rows.append("status=cleanup-failed")
    else:
        rows.append("status=ok")
    return tuple(rows)


def format_move_plan(plan: MovePlan) -> tuple[str, ...]:
    """Render one move plan as ``key=value`` rows."""
    return (
        f"destination={plan.destination_dir}",
        f"moved={len(plan.moves)}",
        f"renamed={plan.renamed_count}",
        f"removed={len(plan.removals)}",
    )


def format_store_result(result: StoreGenerationResult) -> tuple[str, ...]:
    """Render a store generation result as ``key=value`` rows."""
    rows = [f"output_dir={result.output_dir}"]
    rows.extend(f"keystore={node.keystore_path}" for node in result.nodes)
    rows.append(f"truststore={result.truststore_path}")
    rows.append(f"password_file={result.password_file}")
    rows.append(f"authorities={len(result.authorities)}")
    return tuple(rows)
