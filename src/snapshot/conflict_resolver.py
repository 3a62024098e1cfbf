"""SSTable generation conflict resolution.

Incoming SSTable files land in a scratch directory first. This module
plans their relocation into the final table directory one file group at
a time, so every component of a group receives the same generation, and
executes or renders that plan.
"""

from __future__ import annotations

from collections import OrderedDict
import os
from pathlib import Path
import shlex
import shutil
from typing import Protocol, Sequence

from core.errors import ConflictResolutionError
from core.logging_config import get_logger
from core.types import ConflictPolicy, FileMove, MovePlan
from snapshot.sstable_name import SSTableName, resolve_generation, try_parse_sstable_name

_LOGGER = get_logger(__name__)


class FileOps(Protocol):
    """Filesystem operations required to apply a move plan."""

    def list_files(self, directory: str) -> list[str]: ...

    def remove(self, path: str) -> None: ...

    def move(self, source: str, destination: str) -> None: ...


class LocalFileOps:
    """File operations against the local filesystem."""

    def list_files(self, directory: str) -> list[str]:
        """List regular file names in a directory."""
        directory_path = Path(directory)
        if not directory_path.is_dir():
            raise ConflictResolutionError(
                f"Directory {directory} does not exist. Check the table directory path."
            )
        return sorted(path.name for path in directory_path.iterdir() if path.is_file())

    def remove(self, path: str) -> None:
        """Delete a file if present."""
        Path(path).unlink(missing_ok=True)

    def move(self, source: str, destination: str) -> None:
        """Move a file to its final path."""
        shutil.move(source, destination)


def conflicting_files(incoming: Sequence[str], existing: Sequence[str]) -> tuple[str, ...]:
    """Return existing SSTable files sharing a generation with incoming ones.

    Args:
        incoming: Incoming file names.
        existing: File names already in the destination directory.

    Returns:
        Existing file names that collide, in listing order.
    """
    incoming_generations = {name.generation for name in _parse_all(incoming)}
    return tuple(
        file_name
        for file_name in existing
        if (parsed := try_parse_sstable_name(file_name)) is not None
        and parsed.generation in incoming_generations
    )


def plan_moves(
    incoming: Sequence[str],
    existing: Sequence[str],
    source_dir: str,
    destination_dir: str,
    policy: ConflictPolicy,
    keyspace: str | None = None,
    table: str | None = None,
) -> MovePlan:
    """Plan collision-free relocation of incoming SSTable files.

    Args:
        incoming: File names being relocated from the source directory.
        existing: File names already in the destination directory.
        source_dir: Scratch directory path.
        destination_dir: Final table directory path.
        policy: ``preserve`` renames colliding groups, ``overwrite`` replaces.
        keyspace: Keyspace owning the destination, checked against legacy names.
        table: Table owning the destination, checked against legacy names.

    Returns:
        Move plan covering every incoming SSTable component.

    Raises:
        ConflictResolutionError: If a legacy name belongs to another table.
    """
    groups: OrderedDict[tuple[object, ...], list[SSTableName]] = OrderedDict()
    skipped: list[str] = []
    for file_name in sorted(incoming):
        parsed = try_parse_sstable_name(file_name)
        if parsed is None:
            skipped.append(file_name)
            continue
        _check_owner(parsed, keyspace, table, destination_dir)
        groups.setdefault(parsed.group_key, []).append(parsed)

    existing_generations = {name.generation for name in _parse_all(existing)}
    incoming_generations = {key[3] for key in groups}
    assigned: set[int] = set()
    moves: list[FileMove] = []
    ordered_groups = sorted(groups.values(), key=lambda members: members[0].generation)
    for members in ordered_groups:
        generation = members[0].generation
        target_generation = generation
        if policy == "preserve" and (generation in existing_generations or generation in assigned):
            target_generation = resolve_generation(
                generation,
                existing_generations | incoming_generations | assigned,
            )
        assigned.add(target_generation)
        for member in members:
            moves.append(
                FileMove(
                    source=member.file_name,
                    destination=member.with_generation(target_generation).file_name,
                )
            )
    removals: tuple[str, ...] = ()
    if policy == "overwrite":
        removals = conflicting_files(incoming, existing)
    return MovePlan(
        source_dir=source_dir,
        destination_dir=destination_dir,
        removals=removals,
        moves=tuple(moves),
        skipped=tuple(skipped),
    )


def apply_move_plan(plan: MovePlan, file_ops: FileOps) -> None:
    """Execute a move plan.

    Every destination is checked before the first file is touched, so a
    plan is either applied whole or not at all.

    Args:
        plan: Plan produced by :func:`plan_moves`.
        file_ops: Filesystem capability.

    Raises:
        ConflictResolutionError: If a move would clobber an unplanned file.
    """
    remaining = set(file_ops.list_files(plan.destination_dir)) - set(plan.removals)
    clobbered = sorted(move.destination for move in plan.moves if move.destination in remaining)
    if clobbered:
        raise ConflictResolutionError(
            f"Refusing to overwrite {', '.join(clobbered)} in {plan.destination_dir}. "
            "The destination changed after planning; rerun the resolver."
        )
    for file_name in plan.removals:
        file_ops.remove(os.path.join(plan.destination_dir, file_name))
    for move in plan.moves:
        file_ops.move(
            os.path.join(plan.source_dir, move.source),
            os.path.join(plan.destination_dir, move.destination),
        )


def render_move_script(plan: MovePlan) -> str:
    """Render a move plan as a POSIX shell script for remote execution."""
    lines = ["#!/bin/sh", "set -e"]
    for file_name in plan.removals:
        lines.append(f"rm -f -- {shlex.quote(os.path.join(plan.destination_dir, file_name))}")
    for move in plan.moves:
        source = shlex.quote(os.path.join(plan.source_dir, move.source))
        destination = shlex.quote(os.path.join(plan.destination_dir, move.destination))
        lines.append(f"mv -v -- {source} {destination}")
    return "\n".join(lines) + "\n"


def resolve_conflicts(
    scratch_dir: str,
    destination_dir: str,
    policy: ConflictPolicy,
    file_ops: FileOps | None = None,
) -> MovePlan:
    """Relocate scratch files into a table directory on this host.

    Args:
        scratch_dir: Directory holding freshly copied SSTable files.
        destination_dir: Final table directory.
        policy: Conflict policy.
        file_ops: Filesystem capability; local filesystem by default.

    Returns:
        The applied plan.
    """
    operations = file_ops or LocalFileOps()
    plan = plan_moves(
        incoming=operations.list_files(scratch_dir),
        existing=operations.list_files(destination_dir),
        source_dir=scratch_dir,
        destination_dir=destination_dir,
        policy=policy,
    )
    apply_move_plan(plan, operations)
    _LOGGER.info(
        "conflicts_resolved",
        destination_dir=destination_dir,
        moved=len(plan.moves),
        renamed=plan.renamed_count,
        removed=len(plan.removals),
        policy=policy,
    )
    return plan


def _parse_all(file_names: Sequence[str]) -> list[SSTableName]:
    parsed = (try_parse_sstable_name(file_name) for file_name in file_names)
    return [name for name in parsed if name is not None]


def _check_owner(
    name: SSTableName,
    keyspace: str | None,
    table: str | None,
    destination_dir: str,
) -> None:
    if not name.legacy:
        return
    if (keyspace is not None and name.keyspace != keyspace) or (
        table is not None and name.table != table
    ):
        raise ConflictResolutionError(
            f"{name.file_name} belongs to {name.keyspace}.{name.table}, not to the table "
            f"in {destination_dir}. Remove stray files from the scratch directory and retry."
        )
