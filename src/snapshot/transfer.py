"""Snapshot transfer orchestration.

This module pushes located snapshot directories to a remote Cassandra node
with rsync and relocates the files over ssh. Indirect mode stages files in
a scratch directory and applies a conflict-resolved move plan through a
helper script; direct mode copies in place after deleting colliding files.
Any failing external command aborts the run.
"""

from __future__ import annotations

import os
import shlex
from typing import Sequence

from core.config import NodekitConfig
from core.constants import MOVE_SCRIPT_NAME, RSYNC_TRANSFER_FLAGS, SCRATCH_DIR_SUFFIX
from core.errors import CommandError, NodekitUsageError, TransferError
from core.logging_config import get_logger
from core.process_runner import CommandRunner, SubprocessRunner
from core.types import (
    ConfirmCallback,
    FileMove,
    MovePlan,
    RemoteTarget,
    SnapshotDirectory,
    TransferJob,
    TransferOptions,
    TransferResult,
    auto_confirm,
)
from snapshot.conflict_resolver import conflicting_files, plan_moves, render_move_script
from snapshot.locator import locate_snapshots, match_table_dirs
from snapshot.sstable_name import try_parse_sstable_name

_LOGGER = get_logger(__name__)


class RemoteSession:
    """ssh and rsync operations against one remote node."""

    def __init__(
        self,
        target: RemoteTarget,
        config: NodekitConfig,
        runner: CommandRunner,
        bandwidth_limit: int | None = None,
    ) -> None:
        self._target = target
        self._config = config
        self._runner = runner
        self._bandwidth_limit = bandwidth_limit

    def execute(self, command: str) -> str:
        """Run a shell command on the remote host and return its stdout."""
        result = self._runner.run([self._config.ssh_bin, self._target.login, command])
        return result.stdout

    def push(self, local_path: str, remote_path: str) -> None:
        """Copy a local path to the remote host with rsync."""
        args = [self._config.rsync_bin, *RSYNC_TRANSFER_FLAGS, "-e", self._config.ssh_bin]
        if self._bandwidth_limit is not None:
            args.append(f"--bwlimit={self._bandwidth_limit}")
        args.extend([local_path, f"{self._target.login}:{remote_path}"])
        self._runner.run(args)

    def upload_text(self, content: str, remote_path: str) -> None:
        """Write text to a remote file through the ssh session's stdin."""
        self._runner.run(
            [self._config.ssh_bin, self._target.login, f"cat > {shlex.quote(remote_path)}"],
            input_text=content,
        )

    def list_files(self, directory: str) -> list[str]:
        """List regular file names directly inside a remote directory."""
        return self._list_entries(directory, "f")

    def list_dirs(self, directory: str) -> list[str]:
        """List subdirectory names directly inside a remote directory."""
        return self._list_entries(directory, "d")

    def _list_entries(self, directory: str, entry_type: str) -> list[str]:
        output = self.execute(
            f"cd {shlex.quote(directory)} && "
            f"find . -mindepth 1 -maxdepth 1 -type {entry_type}"
        )
        return sorted(line[2:] for line in output.splitlines() if line.startswith("./"))


def copy_snapshot(
    options: TransferOptions,
    config: NodekitConfig,
    runner: CommandRunner | None = None,
    confirm: ConfirmCallback | None = None,
) -> TransferResult:
    """Copy a local snapshot to a remote node.

    Args:
        options: Transfer options.
        config: Runtime configuration naming the ssh and rsync binaries.
        runner: External command runner; subprocess by default.
        confirm: Confirmation callback; auto-confirm when omitted.

    Returns:
        Summary of executed jobs and applied move plans.

    Raises:
        TransferError: If any remote command fails or a destination is ambiguous.
        NodekitUsageError: If local inputs are invalid or direct mode is asked to
            preserve colliding generations.
    """
    if options.mode == "direct" and options.conflict_policy == "preserve":
        raise NodekitUsageError(
            "Direct mode copies files in place and cannot preserve colliding generations. "
            "Use conflict policy 'overwrite' or switch to indirect mode."
        )
    ask = auto_confirm if options.assume_yes or confirm is None else confirm
    session = RemoteSession(
        target=options.remote,
        config=config,
        runner=runner or SubprocessRunner(),
        bandwidth_limit=options.bandwidth_limit,
    )
    snapshots = locate_snapshots(
        options.local_data_dir,
        options.snapshot_tag,
        include=options.include,
        exclude=options.exclude,
    )
    if not snapshots:
        _LOGGER.info("transfer_nothing_to_copy", snapshot_tag=options.snapshot_tag)
        return TransferResult()
    try:
        jobs = tuple(_build_job(session, options.remote, snapshot) for snapshot in snapshots)
        if not ask(_transfer_question(options, jobs)):
            _LOGGER.info("transfer_declined", job_count=len(jobs))
            return TransferResult(jobs=jobs, aborted=True)
        if options.mode == "direct":
            return _copy_direct(session, jobs)
        return _copy_indirect(session, options, jobs, ask)
    except CommandError as error:
        raise TransferError(
            f"Snapshot transfer to {options.remote.host} aborted: {error}. "
            "Files already moved are left in place."
        ) from error


def scratch_dir_for(options: TransferOptions) -> str:
    """Return the remote scratch directory used by indirect transfers."""
    return os.path.join(options.remote.data_dir, f"{options.snapshot_tag}{SCRATCH_DIR_SUFFIX}")


def _build_job(session: RemoteSession, remote: RemoteTarget, snapshot: SnapshotDirectory) -> TransferJob:
    keyspace_dir = os.path.join(remote.data_dir, snapshot.keyspace)
    try:
        table_dirs = session.list_dirs(keyspace_dir)
    except CommandError as error:
        raise TransferError(
            f"Remote keyspace directory {keyspace_dir} is not readable on {remote.host}: {error}. "
            "Create the schema on the remote node before copying."
        ) from error
    if snapshot.table_dir_name in table_dirs:
        matches = [snapshot.table_dir_name]
    else:
        matches = match_table_dirs(table_dirs, snapshot.table)
    if len(matches) != 1:
        found = ", ".join(matches) if matches else "none"
        raise TransferError(
            f"Cannot resolve a unique remote directory for {snapshot.keyspace}.{snapshot.table} "
            f"under {keyspace_dir} (found: {found}). Remove stale table directories and retry."
        )
    return TransferJob(snapshot=snapshot, destination_dir=os.path.join(keyspace_dir, matches[0]))


def _copy_indirect(
    session: RemoteSession,
    options: TransferOptions,
    jobs: Sequence[TransferJob],
    ask: ConfirmCallback,
) -> TransferResult:
    scratch_dir = scratch_dir_for(options)
    helper_path = os.path.join(options.remote.data_dir, MOVE_SCRIPT_NAME)
    session.execute(f"mkdir -p {shlex.quote(scratch_dir)}")
    plans: list[MovePlan] = []
    for job in jobs:
        _LOGGER.info(
            "transfer_job_started",
            mode="indirect",
            source=str(job.snapshot.path),
            destination=job.destination_dir,
        )
        session.push(f"{job.snapshot.path}/", f"{scratch_dir}/")
        plan = plan_moves(
            incoming=_snapshot_files(job.snapshot),
            existing=session.list_files(job.destination_dir),
            source_dir=scratch_dir,
            destination_dir=job.destination_dir,
            policy=options.conflict_policy,
            keyspace=job.snapshot.keyspace,
            table=job.snapshot.table,
        )
        session.upload_text(_helper_script(plan), helper_path)
        session.execute(f"sh {shlex.quote(helper_path)}")
        plans.append(plan)
        _LOGGER.info(
            "transfer_job_completed",
            destination=job.destination_dir,
            moved=len(plan.moves),
            renamed=plan.renamed_count,
            removed=len(plan.removals),
        )
    cleanup_question = (
        f"Delete {scratch_dir} directory and {MOVE_SCRIPT_NAME} "
        f"on remote host {options.remote.host}?"
    )
    if not ask(cleanup_question):
        _LOGGER.info("transfer_cleanup_declined", scratch_dir=scratch_dir)
        return TransferResult(jobs=tuple(jobs), plans=tuple(plans), aborted=True)
    cleanup_error = None
    try:
        session.execute(f"rm {shlex.quote(helper_path)} && rmdir {shlex.quote(scratch_dir)}")
    except CommandError as error:
        cleanup_error = str(error)
        _LOGGER.error("transfer_cleanup_failed", scratch_dir=scratch_dir, error=cleanup_error)
    return TransferResult(jobs=tuple(jobs), plans=tuple(plans), cleanup_error=cleanup_error)


def _copy_direct(session: RemoteSession, jobs: Sequence[TransferJob]) -> TransferResult:
    plans: list[MovePlan] = []
    for job in jobs:
        _LOGGER.info(
            "transfer_job_started",
            mode="direct",
            source=str(job.snapshot.path),
            destination=job.destination_dir,
        )
        incoming = _snapshot_files(job.snapshot)
        removals = conflicting_files(incoming, session.list_files(job.destination_dir))
        if removals:
            quoted = " ".join(
                shlex.quote(os.path.join(job.destination_dir, file_name)) for file_name in removals
            )
            session.execute(f"rm -f -- {quoted}")
        session.push(f"{job.snapshot.path}/", f"{job.destination_dir}/")
        plans.append(
            MovePlan(
                source_dir=str(job.snapshot.path),
                destination_dir=job.destination_dir,
                removals=removals,
                moves=tuple(
                    FileMove(source=file_name, destination=file_name)
                    for file_name in incoming
                    if try_parse_sstable_name(file_name) is not None
                ),
            )
        )
        _LOGGER.info(
            "transfer_job_completed",
            destination=job.destination_dir,
            copied=len(incoming),
            removed=len(removals),
        )
    return TransferResult(jobs=tuple(jobs), plans=tuple(plans))


def _snapshot_files(snapshot: SnapshotDirectory) -> list[str]:
    return sorted(path.name for path in snapshot.path.iterdir() if path.is_file())


def _helper_script(plan: MovePlan) -> str:
    # Non-SSTable leftovers are dropped so the scratch directory can be removed.
    script = render_move_script(plan)
    discards = [
        f"rm -f -- {shlex.quote(os.path.join(plan.source_dir, file_name))}"
        for file_name in plan.skipped
    ]
    return script + "".join(f"{line}\n" for line in discards)


def _transfer_question(options: TransferOptions, jobs: Sequence[TransferJob]) -> str:
    rows = [
        f"I will copy the following tables in snapshot tag {options.snapshot_tag} "
        f"to '{options.remote.data_dir}' on remote host {options.remote.host} "
        f"({options.mode} mode, {options.conflict_policy} policy):"
    ]
    rows.extend(f"  {job.snapshot.path} -> {job.destination_dir}" for job in jobs)
    rows.append("Is it ok to proceed with the transfer?")
    return "\n".join(rows)
