"""Command runner doubles for tests."""

from __future__ import annotations

from pathlib import Path
import shutil
import subprocess
from typing import Callable, Sequence

from core.errors import CommandError
from core.process_runner import CommandResult


class RecordingRunner:
    """Record every command and answer with canned stdout."""

    def __init__(
        self,
        respond: Callable[[tuple[str, ...]], str] | None = None,
        fail_when: Callable[[tuple[str, ...]], bool] | None = None,
    ) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.inputs: list[str] = []
        self._respond = respond
        self._fail_when = fail_when

    def run(self, args: Sequence[str], *, input_text: str | None = None) -> CommandResult:
        command = tuple(args)
        self.calls.append(command)
        if input_text is not None:
            self.inputs.append(input_text)
        if self._fail_when is not None and self._fail_when(command):
            raise CommandError(command, 1, "simulated failure")
        stdout = self._respond(command) if self._respond is not None else ""
        return CommandResult(args=command, returncode=0, stdout=stdout, stderr="")

    def calls_to(self, binary: str) -> list[tuple[str, ...]]:
        """Return recorded calls whose executable is ``binary``."""
        return [call for call in self.calls if call[0] == binary]


class LoopbackRemoteRunner:
    """Treat the "remote" host as the local filesystem.

    ssh commands run through ``sh -c`` and rsync becomes a local copy, so
    transfer scenarios can be checked against real files.
    """

    def __init__(self, fail_when: Callable[[tuple[str, ...]], bool] | None = None) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.inputs: list[tuple[str, str]] = []
        self._fail_when = fail_when

    def run(self, args: Sequence[str], *, input_text: str | None = None) -> CommandResult:
        command = tuple(args)
        self.calls.append(command)
        if self._fail_when is not None and self._fail_when(command):
            raise CommandError(command, 1, "simulated failure")
        if command[0] == "ssh":
            if input_text is not None:
                self.inputs.append((command[-1], input_text))
            completed = subprocess.run(
                ["sh", "-c", command[-1]],
                input=input_text,
                capture_output=True,
                text=True,
                check=False,
            )
            if completed.returncode != 0:
                raise CommandError(command, completed.returncode, completed.stderr)
            return CommandResult(command, 0, completed.stdout, completed.stderr)
        if command[0] == "rsync":
            _local_rsync(command[-2], command[-1].split(":", 1)[1])
            return CommandResult(command, 0, "", "")
        raise AssertionError(f"unexpected command {command}")

    def calls_to(self, binary: str) -> list[tuple[str, ...]]:
        """Return recorded calls whose executable is ``binary``."""
        return [call for call in self.calls if call[0] == binary]

    def ssh_commands(self) -> list[str]:
        """Return the remote shell commands issued so far."""
        return [call[-1] for call in self.calls if call[0] == "ssh"]


def _local_rsync(source: str, destination: str) -> None:
    source_path = Path(source)
    if source.endswith("/"):
        Path(destination).mkdir(parents=True, exist_ok=True)
        shutil.copytree(source_path, destination, dirs_exist_ok=True)
        return
    shutil.copy2(source_path, destination)
