"""External process execution seam.

Every workflow shells out to rsync, ssh, openssl, or keytool through
the ``CommandRunner`` protocol, so tests can substitute a recording fake
instead of touching a real network or certificate tool.
"""

from __future__ import annotations

from dataclasses import dataclass
import subprocess
from typing import Protocol, Sequence

from core.errors import CommandError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_SECRET_FLAGS = frozenset({"-storepass", "-keypass", "-srcstorepass", "-passin", "-passout"})


@dataclass(frozen=True)
class CommandResult:
    """Completed external command output."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    """Blocking external command execution contract."""

    def run(self, args: Sequence[str], *, input_text: str | None = None) -> CommandResult: ...


class SubprocessRunner:
    """Run commands with ``subprocess`` and fail fast on non-zero exit."""

    def run(self, args: Sequence[str], *, input_text: str | None = None) -> CommandResult:
        """Run one command to completion.

        Args:
            args: Command vector, executable first.
            input_text: Optional text piped to the command's stdin.

        Returns:
            Captured command result.

        Raises:
            CommandError: If the executable is missing or exits non-zero.
        """
        command = tuple(args)
        _LOGGER.info("command_started", command=printable_command(command))
        try:
            completed = subprocess.run(
                command,
                input=input_text,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as error:
            raise CommandError(command, 127, str(error)) from error
        if completed.returncode != 0:
            _LOGGER.error(
                "command_failed",
                command=printable_command(command),
                returncode=completed.returncode,
            )
            raise CommandError(command, completed.returncode, completed.stderr)
        return CommandResult(
            args=command,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


def printable_command(command: Sequence[str]) -> str:
    """Render a command vector for logs with password arguments masked.

    Args:
        command: Command vector.

    Returns:
        Space-joined command with secrets replaced by ``****``.
    """
    rendered: list[str] = []
    mask_next = False
    for token in command:
        if mask_next:
            rendered.append("****")
            mask_next = False
            continue
        rendered.append(token)
        mask_next = token in _SECRET_FLAGS
    return " ".join(rendered)
