"""Nodekit exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each workflow raises a specific error type so the CLI can map it
onto an operator-facing exit code.
"""

from __future__ import annotations


class NodekitError(Exception):
    """Base exception for all Nodekit failures."""


class NodekitConfigError(NodekitError):
    """Raised for invalid runtime configuration or missing preconditions."""


class NodekitUsageError(NodekitError):
    """Raised for invalid command-line arguments."""


class CommandError(NodekitError):
    """Raised when an external binary exits with a non-zero status.

    Attributes:
        args_list: Command vector that failed.
        returncode: Process exit status.
        stderr: Captured error output of the command.
    """

    def __init__(self, args_list: tuple[str, ...], returncode: int, stderr: str) -> None:
        self.args_list = args_list
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command '{args_list[0]}' exited with status {returncode}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class SnapshotNameError(NodekitError):
    """Raised for file names that are not SSTable component names."""


class TransferError(NodekitError):
    """Raised for snapshot transfer failures."""


class ConflictResolutionError(NodekitError):
    """Raised when incoming SSTables cannot be relocated safely."""


class StoreGenerationError(NodekitError):
    """Raised for keystore and truststore generation failures."""


class NodekitRunSpecError(NodekitError):
    """Raised for invalid or unsupported run-spec configuration."""
