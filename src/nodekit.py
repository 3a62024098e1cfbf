"""Public SDK surface for Nodekit.

This module provides a stable import path for SDK users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import NodekitConfig
from core.process_runner import CommandResult, CommandRunner, SubprocessRunner
from core.types import (
    MovePlan,
    RemoteTarget,
    StoreGenerationResult,
    StoreOptions,
    TransferOptions,
    TransferResult,
)
from sdk.client import ClientCapabilities, NodekitClient
from snapshot.locator import locate_snapshots
from snapshot.sstable_name import parse_sstable_name, resolve_generation

__all__ = [
    "ClientCapabilities",
    "CommandResult",
    "CommandRunner",
    "MovePlan",
    "NodekitClient",
    "NodekitConfig",
    "RemoteTarget",
    "StoreGenerationResult",
    "StoreOptions",
    "SubprocessRunner",
    "TransferOptions",
    "TransferResult",
    "locate_snapshots",
    "parse_sstable_name",
    "resolve_generation",
]
