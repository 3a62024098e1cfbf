"""Python SDK for node maintenance workflows.

This module exposes one client that wires runtime configuration, the
external command runner, and the operator prompts into the snapshot
transfer and store generation workflows.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from core.config import NodekitConfig
from core.constants import DEFAULT_CONFLICT_POLICY
from core.process_runner import CommandRunner, SubprocessRunner
from core.run_spec_execution import execute_run_spec_file
from core.types import (
    ConfirmCallback,
    ConflictPolicy,
    MovePlan,
    PasswordPrompt,
    StoreGenerationResult,
    StoreOptions,
    TransferOptions,
    TransferResult,
)
from pki.store_generator import generate_stores
from snapshot.conflict_resolver import resolve_conflicts
from snapshot.transfer import copy_snapshot


@dataclass(frozen=True)
class ClientCapabilities:
    """Side-effecting capabilities injected into workflows.

    Attributes:
        runner: External command runner.
        confirm: Yes/no confirmation callback; None auto-confirms.
        password_prompt: Password prompt; None disables prompting.
    """

    runner: CommandRunner
    confirm: ConfirmCallback | None = None
    password_prompt: PasswordPrompt | None = None


class NodekitClient:
    """Primary SDK entry point for node maintenance workflows."""

    def __init__(
        self,
        config: NodekitConfig | None = None,
        capabilities: ClientCapabilities | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            capabilities: Optional runner and prompts; non-interactive subprocess by default.
        """
        self._config = config or NodekitConfig.from_env()
        self._capabilities = capabilities or ClientCapabilities(runner=SubprocessRunner())

    @property
    def config(self) -> NodekitConfig:
        """Return the runtime configuration."""
        return self._config

    def copy_snapshot(self, options: TransferOptions) -> TransferResult:
        """Copy a local snapshot to a remote node.

        Args:
            options: Transfer options.

        Returns:
            Transfer summary.

        Raises:
            TransferError: If a remote step fails.
            NodekitUsageError: If inputs are invalid or direct mode is asked to preserve.
        """
        return copy_snapshot(
            options,
            self._config,
            runner=self._capabilities.runner,
            confirm=self._capabilities.confirm,
        )

    def resolve_conflicts(
        self,
        scratch_dir: str,
        destination_dir: str,
        policy: ConflictPolicy = DEFAULT_CONFLICT_POLICY,
    ) -> MovePlan:
        """Relocate staged SSTables into a table directory on this host.

        Args:
            scratch_dir: Directory holding copied SSTable files.
            destination_dir: Final table directory.
            policy: Conflict policy.

        Returns:
            Applied move plan.
        """
        return resolve_conflicts(scratch_dir, destination_dir, policy)

    def generate_stores(self, options: StoreOptions) -> StoreGenerationResult:
        """Generate node keystores and the shared truststore.

        Args:
            options: Store generation options.

        Returns:
            Generated artifact paths.

        Raises:
            StoreGenerationError: If an openssl or keytool step fails.
        """
        return generate_stores(
            options,
            self._config,
            runner=self._capabilities.runner,
            password_prompt=self._capabilities.password_prompt,
        )

    def non_interactive(self) -> "NodekitClient":
        """Clone the client with every operator prompt disabled."""
        capabilities = replace(self._capabilities, confirm=None, password_prompt=None)
        return NodekitClient(self._config, capabilities)

    def run_spec(self, spec_file: str) -> tuple[str, ...]:
        """Execute a YAML run-spec through the shared execution engine.

        Args:
            spec_file: Path to YAML run-spec file.

        Returns:
            Ordered command output lines.
        """
        return execute_run_spec_file(self.non_interactive(), spec_file)
