"""Shared typed models.

This module defines immutable data models used by the snapshot transfer,
store generation, CLI, and run-spec layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal

from core.constants import (
    DEFAULT_CA_SCOPE,
    DEFAULT_CONFLICT_POLICY,
    DEFAULT_KEY_SIZE,
    DEFAULT_KEYSTORE_PREFIX,
    DEFAULT_KEYSTORE_SUFFIX,
    DEFAULT_NODE_ID,
    DEFAULT_TRANSFER_MODE,
    DEFAULT_TRUSTSTORE_NAME,
    DEFAULT_VALID_DAYS,
    DIRECT_CONFLICT_POLICY,
)

TransferMode = Literal["indirect", "direct"]
ConflictPolicy = Literal["preserve", "overwrite"]
CaScope = Literal["host", "cluster"]

ConfirmCallback = Callable[[str], bool]
PasswordPrompt = Callable[[str], str]


def auto_confirm(_question: str) -> bool:
    """Confirmation callback used when prompts are suppressed."""
    return True


def default_conflict_policy(mode: TransferMode) -> ConflictPolicy:
    """Return the conflict policy used for ``mode`` when none is requested."""
    return DIRECT_CONFLICT_POLICY if mode == "direct" else DEFAULT_CONFLICT_POLICY


@dataclass(frozen=True)
class SnapshotDirectory:
    """One located snapshot directory queued for transfer.

    Attributes:
        keyspace: Keyspace directory name.
        table: Table name without the on-disk id suffix.
        table_dir_name: Table directory name as found on disk.
        tag: Snapshot tag name.
        path: Absolute path of the snapshot directory.
    """

    keyspace: str
    table: str
    table_dir_name: str
    tag: str
    path: Path


@dataclass(frozen=True)
class RemoteTarget:
    """Remote host reached through ssh and rsync."""

    user: str
    host: str
    data_dir: str

    @property
    def login(self) -> str:
        """Return the ``user@host`` login string."""
        return f"{self.user}@{self.host}"


@dataclass(frozen=True)
class TransferOptions:
    """Snapshot copy options.

    Attributes:
        local_data_dir: Local Cassandra data directory.
        snapshot_tag: Tag of the snapshot to copy.
        remote: Remote node login and data directory.
        include: ``keyspace[.table]`` tokens restricting the copy.
        exclude: ``keyspace[.table]`` tokens removed from the copy.
        bandwidth_limit: Optional rsync bandwidth cap in KB/s.
        mode: Transfer through a scratch directory or straight in place.
        conflict_policy: Behavior when incoming generations collide.
        assume_yes: Skip every confirmation prompt.
    """

    local_data_dir: Path
    snapshot_tag: str
    remote: RemoteTarget
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    bandwidth_limit: int | None = None
    mode: TransferMode = DEFAULT_TRANSFER_MODE
    conflict_policy: ConflictPolicy = DEFAULT_CONFLICT_POLICY
    assume_yes: bool = False


@dataclass(frozen=True)
class FileMove:
    """One planned file relocation."""

    source: str
    destination: str


@dataclass(frozen=True)
class MovePlan:
    """Collision-free relocation plan for one table directory.

    Attributes:
        source_dir: Directory holding incoming files.
        destination_dir: Final table directory.
        removals: Destination file names deleted before moving.
        moves: Ordered moves, grouped by SSTable file group.
        skipped: Incoming file names that are not SSTable components.
    """

    source_dir: str
    destination_dir: str
    removals: tuple[str, ...] = ()
    moves: tuple[FileMove, ...] = ()
    skipped: tuple[str, ...] = ()

    @property
    def renamed_count(self) -> int:
        """Count moves whose destination name differs from the source name."""
        return sum(1 for move in self.moves if move.source != move.destination)


@dataclass(frozen=True)
class TransferJob:
    """One snapshot directory paired with its remote destination."""

    snapshot: SnapshotDirectory
    destination_dir: str


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a snapshot copy run.

    Attributes:
        jobs: Transfer jobs that were executed.
        plans: Move plans applied remotely, one per job.
        aborted: True when the operator declined a confirmation.
        cleanup_error: Message when remote scratch cleanup failed.
    """

    jobs: tuple[TransferJob, ...] = ()
    plans: tuple[MovePlan, ...] = ()
    aborted: bool = False
    cleanup_error: str | None = None


@dataclass(frozen=True)
class StoreOptions:
    """Keystore and truststore generation options.

    Attributes:
        ca_config_path: OpenSSL request config used to mint authorities.
        nodes: Node identifiers (IP or host name), one keystore each.
        scope: ``host`` mints one authority per node, ``cluster`` one per run.
        generate_passwords: Generate store passwords instead of prompting.
        keystore_prefix: Keystore file name prefix.
        keystore_suffix: Keystore file name suffix before ``.jks``.
        truststore_name: Common truststore file name.
        key_size: RSA key size in bits.
        valid_days: Certificate validity in days.
        existing_truststore: Truststore to also receive new authorities.
        output_dir: Artifact directory; a timestamped default when unset.
        dname: Explicit distinguished name overriding the config file.
    """

    ca_config_path: Path
    nodes: tuple[str, ...] = (DEFAULT_NODE_ID,)
    scope: CaScope = DEFAULT_CA_SCOPE
    generate_passwords: bool = False
    keystore_prefix: str = DEFAULT_KEYSTORE_PREFIX
    keystore_suffix: str = DEFAULT_KEYSTORE_SUFFIX
    truststore_name: str = DEFAULT_TRUSTSTORE_NAME
    key_size: int = DEFAULT_KEY_SIZE
    valid_days: int = DEFAULT_VALID_DAYS
    existing_truststore: Path | None = None
    output_dir: Path | None = None
    dname: str | None = None


@dataclass(frozen=True)
class AuthorityArtifacts:
    """Root authority generated during a store run."""

    alias: str
    certificate_path: Path
    private_key_path: Path


@dataclass(frozen=True)
class NodeStoreArtifacts:
    """Artifacts generated for one node."""

    node_id: str
    alias: str
    keystore_path: Path
    signing_request_path: Path
    signed_certificate_path: Path
    authority: AuthorityArtifacts


@dataclass(frozen=True)
class StoreGenerationResult:
    """Outcome of a store generation run."""

    output_dir: Path
    truststore_path: Path
    password_file: Path
    nodes: tuple[NodeStoreArtifacts, ...] = field(default_factory=tuple)

    @property
    def authorities(self) -> tuple[AuthorityArtifacts, ...]:
        """Return distinct authorities in creation order."""
        seen: dict[str, AuthorityArtifacts] = {}
        for node in self.nodes:
            seen.setdefault(node.authority.alias, node.authority)
        return tuple(seen.values())
