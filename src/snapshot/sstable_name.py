"""SSTable component file name parsing.

This module turns SSTable file names into typed records so generation
collisions can be resolved without ad hoc string rewriting. Two on-disk
layouts are recognised: the legacy ``<ks>-<table>-<version>-<gen>-<Component>``
form and the current ``<version>-<gen>-<format>-<Component>`` form.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Iterable

from core.constants import GENERATION_DISAMBIGUATION_FACTOR
from core.errors import SnapshotNameError

_LEGACY_PATTERN = re.compile(
    r"^(?P<keyspace>\w+)-(?P<table>\w+)-(?P<version>[a-z]{2})-(?P<generation>\d+)-(?P<component>[^-]+)$"
)
_CURRENT_PATTERN = re.compile(
    r"^(?P<version>[a-z]{2})-(?P<generation>\d+)-(?P<format>[a-z]+)-(?P<component>[^-]+)$"
)


@dataclass(frozen=True)
class SSTableName:
    """Parsed SSTable component file name.

    Attributes:
        keyspace: Keyspace owning the file.
        table: Table owning the file.
        version: Two-letter SSTable format version, e.g. ``jb`` or ``mc``.
        generation: Per-node generation number.
        format: SSTable format name (``big``, ``bti``); None for legacy names.
        component: Component suffix such as ``Data.db``.
        legacy: Whether keyspace and table are embedded in the file name.
    """

    keyspace: str
    table: str
    version: str
    generation: int
    format: str | None
    component: str
    legacy: bool

    @property
    def group_key(self) -> tuple[str, str, str, int, str | None]:
        """Return the identity shared by every component of one SSTable."""
        return (self.keyspace, self.table, self.version, self.generation, self.format)

    @property
    def file_name(self) -> str:
        """Render the record back to its on-disk file name."""
        if self.legacy:
            return (
                f"{self.keyspace}-{self.table}-{self.version}-"
                f"{self.generation}-{self.component}"
            )
        return f"{self.version}-{self.generation}-{self.format}-{self.component}"

    def with_generation(self, generation: int) -> "SSTableName":
        """Return the same component renamed to another generation."""
        return replace(self, generation=generation)


def parse_sstable_name(file_name: str, keyspace: str = "", table: str = "") -> SSTableName:
    """Parse one SSTable component file name.

    Args:
        file_name: Bare file name without directories.
        keyspace: Owning keyspace for current-layout names.
        table: Owning table for current-layout names.

    Returns:
        Parsed name record.

    Raises:
        SnapshotNameError: If the name is not an SSTable component.
    """
    legacy_match = _LEGACY_PATTERN.match(file_name)
    if legacy_match:
        return SSTableName(
            keyspace=legacy_match["keyspace"],
            table=legacy_match["table"],
            version=legacy_match["version"],
            generation=int(legacy_match["generation"]),
            format=None,
            component=legacy_match["component"],
            legacy=True,
        )
    current_match = _CURRENT_PATTERN.match(file_name)
    if current_match:
        return SSTableName(
            keyspace=keyspace,
            table=table,
            version=current_match["version"],
            generation=int(current_match["generation"]),
            format=current_match["format"],
            component=current_match["component"],
            legacy=False,
        )
    raise SnapshotNameError(
        f"'{file_name}' is not an SSTable component name. "
        "Expected <ks>-<table>-<version>-<generation>-<Component> "
        "or <version>-<generation>-<format>-<Component>."
    )


def try_parse_sstable_name(file_name: str, keyspace: str = "", table: str = "") -> SSTableName | None:
    """Parse an SSTable name, returning None for other snapshot files."""
    try:
        return parse_sstable_name(file_name, keyspace=keyspace, table=table)
    except SnapshotNameError:
        return None


def resolve_generation(generation: int, taken: Iterable[int]) -> int:
    """Pick a collision-free generation number.

    The original generation is kept when free. Otherwise a zero digit is
    appended (multiply by ten) until the candidate is not taken.

    Args:
        generation: Incoming generation number.
        taken: Generations that must not be reused.

    Returns:
        Generation number absent from ``taken``.
    """
    taken_set = set(taken)
    if generation not in taken_set:
        return generation
    candidate = generation * GENERATION_DISAMBIGUATION_FACTOR or GENERATION_DISAMBIGUATION_FACTOR
    while candidate in taken_set:
        candidate *= GENERATION_DISAMBIGUATION_FACTOR
    return candidate
