"""Snapshot directory discovery.

This module finds ``<data>/<keyspace>/<table-dir>/snapshots/<tag>``
directories on the local node and applies include/exclude filtering.
Results follow filesystem traversal order and are not sorted.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re
from typing import Iterable, Iterator, Sequence

from core.constants import ALWAYS_EXCLUDED_KEYSPACES, SNAPSHOTS_DIR_NAME
from core.errors import NodekitUsageError
from core.logging_config import get_logger
from core.types import SnapshotDirectory

_LOGGER = get_logger(__name__)
_NAME_PATTERN = re.compile(r"^\w+$")


@dataclass(frozen=True)
class TableFilter:
    """Parsed ``keyspace[.table]`` filter token."""

    keyspace: str
    table: str | None = None

    def matches(self, keyspace: str, table: str) -> bool:
        """Return whether a keyspace/table pair falls under this filter."""
        if keyspace != self.keyspace:
            return False
        return self.table is None or self.table == table


def parse_table_filter(token: str) -> TableFilter:
    """Parse one ``keyspace[.table]`` token.

    Args:
        token: Raw filter token from the operator.

    Returns:
        Parsed filter.

    Raises:
        NodekitUsageError: If the token is not ``keyspace`` or ``keyspace.table``.
    """
    parts = token.strip().split(".")
    if len(parts) > 2 or not all(_NAME_PATTERN.match(part) for part in parts):
        raise NodekitUsageError(
            f"Invalid keyspace/table filter '{token}'. "
            "Use KEYSPACE or KEYSPACE.TABLE, for example foo_ks.bar_table."
        )
    if len(parts) == 1:
        return TableFilter(keyspace=parts[0])
    return TableFilter(keyspace=parts[0], table=parts[1])


def table_name_from_dir(dir_name: str) -> str:
    """Strip the table id suffix from a table directory name."""
    return dir_name.split("-", 1)[0]


def match_table_dirs(dir_names: Iterable[str], table: str) -> list[str]:
    """Return directory names that belong to ``table``."""
    return [name for name in dir_names if table_name_from_dir(name) == table]


def is_excluded(keyspace: str, table: str, exclude: Sequence[TableFilter]) -> bool:
    """Return whether a keyspace/table pair must be skipped."""
    if keyspace in ALWAYS_EXCLUDED_KEYSPACES:
        return True
    return any(table_filter.matches(keyspace, table) for table_filter in exclude)


def locate_snapshots(
    data_dir: Path,
    snapshot_tag: str,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> list[SnapshotDirectory]:
    """Find snapshot directories matching a tag.

    Args:
        data_dir: Local Cassandra data directory.
        snapshot_tag: Snapshot tag to look for.
        include: Tokens restricting the search; empty means all keyspaces.
        exclude: Tokens removed from the result.

    Returns:
        Snapshot directories in traversal order. May be empty.

    Raises:
        NodekitUsageError: If the data directory or a filter token is invalid.
    """
    if not data_dir.is_dir():
        raise NodekitUsageError(
            f"Local data directory {data_dir} does not exist. "
            "Pass the data_file_directories value from cassandra.yaml."
        )
    include_filters = [parse_table_filter(token) for token in include]
    exclude_filters = [parse_table_filter(token) for token in exclude]
    located: list[SnapshotDirectory] = []
    seen: set[Path] = set()
    for keyspace, table_dir in _candidate_table_dirs(data_dir, include_filters):
        table = table_name_from_dir(table_dir.name)
        if is_excluded(keyspace, table, exclude_filters):
            continue
        snapshot_path = table_dir / SNAPSHOTS_DIR_NAME / snapshot_tag
        if not snapshot_path.is_dir() or snapshot_path in seen:
            continue
        seen.add(snapshot_path)
        located.append(
            SnapshotDirectory(
                keyspace=keyspace,
                table=table,
                table_dir_name=table_dir.name,
                tag=snapshot_tag,
                path=snapshot_path,
            )
        )
    _LOGGER.info(
        "snapshot_located",
        data_dir=str(data_dir),
        snapshot_tag=snapshot_tag,
        snapshot_count=len(located),
    )
    return located


def _candidate_table_dirs(
    data_dir: Path,
    include_filters: Sequence[TableFilter],
) -> Iterator[tuple[str, Path]]:
    if not include_filters:
        for keyspace_dir in _child_dirs(data_dir):
            for table_dir in _child_dirs(keyspace_dir):
                yield keyspace_dir.name, table_dir
        return
    for table_filter in include_filters:
        keyspace_dir = data_dir / table_filter.keyspace
        if not keyspace_dir.is_dir():
            _LOGGER.warning("include_keyspace_missing", keyspace=table_filter.keyspace)
            continue
        table_dirs = _child_dirs(keyspace_dir)
        if table_filter.table is not None:
            wanted = set(match_table_dirs((path.name for path in table_dirs), table_filter.table))
            table_dirs = [path for path in table_dirs if path.name in wanted]
            if not table_dirs:
                _LOGGER.warning(
                    "include_table_missing",
                    keyspace=table_filter.keyspace,
                    table=table_filter.table,
                )
        for table_dir in table_dirs:
            yield table_filter.keyspace, table_dir


def _child_dirs(parent: Path) -> list[Path]:
    return [path for path in parent.iterdir() if path.is_dir()]
