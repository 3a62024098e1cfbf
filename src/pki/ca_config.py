"""Certificate authority configuration parsing.

This module reads the OpenSSL request configuration used to mint root
authorities and extracts the distinguished name entries applied to node
certificates, plus the authority key password when the file sets one.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re

from core.errors import NodekitConfigError

_SECTION_PATTERN = re.compile(r"^\[\s*(?P<name>[^\]]+?)\s*\]$")
_DNAME_SPECIAL_CHARS = (",", "+", "=", '"', "<", ">", ";")
_REQ_SECTION = "req"


@dataclass(frozen=True)
class CaConfig:
    """Parsed certificate authority configuration.

    Attributes:
        path: Config file path, passed to ``openssl req -config``.
        distinguished_name: Ordered ``(key, value)`` entries.
        output_password: Authority private key password, if configured.
    """

    path: Path
    distinguished_name: tuple[tuple[str, str], ...]
    output_password: str | None


def load_ca_config(config_path: Path) -> CaConfig:
    """Load an OpenSSL request configuration file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Parsed configuration.

    Raises:
        NodekitConfigError: If the file is missing or unreadable.
    """
    if not config_path.is_file():
        raise NodekitConfigError(
            f"Certificate authority configuration {config_path} does not exist. "
            "Pass the path to an OpenSSL req config file."
        )
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as error:
        raise NodekitConfigError(
            f"Failed to read certificate authority configuration {config_path}: {error}."
        ) from error
    sections = _parse_sections(text)
    request_section = dict(sections.get(_REQ_SECTION, ()))
    global_section = dict(sections.get("", ()))
    dn_section_name = request_section.get("distinguished_name") or global_section.get(
        "distinguished_name"
    )
    output_password = request_section.get("output_password") or global_section.get(
        "output_password"
    )
    entries = tuple(sections.get(dn_section_name, ())) if dn_section_name else ()
    return CaConfig(
        path=config_path,
        distinguished_name=entries,
        output_password=output_password or None,
    )


def parse_dname(raw_dname: str) -> tuple[tuple[str, str], ...]:
    """Parse a ``KEY=value, KEY=value`` distinguished name string.

    Args:
        raw_dname: Distinguished name supplied on the command line.

    Returns:
        Ordered entries.

    Raises:
        NodekitConfigError: If a component has no ``=``.
    """
    entries: list[tuple[str, str]] = []
    for component in re.split(r"(?<!\\),", raw_dname):
        component = component.strip()
        if not component:
            continue
        if "=" not in component:
            raise NodekitConfigError(
                f"Invalid distinguished name component '{component}'. Use KEY=value pairs."
            )
        key, value = component.split("=", 1)
        entries.append((key.strip(), value.strip().replace("\\,", ",")))
    return tuple(entries)


def build_node_dname(entries: tuple[tuple[str, str], ...], common_name: str) -> str:
    """Render a keytool ``-dname`` value with the common name replaced.

    Args:
        entries: Distinguished name entries.
        common_name: Value substituted for ``CN``.

    Returns:
        Comma-separated distinguished name.
    """
    rendered: list[str] = []
    has_common_name = False
    for key, value in entries:
        if key.upper() == "CN":
            value = common_name
            has_common_name = True
        rendered.append(f"{key}={_escape_dname_value(value)}")
    if not has_common_name:
        rendered.append(f"CN={_escape_dname_value(common_name)}")
    return ", ".join(rendered)


def _parse_sections(text: str) -> dict[str, list[tuple[str, str]]]:
    sections: dict[str, list[tuple[str, str]]] = {"": []}
    current = ""
    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        section_match = _SECTION_PATTERN.match(line)
        if section_match:
            current = section_match["name"]
            sections.setdefault(current, [])
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        sections[current].append((key.strip(), value.strip()))
    return sections


def _escape_dname_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\")
    for char in _DNAME_SPECIAL_CHARS:
        escaped = escaped.replace(char, f"\\{char}")
    return escaped
