"""Runtime configuration model for Nodekit.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_KEYTOOL_BIN,
    DEFAULT_OPENSSL_BIN,
    DEFAULT_RSYNC_BIN,
    DEFAULT_SSH_BIN,
    EXISTING_TRUSTSTORE_PASSWORD_ENV,
    TRUSTSTORE_PASSWORD_ENV,
)
from core.errors import NodekitConfigError


@dataclass(frozen=True)
class NodekitConfig:
    """Validated runtime configuration.

    Attributes:
        rsync_bin: Executable used for file transfer.
        ssh_bin: Executable used for remote command execution.
        openssl_bin: Executable used for authority creation and signing.
        keytool_bin: Executable used for keystore management.
        truststore_password: Password for the new truststore, if preset.
        existing_truststore_password: Password of a truststore being rotated.
    """

    rsync_bin: str = DEFAULT_RSYNC_BIN
    ssh_bin: str = DEFAULT_SSH_BIN
    openssl_bin: str = DEFAULT_OPENSSL_BIN
    keytool_bin: str = DEFAULT_KEYTOOL_BIN
    truststore_password: str | None = None
    existing_truststore_password: str | None = None

    @classmethod
    def from_env(cls) -> "NodekitConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            NodekitConfigError: If environment values are invalid.
        """
        return cls(
            rsync_bin=_parse_binary("NODEKIT_RSYNC_BIN", DEFAULT_RSYNC_BIN),
            ssh_bin=_parse_binary("NODEKIT_SSH_BIN", DEFAULT_SSH_BIN),
            openssl_bin=_parse_binary("NODEKIT_OPENSSL_BIN", DEFAULT_OPENSSL_BIN),
            keytool_bin=_parse_binary("NODEKIT_KEYTOOL_BIN", DEFAULT_KEYTOOL_BIN),
            truststore_password=_optional_secret(TRUSTSTORE_PASSWORD_ENV),
            existing_truststore_password=_optional_secret(EXISTING_TRUSTSTORE_PASSWORD_ENV),
        )


def _parse_binary(env_name: str, default_value: str) -> str:
    """Parse an executable override from the environment.

    Args:
        env_name: Environment variable name.
        default_value: Executable used when unset.

    Returns:
        Executable name or path.

    Raises:
        NodekitConfigError: If the value is blank.
    """
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default_value
    value = raw_value.strip()
    if not value:
        raise NodekitConfigError(
            f"Invalid {env_name} value: expected an executable name or path, got an empty string. "
            f"Unset {env_name} to use '{default_value}'."
        )
    return value


def _optional_secret(env_name: str) -> str | None:
    raw_value = os.getenv(env_name)
    return raw_value if raw_value else None
