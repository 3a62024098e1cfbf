"""Store password sourcing and bookkeeping."""

from __future__ import annotations

import os
from pathlib import Path
import secrets
import stat
import string

from core.constants import GENERATED_PASSWORD_LENGTH
from core.errors import NodekitConfigError
from core.logging_config import get_logger
from core.types import PasswordPrompt

_LOGGER = get_logger(__name__)
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Generate a random alphanumeric store password."""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def obtain_password(
    question: str,
    generate: bool,
    prompt: PasswordPrompt | None,
    preset: str | None = None,
) -> str:
    """Return a store password from a preset value, a generator, or a prompt.

    Empty prompt answers are rejected and the question is asked again.

    Args:
        question: Prompt text shown to the operator.
        generate: Generate a password instead of prompting.
        prompt: Interactive password prompt, if available.
        preset: Password already supplied through the environment.

    Returns:
        Non-empty password.

    Raises:
        NodekitConfigError: If prompting is required but unavailable.
    """
    if preset:
        return preset
    if generate:
        return generate_password()
    if prompt is None:
        raise NodekitConfigError(
            "A store password is required but prompting is disabled. "
            "Use --generate-passwords or set TRUSTSTORE_PASSWORD."
        )
    while True:
        answer = prompt(question)
        if answer:
            return answer
        _LOGGER.warning("empty_password_rejected")


class PasswordLedger:
    """Append-only ``stores.password`` file of ``<store>:<password>`` rows."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return the ledger file path."""
        return self._path

    def record(self, store_name: str, password: str) -> None:
        """Append one store password row."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{store_name}:{password}\n")
        try:
            os.chmod(self._path, stat.S_IRUSR | stat.S_IWUSR)
        except OSError as error:
            _LOGGER.warning("password_file_chmod_failed", path=str(self._path), error=str(error))
