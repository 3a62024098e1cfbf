"""Interactive operator prompts for CLI workflows."""

from __future__ import annotations

import getpass
from typing import Callable


def confirm_on_terminal(question: str, read_line: Callable[[str], str] = input) -> bool:
    """Ask a yes/no question until the operator answers.

    Args:
        question: Question text, may span several lines.
        read_line: Line reader, ``input`` by default.

    Returns:
        True for yes, False for no.
    """
    *context_lines, last_line = question.splitlines() or [question]
    for line in context_lines:
        print(line)
    while True:
        answer = read_line(f"{last_line} [Y/n]? ").strip()
        if answer[:1] in ("Y", "y"):
            return True
        if answer[:1] in ("N", "n"):
            return False
        print("Please answer [Y]es or [n]o.")


def prompt_password_on_terminal(question: str) -> str:
    """Read a password without echo; empty answers are reported."""
    answer = getpass.getpass(question)
    if not answer:
        print("Input is an empty string which is invalid.")
    return answer
