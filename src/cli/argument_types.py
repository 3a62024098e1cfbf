"""Argument value parsers shared by Nodekit subcommands."""

from __future__ import annotations

import argparse


def positive_int(value: str) -> int:
    """Parse a whole number greater than zero."""
    try:
        number = int(value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got '{value}'") from error
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number
