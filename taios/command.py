"""Splitting a command line into the arguments passed to a new program."""

from __future__ import annotations

from .config import MAX_COMMAND_LENGTH
from .errors import ErrorCode, KernelError
from .strings import tokenize


def parse_command(command: str) -> list[str]:
    """Split ``command`` on runs of spaces.

    Quotes get no special treatment, and a line starting with a space yields
    no arguments.
    """
    return tokenize(command, " ")


def validate_command(path: str | None) -> list[str]:
    """The arguments of a command line that may be executed."""
    if not path or len(path) > MAX_COMMAND_LENGTH:
        raise KernelError(ErrorCode.EINVARG, "command is empty or too long")
    args = parse_command(path)
    if not args:
        raise KernelError(ErrorCode.EINVARG, f"no program in command: {path!r}")
    return args