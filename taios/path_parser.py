"""Parsing of drive-qualified paths such as ``0:/bin/shell``."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import MAX_PATH_LENGTH
from .errors import ErrorCode, KernelError

MIN_PATH_LENGTH = 3


@dataclass
class PathRoot:
    """A parsed path: the drive number and the names below the root."""

    drive_number: int
    parts: list[str] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return not self.parts


def _valid_format(path: str) -> bool:
    return (
        len(path) >= MIN_PATH_LENGTH
        and "0" <= path[0] <= "9"
        and path[1:3] == ":/"
    )


def parse_path(path: str, current_directory: str | None = None) -> PathRoot:
    """Parse ``<drive>:/<part>/<part>...`` into a :class:`PathRoot`.

    Parsing of parts stops at the first empty one. Relative paths are not
    supported, so ``current_directory`` is ignored.
    """
    if len(path) > MAX_PATH_LENGTH or not _valid_format(path):
        raise KernelError(ErrorCode.EINVPATH, f"invalid path: {path!r}")

    parts = []
    for name in path[MIN_PATH_LENGTH:].split("/"):
        if not name:
            break
        parts.append(name)
    return PathRoot(drive_number=int(path[0]), parts=parts)