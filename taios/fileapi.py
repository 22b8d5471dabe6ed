"""Types shared by the file system layer: modes, seek origins and stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag

from .errors import ErrorCode, KernelError


class SeekMode(IntEnum):
    SET = 0
    CUR = 1
    END = 2


class FileMode(IntEnum):
    READ = 0
    WRITE = 1
    APPEND = 2


class StatFlag(IntFlag):
    NONE = 0
    HIDDEN = 1
    SYSTEM = 2
    READONLY = 4
    DIRECTORY = 8
    ARCHIVE = 16


@dataclass
class FileStat:
    """Size in bytes and attribute flags of an open file."""

    size: int
    flags: StatFlag = field(default=StatFlag.NONE)


_MODES = {"r": FileMode.READ, "w": FileMode.WRITE, "a": FileMode.APPEND}


def parse_mode(text: str) -> FileMode:
    """Translate ``"r"``, ``"w"`` or ``"a"`` into a :class:`FileMode`."""
    try:
        return _MODES[text]
    except KeyError:
        raise KernelError(ErrorCode.EINVARG, f"invalid file mode: {text!r}") from None