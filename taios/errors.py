"""Kernel status codes and the exception that carries them."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Status codes reported by kernel services."""

    ALL_OK = 0
    EIO = 1
    EINVARG = 2
    ENOMEM = 3
    EINVPATH = 4
    EFSNOTSUPPORTED = 5
    EREADONLY = 6
    ETOOMANYPROCESSES = 7
    EPAGEFAULT = 8
    ENOCALLBACK = 9
    ETOOMANYDRIVERS = 10
    EFILENOTSUPPORTED = 11
    ETOOMANYPROCMALLOCS = 12
    ETOOMANYARGS = 13


class KernelError(Exception):
    """Raised when a kernel service fails with a status code."""

    def __init__(self, code: ErrorCode | int, message: str | None = None) -> None:
        code = ErrorCode(code)
        if code is ErrorCode.ALL_OK:
            raise ValueError("ALL_OK does not describe an error")
        self.code = code
        super().__init__(message if message else code.name)

    @property
    def status(self) -> int:
        """The negative status value used on the syscall boundary."""
        return -int(self.code)