"""Formatted console output and line input for user programs."""

from __future__ import annotations

from typing import Any, Callable, Optional

from .strings import itoa

BUFFER_SIZE = 1024

_MISSING = object()


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _char(value: Any) -> str:
    if isinstance(value, str):
        return value[:1]
    return chr(int(value) & 0xFF)


def format_printf(fmt: str, *args: Any) -> str:
    """Expand ``%c``, ``%s``, ``%d`` and ``%x`` in ``fmt``.

    Any other character after ``%`` stands for itself, so ``%%`` gives ``%``.
    A lone ``%`` at the end produces nothing. A negative ``%x`` value is shown
    as its 32-bit two's complement.
    """
    values = iter(args)

    def take() -> Any:
        value = next(values, _MISSING)
        if value is _MISSING:
            raise ValueError(f"not enough arguments for format {fmt!r}")
        return value

    out: list[str] = []
    chars = iter(fmt)
    for ch in chars:
        if ch != "%":
            out.append(ch)
            continue
        spec = next(chars, None)
        if spec is None:
            break
        if spec == "c":
            out.append(_char(take()))
        elif spec == "s":
            out.append(str(take()))
        elif spec == "d":
            out.append(itoa(_to_int32(int(take())), 10))
        elif spec == "x":
            out.append(itoa(int(take()) & 0xFFFFFFFF, 16))
        else:
            out.append(spec)
    return "".join(out)


class Console:
    """A program's console: text goes to ``write``, keys come from ``read_key``.

    ``read_key`` returns a key code, or 0 or None when no key is waiting.
    """

    def __init__(
        self,
        write: Callable[[str], Any],
        read_key: Callable[[], Optional[int]],
    ) -> None:
        self._write = write
        self._read_key = read_key
        self._pending: list[str] = []

    def _push_char(self, ch: str) -> None:
        if ch == "\0":
            self._flush()
            return
        self._pending.append(ch)
        if len(self._pending) == BUFFER_SIZE - 1:
            self._flush()

    def _flush(self) -> None:
        text = "".join(self._pending)
        self._pending.clear()
        self.puts(text)

    def printf(self, fmt: str, *args: Any) -> None:
        """Format and write, in chunks of at most ``BUFFER_SIZE - 1`` characters."""
        for ch in format_printf(fmt, *args) + "\0":
            self._push_char(ch)

    def getchar(self) -> int:
        """Wait for and return the next key code."""
        while True:
            key = self._read_key()
            if key:
                return key

    def gets(self) -> str:
        """Read a line with echo and backspace editing, without its line end."""
        chars: list[str] = []
        while True:
            key = self.getchar()
            ch = chr(key)
            if ch in "\n\r":
                self.putchar(key)
                break
            if ch == "\b":
                if chars:
                    self.putchar(key)
                    chars.pop()
                continue
            self.putchar(key)
            chars.append(ch)
        return "".join(chars)

    def putchar(self, c: int) -> int:
        """Write one character; return it as a signed byte."""
        value = c & 0xFF
        if value:
            self._write(chr(value))
        return value - 0x100 if value & 0x80 else value

    def puts(self, text: str) -> int:
        """Write ``text`` and return its length."""
        if text:
            self._write(text)
        return len(text)