"""A VGA text-mode terminal with a scroll-back screen buffer."""

from __future__ import annotations

from enum import IntEnum

from .strings import itoa

VGA_WIDTH = 80
VGA_HEIGHT = 25
SCREEN_BUFFER_HEIGHT = VGA_HEIGHT * 2
BACKSPACE = "\x08"


class Color(IntEnum):
    BLACK = 0
    BLUE = 1
    GREEN = 2
    CYAN = 3
    RED = 4
    PURPLE = 5
    BROWN = 6
    GRAY = 7
    DARK_GRAY = 8
    LIGHT_BLUE = 9
    LIGHT_GREEN = 10
    LIGHT_CYAN = 11
    LIGHT_RED = 12
    LIGHT_PURPLE = 13
    YELLOW = 14
    WHITE = 15


def _cell(ch: str, color: int) -> int:
    """A text-mode cell: the attribute byte above the character byte."""
    return ((int(color) & 0xFF) << 8) | (ord(ch) & 0xFF)


class Terminal:
    """Writes text into a screen buffer and mirrors the visible part to video memory."""

    def __init__(self) -> None:
        self.row = 0
        self.col = 0
        self._buffer = [[0] * VGA_WIDTH for _ in range(SCREEN_BUFFER_HEIGHT)]
        self.video = [0] * (VGA_WIDTH * VGA_HEIGHT)
        for y in range(VGA_HEIGHT):
            for x in range(VGA_WIDTH):
                self._push_char(x, y, " ", Color.BLACK)
        self._flush()

    @property
    def cursor(self) -> tuple[int, int]:
        """The cursor as ``(row, column)``."""
        return self.row, self.col

    def _push_char(self, x: int, y: int, ch: str, color: int) -> None:
        line = self._buffer[y % SCREEN_BUFFER_HEIGHT]
        if y >= SCREEN_BUFFER_HEIGHT and x == 0:
            # The line is being reused, so clear what it held before.
            line[:] = [_cell(" ", Color.WHITE)] * VGA_WIDTH
        line[x] = _cell(ch, color)

    def _write_char(self, ch: str, color: int) -> None:
        if ch in "\n\r":
            while self.col < VGA_WIDTH:
                self._push_char(self.col, self.row, " ", color)
                self.col += 1
        elif ch == BACKSPACE:
            if self.col == 0 and self.row == 0:
                return
            if self.col == 0:
                self.col = VGA_WIDTH - 1
                self.row -= 1
            else:
                self.col -= 1
            self._push_char(self.col, self.row, " ", color)
        else:
            self._push_char(self.col, self.row, ch, color)
            self.col += 1

        if self.col >= VGA_WIDTH:
            self.col = 0
            self.row += 1

    def _visible_top_row(self) -> int:
        return max(self.row - (VGA_HEIGHT - 1), 0)

    def _flush(self) -> None:
        top = self._visible_top_row()
        for y in range(VGA_HEIGHT):
            line = self._buffer[(y + top) % SCREEN_BUFFER_HEIGHT]
            self.video[y * VGA_WIDTH:(y + 1) * VGA_WIDTH] = line

    def print(self, text: str) -> None:
        """Write ``text`` in white."""
        self.printc(text, Color.WHITE)

    def printc(self, text: str, color: int) -> None:
        """Write ``text`` in ``color`` and refresh the screen."""
        for ch in text:
            self._write_char(ch, color)
        self._flush()

    def print_int(self, n: int) -> None:
        self.print(itoa(n, 10))

    def print_hex(self, n: int) -> None:
        self.print(itoa(n & 0xFFFFFFFF, 16))

    def screen(self) -> list[str]:
        """The visible rows as text, without trailing blanks."""
        rows = []
        for y in range(VGA_HEIGHT):
            cells = self.video[y * VGA_WIDTH:(y + 1) * VGA_WIDTH]
            text = "".join(chr(cell & 0xFF) for cell in cells)
            rows.append(text.replace("\0", " ").rstrip())
        return rows