"""Keyboard drivers, the PS/2 scancode translator and the per-process key buffer."""

from __future__ import annotations

from typing import Any, Callable, Optional

from .config import MAX_KEYBOARD_DRIVER_COUNT
from .errors import ErrorCode, KernelError

KEYBOARD_BUFFER_SIZE = 1024

BACKSPACE = 0x08
CTRL_C = 0x03
CTRL_D = 0x04

PS2_COMMAND_PORT = 0x64
PS2_COMMAND_ENABLE_FIRST_PORT = 0xAE
PS2_DATA_PORT = 0x60

PS2_KEYBOARD_KEY_RELEASED = 0x80
PS2_KEYBOARD_LEFT_SHIFT = 0x2A
PS2_KEYBOARD_RIGHT_SHIFT = 0x36
PS2_KEYBOARD_LEFT_CTRL = 0x1D
PS2_KEYBOARD_RIGHT_CTRL = 0x1D

_SHIFT_KEYS = frozenset({PS2_KEYBOARD_LEFT_SHIFT, PS2_KEYBOARD_RIGHT_SHIFT})
_CTRL_KEYS = frozenset({PS2_KEYBOARD_LEFT_CTRL, PS2_KEYBOARD_RIGHT_CTRL})

# Scancode set 1 to US QWERTY ASCII, sixteen scancodes per line.
US_QWERTY_KEYMAP = (
    b"\x00\x1b1234567890-=\x08\t"
    b"qwertyuiop[]\r\x00as"
    b"dfghjkl;'`\x00\\zxcv"
    b"bnm,./\x00*\x00 \x00\x00\x00\x00\x00\x00"
    b"\x00\x00\x00\x00\x00789-456+123"
    b"0.\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00"
)
US_QWERTY_KEYMAP_SHIFTED = (
    b"\x00\x1b!@#$%^&*()_+\x08\t"
    b"QWERTYUIOP{}\r\x00AS"
    b"DFGHJKL:\"~\x00|ZXCV"
    b"BNM<>?\x00*\x00 \x00\x00\x00\x00\x00\x00"
    b"\x00\x00\x00\x00\x00789-456+123"
    b"0.\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00"
)


class KeyboardBuffer:
    """A ring buffer of key codes with free-running head and tail counters.

    The full check compares the slots of head and tail only, so a buffer whose
    head sits at slot 0 can wrap around and lose what it held.
    """

    def __init__(self) -> None:
        self._buffer = bytearray(KEYBOARD_BUFFER_SIZE)
        self.head = 0
        self.tail = 0

    def push(self, key: int) -> bool:
        """Store ``key``; return False if the buffer was full and it was dropped."""
        head = self.head % KEYBOARD_BUFFER_SIZE
        tail = self.tail % KEYBOARD_BUFFER_SIZE
        if tail + 1 == head:
            return False
        self._buffer[tail] = key & 0xFF
        self.tail += 1
        return True

    def pop(self) -> Optional[int]:
        """The oldest key, or None when the buffer is empty."""
        head = self.head % KEYBOARD_BUFFER_SIZE
        tail = self.tail % KEYBOARD_BUFFER_SIZE
        if head == tail:
            return None
        key = self._buffer[head]
        self.head += 1
        return key


class Ps2Keyboard:
    """The default PS/2 keyboard: tracks modifiers and maps scancodes to ASCII."""

    name = "PS/2 Default Keyboard"

    def __init__(self, write_port: Callable[[int, int], Any] | None = None) -> None:
        self._write_port = write_port
        self.is_shift_pressed = False
        self.is_ctrl_pressed = False

    def initialize(self) -> None:
        """Enable the first PS/2 port."""
        if self._write_port is not None:
            self._write_port(PS2_COMMAND_PORT, PS2_COMMAND_ENABLE_FIRST_PORT)

    def to_ascii(self, scancode: int) -> int:
        """The ASCII code of a pressed key, or 0 if it has none.

        While control is held every key maps to 0.
        """
        if not 0 <= scancode < len(US_QWERTY_KEYMAP):
            return 0
        if self.is_ctrl_pressed:
            return 0
        keymap = US_QWERTY_KEYMAP_SHIFTED if self.is_shift_pressed else US_QWERTY_KEYMAP
        return keymap[scancode]

    def handle_scancode(self, scancode: int) -> int:
        """Process one scancode byte; return the typed character code or 0."""
        scancode &= 0xFF
        if scancode & PS2_KEYBOARD_KEY_RELEASED:
            scancode &= ~PS2_KEYBOARD_KEY_RELEASED
            if scancode in _SHIFT_KEYS:
                self.is_shift_pressed = False
            if scancode in _CTRL_KEYS:
                self.is_ctrl_pressed = False
            return 0
        if scancode in _SHIFT_KEYS:
            self.is_shift_pressed = True
            return 0
        if scancode in _CTRL_KEYS:
            self.is_ctrl_pressed = True
            return 0
        return self.to_ascii(scancode)


class KeyboardDrivers:
    """Registered keyboard drivers and the buffer that receives typed keys."""

    def __init__(self, buffer: KeyboardBuffer | None = None) -> None:
        self._drivers: list[Any] = []
        self.current_index = 0
        self.buffer = buffer if buffer is not None else KeyboardBuffer()

    def register(self, driver: Any) -> None:
        """Add ``driver`` and initialize it."""
        initialize = getattr(driver, "initialize", None)
        if not callable(initialize):
            raise KernelError(ErrorCode.ENOCALLBACK, "keyboard driver has no initializer")
        if len(self._drivers) >= MAX_KEYBOARD_DRIVER_COUNT:
            raise KernelError(ErrorCode.ETOOMANYDRIVERS, "no free keyboard driver slots")
        self._drivers.append(driver)
        initialize()

    def current(self) -> Any:
        """The active driver, or None if none is registered in its slot."""
        index = self.current_index % MAX_KEYBOARD_DRIVER_COUNT
        return self._drivers[index] if index < len(self._drivers) else None

    def handle_interrupt(self, scancode: int) -> int:
        """Pass a scancode to the active driver and buffer the key it yields."""
        keyboard = self.current()
        if keyboard is None:
            return 0
        key = keyboard.handle_scancode(scancode) & 0xFF
        if key:
            self.buffer.push(key)
        return key