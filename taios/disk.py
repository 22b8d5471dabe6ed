"""Sector-addressed disks and byte streams over them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import DISK_SECTOR_SIZE_BYTES
from .errors import ErrorCode, KernelError

DISK_TYPE_REAL = 0


@dataclass
class Disk:
    """A disk backed by an in-memory image, read one sector at a time."""

    image: bytes
    id: int = 0
    sector_size: int = DISK_SECTOR_SIZE_BYTES
    type: int = DISK_TYPE_REAL
    fs: Any = None
    private_data: Any = None

    def read_block(self, lba: int, total: int) -> bytes:
        """Read ``total`` sectors starting at logical block ``lba``.

        A final sector that the image only partly covers is padded with zeros.
        """
        if lba < 0 or total < 0:
            raise KernelError(ErrorCode.EINVARG, "negative sector address or count")
        if total == 0:
            return b""
        start = lba * self.sector_size
        if start >= len(self.image):
            raise KernelError(ErrorCode.EIO, f"sector {lba} lies beyond the disk")
        length = total * self.sector_size
        data = bytes(self.image[start:start + length])
        return data.ljust(length, b"\0")

    def stream(self) -> DiskStream:
        """A new stream positioned at the start of the disk."""
        return DiskStream(self)


class DiskStream:
    """Reads arbitrary byte ranges from a disk."""

    def __init__(self, disk: Disk) -> None:
        self.disk = disk
        self.sector = 0
        self.offset = 0

    @property
    def position(self) -> int:
        return self.sector * self.disk.sector_size + self.offset

    def seek(self, position: int) -> None:
        """Move to the absolute byte ``position``."""
        if position < 0:
            raise KernelError(ErrorCode.EINVARG, "negative stream position")
        self.sector, self.offset = divmod(position, self.disk.sector_size)

    def read(self, size: int) -> bytes:
        """Read ``size`` bytes and advance the stream past them."""
        if size <= 0:
            raise KernelError(ErrorCode.EINVARG, "read size must be positive")
        out = bytearray()
        while len(out) < size:
            block = self.disk.read_block(self.sector, 1)
            chunk = block[self.offset:self.offset + size - len(out)]
            out += chunk
            self.offset += len(chunk)
            if self.offset == self.disk.sector_size:
                self.sector += 1
                self.offset = 0
        return bytes(out)