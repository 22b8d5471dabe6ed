"""The file layer: registered file systems, attached disks and open files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import MAX_FILE_DESCRIPTOR_COUNT, MAX_FILE_SYSTEM_COUNT
from .disk import Disk
from .errors import ErrorCode, KernelError
from .fileapi import FileMode, FileStat, SeekMode, parse_mode
from .path_parser import parse_path


@dataclass
class _FileDescriptor:
    index: int
    disk: Disk
    data: Any


class VirtualFileSystem:
    """Routes file operations to the file system that owns each disk.

    File descriptors are small integers starting at 1.
    """

    def __init__(self) -> None:
        self._file_systems: list[Any] = []
        self._descriptors: list[_FileDescriptor | None] = [None] * MAX_FILE_DESCRIPTOR_COUNT
        self._disks: dict[int, Disk] = {}

    def register(self, file_system: Any) -> None:
        """Make ``file_system`` available for resolving disks."""
        if len(self._file_systems) >= MAX_FILE_SYSTEM_COUNT:
            raise KernelError(ErrorCode.ENOMEM, "no free file system slots")
        self._file_systems.append(file_system)

    def resolve(self, disk: Disk) -> Any:
        """The first registered file system that accepts ``disk``, or None."""
        for file_system in self._file_systems:
            try:
                file_system.resolve(disk)
            except KernelError:
                continue
            return file_system
        return None

    def attach_disk(self, disk: Disk) -> Any:
        """Attach ``disk`` under its id and bind it to a file system."""
        disk.fs = self.resolve(disk)
        self._disks[disk.id] = disk
        return disk.fs

    def _descriptor(self, fd: int) -> _FileDescriptor:
        if not 1 <= fd <= MAX_FILE_DESCRIPTOR_COUNT:
            raise KernelError(ErrorCode.EINVARG, f"invalid file descriptor: {fd}")
        descriptor = self._descriptors[fd - 1]
        if descriptor is None:
            raise KernelError(ErrorCode.EINVARG, f"file descriptor not open: {fd}")
        return descriptor

    def open(self, path: str, mode: str | FileMode) -> int:
        """Open the file at ``path`` and return its descriptor."""
        root = parse_path(path)
        if root.is_root:
            raise KernelError(ErrorCode.EINVPATH, f"no file in path: {path!r}")

        disk = self._disks.get(root.drive_number)
        if disk is None or disk.fs is None:
            raise KernelError(ErrorCode.EIO, f"no file system on drive {root.drive_number}")

        file_mode = mode if isinstance(mode, FileMode) else parse_mode(mode)

        try:
            data = disk.fs.open(disk, root.parts, file_mode)
        except KernelError as exc:
            raise KernelError(ErrorCode.EIO, f"cannot open {path!r}: {exc}") from exc

        slot = next((i for i, d in enumerate(self._descriptors) if d is None), None)
        if slot is None:
            disk.fs.close(data)
            raise KernelError(ErrorCode.ENOMEM, "too many open files")
        descriptor = _FileDescriptor(index=slot + 1, disk=disk, data=data)
        self._descriptors[slot] = descriptor
        return descriptor.index

    def read(self, fd: int, size: int, count: int) -> bytes:
        """Read ``count`` items of ``size`` bytes from the file's position."""
        if size <= 0 or count <= 0 or fd < 1:
            raise KernelError(ErrorCode.EINVARG, "invalid read arguments")
        descriptor = self._descriptor(fd)
        return descriptor.disk.fs.read(descriptor.disk, descriptor.data, size, count)

    def seek(self, fd: int, offset: int, mode: SeekMode) -> None:
        """Move the file's position."""
        descriptor = self._descriptor(fd)
        descriptor.disk.fs.seek(descriptor.data, offset, mode)

    def stat(self, fd: int) -> FileStat:
        """Size and flags of the open file."""
        descriptor = self._descriptor(fd)
        return descriptor.disk.fs.stat(descriptor.data)

    def close(self, fd: int) -> None:
        """Close the file and free its descriptor."""
        descriptor = self._descriptor(fd)
        descriptor.disk.fs.close(descriptor.data)
        self._descriptors[fd - 1] = None