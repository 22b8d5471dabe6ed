"""A read-only FAT16 file system driver working on top of a :class:`Disk`."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, field
from typing import Sequence, Union

from .config import MAX_PATH_LENGTH
from .disk import Disk, DiskStream
from .errors import ErrorCode, KernelError
from .fileapi import FileMode, FileStat, SeekMode, StatFlag
from .strings import icompare_n

FAT16_SIGNATURE = 0x29
FAT16_FAT_ENTRY_SIZE = 2
FAT16_BAD_SECTOR = 0xFFF7
FAT16_UNUSED_SECTOR = 0x0000
FAT16_FREE_ENTRY = 0xE5

FAT16_FILE_NAME_LENGTH = 8
FAT16_FILE_EXT_LENGTH = 3

# Directory entry attribute bits
ATTR_READ_ONLY = 0x01
ATTR_HIDDEN = 0x02
ATTR_SYSTEM = 0x04
ATTR_VOLUME_ID = 0x08
ATTR_SUBDIRECTORY = 0x10
ATTR_ARCHIVE = 0x20
ATTR_DEVICE = 0x40
ATTR_RESERVED = 0x80

_RESERVED_CLUSTERS = {0xFF0, 0xFF6}
_END_OF_CHAIN_LEGACY = 0xFF8
_END_OF_CHAIN_MIN = 0xFFF8

_STAT_FLAGS = (
    (ATTR_HIDDEN, StatFlag.HIDDEN),
    (ATTR_SYSTEM, StatFlag.SYSTEM),
    (ATTR_READ_ONLY, StatFlag.READONLY),
    (ATTR_ARCHIVE, StatFlag.ARCHIVE),
)


@dataclass
class FatHeader:
    """The BIOS parameter block together with its extended part."""

    jump: bytes = b"\0\0\0"
    oem_id: bytes = b""
    bytes_per_sector: int = 0
    sectors_per_cluster: int = 0
    reserved_sectors: int = 0
    fat_copies: int = 0
    root_dir_entries: int = 0
    total_sectors: int = 0
    media_type: int = 0
    sectors_per_fat: int = 0
    sectors_per_track: int = 0
    heads: int = 0
    hidden_sectors: int = 0
    sectors_big: int = 0
    drive_number: int = 0
    win_nt_bit: int = 0
    signature: int = FAT16_SIGNATURE
    volume_id: int = 0
    volume_label: bytes = b""
    system_id: bytes = b""

    FORMAT = struct.Struct("<3s8sHBHBHHBHHHIIBBBI11s8s")

    @classmethod
    def unpack(cls, data: bytes) -> FatHeader:
        return cls(*cls.FORMAT.unpack_from(data))

    def pack(self) -> bytes:
        return self.FORMAT.pack(*astuple(self))

    @property
    def root_dir_size(self) -> int:
        """Bytes reserved for the root directory (its capacity, not its use)."""
        return self.root_dir_entries * DirectoryEntry.FORMAT.size

    @property
    def root_dir_sector(self) -> int:
        return self.fat_copies * self.sectors_per_fat + self.reserved_sectors

    @property
    def root_dir_sectors(self) -> int:
        return -(-self.root_dir_size // self.bytes_per_sector)


@dataclass
class DirectoryEntry:
    """One 32-byte entry of a FAT directory."""

    name: bytes
    extension: bytes
    attributes: int = 0
    reserved: int = 0
    creation_time_ms: int = 0
    creation_time: int = 0
    creation_date: int = 0
    last_access_date: int = 0
    first_cluster_high: int = 0
    last_modification_time: int = 0
    last_modification_date: int = 0
    first_cluster_low: int = 0
    file_size: int = 0

    FORMAT = struct.Struct("<8s3sBBBHHHHHHHI")

    @classmethod
    def unpack(cls, data: bytes) -> DirectoryEntry:
        return cls(*cls.FORMAT.unpack_from(data))

    def pack(self) -> bytes:
        return self.FORMAT.pack(*astuple(self))

    @property
    def first_cluster(self) -> int:
        return (self.first_cluster_high << 16) | self.first_cluster_low

    @property
    def is_directory(self) -> bool:
        return bool(self.attributes & ATTR_SUBDIRECTORY)

    def full_name(self) -> str:
        """Name and extension joined by a dot, with the space padding removed."""
        name = _proper_string(self.name)
        if self.extension and self.extension[0] not in (0x20, 0):
            name += "." + _proper_string(self.extension)
        return name


def _proper_string(raw: bytes) -> str:
    chars = bytearray()
    for byte in raw:
        if byte in (0x20, 0):
            break
        chars.append(byte)
    return chars.decode("latin-1")


def _parse_entries(raw: bytes) -> list[DirectoryEntry]:
    """Entries up to the terminating one, skipping those marked free."""
    entries = []
    size = DirectoryEntry.FORMAT.size
    usable = len(raw) - len(raw) % size
    for fields in DirectoryEntry.FORMAT.iter_unpack(raw[:usable]):
        entry = DirectoryEntry(*fields)
        if entry.name[0] == 0:
            break
        if entry.name[0] != FAT16_FREE_ENTRY:
            entries.append(entry)
    return entries


@dataclass
class _Directory:
    entries: list[DirectoryEntry] = field(default_factory=list)


_Item = Union[DirectoryEntry, _Directory]


@dataclass
class _Volume:
    header: FatHeader
    root: _Directory
    data_start_sector: int
    data_stream: DiskStream
    fat_stream: DiskStream


@dataclass
class _OpenFile:
    item: _Item
    position: int = 0
    closed: bool = False


class Fat16FileSystem:
    """Read-only access to files on a FAT16 formatted disk."""

    name = "FAT16"

    def resolve(self, disk: Disk) -> None:
        """Bind the disk to this file system if it holds a FAT16 volume."""
        disk.private_data = None
        stream = disk.stream()
        header = FatHeader.unpack(stream.read(FatHeader.FORMAT.size))
        if header.signature != FAT16_SIGNATURE:
            raise KernelError(ErrorCode.EFSNOTSUPPORTED, "not a FAT16 volume")
        if header.bytes_per_sector == 0 or header.sectors_per_cluster == 0:
            raise KernelError(ErrorCode.EFSNOTSUPPORTED, "malformed FAT16 header")

        root = _Directory()
        if header.root_dir_size:
            stream.seek(header.root_dir_sector * header.bytes_per_sector)
            root = _Directory(_parse_entries(stream.read(header.root_dir_size)))

        disk.private_data = _Volume(
            header=header,
            root=root,
            data_start_sector=header.root_dir_sector + header.root_dir_sectors,
            data_stream=disk.stream(),
            fat_stream=disk.stream(),
        )
        disk.fs = self

    @staticmethod
    def _volume(disk: Disk) -> _Volume:
        volume = disk.private_data
        if not isinstance(volume, _Volume):
            raise KernelError(ErrorCode.EIO, "disk holds no FAT16 volume")
        return volume

    @staticmethod
    def _cluster_size(disk: Disk, volume: _Volume) -> int:
        return volume.header.sectors_per_cluster * disk.sector_size

    @staticmethod
    def _cluster_to_sector(volume: _Volume, cluster: int) -> int:
        return (cluster - 2) * volume.header.sectors_per_cluster + volume.data_start_sector

    @staticmethod
    def _fat_entry(disk: Disk, volume: _Volume, cluster: int) -> int:
        position = volume.header.reserved_sectors * disk.sector_size
        try:
            volume.fat_stream.seek(position + cluster * FAT16_FAT_ENTRY_SIZE)
            return int.from_bytes(volume.fat_stream.read(FAT16_FAT_ENTRY_SIZE), "little")
        except KernelError:
            return FAT16_UNUSED_SECTOR

    def _cluster_for_offset(self, disk: Disk, volume: _Volume, start: int, offset: int) -> int:
        cluster = start
        for _ in range(offset // self._cluster_size(disk, volume)):
            entry = self._fat_entry(disk, volume, cluster)
            if entry == _END_OF_CHAIN_LEGACY or entry >= _END_OF_CHAIN_MIN:
                raise KernelError(ErrorCode.EIO, "end of cluster chain")
            if entry == FAT16_BAD_SECTOR:
                raise KernelError(ErrorCode.EIO, f"bad cluster after {cluster}")
            if entry in _RESERVED_CLUSTERS:
                raise KernelError(ErrorCode.EIO, f"reserved cluster after {cluster}")
            if entry == FAT16_UNUSED_SECTOR:
                raise KernelError(ErrorCode.EIO, f"broken cluster chain at {cluster}")
            cluster = entry
        return cluster

    def _read_chain(self, disk: Disk, volume: _Volume, start: int, offset: int, length: int) -> bytes:
        cluster_size = self._cluster_size(disk, volume)
        out = bytearray()
        while length > 0:
            cluster = self._cluster_for_offset(disk, volume, start, offset)
            within = offset % cluster_size
            chunk = min(length, cluster_size - within)
            sector = self._cluster_to_sector(volume, cluster)
            volume.data_stream.seek(sector * disk.sector_size + within)
            out += volume.data_stream.read(chunk)
            offset += chunk
            length -= chunk
        return bytes(out)

    def _load_directory(self, disk: Disk, volume: _Volume, entry: DirectoryEntry) -> _Directory:
        if entry.first_cluster == 0:
            return volume.root
        size = DirectoryEntry.FORMAT.size
        entries = []
        offset = 0
        while True:
            try:
                raw = self._read_chain(disk, volume, entry.first_cluster, offset, size)
            except KernelError:
                break
            item = DirectoryEntry.unpack(raw)
            if item.name[0] == 0:
                break
            if item.name[0] != FAT16_FREE_ENTRY:
                entries.append(item)
            offset += size
        return _Directory(entries)

    @staticmethod
    def _find(directory: _Directory, name: str) -> DirectoryEntry | None:
        for entry in directory.entries:
            if icompare_n(entry.full_name(), name, MAX_PATH_LENGTH) == 0:
                return entry
        return None

    def open(self, disk: Disk, parts: Sequence[str], mode: FileMode) -> _OpenFile:
        """Open the item at ``parts`` below the root directory for reading."""
        if mode != FileMode.READ:
            raise KernelError(ErrorCode.EREADONLY, "FAT16 volumes are read-only")
        if not parts:
            raise KernelError(ErrorCode.EIO, "no path to open")
        volume = self._volume(disk)
        item: _Item = volume.root
        for name in parts:
            if not isinstance(item, _Directory):
                raise KernelError(ErrorCode.EIO, f"not a directory on the way to {name!r}")
            entry = self._find(item, name)
            if entry is None:
                raise KernelError(ErrorCode.EIO, f"no such file: {name!r}")
            item = self._load_directory(disk, volume, entry) if entry.is_directory else entry
        return _OpenFile(item)

    @staticmethod
    def _file_entry(handle: _OpenFile) -> DirectoryEntry:
        if handle.closed:
            raise KernelError(ErrorCode.EINVARG, "file is closed")
        if not isinstance(handle.item, DirectoryEntry):
            raise KernelError(ErrorCode.EINVARG, "not a file")
        return handle.item

    def read(self, disk: Disk, handle: _OpenFile, size: int, count: int) -> bytes:
        """Read up to ``count`` items of ``size`` bytes from the handle's position.

        Only whole items are returned; reading stops at the first item that
        fails. The handle's position is left where it was.
        """
        entry = self._file_entry(handle)
        if size < 0 or count < 0:
            raise KernelError(ErrorCode.EINVARG, "negative read size or count")
        volume = self._volume(disk)
        out = bytearray()
        offset = handle.position
        for _ in range(count):
            try:
                out += self._read_chain(disk, volume, entry.first_cluster, offset, size)
            except KernelError:
                break
            offset += size
        return bytes(out)

    def seek(self, handle: _OpenFile, offset: int, mode: SeekMode) -> None:
        """Move the handle's position relative to ``mode``."""
        entry = self._file_entry(handle)
        if offset < 0:
            raise KernelError(ErrorCode.EINVARG, "negative seek offset")
        if offset > entry.file_size:
            raise KernelError(ErrorCode.EIO, "seek offset beyond end of file")
        try:
            mode = SeekMode(mode)
        except ValueError:
            raise KernelError(ErrorCode.EINVARG, f"invalid seek mode: {mode!r}") from None
        if mode is SeekMode.SET:
            handle.position = offset
        elif mode is SeekMode.CUR:
            handle.position += offset
        else:
            handle.position = entry.file_size + offset

    def stat(self, handle: _OpenFile) -> FileStat:
        """Size and attribute flags of an open file."""
        entry = self._file_entry(handle)
        flags = StatFlag.NONE
        for attribute, flag in _STAT_FLAGS:
            if entry.attributes & attribute:
                flags |= flag
        return FileStat(size=entry.file_size, flags=flags)

    def close(self, handle: _OpenFile) -> None:
        """Release the handle; it cannot be used afterwards."""
        if handle.closed:
            raise KernelError(ErrorCode.EINVARG, "file is already closed")
        handle.closed = True