import pytest

from taios.config import MAX_FILE_DESCRIPTOR_COUNT, MAX_FILE_SYSTEM_COUNT
from taios.disk import Disk
from taios.errors import ErrorCode, KernelError
from taios.fat16 import ATTR_HIDDEN, DirectoryEntry, Fat16FileSystem, FatHeader
from taios.fileapi import FileMode, SeekMode, StatFlag
from taios.vfs import VirtualFileSystem

SECTOR = 512
HELLO = b" World! Hello,"
LONG = bytes(range(256)) * 3


def build_image(files, attributes=None):
    attributes = attributes or {}
    image = bytearray(SECTOR * 64)
    header = FatHeader(
        bytes_per_sector=SECTOR,
        sectors_per_cluster=1,
        reserved_sectors=1,
        fat_copies=1,
        root_dir_entries=16,
        sectors_per_fat=1,
    ).pack()
    image[: len(header)] = header
    cluster = 2
    for index, (full, content) in enumerate(files.items()):
        name, _, ext = full.partition(".")
        clusters = max(1, -(-len(content) // SECTOR))
        entry = DirectoryEntry(
            name=name.encode().ljust(8),
            extension=ext.encode().ljust(3),
            attributes=attributes.get(full, 0),
            first_cluster_low=cluster,
            file_size=len(content),
        )
        image[2 * SECTOR + index * 32: 2 * SECTOR + (index + 1) * 32] = entry.pack()
        for i in range(clusters):
            c = cluster + i
            nxt = c + 1 if i < clusters - 1 else 0xFFFF
            image[SECTOR + 2 * c: SECTOR + 2 * c + 2] = nxt.to_bytes(2, "little")
        start = (3 + cluster - 2) * SECTOR
        image[start:start + len(content)] = content
        cluster += clusters
    return bytes(image)


@pytest.fixture
def vfs():
    system = VirtualFileSystem()
    system.register(Fat16FileSystem())
    disk = Disk(build_image({"HELLO.TXT": HELLO, "LONG.BIN": LONG}, {"LONG.BIN": ATTR_HIDDEN}))
    system.attach_disk(disk)
    return system


def test_descriptors_start_at_one(vfs):
    first = vfs.open("0:/hello.txt", "r")
    second = vfs.open("0:/HELLO.TXT", "r")
    assert first == 1
    assert second == first + 1


def test_seek_and_read_like_kernel_demo(vfs):
    fd = vfs.open("0:/hello.txt", "r")
    vfs.seek(fd, 8, SeekMode.CUR)
    assert vfs.read(fd, 6, 1) == b"Hello,"
    vfs.seek(fd, 0, SeekMode.SET)
    assert vfs.read(fd, 7, 1) == b" World!"
    vfs.close(fd)


def test_stat_reports_size_and_flags(vfs):
    fd = vfs.open("0:/hello.txt", "r")
    assert vfs.stat(fd).size == len(HELLO)
    assert vfs.stat(fd).flags == StatFlag.NONE
    long_fd = vfs.open("0:/long.bin", FileMode.READ)
    assert vfs.stat(long_fd).size == len(LONG)
    assert StatFlag.HIDDEN in vfs.stat(long_fd).flags


def test_read_across_clusters(vfs):
    fd = vfs.open("0:/long.bin", "r")
    assert vfs.read(fd, len(LONG), 1) == LONG


def test_read_several_items(vfs):
    fd = vfs.open("0:/hello.txt", "r")
    assert vfs.read(fd, 3, 2) == HELLO[:6]


def test_closed_slot_is_reused(vfs):
    fd = vfs.open("0:/hello.txt", "r")
    vfs.close(fd)
    assert vfs.open("0:/hello.txt", "r") == fd


@pytest.mark.parametrize(
    "path, code",
    [
        ("hello.txt", ErrorCode.EINVPATH),
        ("0:/", ErrorCode.EINVPATH),
        ("1:/hello.txt", ErrorCode.EIO),
        ("0:/missing.txt", ErrorCode.EIO),
    ],
)
def test_open_errors(vfs, path, code):
    with pytest.raises(KernelError) as info:
        vfs.open(path, "r")
    assert info.value.code is code


def test_open_invalid_mode(vfs):
    with pytest.raises(KernelError) as info:
        vfs.open("0:/hello.txt", "x")
    assert info.value.code is ErrorCode.EINVARG


def test_open_for_writing_fails(vfs):
    with pytest.raises(KernelError) as info:
        vfs.open("0:/hello.txt", "w")
    assert info.value.code is ErrorCode.EIO


@pytest.mark.parametrize("size, count, fd", [(0, 1, 1), (1, 0, 1), (1, 1, 0), (1, 1, 7)])
def test_read_invalid_arguments(vfs, size, count, fd):
    vfs.open("0:/hello.txt", "r")
    with pytest.raises(KernelError) as info:
        vfs.read(fd, size, count)
    assert info.value.code is ErrorCode.EINVARG


def test_use_after_close(vfs):
    fd = vfs.open("0:/hello.txt", "r")
    vfs.close(fd)
    with pytest.raises(KernelError) as info:
        vfs.read(fd, 1, 1)
    assert info.value.code is ErrorCode.EINVARG
    with pytest.raises(KernelError) as info:
        vfs.close(fd)
    assert info.value.code is ErrorCode.EINVARG


def test_seek_beyond_end(vfs):
    fd = vfs.open("0:/hello.txt", "r")
    with pytest.raises(KernelError) as info:
        vfs.seek(fd, len(HELLO) + 1, SeekMode.SET)
    assert info.value.code is ErrorCode.EIO


def test_stat_unknown_descriptor(vfs):
    with pytest.raises(KernelError) as info:
        vfs.stat(MAX_FILE_DESCRIPTOR_COUNT + 1)
    assert info.value.code is ErrorCode.EINVARG


def test_unformatted_disk_has_no_file_system():
    system = VirtualFileSystem()
    system.register(Fat16FileSystem())
    disk = Disk(bytes(SECTOR * 4))
    assert system.attach_disk(disk) is None
    assert disk.fs is None
    with pytest.raises(KernelError) as info:
        system.open("0:/hello.txt", "r")
    assert info.value.code is ErrorCode.EIO


def test_resolve_returns_accepting_file_system():
    system = VirtualFileSystem()
    fat = Fat16FileSystem()
    system.register(fat)
    assert system.resolve(Disk(build_image({"A.TXT": b"a"}))) is fat


def test_too_many_file_systems():
    system = VirtualFileSystem()
    for _ in range(MAX_FILE_SYSTEM_COUNT):
        system.register(Fat16FileSystem())
    with pytest.raises(KernelError) as info:
        system.register(Fat16FileSystem())
    assert info.value.code is ErrorCode.ENOMEM


def test_too_many_open_files(vfs):
    fds = [vfs.open("0:/hello.txt", "r") for _ in range(MAX_FILE_DESCRIPTOR_COUNT)]
    assert fds == list(range(1, MAX_FILE_DESCRIPTOR_COUNT + 1))
    with pytest.raises(KernelError) as info:
        vfs.open("0:/hello.txt", "r")
    assert info.value.code is ErrorCode.ENOMEM