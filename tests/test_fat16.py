import struct

import pytest

from taios.disk import Disk
from taios.errors import ErrorCode, KernelError
from taios.fat16 import (
    ATTR_ARCHIVE,
    ATTR_HIDDEN,
    ATTR_SUBDIRECTORY,
    FAT16_SIGNATURE,
    DirectoryEntry,
    Fat16FileSystem,
    FatHeader,
)
from taios.fileapi import FileMode, SeekMode, StatFlag

SECTOR = 512
HELLO = b" World! Hello,"
BIG = bytes(i % 251 for i in range(700))
SHELL = b"shell"
BAD = b"x" * 600


def _entry(name, ext, attributes, cluster, size):
    return DirectoryEntry(
        name=name.ljust(8).encode("latin-1"),
        extension=ext.ljust(3).encode("latin-1"),
        attributes=attributes,
        first_cluster_low=cluster,
        file_size=size,
    )


def _put(image, sector, data):
    image[sector * SECTOR:sector * SECTOR + len(data)] = data


def build_image(signature=FAT16_SIGNATURE):
    image = bytearray(SECTOR * 10)
    header = FatHeader(
        jump=b"\xeb\x3c\x90",
        oem_id=b"TAIOS   ",
        bytes_per_sector=SECTOR,
        sectors_per_cluster=1,
        reserved_sectors=1,
        fat_copies=2,
        root_dir_entries=16,
        total_sectors=10,
        media_type=0xF8,
        sectors_per_fat=1,
        signature=signature,
        volume_label=b"TAIOS BOOT ",
        system_id=b"FAT16   ",
    )
    image[:FatHeader.FORMAT.size] = header.pack()

    chain = {2: 0xFFFF, 3: 5, 4: 0xFFFF, 5: 0xFFFF, 6: 0xFFFF, 7: 0xFFF7}
    for cluster, value in chain.items():
        struct.pack_into("<H", image, SECTOR + 2 * cluster, value)

    root = [
        _entry("HELLO", "TXT", ATTR_HIDDEN | ATTR_ARCHIVE, 2, len(HELLO)),
        _entry("BIG", "BIN", 0, 3, len(BIG)),
        _entry("BIN", "", ATTR_SUBDIRECTORY, 4, 0),
        _entry("\xe5ONE", "TXT", 0, 2, len(HELLO)),
        _entry("BAD", "BIN", 0, 7, len(BAD)),
    ]
    _put(image, 3, b"".join(e.pack() for e in root))

    # Cluster n lives in sector n + 2.
    _put(image, 4, HELLO)
    _put(image, 5, BIG[:SECTOR])
    _put(image, 7, BIG[SECTOR:])
    bin_dir = [
        _entry(".", "", ATTR_SUBDIRECTORY, 4, 0),
        _entry("..", "", ATTR_SUBDIRECTORY, 0, 0),
        _entry("SH", "EXE", 0, 6, len(SHELL)),
    ]
    _put(image, 6, b"".join(e.pack() for e in bin_dir))
    _put(image, 8, SHELL)
    _put(image, 9, BAD[:SECTOR])
    return bytes(image)


@pytest.fixture
def fs():
    return Fat16FileSystem()


@pytest.fixture
def disk(fs):
    d = Disk(build_image())
    fs.resolve(d)
    return d


def test_packed_sizes_match_on_disk_layout():
    header = FatHeader(bytes_per_sector=SECTOR)
    assert len(header.pack()) == 62
    assert len(_entry("A", "B", 0, 2, 1).pack()) == 32


def test_directory_entry_round_trip_and_first_cluster():
    entry = _entry("A", "B", ATTR_ARCHIVE, 0x1234, 99)
    entry.first_cluster_high = 0x0001
    again = DirectoryEntry.unpack(entry.pack())
    assert again == entry
    assert again.first_cluster == (0x0001 << 16) | 0x1234


@pytest.mark.parametrize(
    "name, ext, expected",
    [
        (b"HELLO   ", b"TXT", "HELLO.TXT"),
        (b"BIN     ", b"   ", "BIN"),
        (b"README\0\0", b"\0\0\0", "README"),
        (b"SH      ", b"E  ", "SH.E"),
    ],
)
def test_full_name(name, ext, expected):
    assert DirectoryEntry(name=name, extension=ext).full_name() == expected


def test_resolve_binds_disk(fs, disk):
    assert disk.fs is fs


def test_resolve_rejects_wrong_signature(fs):
    d = Disk(build_image(signature=0x28))
    with pytest.raises(KernelError) as info:
        fs.resolve(d)
    assert info.value.code is ErrorCode.EFSNOTSUPPORTED
    assert d.private_data is None
    assert d.fs is None


def test_seek_and_read_as_in_kernel_example(fs, disk):
    handle = fs.open(disk, ["hello.txt"], FileMode.READ)
    fs.seek(handle, 8, SeekMode.CUR)
    assert fs.read(disk, handle, 6, 1) == b"Hello,"
    fs.seek(handle, 0, SeekMode.SET)
    assert fs.read(disk, handle, 7, 1) == b" World!"


def test_stat_reports_size_and_flags(fs, disk):
    handle = fs.open(disk, ["HELLO.TXT"], FileMode.READ)
    stat = fs.stat(handle)
    assert stat.size == len(HELLO)
    assert stat.flags == StatFlag.HIDDEN | StatFlag.ARCHIVE


def test_read_does_not_move_position(fs, disk):
    handle = fs.open(disk, ["HELLO.TXT"], FileMode.READ)
    first = fs.read(disk, handle, 4, 1)
    assert fs.read(disk, handle, 4, 1) == first == HELLO[:4]


def test_read_several_items(fs, disk):
    handle = fs.open(disk, ["HELLO.TXT"], FileMode.READ)
    assert fs.read(disk, handle, 3, 2) == HELLO[:6]


def test_read_follows_cluster_chain(fs, disk):
    handle = fs.open(disk, ["BIG.BIN"], FileMode.READ)
    assert fs.read(disk, handle, len(BIG), 1) == BIG
    fs.seek(handle, 500, SeekMode.SET)
    assert fs.read(disk, handle, 30, 1) == BIG[500:530]


def test_read_stops_at_bad_cluster(fs, disk):
    handle = fs.open(disk, ["BAD.BIN"], FileMode.READ)
    assert fs.read(disk, handle, len(BAD), 1) == b""
    assert fs.read(disk, handle, SECTOR, 1) == BAD[:SECTOR]


def test_open_file_in_subdirectory(fs, disk):
    handle = fs.open(disk, ["bin", "sh.exe"], FileMode.READ)
    assert fs.read(disk, handle, len(SHELL), 1) == SHELL


def test_parent_entry_leads_to_root(fs, disk):
    handle = fs.open(disk, ["BIN", "..", "HELLO.TXT"], FileMode.READ)
    assert fs.read(disk, handle, len(HELLO), 1) == HELLO


@pytest.mark.parametrize(
    "parts",
    [["MISSING.TXT"], ["HELLO.TXT", "X"], ["\xe5ONE.TXT"], ["BIN", "NOPE"], []],
)
def test_open_missing_raises_eio(fs, disk, parts):
    with pytest.raises(KernelError) as info:
        fs.open(disk, parts, FileMode.READ)
    assert info.value.code is ErrorCode.EIO


@pytest.mark.parametrize("mode", [FileMode.WRITE, FileMode.APPEND])
def test_open_for_writing_is_refused(fs, disk, mode):
    with pytest.raises(KernelError) as info:
        fs.open(disk, ["HELLO.TXT"], mode)
    assert info.value.code is ErrorCode.EREADONLY


def test_seek_end_and_beyond_size(fs, disk):
    handle = fs.open(disk, ["HELLO.TXT"], FileMode.READ)
    fs.seek(handle, 0, SeekMode.END)
    assert handle.position == len(HELLO)
    with pytest.raises(KernelError) as info:
        fs.seek(handle, len(HELLO) + 1, SeekMode.SET)
    assert info.value.code is ErrorCode.EIO


def test_seek_invalid_mode(fs, disk):
    handle = fs.open(disk, ["HELLO.TXT"], FileMode.READ)
    with pytest.raises(KernelError) as info:
        fs.seek(handle, 0, 7)
    assert info.value.code is ErrorCode.EINVARG


def test_directory_cannot_be_seeked_or_stated(fs, disk):
    handle = fs.open(disk, ["BIN"], FileMode.READ)
    with pytest.raises(KernelError) as info:
        fs.seek(handle, 0, SeekMode.SET)
    assert info.value.code is ErrorCode.EINVARG
    with pytest.raises(KernelError) as info:
        fs.stat(handle)
    assert info.value.code is ErrorCode.EINVARG


def test_closed_handle_is_unusable(fs, disk):
    handle = fs.open(disk, ["HELLO.TXT"], FileMode.READ)
    fs.close(handle)
    with pytest.raises(KernelError) as info:
        fs.stat(handle)
    assert info.value.code is ErrorCode.EINVARG
    with pytest.raises(KernelError) as info:
        fs.close(handle)
    assert info.value.code is ErrorCode.EINVARG


def test_open_on_unresolved_disk(fs):
    with pytest.raises(KernelError) as info:
        fs.open(Disk(build_image()), ["HELLO.TXT"], FileMode.READ)
    assert info.value.code is ErrorCode.EIO