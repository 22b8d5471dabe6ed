"""Loading executable files into memory layouts for a new process."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag

from .config import (
    MAX_PATH_LENGTH,
    USER_PROGRAM_STACK_SIZE,
    USER_PROGRAM_STACK_VIRTUAL_ADDRESS_END,
    USER_PROGRAM_VIRTUAL_ADDRESS_START,
)
from .elf import (
    ELFCLASS32,
    ELFDATA2LSB,
    ET_EXEC,
    PF_W,
    PT_LOAD,
    ElfHeader,
    is_elf,
    parse_elf_header,
    program_headers,
)
from .errors import ErrorCode, KernelError
from .heap import Heap
from .vfs import VirtualFileSystem


class PageFlag(IntFlag):
    """Page table entry flags."""

    NONE = 0
    IS_PRESENT = 0b00000001
    IS_WRITABLE = 0b00000010
    ACCESS_FROM_ALL = 0b00000100
    WRITE_THROUGH = 0b00001000
    CACHE_DISABLED = 0b00010000


class ProgramFileType(IntEnum):
    UNKNOWN = 0
    ELF = 1
    BIN = 2


@dataclass
class MemoryLayout:
    """A region of physical memory and where it appears in the program's space."""

    physical_address_start: int
    virtual_address_start: int
    size: int
    flags: PageFlag


@dataclass
class Program:
    """An executable loaded into memory, ready to be mapped for a process."""

    file_path: str = ""
    file_type: ProgramFileType = ProgramFileType.UNKNOWN
    entry_point_address: int = 0
    program_sections: list[MemoryLayout] = field(default_factory=list)
    stack_section: MemoryLayout | None = None
    image_address: int = 0
    image: bytes = b""
    command: list[str] = field(default_factory=list)


def _allocate_image(data: bytes, heap: Heap) -> int:
    return heap.malloc(len(data))


def _allocate_stack(heap: Heap, image_address: int) -> MemoryLayout:
    try:
        stack = heap.malloc(USER_PROGRAM_STACK_SIZE)
    except KernelError:
        heap.free(image_address)
        raise
    return MemoryLayout(
        physical_address_start=stack,
        virtual_address_start=USER_PROGRAM_STACK_VIRTUAL_ADDRESS_END,
        size=USER_PROGRAM_STACK_SIZE,
        flags=PageFlag.IS_PRESENT | PageFlag.IS_WRITABLE | PageFlag.ACCESS_FROM_ALL,
    )


def load_binary_executable(data: bytes, heap: Heap) -> Program:
    """Load a flat binary whose entry point is its first byte."""
    data = bytes(data)
    image = _allocate_image(data, heap)
    stack = _allocate_stack(heap, image)
    text = MemoryLayout(
        physical_address_start=image,
        virtual_address_start=USER_PROGRAM_VIRTUAL_ADDRESS_START,
        size=len(data),
        flags=PageFlag.IS_PRESENT | PageFlag.ACCESS_FROM_ALL,
    )
    return Program(
        file_type=ProgramFileType.BIN,
        entry_point_address=USER_PROGRAM_VIRTUAL_ADDRESS_START,
        program_sections=[text],
        stack_section=stack,
        image_address=image,
        image=data,
    )


def _is_supported(header: ElfHeader) -> bool:
    return (
        header.elf_class == ELFCLASS32
        and header.data_encoding == ELFDATA2LSB
        and header.type == ET_EXEC
        and header.entry >= USER_PROGRAM_VIRTUAL_ADDRESS_START
        and header.phoff != 0
    )


def load_elf_executable(data: bytes, heap: Heap) -> Program:
    """Load a 32-bit little-endian ELF executable made of loadable segments."""
    data = bytes(data)
    if not is_elf(data):
        raise KernelError(ErrorCode.EFILENOTSUPPORTED, "not an ELF file")
    header = parse_elf_header(data)
    if not _is_supported(header):
        raise KernelError(ErrorCode.EFILENOTSUPPORTED, "unsupported ELF file")
    segments = program_headers(data, header)
    if any(segment.type != PT_LOAD for segment in segments):
        raise KernelError(ErrorCode.EFILENOTSUPPORTED, "unsupported program header type")

    image = _allocate_image(data, heap)
    stack = _allocate_stack(heap, image)

    sections = []
    for segment in segments:
        flags = PageFlag.IS_PRESENT | PageFlag.ACCESS_FROM_ALL
        if segment.flags & PF_W:
            flags |= PageFlag.IS_WRITABLE
        sections.append(
            MemoryLayout(
                physical_address_start=image + segment.offset,
                virtual_address_start=segment.vaddr,
                size=segment.memsz,
                flags=flags,
            )
        )
    return Program(
        file_type=ProgramFileType.ELF,
        entry_point_address=header.entry,
        program_sections=sections,
        stack_section=stack,
        image_address=image,
        image=data,
    )


def _read_whole_file(vfs: VirtualFileSystem, path: str) -> bytes:
    try:
        fd = vfs.open(path, "r")
    except KernelError as exc:
        raise KernelError(ErrorCode.EIO, f"cannot open {path!r}") from exc
    try:
        try:
            size = vfs.stat(fd).size
            data = vfs.read(fd, size, 1)
        except KernelError as exc:
            raise KernelError(ErrorCode.EIO, f"cannot read {path!r}") from exc
        if len(data) != size:
            raise KernelError(ErrorCode.EIO, f"short read from {path!r}")
        return data
    finally:
        vfs.close(fd)


def load_file(vfs: VirtualFileSystem, path: str, heap: Heap) -> Program:
    """Read the executable at ``path`` and load it as ELF or flat binary."""
    if not path:
        raise KernelError(ErrorCode.EINVARG, "no file path")
    data = _read_whole_file(vfs, path)
    if is_elf(data):
        program = load_elf_executable(data, heap)
    else:
        program = load_binary_executable(data, heap)
    program.file_path = path[: MAX_PATH_LENGTH - 1]
    return program