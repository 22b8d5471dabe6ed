"""Reading 32-bit little-endian ELF headers, program and section tables."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass
from typing import Type, TypeVar

from .errors import ErrorCode, KernelError

ELF_MAGIC = b"\x7fELF"

# Segment flag bits
PF_X = 0x01
PF_W = 0x02
PF_R = 0x04
PF_MASKPROC = 0xF0000000

# Segment types
PT_NULL = 0x00
PT_LOAD = 0x01
PT_DYNAMIC = 0x02
PT_INTERP = 0x03
PT_NOTE = 0x04
PT_SHLIB = 0x05
PT_PHDR = 0x06
PT_LOPROC = 0x70000000
PT_HIPROC = 0x7FFFFFFF

# Section types
SHT_NULL = 0x00
SHT_PROGBITS = 0x01
SHT_SYMTAB = 0x02
SHT_STRTAB = 0x03
SHT_RELA = 0x04
SHT_HASH = 0x05
SHT_DYNAMIC = 0x06
SHT_NOTE = 0x07
SHT_NOBITS = 0x08
SHT_REL = 0x09
SHT_SHLIB = 0x0A
SHT_DYNSYM = 0x0B
SHT_LOPROC = 0x70000000
SHT_HIPROC = 0x7FFFFFFF
SHT_LOUSER = 0x80000000
SHT_HIUSER = 0xFFFFFFFF

# Object file types
ET_NONE = 0x00
ET_REL = 0x01
ET_EXEC = 0x02
ET_DYN = 0x03
ET_CORE = 0x04
ET_LOPROC = 0xFF00
ET_HIPROC = 0xFFFF

# Identification indexes
EI_MAG0 = 0
EI_MAG1 = 1
EI_MAG2 = 2
EI_MAG3 = 3
EI_CLASS = 4
EI_DATA = 5
EI_VERSION = 6
EI_PAD = 7
EI_NIDENT = 16

ELFCLASSNONE = 0x00
ELFCLASS32 = 0x01
ELFCLASS64 = 0x02

ELFDATANONE = 0x00
ELFDATA2LSB = 0x01
ELFDATA2MSB = 0x02

SHN_UNDEF = 0x00

_T = TypeVar("_T", "ElfHeader", "ProgramHeader", "SectionHeader")


@dataclass
class ElfHeader:
    ident: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    FORMAT = struct.Struct(f"<{EI_NIDENT}sHHIIIIIHHHHHH")

    @property
    def elf_class(self) -> int:
        return self.ident[EI_CLASS]

    @property
    def data_encoding(self) -> int:
        return self.ident[EI_DATA]

    @property
    def entry_address(self) -> int:
        """Where execution starts, or zero if the file has no entry point."""
        return self.entry

    def pack(self) -> bytes:
        return self.FORMAT.pack(*astuple(self))


@dataclass
class ProgramHeader:
    type: int
    offset: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: int
    align: int

    FORMAT = struct.Struct("<8I")

    def pack(self) -> bytes:
        return self.FORMAT.pack(*astuple(self))


@dataclass
class SectionHeader:
    name: int
    type: int
    flags: int
    addr: int
    offset: int
    size: int
    link: int
    info: int
    addralign: int
    entsize: int

    FORMAT = struct.Struct("<10I")

    def pack(self) -> bytes:
        return self.FORMAT.pack(*astuple(self))


def _unpack(cls: Type[_T], data: bytes, offset: int) -> _T:
    size = cls.FORMAT.size
    if offset < 0 or offset + size > len(data):
        raise KernelError(
            ErrorCode.EFILENOTSUPPORTED, f"{cls.__name__} at {offset:#x} lies outside the file"
        )
    return cls(*cls.FORMAT.unpack_from(data, offset))


def is_elf(data: bytes) -> bool:
    """Whether ``data`` begins with the ELF magic number."""
    return bytes(data[:len(ELF_MAGIC)]) == ELF_MAGIC


def parse_elf_header(data: bytes) -> ElfHeader:
    """The ELF header found at the start of ``data``."""
    return _unpack(ElfHeader, data, 0)


def program_headers(data: bytes, header: ElfHeader) -> list[ProgramHeader]:
    """The ``phnum`` entries of the program header table."""
    stride = ProgramHeader.FORMAT.size
    return [
        _unpack(ProgramHeader, data, header.phoff + i * stride)
        for i in range(header.phnum)
    ]


def section_headers(data: bytes, header: ElfHeader) -> list[SectionHeader]:
    """The ``shnum`` entries of the section header table."""
    stride = SectionHeader.FORMAT.size
    return [
        _unpack(SectionHeader, data, header.shoff + i * stride)
        for i in range(header.shnum)
    ]


def section_name_string_table(data: bytes, header: ElfHeader) -> bytes:
    """The contents of the section that holds the section names."""
    stride = SectionHeader.FORMAT.size
    section = _unpack(SectionHeader, data, header.shoff + header.shstrndx * stride)
    end = section.offset + section.size
    if end > len(data):
        raise KernelError(ErrorCode.EFILENOTSUPPORTED, "string table lies outside the file")
    return bytes(data[section.offset:end])