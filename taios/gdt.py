"""Global descriptor table entries and the task state segment."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass

from .config import KERNEL_DATA_SELECTOR, KERNEL_STACK_ADDRESS, TOTAL_GDT_SEGMENTS
from .errors import ErrorCode, KernelError

GDT_ENTRY_SIZE = 8

# Byte offset of the TSS descriptor within the encoded table: it is the last entry.
TSS_SEGMENT_OFFSET = (TOTAL_GDT_SEGMENTS - 1) * GDT_ENTRY_SIZE

ACCESS_NULL = 0x00
ACCESS_KERNEL_CODE = 0x9A
ACCESS_KERNEL_DATA = 0x92
ACCESS_USER_CODE = 0xFA
ACCESS_USER_DATA = 0xF2
ACCESS_TSS = 0x89

_FLAGS_PAGE_GRANULARITY = 0xC0
_FLAGS_BYTE_GRANULARITY = 0x40
_BYTE_GRANULARITY_MAX = 65536


@dataclass(frozen=True)
class SegmentDescriptor:
    """A segment as base address, limit and access byte."""

    base: int
    limit: int
    type: int

    def __post_init__(self) -> None:
        if not 0 <= self.base <= 0xFFFFFFFF:
            raise KernelError(ErrorCode.EINVARG, f"segment base out of range: {self.base:#x}")
        if not 0 <= self.limit <= 0xFFFFFFFF:
            raise KernelError(ErrorCode.EINVARG, f"segment limit out of range: {self.limit:#x}")
        if not 0 <= self.type <= 0xFF:
            raise KernelError(ErrorCode.EINVARG, f"access byte out of range: {self.type:#x}")


@dataclass
class TaskStateSegment:
    """The 32-bit task state segment; only the ring 0 stack is used."""

    link: int = 0
    esp0: int = 0
    ss0: int = 0
    esp1: int = 0
    ss1: int = 0
    esp2: int = 0
    ss2: int = 0
    cr3: int = 0
    eip: int = 0
    eflags: int = 0
    eax: int = 0
    ecx: int = 0
    edx: int = 0
    ebx: int = 0
    esp: int = 0
    ebp: int = 0
    esi: int = 0
    edi: int = 0
    es: int = 0
    cs: int = 0
    ss: int = 0
    ds: int = 0
    fs: int = 0
    gs: int = 0
    ldtr: int = 0
    iopb: int = 0

    FORMAT = struct.Struct("<26I")

    def pack(self) -> bytes:
        """The segment as laid out in memory."""
        try:
            return self.FORMAT.pack(*astuple(self))
        except struct.error as exc:
            raise KernelError(ErrorCode.EINVARG, f"invalid TSS field: {exc}") from None


TSS_SIZE = TaskStateSegment.FORMAT.size


def encode_gdt_entry(descriptor: SegmentDescriptor) -> bytes:
    """Encode one descriptor into its 8-byte table form.

    Limits above 64 KiB are stored in 4 KiB units and must therefore end in
    ``0xFFF``.
    """
    limit = descriptor.limit
    if limit > _BYTE_GRANULARITY_MAX and (limit & 0xFFF) != 0xFFF:
        raise KernelError(ErrorCode.EINVARG, "GDT entry limit is too large")

    target = bytearray(GDT_ENTRY_SIZE)
    if limit > _BYTE_GRANULARITY_MAX:
        limit >>= 12
        target[6] = _FLAGS_PAGE_GRANULARITY
    else:
        target[6] = _FLAGS_BYTE_GRANULARITY
    target[0] = limit & 0xFF
    target[1] = (limit >> 8) & 0xFF
    target[6] |= (limit >> 16) & 0xF

    base = descriptor.base
    target[2] = base & 0xFF
    target[3] = (base >> 8) & 0xFF
    target[4] = (base >> 16) & 0xFF
    target[7] = (base >> 24) & 0xFF

    target[5] = descriptor.type
    return bytes(target)


def encode_gdt(descriptors: list[SegmentDescriptor]) -> bytes:
    """Encode a whole table, entry after entry."""
    return b"".join(encode_gdt_entry(descriptor) for descriptor in descriptors)


def default_descriptors(tss_base: int, tss_limit: int = TSS_SIZE) -> list[SegmentDescriptor]:
    """The kernel's table: null, kernel code and data, user code and data, TSS."""
    return [
        SegmentDescriptor(base=0, limit=0, type=ACCESS_NULL),
        SegmentDescriptor(base=0, limit=0xFFFFFFFF, type=ACCESS_KERNEL_CODE),
        SegmentDescriptor(base=0, limit=0xFFFFFFFF, type=ACCESS_KERNEL_DATA),
        SegmentDescriptor(base=0, limit=0xFFFFFFFF, type=ACCESS_USER_CODE),
        SegmentDescriptor(base=0, limit=0xFFFFFFFF, type=ACCESS_USER_DATA),
        SegmentDescriptor(base=tss_base, limit=tss_limit, type=ACCESS_TSS),
    ]


def new_kernel_tss() -> TaskStateSegment:
    """A zeroed TSS whose ring 0 stack is the kernel stack."""
    return TaskStateSegment(esp0=KERNEL_STACK_ADDRESS, ss0=KERNEL_DATA_SELECTOR)