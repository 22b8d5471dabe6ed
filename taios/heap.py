"""Block-based heap allocator used for kernel memory."""

from __future__ import annotations

from enum import IntFlag

from .config import HEAP_ADDRESS, HEAP_BLOCK_SIZE_BYTES, HEAP_SIZE_BYTES
from .errors import ErrorCode, KernelError


class BlockFlag(IntFlag):
    """Bits stored in each entry of the heap block table."""

    FREE = 0x00
    TAKEN = 0x01
    IS_FIRST = 0b0100000
    HAS_NEXT = 0b1000000


_ENTRY_TYPE_MASK = 0x0F


class Heap:
    """A heap of fixed-size blocks between two block-aligned addresses.

    Each block has one table entry. An allocation marks a run of blocks as
    taken, flags the first of them, and chains the rest with ``HAS_NEXT``.
    """

    def __init__(self, start: int, end: int) -> None:
        if start % HEAP_BLOCK_SIZE_BYTES or end % HEAP_BLOCK_SIZE_BYTES:
            raise KernelError(ErrorCode.EINVARG, "heap bounds must be block aligned")
        if end <= start:
            raise KernelError(ErrorCode.EINVARG, "heap end must lie after its start")
        self.start = start
        self._table = bytearray((end - start) // HEAP_BLOCK_SIZE_BYTES)

    @property
    def total_blocks(self) -> int:
        return len(self._table)

    @property
    def free_blocks(self) -> int:
        return sum(1 for e in self._table if e & _ENTRY_TYPE_MASK == BlockFlag.FREE)

    def entry(self, block: int) -> BlockFlag:
        """The table entry of ``block``."""
        if not 0 <= block < len(self._table):
            raise KernelError(ErrorCode.EINVARG, f"no such block: {block}")
        return BlockFlag(self._table[block])

    def _find_run(self, blocks: int) -> int:
        run_start = -1
        run = 0
        for index, entry in enumerate(self._table):
            if entry & _ENTRY_TYPE_MASK != BlockFlag.FREE:
                run_start = -1
                run = 0
                continue
            if run_start < 0:
                run_start = index
            run += 1
            if run == blocks:
                return run_start
        raise KernelError(ErrorCode.ENOMEM, f"no run of {blocks} free blocks")

    def _mark_taken(self, start_block: int, blocks: int) -> None:
        end = start_block + blocks - 1
        for block in range(start_block, end + 1):
            flag = BlockFlag.TAKEN
            if block == start_block:
                flag |= BlockFlag.IS_FIRST
            if block != end:
                flag |= BlockFlag.HAS_NEXT
            self._table[block] = flag

    def malloc(self, size: int) -> int:
        """Allocate at least ``size`` bytes and return the start address."""
        if size <= 0:
            raise KernelError(ErrorCode.EINVARG, "allocation size must be positive")
        blocks = -(-size // HEAP_BLOCK_SIZE_BYTES)
        start_block = self._find_run(blocks)
        self._mark_taken(start_block, blocks)
        return self.start + start_block * HEAP_BLOCK_SIZE_BYTES

    def free(self, address: int) -> None:
        """Release the allocation that begins in the block holding ``address``."""
        block = (address - self.start) // HEAP_BLOCK_SIZE_BYTES
        if address < self.start or block >= len(self._table):
            raise KernelError(ErrorCode.EINVARG, f"address outside heap: {address:#x}")
        if not self._table[block] & BlockFlag.IS_FIRST:
            raise KernelError(ErrorCode.EINVARG, f"not an allocation start: {address:#x}")
        while True:
            entry = self._table[block]
            self._table[block] = BlockFlag.FREE
            if not entry & BlockFlag.HAS_NEXT:
                break
            block += 1


def create_kernel_heap() -> Heap:
    """The kernel heap at its fixed address and size."""
    return Heap(HEAP_ADDRESS, HEAP_ADDRESS + HEAP_SIZE_BYTES)