"""System-wide limits and memory layout constants."""

TOTAL_GDT_SEGMENTS = 6

TOTAL_INTERRUPTS = 512
TOTAL_SYSCALL_COUNT = 1024

HEAP_SIZE_BYTES = 104857600  # 100 MiB
HEAP_BLOCK_SIZE_BYTES = 4096
HEAP_ADDRESS = 0x01000000

KERNEL_CODE_SELECTOR = 0x08
KERNEL_DATA_SELECTOR = 0x10
# User selectors carry a requested protection level of 3.
USER_PROGRAM_CODE_SELECTOR = 0x18 | 0x03
USER_PROGRAM_DATA_SELECTOR = 0x20 | 0x03

KERNEL_STACK_ADDRESS = 0x600000
USER_PROGRAM_STACK_SIZE = HEAP_BLOCK_SIZE_BYTES * 4
USER_PROGRAM_VIRTUAL_ADDRESS_START = 0x400000
USER_PROGRAM_STACK_VIRTUAL_ADDRESS_START = 0x3FF000
USER_PROGRAM_STACK_VIRTUAL_ADDRESS_END = (
    USER_PROGRAM_STACK_VIRTUAL_ADDRESS_START - USER_PROGRAM_STACK_SIZE
)

MAX_PROCESSES = 10
MAX_ALLOCATIONS_PER_PROCESS = 1024
MAX_COMMAND_LENGTH = 1024
MAX_COMMAND_ARGS = 32

DISK_SECTOR_SIZE_BYTES = 512
MAX_PATH_LENGTH = 108
MAX_FILE_SYSTEM_COUNT = 16
MAX_FILE_DESCRIPTOR_COUNT = 512

MAX_KEYBOARD_DRIVER_COUNT = 16