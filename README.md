# taios

The parts of a small 32-bit teaching kernel, written as plain Python
objects: a block-allocated heap, a disk backed by an in-memory image, a
read-only FAT16 file system behind a file-descriptor layer, a loader for
flat binaries and 32-bit ELF executables, a VGA-style text terminal, a PS/2
keyboard driver, GDT and TSS encoding, and the user-space helpers for
formatted output and command-line parsing.

Failures are raised as `taios.errors.KernelError`, whose `code` is an
`ErrorCode` and whose `status` is the negated code.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `taios.errors`: `ErrorCode` and `KernelError`.
- `taios.config`: sizes, addresses and limits (heap location and block size,
  sector size, maximum path length, descriptor and driver counts, selectors).
- `taios.strings`: `atoi`, `itoa`, `compare`, `compare_n`, `icompare_n` and
  `tokenize`.
- `taios.path_parser`: `parse_path` turns `0:/bin/shell` into a `PathRoot`
  with `drive_number`, `parts` and `is_root`.
- `taios.fileapi`: `FileMode`, `SeekMode`, `StatFlag`, `FileStat` and
  `parse_mode` (`"r"`, `"w"` or `"a"`).
- `taios.heap`: `Heap` with `malloc`, `free`, `entry`, `total_blocks` and
  `free_blocks`; `BlockFlag`; `create_kernel_heap`.
- `taios.disk`: `Disk` (`read_block`, `stream`) and `DiskStream` (`seek`,
  `read`, `position`).
- `taios.terminal`: `Terminal` with `print`, `printc`, `print_int`,
  `print_hex`, `screen` and `cursor`, and the `Color` palette.
- `taios.elf`: `ElfHeader`, `ProgramHeader`, `SectionHeader`, `is_elf`,
  `parse_elf_header`, `program_headers`, `section_headers` and
  `section_name_string_table`.
- `taios.fat16`: `Fat16FileSystem` (`resolve`, `open`, `read`, `seek`,
  `stat`, `close`), `FatHeader` and `DirectoryEntry`.
- `taios.vfs`: `VirtualFileSystem` with `register`, `resolve`,
  `attach_disk`, `open`, `read`, `seek`, `stat` and `close` on file
  descriptors numbered from 1.
- `taios.loader`: `load_file`, `load_binary_executable` and
  `load_elf_executable`, producing a `Program` of `MemoryLayout` sections
  with `PageFlag` flags and a `ProgramFileType`.
- `taios.keyboard`: `KeyboardBuffer` (`push`, `pop`), `Ps2Keyboard`
  (`to_ascii`, `handle_scancode`) and `KeyboardDrivers` (`register`,
  `current`, `handle_interrupt`).
- `taios.stdio`: `format_printf` (`%c`, `%s`, `%d`, `%x`) and `Console`
  with `printf`, `getchar`, `gets`, `putchar` and `puts` over a write
  callback and a key-reading callback.
- `taios.command`: `parse_command` and `validate_command`.
- `taios.gdt`: `SegmentDescriptor`, `TaskStateSegment` (`pack`),
  `encode_gdt_entry`, `encode_gdt`, `default_descriptors` and
  `new_kernel_tss`.

## Examples

```python
from taios.strings import tokenize
from taios.path_parser import parse_path
from taios.stdio import format_printf
from taios.terminal import Terminal
from taios.heap import create_kernel_heap

tokenize("This .is a test string.", " .")
# ['This', 'is', 'a', 'test', 'string']

parse_path("0:/bin/sh.exe").parts
# ['bin', 'sh.exe']

format_printf("%d items, %x", 42, 255)
# '42 items, ff'

term = Terminal()
term.print("hi\n")
term.screen()[0]
# 'hi'

heap = create_kernel_heap()
address = heap.malloc(100)   # one 4096-byte block
heap.free(address)
```

Reading a file from a FAT16 disk image:

```python
from taios.disk import Disk
from taios.fat16 import Fat16FileSystem
from taios.vfs import VirtualFileSystem

vfs = VirtualFileSystem()
vfs.register(Fat16FileSystem())
vfs.attach_disk(Disk(image_bytes))   # drive 0
fd = vfs.open("0:/hello.txt", "r")
size = vfs.stat(fd).size
data = vfs.read(fd, size, 1)
vfs.close(fd)
```

## What the package does not do

- It does not boot or run anything: there is no command, no shell, no
  process table, no task scheduler and no system-call dispatch.
- There is no paging; `taios.loader` records where sections would be mapped
  (`MemoryLayout`) but maps nothing.
- There is no interrupt descriptor table; the keyboard takes scancodes
  handed to `KeyboardDrivers.handle_interrupt`.
- Disks are in-memory images, and FAT16 volumes can only be read.