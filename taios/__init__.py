"""A small teaching operating system kernel: heap, disk, FAT16, ELF loading, terminal, keyboard and GDT."""

__version__ = "0.1.0"