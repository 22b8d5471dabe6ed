[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taios"
version = "0.1.0"
description = "A small teaching operating system kernel in plain Python: block heap, FAT16, ELF loading, text terminal, PS/2 keyboard, GDT encoding and user-space helpers."
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "fat16", "elf", "heap", "gdt", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["taios"]

[tool.pytest.ini_options]
addopts = "-ra"
