"""
tarme: a small TAR archiver

Packs files and directory trees into a sequential archive using the classic
fixed-length 512-byte header layout, and unpacks such archives again.

- Header codec with octal fields and the byte-sum checksum
- Streaming writer: recursive directory walk, 512-byte alignment, zero-block terminator
- Streaming reader: extraction with parent creation, traversal protection and
  truncation detection; optional checksum verification
- CLI for create, extract and list

Only regular files are stored. Mode, owner and mtime are written as fixed
defaults (0644, 0, 0) and are not restored on extraction.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "header",
    "writer",
    "reader",
    "pathutil",
    "errors",
]

# Programmatic API: tarme.writer.create_archive / tarme.reader.extract_archive,
# or the cmd_* functions in tarme.cli which take normal parameters.
