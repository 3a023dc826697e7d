from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Iterator, List, Optional

from .constants import (
    BLOCK_SIZE,
    DEFAULT_CHUNK_SIZE,
    END_OF_ARCHIVE_BLOCKS,
    MAX_SIZE,
    NAME_MAX_BYTES,
    SKIP_ESCAPES_ROOT,
    SKIP_NAME_TOO_LONG,
    SKIP_STAT_FAILED,
    SKIP_TOO_LARGE,
    SKIP_UNREADABLE,
    STATUS_INVALID,
    STATUS_OK,
    STATUS_PARTIAL,
    STATUS_REJECTED,
)
from .errors import UnsafePathError
from .header import encode_header, encode_name, padding_for, stored_name
from .pathutil import archive_name, strict_archive_name


@dataclass
class ArchiveEntry:
    source: str
    size: int
    arcname: str


@dataclass
class SkippedFile:
    path: str
    reason: str
    message: str


@dataclass
class PathResult:
    """Outcome of archiving one input path."""
    path: str
    status: str
    members: List[str] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class _Skip(Exception):
    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class ArchiveWriter:
    """Streaming writer for fixed-header TAR archives.

    Member names are computed relative to ``root`` (the current directory at
    construction time by default). In the default mode every literal '../'
    is stripped from the relative name and long names are truncated; with
    ``strict_paths`` such files are skipped instead.
    """
    def __init__(
        self,
        out_path: str,
        *,
        root: Optional[str] = None,
        strict_paths: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.out_path = out_path
        self.f: Optional[BinaryIO] = None
        self.root = os.path.abspath(root if root is not None else os.getcwd())
        self.strict_paths = strict_paths
        self.chunk_size = chunk_size
        self.members: List[str] = []
        self.bytes_written = 0
        self.finalized = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.out_path, "wb")

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def _arcname(self, fs_path: str) -> str:
        if not self.strict_paths:
            return archive_name(fs_path, self.root)
        try:
            name = strict_archive_name(fs_path, self.root)
        except UnsafePathError as exc:
            raise _Skip(SKIP_ESCAPES_ROOT, str(exc)) from None
        if len(encode_name(name)) > NAME_MAX_BYTES:
            raise _Skip(SKIP_NAME_TOO_LONG, f"Name exceeds {NAME_MAX_BYTES} bytes: {name}")
        return name

    def _entry_for(self, fs_path: str, arcname: Optional[str] = None) -> ArchiveEntry:
        try:
            st = os.stat(fs_path)
        except OSError as exc:
            raise _Skip(SKIP_STAT_FAILED, f"Error getting file info for: {fs_path} ({exc.strerror})") from None
        if st.st_size > MAX_SIZE:
            raise _Skip(SKIP_TOO_LARGE, f"File too large for the size field: {fs_path} ({st.st_size} bytes)")
        return ArchiveEntry(source=os.path.abspath(fs_path), size=st.st_size, arcname=arcname if arcname is not None else self._arcname(fs_path))

    def _write_entry(self, entry: ArchiveEntry):
        try:
            src = open(entry.source, "rb")
        except OSError as exc:
            raise _Skip(SKIP_UNREADABLE, f"Cannot read: {entry.source} ({exc.strerror})") from None
        entry.arcname = stored_name(entry.arcname)
        with src:
            self.f.write(encode_header(entry.arcname, entry.size))
            remaining = entry.size
            while remaining > 0:
                buf = src.read(min(self.chunk_size, remaining))
                if not buf:
                    break
                self.f.write(buf)
                remaining -= len(buf)
        # A file that shrank since stat is zero-filled to its declared size
        self.f.write(b"\x00" * (remaining + padding_for(entry.size)))
        self.bytes_written += entry.size
        self.members.append(entry.arcname)

    def add_file(self, fs_path: str, arcname: Optional[str] = None) -> str:
        """Write one regular file as header, payload and padding; return its member name.

        Raises OSError when the file cannot be stat'ed or opened and
        UnsafePathError when strict naming rejects it.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        try:
            entry = self._entry_for(fs_path, arcname)
            self._write_entry(entry)
        except _Skip as exc:
            if exc.reason in (SKIP_ESCAPES_ROOT, SKIP_NAME_TOO_LONG):
                raise UnsafePathError(exc.message) from None
            raise OSError(exc.message) from None
        return entry.arcname

    def _iter_dir_files(self, top: str) -> Iterator[str]:
        # Directory order as the OS reports it; symlinked dirs are not followed
        for root, _dirs, files in os.walk(top):
            for fn in files:
                full = os.path.join(root, fn)
                if os.path.isfile(full):
                    yield full

    def add_path(self, path: str) -> PathResult:
        """Archive a file, or every regular file beneath a directory.

        Never raises for per-path problems: a missing or special path, or a
        file that could not be archived, is reported in the returned result.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        res = PathResult(path=path, status=STATUS_OK)
        if os.path.isdir(path):
            for full in self._iter_dir_files(path):
                try:
                    entry = self._entry_for(full)
                    self._write_entry(entry)
                except _Skip as exc:
                    res.skipped.append(SkippedFile(path=full, reason=exc.reason, message=exc.message))
                    continue
                res.members.append(entry.arcname)
            if res.skipped:
                res.status = STATUS_PARTIAL
                res.message = f"{len(res.skipped)} file(s) under {path} were skipped"
        elif os.path.isfile(path):
            try:
                entry = self._entry_for(path)
                self._write_entry(entry)
            except _Skip as exc:
                res.status = STATUS_INVALID if exc.reason == SKIP_STAT_FAILED else STATUS_REJECTED
                res.skipped.append(SkippedFile(path=path, reason=exc.reason, message=exc.message))
                res.message = exc.message
            else:
                res.members.append(entry.arcname)
        else:
            res.status = STATUS_INVALID
            res.message = f"Invalid file or directory: {path}"
        return res

    def finalize(self):
        """Write the two zero blocks that end the archive."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        if self.finalized:
            return
        self.f.write(b"\x00" * (BLOCK_SIZE * END_OF_ARCHIVE_BLOCKS))
        self.f.flush()
        self.finalized = True


def create_archive(
    archive_path: str,
    paths: Iterable[str],
    *,
    root: Optional[str] = None,
    strict_paths: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> List[PathResult]:
    """Create ``archive_path`` from ``paths`` in order.

    Failing to open the archive itself propagates; every per-path problem is
    returned as a PathResult so the caller decides what to report.
    """
    results: List[PathResult] = []
    with ArchiveWriter(archive_path, root=root, strict_paths=strict_paths, chunk_size=chunk_size) as w:
        for p in paths:
            results.append(w.add_path(p))
        w.finalize()
    return results
