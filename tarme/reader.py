from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional

from .constants import BLOCK_SIZE, DEFAULT_CHUNK_SIZE
from .errors import TruncatedArchiveError
from .header import TarHeader, decode_header, padding_for
from .pathutil import safe_join


@dataclass
class Member:
    header: TarHeader
    offset: int  # header block offset
    data_offset: int

    @property
    def name(self) -> str:
        return self.header.name

    @property
    def size(self) -> int:
        return self.header.size


class ArchiveReader:
    """Sequential reader for fixed-header TAR archives.

    Reading stops at the first header whose name starts with NUL, or at a
    clean end of stream on a block boundary. A partial header or a payload
    shorter than its declared size raises TruncatedArchiveError.
    """
    def __init__(self, path: str, *, verify_checksums: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = path
        self.f: Optional[BinaryIO] = None
        self.verify_checksums = verify_checksums
        self.chunk_size = chunk_size
        self.archive_size = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        self.f = open(self.path, "rb")
        self.archive_size = os.fstat(self.f.fileno()).st_size

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def _next_member(self) -> Optional[Member]:
        off = self.f.tell()
        block = self.f.read(BLOCK_SIZE)
        if not block:
            return None
        if len(block) < BLOCK_SIZE:
            raise TruncatedArchiveError(f"Partial header at offset {off}: {len(block)} of {BLOCK_SIZE} bytes")
        hdr = decode_header(block, verify_checksum=self.verify_checksums)
        if hdr is None:
            return None
        return Member(header=hdr, offset=off, data_offset=off + BLOCK_SIZE)

    def _skip_padding(self, size: int):
        if size > 0:
            self.f.seek(padding_for(size), os.SEEK_CUR)

    def _skip_payload(self, m: Member):
        if m.data_offset + m.size > self.archive_size:
            raise TruncatedArchiveError(
                f"Archive ends inside {m.name!r}: {max(0, self.archive_size - m.data_offset)} of {m.size} bytes present"
            )
        self.f.seek(m.data_offset + m.size)
        self._skip_padding(m.size)

    def members(self) -> Iterator[Member]:
        """Yield each member header in archive order without extracting payloads."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        self.f.seek(0)
        while True:
            m = self._next_member()
            if m is None:
                return
            if not m.header.is_dir:
                yield m
            self._skip_payload(m)

    def list(self) -> List[Member]:
        return list(self.members())

    def _copy_payload(self, m: Member, dst: str):
        remaining = m.size
        with open(dst, "wb") as out:
            while remaining > 0:
                buf = self.f.read(min(self.chunk_size, remaining))
                if not buf:
                    raise TruncatedArchiveError(
                        f"Archive ends inside {m.name!r}: {m.size - remaining} of {m.size} bytes present"
                    )
                out.write(buf)
                remaining -= len(buf)
        self._skip_padding(m.size)

    def extract_all(self, outdir: str) -> List[str]:
        """Recreate every member under ``outdir``; return the member names written.

        Raises UnsafePathError for a member that would land outside
        ``outdir``, before anything is written for it.
        """
        if self.f is None:
            raise RuntimeError("Archive not open")
        self.f.seek(0)
        os.makedirs(outdir, exist_ok=True)
        extracted: List[str] = []
        while True:
            m = self._next_member()
            if m is None:
                break
            dst = safe_join(outdir, m.name)
            if m.header.is_dir:
                os.makedirs(dst, exist_ok=True)
                self._skip_payload(m)
                continue
            os.makedirs(os.path.dirname(dst), exist_ok=True)
            self._copy_payload(m, dst)
            extracted.append(m.name)
        return extracted


def extract_archive(archive_path: str, outdir: str, *, verify_checksums: bool = False) -> List[str]:
    with ArchiveReader(archive_path, verify_checksums=verify_checksums) as r:
        return r.extract_all(outdir)


def list_archive(archive_path: str, *, verify_checksums: bool = False) -> List[Member]:
    with ArchiveReader(archive_path, verify_checksums=verify_checksums) as r:
        return r.list()
