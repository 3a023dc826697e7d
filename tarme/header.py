from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

from .constants import (
    AREGTYPE,
    BLOCK_SIZE,
    CHKSUM_DIGITS,
    CHKSUM_FIELD,
    DEFAULT_GID,
    DEFAULT_MODE,
    DEFAULT_MTIME,
    DEFAULT_UID,
    DIRTYPE,
    GID_FIELD,
    MAX_SIZE,
    MODE_FIELD,
    MTIME_FIELD,
    NAME_MAX_BYTES,
    REGTYPE,
    SIZE_FIELD,
    UID_FIELD,
)
from .errors import ChecksumMismatchError, HeaderFieldOverflow, HeaderFormatError


# Header record (fixed 512 bytes)
# struct: 100s 8s 8s 8s 12s 12s 8s 1s 100s 255s
#  - name[100]      NUL-padded, at most 99 bytes of text
#  - mode[8]        octal + NUL
#  - uid[8]         octal + NUL
#  - gid[8]         octal + NUL
#  - size[12]       octal + NUL
#  - mtime[12]      octal + NUL
#  - chksum[8]      6 octal digits + NUL + space
#  - typeflag[1]
#  - linkname[100]  always empty
#  - reserved[255]  zero
_HEADER_STRUCT = struct.Struct("100s8s8s8s12s12s8s1s100s255s")
assert _HEADER_STRUCT.size == BLOCK_SIZE

_CHKSUM_BLANK = b" " * CHKSUM_FIELD[1]
_NAME_ENCODING = "utf-8"
_NAME_ERRORS = "surrogateescape"


def format_octal(value: int, width: int) -> bytes:
    """Render ``value`` as zero-padded octal filling ``width - 1`` digits plus NUL."""
    digits = width - 1
    if value < 0 or value >= 8 ** digits:
        raise HeaderFieldOverflow(f"Value {value} does not fit a {width}-byte octal field")
    return b"%0*o\x00" % (digits, value)


def parse_octal(raw: bytes) -> int:
    """Parse an octal field terminated by NUL or space. An empty field is 0."""
    text = raw.split(b"\x00", 1)[0].strip(b" ")
    if not text:
        return 0
    try:
        return int(text, 8)
    except ValueError:
        raise HeaderFormatError(f"Invalid octal field: {raw!r}") from None


def encode_name(name: str) -> bytes:
    return name.encode(_NAME_ENCODING, _NAME_ERRORS)


def stored_name(name: str) -> str:
    """The name as it reads back from a header: truncated to 99 bytes."""
    return encode_name(name)[:NAME_MAX_BYTES].decode(_NAME_ENCODING, _NAME_ERRORS)


def padding_for(size: int) -> int:
    """Zero bytes needed after ``size`` payload bytes to reach a block boundary."""
    return (BLOCK_SIZE - size % BLOCK_SIZE) % BLOCK_SIZE


def compute_checksum(block: bytes) -> int:
    """Unsigned byte sum of a header with its checksum slot treated as spaces."""
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Header block must be {BLOCK_SIZE} bytes, got {len(block)}")
    off, width = CHKSUM_FIELD
    return sum(block[:off]) + sum(_CHKSUM_BLANK) + sum(block[off + width:])


@dataclass
class TarHeader:
    name: str
    size: int
    mode: int = DEFAULT_MODE
    uid: int = DEFAULT_UID
    gid: int = DEFAULT_GID
    mtime: int = DEFAULT_MTIME
    checksum: int = 0
    typeflag: bytes = REGTYPE
    linkname: str = ""

    @property
    def is_dir(self) -> bool:
        # A trailing slash only marks a directory on old-style entries
        return self.typeflag == DIRTYPE or (self.typeflag == AREGTYPE and self.name.endswith("/"))

    def pack(self) -> bytes:
        """Serialize to a 512-byte record and fill in the checksum."""
        pre = _HEADER_STRUCT.pack(
            encode_name(self.name)[:NAME_MAX_BYTES],
            format_octal(self.mode, MODE_FIELD[1]),
            format_octal(self.uid, UID_FIELD[1]),
            format_octal(self.gid, GID_FIELD[1]),
            format_octal(self.size, SIZE_FIELD[1]),
            format_octal(self.mtime, MTIME_FIELD[1]),
            _CHKSUM_BLANK,
            self.typeflag,
            encode_name(self.linkname)[:NAME_MAX_BYTES],
            b"",
        )
        self.checksum = compute_checksum(pre)
        off = CHKSUM_FIELD[0]
        # Trailing space of the blanked slot stays in place after the NUL
        chk = b"%0*o\x00" % (CHKSUM_DIGITS, self.checksum)
        return pre[:off] + chk + pre[off + len(chk):]

    def checksum_ok(self, block: bytes) -> bool:
        return compute_checksum(block) == self.checksum


def encode_header(name: str, size: int) -> bytes:
    """Build the header record for a regular file.

    The name is truncated to 99 bytes; mode, uid, gid and mtime are fixed.
    Raises HeaderFieldOverflow when ``size`` exceeds the 11-digit size field.
    """
    if not name:
        raise ValueError("Archive member name must not be empty")
    if size > MAX_SIZE:
        raise HeaderFieldOverflow(f"Size {size} exceeds the {MAX_SIZE} byte limit of the size field")
    return TarHeader(name=name, size=size).pack()


def decode_header(block: bytes, *, verify_checksum: bool = False) -> Optional[TarHeader]:
    """Decode one header block.

    Returns None for the end marker (first name byte is NUL). The checksum
    field is parsed but only compared when ``verify_checksum`` is set.
    """
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Header block must be {BLOCK_SIZE} bytes, got {len(block)}")
    if block[0] == 0:
        return None
    name, mode, uid, gid, size, mtime, chksum, typeflag, linkname, _reserved = _HEADER_STRUCT.unpack(block)
    hdr = TarHeader(
        name=name.split(b"\x00", 1)[0].decode(_NAME_ENCODING, _NAME_ERRORS),
        size=parse_octal(size),
        mode=parse_octal(mode),
        uid=parse_octal(uid),
        gid=parse_octal(gid),
        mtime=parse_octal(mtime),
        checksum=parse_octal(chksum),
        typeflag=typeflag,
        linkname=linkname.split(b"\x00", 1)[0].decode(_NAME_ENCODING, _NAME_ERRORS),
    )
    if verify_checksum and not hdr.checksum_ok(block):
        raise ChecksumMismatchError(
            f"Header checksum mismatch for {hdr.name!r}: stored {hdr.checksum:o}, computed {compute_checksum(block):o}"
        )
    return hdr
