# Block geometry
BLOCK_SIZE = 512
END_OF_ARCHIVE_BLOCKS = 2  # two zero blocks terminate an archive

# Header layout: (offset, width) per field, 512 bytes total
NAME_FIELD = (0, 100)
MODE_FIELD = (100, 8)
UID_FIELD = (108, 8)
GID_FIELD = (116, 8)
SIZE_FIELD = (124, 12)
MTIME_FIELD = (136, 12)
CHKSUM_FIELD = (148, 8)
TYPEFLAG_FIELD = (156, 1)
LINKNAME_FIELD = (157, 100)
RESERVED_FIELD = (257, 255)

NAME_MAX_BYTES = NAME_FIELD[1] - 1  # one byte kept for the terminator
CHKSUM_DIGITS = 6

# Largest value an octal field of the given width can carry (width-1 digits + NUL)
MAX_SIZE = 8 ** (SIZE_FIELD[1] - 1) - 1  # 0o77777777777, 8 GiB - 1

# Values written into every header
DEFAULT_MODE = 0o644
DEFAULT_UID = 0
DEFAULT_GID = 0
DEFAULT_MTIME = 0

# Type flags
REGTYPE = b"0"
AREGTYPE = b"\x00"
DIRTYPE = b"5"

DEFAULT_CHUNK_SIZE = 1_048_576  # 1 MiB


# add_path outcomes
STATUS_OK = "ok"
STATUS_PARTIAL = "partial"
STATUS_INVALID = "invalid"
STATUS_REJECTED = "rejected"

# Reasons a discovered file was not archived
SKIP_STAT_FAILED = "stat_failed"
SKIP_UNREADABLE = "unreadable"
SKIP_TOO_LARGE = "too_large"
SKIP_ESCAPES_ROOT = "escapes_root"
SKIP_NAME_TOO_LONG = "name_too_long"
