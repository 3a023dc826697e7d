class TarmeError(Exception):
    """Base class for tarme-specific errors."""


# Header codec
class HeaderError(TarmeError):
    pass


class HeaderFormatError(HeaderError):
    pass


class HeaderFieldOverflow(HeaderError):
    pass


class ChecksumMismatchError(HeaderError):
    pass


# Archive stream / extraction
class TruncatedArchiveError(TarmeError):
    pass


class UnsafePathError(TarmeError):
    pass
