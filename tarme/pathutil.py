from __future__ import annotations

import os

from .errors import UnsafePathError

_PARENT_PREFIX = "../"


def strip_parent_refs(p: str) -> str:
    """Remove every literal '../' substring, repeating until none is left.

    This is plain substring removal, not path resolution: 'a../b' becomes
    'ab' and '.../x' becomes '.x'.
    """
    pos = p.find(_PARENT_PREFIX)
    while pos != -1:
        p = p[:pos] + p[pos + len(_PARENT_PREFIX):]
        pos = p.find(_PARENT_PREFIX)
    return p


def _relative_posix(fs_path: str, root: str) -> str:
    rel = os.path.relpath(os.path.abspath(fs_path), root)
    return rel.replace(os.sep, "/")


def archive_name(fs_path: str, root: str) -> str:
    """Archive name for ``fs_path``: relative to ``root`` with '../' stripped."""
    return strip_parent_refs(_relative_posix(fs_path, root))


def strict_archive_name(fs_path: str, root: str) -> str:
    """Archive name for ``fs_path``, rejecting anything outside ``root``.

    Rules:
    - Compute the path relative to ``root`` by segment
    - Reject '..' segments and paths on another drive
    - Use forward slashes
    """
    try:
        rel = _relative_posix(fs_path, root)
    except ValueError:
        raise UnsafePathError(f"{fs_path} is not on the same drive as {root}") from None
    parts = rel.split("/")
    if ".." in parts:
        raise UnsafePathError(f"{fs_path} is outside {root}")
    return "/".join(q for q in parts if q not in ("", "."))


def safe_join(outdir: str, name: str) -> str:
    """Join an archive member name onto ``outdir``.

    Raises UnsafePathError when the result would land outside ``outdir``,
    whether through '..' segments or an absolute name.
    """
    base = os.path.realpath(outdir)
    dst = os.path.realpath(os.path.join(base, name))
    if dst != base and os.path.commonpath([base, dst]) != base:
        raise UnsafePathError(f"Member {name!r} would extract outside {outdir}")
    return dst
