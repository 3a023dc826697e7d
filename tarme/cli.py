from __future__ import annotations

import argparse
import sys
import time
from typing import List

from tarme.constants import STATUS_OK, STATUS_PARTIAL
from tarme.errors import (
    TarmeError,
    ChecksumMismatchError,
    HeaderFormatError,
    TruncatedArchiveError,
    UnsafePathError,
)
from tarme.reader import ArchiveReader
from tarme.writer import ArchiveWriter


def _summary_rate(nbytes: int, t0: float) -> tuple[float, float, float]:
    dt = max(0.000001, time.time() - t0)
    mib = nbytes / (1024.0 * 1024.0)
    return mib, dt, mib / dt


def cmd_create(output: str, inputs: list[str], *, strict_paths: bool = False, quiet: bool = False) -> bool:
    """Create a TAR archive from files and directories.

    Args:
        output: Path of the archive to write (created or truncated).
        inputs: Files or directories to store, in order. Directories are walked recursively.
        strict_paths: Skip files outside the current directory or with names over 99 bytes
            instead of stripping '../' and truncating.
        quiet: Limit output to diagnostics and the final summary.

    Returns:
        True once the archive is written, even when some inputs were skipped.
    """
    t0 = time.time()
    n_skipped = 0
    with ArchiveWriter(output, strict_paths=strict_paths) as w:
        for p in inputs:
            res = w.add_path(p)
            if not quiet:
                for name in res.members:
                    print(f"   adding: {name}")
            if res.status == STATUS_OK:
                continue
            if res.status == STATUS_PARTIAL:
                for sk in res.skipped:
                    print(f"Warning: {sk.message}", file=sys.stderr)
            else:
                print(f"Error: {res.message}", file=sys.stderr)
            n_skipped += max(1, len(res.skipped))
        w.finalize()
        n_files = len(w.members)
        nbytes = w.bytes_written

    mib, dt, mbps = _summary_rate(nbytes, t0)
    print(
        f"Done: created {output}; {n_files} files ({mib:.2f} MiB) in {dt:.1f}s; "
        f"{mbps:.2f} MiB/s; skipped={n_skipped}"
    )
    return True


def cmd_extract(archive: str, *, outdir: str = ".", verify: bool = False, quiet: bool = False) -> bool:
    """Extract every file in an archive below ``outdir``.

    Args:
        archive: Path of the archive to read.
        outdir: Destination root; created when missing.
        verify: Check each header checksum and fail on mismatch.
        quiet: Limit output to the final summary.
    """
    t0 = time.time()
    nbytes = 0
    with ArchiveReader(archive, verify_checksums=verify) as r:
        names = r.extract_all(outdir)
        if not quiet:
            for name in names:
                print(f"   extracting: {name}")
        nbytes = r.f.tell()
    mib, dt, mbps = _summary_rate(nbytes, t0)
    print(f"Done: extracted {len(names)} files from {archive} to {outdir} ({mib:.2f} MiB) in {dt:.1f}s; {mbps:.2f} MiB/s")
    return True


def cmd_list(archive: str, *, verify: bool = False) -> bool:
    """List archive members as ``size<TAB>name``."""
    with ArchiveReader(archive, verify_checksums=verify) as r:
        for m in r.members():
            print(f"{m.size}\t{m.name}")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="tarme",
        description="Create and extract fixed-header TAR archives",
        epilog="Directories are added recursively; only regular files are stored.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_create = sub.add_parser("create", help="Create archive")
    ap_create.add_argument("output", help="Output .tar path")
    ap_create.add_argument("inputs", nargs="+", help="Input files/directories")
    ap_create.add_argument(
        "--strict-paths",
        action="store_true",
        help="Skip files outside the current directory or with names over 99 bytes instead of rewriting them",
    )
    ap_create.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_extract = sub.add_parser("extract", help="Extract archive")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("dest", nargs="?", help="Output directory (same as --outdir)")
    ap_extract.add_argument("--outdir", default=None, help="Output directory (default: current directory)")
    ap_extract.add_argument("--verify", action="store_true", help="Verify header checksums while extracting")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--verify", action="store_true", help="Verify header checksums while listing")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "create":
            cmd_create(args.output, args.inputs, strict_paths=args.strict_paths, quiet=args.quiet)
        elif args.cmd == "extract":
            outdir = args.outdir or args.dest or "."
            cmd_extract(args.archive, outdir=outdir, verify=args.verify, quiet=args.quiet)
        elif args.cmd == "list":
            cmd_list(args.archive, verify=args.verify)
        else:
            raise RuntimeError("Unknown command")
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except UnsafePathError as e:
        print(f"Error: refusing to extract: {e}", file=sys.stderr)
        sys.exit(2)
    except (TruncatedArchiveError, ChecksumMismatchError, HeaderFormatError) as e:
        print(f"Error: archive is damaged: {e}", file=sys.stderr)
        sys.exit(2)
    except (TarmeError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
