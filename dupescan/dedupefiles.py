"""Block-level deduplication of duplicate files through the Linux FIDEDUPERANGE ioctl."""

from __future__ import annotations

import errno
import os
import struct
import sys
from collections.abc import Iterable
from typing import TextIO

from dupescan.filestat import FileEntry, FileFlags
from dupescan.flags import Flags, Settings

try:
    import fcntl
except ImportError:  # not available on every platform
    fcntl = None

FIDEDUPERANGE = 0xC0189436
FILE_DEDUPE_RANGE_SAME = 0
FILE_DEDUPE_RANGE_DIFFERS = 1
KERNEL_DEDUP_MAX_SIZE = 16777216

# struct file_dedupe_range followed by one struct file_dedupe_range_info
_RANGE = struct.Struct("=QQHHIqQQiI")
_STATUS_FIELD = 8

_NOT_A_BUG = "This is not a bug in dupescan; check your file stats/permissions."
_NOT_REPEATED = "This verbose error description will not be repeated."
_EXPLANATIONS = {
    errno.EINVAL: (
        "One or more files being deduped are read-only or hard linked.",
        "Read-only files can only be deduped by the root user.",
    ),
    errno.EOPNOTSUPP: (
        "One or more files is on a filesystem that does not support",
        "block-level deduplication or are on different filesystems.",
    ),
}


def _dedupe_range(src_fd: int, dest_fd: int, size: int) -> tuple[int, int]:
    """Dedupe ``size`` bytes in kernel-sized pieces; return (status, errno)."""
    offset = 0
    status = FILE_DEDUPE_RANGE_SAME
    while offset < size:
        length = min(size - offset, KERNEL_DEDUP_MAX_SIZE)
        buf = bytearray(
            _RANGE.pack(offset, length, 1, 0, 0, dest_fd, offset, 0, FILE_DEDUPE_RANGE_SAME, 0)
        )
        try:
            fcntl.ioctl(src_fd, FIDEDUPERANGE, buf, True)
        except OSError as exc:
            return status, exc.errno or 0
        status = _RANGE.unpack(buf)[_STATUS_FIELD]
        if status != FILE_DEDUPE_RANGE_SAME:
            break
        offset += length
    return status, 0


def _open_source(dupes: list[FileEntry], settings: Settings, err: TextIO) -> tuple[int, int | None]:
    """Open the first readable file of a set as the source, while two files remain after it."""
    index = 0
    while True:
        try:
            return index, os.open(dupes[index].path, os.O_RDONLY)
        except OSError:
            if index + 2 >= len(dupes):
                return index, None
            err.write(f"dedupe: open failed (skipping): {dupes[index].path}\n")
            settings.fail()
            index += 1


def dedupefiles(
    files: Iterable[FileEntry],
    settings: Settings,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Share data blocks between the files of each duplicate set; return files processed.

    Hard-linked duplicates are passed over. Failures are reported on ``err``
    and recorded in ``settings``. Raises RuntimeError where the operating
    system offers no such deduplication.
    """
    if fcntl is None or not sys.platform.startswith("linux"):
        raise RuntimeError("dedupe is only supported on Linux")
    stdout = sys.stdout if out is None else out
    stderr = sys.stderr if err is None else err

    explained: set[int] = set()
    total = 0
    for head in list(files):
        if FileFlags.HAS_DUPES not in head.flags:
            continue
        head.flags &= ~FileFlags.HAS_DUPES
        dupes = head.dupe_set()

        src_index, src_fd = _open_source(dupes, settings, stderr)
        if src_fd is None:
            continue
        source = dupes[src_index]
        stdout.write(f"  [SRC] {source.path}\n")

        try:
            for dupe in dupes[1:]:
                if dupe is source:
                    continue
                if dupe.device == source.device and dupe.inode == source.inode:
                    stdout.write(f"  -==-> {dupe.path}\n")
                    continue
                try:
                    dest_fd = os.open(dupe.path, os.O_RDONLY)
                except OSError:
                    stderr.write(f"dedupe: open failed (skipping): {dupe.path}\n")
                    settings.fail()
                    continue
                try:
                    status, error = _dedupe_range(src_fd, dest_fd, dupe.size)
                finally:
                    os.close(dest_fd)

                if status == FILE_DEDUPE_RANGE_SAME and error == 0:
                    stdout.write(f"  ====> {dupe.path}\n")
                    total += 1
                    continue

                stdout.write(f"  -XX-> {dupe.path}\n")
                settings.fail()
                if status == FILE_DEDUPE_RANGE_DIFFERS:
                    detail = "not identical (files modified between scan and dedupe?)"
                elif status != 0:
                    detail = f"{os.strerror(-status)} ({status})"
                else:
                    detail = f"{os.strerror(error)} ({error})"
                stderr.write(f"error: {detail}\n")
                for code, lines in _EXPLANATIONS.items():
                    if (status == -code or error == code) and code not in explained:
                        for line in (*lines, _NOT_A_BUG, _NOT_REPEATED):
                            stderr.write(f"       {line}\n")
                        explained.add(code)
        finally:
            os.close(src_fd)
        stdout.write("\n")
        total += 1

    if Flags.HIDEPROGRESS not in settings.flags:
        stderr.write(f"Deduplication done ({total} files processed)\n")
    return total