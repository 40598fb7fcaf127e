"""A one-line summary of how many duplicates were found and the space they take."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from dupescan.filestat import FileEntry, FileFlags
from dupescan.printmatches import NO_DUPES_MESSAGE


def _format_bytes(numbytes: int) -> str:
    if numbytes < 1000:
        plural = "s" if numbytes != 1 else " "
        return f"{numbytes} byte{plural}"
    if numbytes <= 1000000:
        return f"{numbytes // 1000} KB"
    return f"{numbytes // 1000000} MB"


def summarizematches(files: Iterable[FileEntry], stream: TextIO | None = None) -> None:
    """Write the number of duplicate files and sets, and the bytes the duplicates occupy."""
    out = sys.stdout if stream is None else stream
    sets = [entry for entry in files if FileFlags.HAS_DUPES in entry.flags]
    if not sets:
        out.write(NO_DUPES_MESSAGE)
        return

    numfiles = sum(len(entry.duplicates) for entry in sets)
    numbytes = sum(entry.size * len(entry.duplicates) for entry in sets)
    out.write(
        f"{numfiles} duplicate files (in {len(sets)} sets), occupying {_format_bytes(numbytes)}\n"
    )