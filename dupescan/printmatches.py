"""Printing of matched duplicate sets and of files that have no duplicates."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from dupescan.filestat import FileEntry, FileFlags
from dupescan.flags import ActionFlags, Settings

NO_DUPES_MESSAGE = "No duplicates found.\n"
NO_UNIQUES_MESSAGE = "No unique files found.\n"


def size_line(size: int) -> str:
    """The "N bytes each:" heading printed before a set when sizes are shown."""
    plural = "s" if size != 1 else " "
    return f"{size} byte{plural} each:\n"


def printmatches(
    files: Iterable[FileEntry], settings: Settings, stream: TextIO | None = None
) -> None:
    """Write every duplicate set, one path per line, sets separated by a blank line."""
    out = sys.stdout if stream is None else stream
    end = "\0" if ActionFlags.PRINTNULL in settings.actions else "\n"
    entries = list(files)
    printed = False

    for position, entry in enumerate(entries):
        if FileFlags.HAS_DUPES not in entry.flags:
            continue
        printed = True
        if ActionFlags.OMITFIRST not in settings.actions:
            if ActionFlags.SHOWSIZE in settings.actions:
                out.write(size_line(entry.size))
            out.write(entry.path + end)
        for dupe in entry.duplicates:
            out.write(dupe.path + end)
        if position + 1 < len(entries):
            out.write(end)

    if not printed:
        out.write(NO_DUPES_MESSAGE)


def printunique(
    files: Iterable[FileEntry],
    settings: Settings,
    stream: TextIO | None = None,
    err: TextIO | None = None,
) -> None:
    """Write the files that belong to no duplicate set.

    Every file in a duplicate set is marked NOT_UNIQUE as a side effect.
    """
    out = sys.stdout if stream is None else stream
    errout = sys.stderr if err is None else err
    end = "\0" if ActionFlags.PRINTNULL in settings.actions else "\n"
    entries = list(files)

    for entry in entries:
        if FileFlags.HAS_DUPES in entry.flags:
            for member in entry.dupe_set():
                member.flags |= FileFlags.NOT_UNIQUE

    printed = False
    for entry in entries:
        if FileFlags.NOT_UNIQUE in entry.flags:
            continue
        printed = True
        if ActionFlags.SHOWSIZE in settings.actions:
            out.write(size_line(entry.size))
        out.write(entry.path + end)

    if not printed:
        errout.write(NO_UNIQUES_MESSAGE)