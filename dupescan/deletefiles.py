"""Deleting duplicate files, either keeping the first of each set or asking the user."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING, TextIO

from dupescan.filestat import FileEntry, FileFlags, file_has_changed
from dupescan.flags import ActionFlags, Settings
from dupescan.linkfiles import LinkType, linkfiles

if TYPE_CHECKING:
    from dupescan.hashdb import HashDatabase

_TOKEN_SPLIT = re.compile(r"[ ,\n]+")
_NUMBER = re.compile(r"\s*([+-]?[0-9]+)")


def _has_changed(entry: FileEntry, settings: Settings) -> bool:
    try:
        return file_has_changed(entry, settings)
    except (OSError, ValueError):
        return True


def _read_answer(tty: TextIO) -> str:
    line = tty.readline()
    if not line or line[0] == "\n":
        return "a\n"
    return line


def _choose(
    head: FileEntry,
    count: int,
    curgroup: int,
    groups: int,
    settings: Settings,
    tty: TextIO,
    out: TextIO,
) -> tuple[set[int], LinkType | None]:
    """Ask which files of a set to keep; return kept indices or a link type."""
    while True:
        out.write(
            f"Set {curgroup} of {groups}: keep which files? (1 - {count}, [a]ll, [n]one"
            ", [l]ink all, [s]ymlink all)"
        )
        if ActionFlags.SHOWSIZE in settings.actions:
            plural = "s" if head.size != 1 else " "
            out.write(f" ({head.size} byte{plural} each)")
        out.write(": ")
        out.flush()

        tokens = [token for token in _TOKEN_SPLIT.split(_read_answer(tty)) if token]
        keep: set[int] = set()
        if tokens:
            first = tokens[0][0].lower()
            if first == "n":
                return keep, None
            if first == "l":
                return keep, LinkType.HARDLINK
            if first == "s":
                return keep, LinkType.SYMLINK

        for token in tokens:
            if token[0] in "aA":
                keep = set(range(count))
            match = _NUMBER.match(token)
            if match is not None:
                number = int(match.group(1))
                if 1 <= number <= count:
                    keep.add(number - 1)
        if keep:
            return keep, None


def deletefiles(
    files: Iterable[FileEntry],
    settings: Settings,
    prompt: bool = False,
    tty: TextIO | None = None,
    hashdb: HashDatabase | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Delete duplicates and return how many files were removed.

    Without ``prompt`` the first file of each set is kept. With it, the user
    is asked on ``tty`` which files to keep, or may link the set instead.
    Files changed since they were scanned are left alone and counted as a
    failure in ``settings``.
    """
    stdout = sys.stdout if out is None else out
    stderr = sys.stderr if err is None else err
    answers = sys.stdin if tty is None else tty

    sets = [entry for entry in files if FileFlags.HAS_DUPES in entry.flags]
    groups = len(sets)
    deleted = 0

    for curgroup, head in enumerate(sets, start=1):
        dupes = head.dupe_set()
        if prompt:
            for number, entry in enumerate(dupes, start=1):
                stdout.write(f"[{number}] {entry.path}\n")
            stdout.write("\n")
            keep, link = _choose(head, len(dupes), curgroup, groups, settings, answers, stdout)
        else:
            keep, link = {0}, None

        if link is not None:
            linkfiles([head], link, settings, only_current=True, hashdb=hashdb, out=stdout, err=stderr)
            stdout.write("\n")
            continue

        stdout.write("\n")
        for index, entry in enumerate(dupes):
            if index in keep:
                stdout.write(f"   [+] {entry.path}\n")
                continue
            if _has_changed(entry, settings):
                stdout.write(f"   [!] {entry.path}-- file changed since being scanned\n")
                settings.fail()
                continue
            try:
                os.remove(entry.path)
            except OSError:
                stdout.write(f"   [!] {entry.path}-- unable to delete file\n")
                settings.fail()
                continue
            stdout.write(f"   [-] {entry.path}\n")
            deleted += 1
            if hashdb is not None:
                entry.mtime = 0
                hashdb.add_entry(check=entry)
        stdout.write("\n")

    return deleted