"""File records and the stat() based checks made on them."""

from __future__ import annotations

import enum
import os
import stat
from dataclasses import dataclass, field
from typing import NamedTuple

from dupescan.flags import Flags, Settings


class FileFlags(enum.IntFlag):
    """Per-file state flags."""

    VALID_STAT = enum.auto()
    HAS_DUPES = enum.auto()
    IS_SYMLINK = enum.auto()
    HASH_PARTIAL = enum.auto()
    HASH_FULL = enum.auto()
    NOT_UNIQUE = enum.auto()


@dataclass(eq=False)
class FileEntry:
    """A file under consideration, with its stat data, hashes and duplicates."""

    path: str
    size: int = -1
    inode: int = 0
    device: int = 0
    mode: int = 0
    mtime: int = 0
    atime: int = 0
    nlink: int = 0
    uid: int = 0
    gid: int = 0
    user_order: int = 0
    filehash_partial: int = 0
    filehash: int = 0
    flags: FileFlags = FileFlags(0)
    duplicates: list[FileEntry] = field(default_factory=list, repr=False)

    def dupe_set(self) -> list[FileEntry]:
        """This file followed by every file matched as its duplicate."""
        return [self, *self.duplicates]


class DirStats(NamedTuple):
    """Identity and mode of a path as seen by stat()."""

    inode: int
    device: int
    mode: int

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)


def getfilestats(entry: FileEntry) -> None:
    """Fill in ``entry``'s stat data once; raises OSError if stat() fails.

    The entry is marked as stat'ed before the attempt, so a failed stat is
    not retried and leaves ``size`` at -1.
    """
    if FileFlags.VALID_STAT in entry.flags:
        return
    entry.flags |= FileFlags.VALID_STAT

    st = os.stat(entry.path)
    entry.size = st.st_size
    entry.inode = st.st_ino
    entry.device = st.st_dev
    entry.mtime = int(st.st_mtime)
    entry.atime = int(st.st_atime)
    entry.mode = st.st_mode
    entry.nlink = st.st_nlink
    entry.uid = st.st_uid
    entry.gid = st.st_gid

    if stat.S_ISLNK(os.lstat(entry.path).st_mode):
        entry.flags |= FileFlags.IS_SYMLINK


def file_has_changed(entry: FileEntry, settings: Settings) -> bool:
    """Whether the file on disk differs from what was recorded when it was scanned.

    Raises ValueError if the entry was never stat'ed and OSError if the file
    can no longer be stat'ed.
    """
    if Flags.NOCHANGECHECK in settings.flags:
        return False
    if FileFlags.VALID_STAT not in entry.flags:
        raise ValueError(f"no valid stat information for {entry.path!r}")

    st = os.stat(entry.path)
    if (
        entry.inode != st.st_ino
        or entry.size != st.st_size
        or entry.device != st.st_dev
        or entry.mode != st.st_mode
        or entry.mtime != int(st.st_mtime)
        or entry.uid != st.st_uid
        or entry.gid != st.st_gid
    ):
        return True

    is_link = stat.S_ISLNK(os.lstat(entry.path).st_mode)
    return is_link != (FileFlags.IS_SYMLINK in entry.flags)


def getdirstats(name: str) -> DirStats:
    """Stat ``name``; raises OSError if that fails."""
    st = os.stat(name)
    return DirStats(inode=st.st_ino, device=st.st_dev, mode=st.st_mode)