"""Exclusion checks for single files and for pairs of candidate duplicates."""

from __future__ import annotations

import enum
import os
import stat

from dupescan.extfilter import ExtFilterStack
from dupescan.filestat import FileEntry, getfilestats
from dupescan.flags import ActionFlags, Flags, Settings

_WINDOWS_LINK_LIMIT = 1024


class Condition(enum.IntEnum):
    """Outcome of comparing two files' match conditions."""

    PASS = 0
    LARGER = -1
    SMALLER = 1
    EXCLUDED = -2
    MATCHED = 2
    ISOLATED = -3
    DIFFERENT_FS = -4
    PERMISSIONS_DIFFER = -5


def check_conditions(file1: FileEntry, file2: FileEntry, settings: Settings) -> Condition:
    """Decide whether two files may match before their contents are compared.

    Size differences give an ordering result (LARGER when ``file1`` is the
    bigger one); the other results exclude or force a match outright.
    """
    if file1.size > file2.size:
        return Condition.LARGER
    if file1.size < file2.size:
        return Condition.SMALLER

    flags = settings.flags
    if Flags.ISOLATE in flags and file1.user_order == file2.user_order:
        return Condition.ISOLATED
    if Flags.ONEFS in flags and file1.device != file2.device:
        return Condition.DIFFERENT_FS
    if Flags.PERMISSIONS in flags and (
        file1.mode != file2.mode or file1.uid != file2.uid or file1.gid != file2.gid
    ):
        return Condition.PERMISSIONS_DIFFER

    if file1.inode == file2.inode and file1.device == file2.device:
        if Flags.CONSIDERHARDLINKS in flags:
            return Condition.MATCHED
        return Condition.EXCLUDED

    return Condition.PASS


def _is_hidden(path: str) -> bool:
    name = os.path.basename(path.rstrip("/\\") or path)
    return name.startswith(".") and name not in (".", "..")


def check_singlefile(
    entry: FileEntry,
    settings: Settings,
    extfilters: ExtFilterStack | None = None,
) -> bool:
    """Whether ``entry`` should be left out of consideration.

    Stats the file as a side effect; a file that cannot be stat'ed is excluded.
    """
    if Flags.EXCLUDEHIDDEN in settings.flags and _is_hidden(entry.path):
        return True

    try:
        getfilestats(entry)
    except OSError:
        return True
    if entry.size == -1:
        return True

    is_dir = stat.S_ISDIR(entry.mode)
    if not stat.S_ISREG(entry.mode) and not is_dir:
        return True

    if not is_dir:
        if entry.size == 0 and Flags.INCLUDEEMPTY not in settings.flags:
            return True
        if extfilters is not None and extfilters.excludes(entry):
            return True

    if (
        os.name == "nt"
        and ActionFlags.HARDLINKFILES in settings.actions
        and entry.nlink >= _WINDOWS_LINK_LIMIT
    ):
        return True

    return False