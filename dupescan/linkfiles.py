"""Replacing duplicate files with hard links or relative symbolic links to one copy."""

from __future__ import annotations

import enum
import os
import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING, TextIO

from dupescan.filestat import FileEntry, FileFlags, file_has_changed
from dupescan.flags import Flags, Settings
from dupescan.printmatches import NO_DUPES_MESSAGE

if TYPE_CHECKING:
    from dupescan.hashdb import HashDatabase

TEMP_SUFFIX = ".__dupescan__.tmp"
_WINDOWS_LINK_LIMIT = 1024


class LinkType(enum.IntEnum):
    """Kind of link that replaces a duplicate."""

    SYMLINK = 0
    HARDLINK = 1
    CLONE = 2


def _has_changed(entry: FileEntry, settings: Settings) -> bool:
    try:
        return file_has_changed(entry, settings)
    except (OSError, ValueError):
        return True


def _warn(err: TextIO, message: str, path: str) -> None:
    err.write(f"{message}{path}\n")


def _revert_failed(settings: Settings, err: TextIO, orig: str, current: str) -> None:
    err.write("\nwarning: couldn't revert the file to its original name\n")
    err.write(f"original: {orig}\n")
    err.write(f"current:  {current}\n")
    settings.fail()


def _relative_link_target(src: str, dest: str) -> str | None:
    """Path of ``src`` relative to the directory of ``dest``; None if both are the same file."""
    real_src = os.path.realpath(src)
    dest_dir = os.path.realpath(os.path.dirname(dest) or ".")
    if os.path.join(dest_dir, os.path.basename(dest)) == real_src:
        return None
    return os.path.relpath(real_src, dest_dir)


def _make_link(srcfile: FileEntry, target: FileEntry, linktype: LinkType, err: TextIO) -> str | None:
    """Create the link at ``target``; return None on success or the reason for failure."""
    if linktype is LinkType.HARDLINK:
        try:
            os.link(srcfile.path, target.path)
        except OSError as exc:
            return exc.strerror or str(exc)
        return None

    try:
        rel_path = _relative_link_target(srcfile.path, target.path)
    except (OSError, ValueError) as exc:
        err.write(f"warning: cannot compute a relative link name ({exc})\n")
        return os.strerror(0)
    if rel_path is None:
        err.write("warning: files to be linked have the same canonical path; not linking\n")
        return os.strerror(0)
    try:
        os.symlink(rel_path, target.path)
    except OSError as exc:
        return exc.strerror or str(exc)
    return None


def _link_count(path: str) -> int | None:
    try:
        return os.stat(path).st_nlink
    except OSError:
        return None


def _link_set(
    dupes: list[FileEntry],
    linktype: LinkType,
    settings: Settings,
    hashdb: HashDatabase | None,
    out: TextIO,
    err: TextIO,
) -> int:
    quiet = Flags.HIDEPROGRESS in settings.flags
    symsrc: int | None = None
    if linktype is LinkType.HARDLINK:
        start = 1
        srcfile = dupes[0]
    else:
        # Symlinks should point at a regular file when one exists.
        symsrc = next(
            (i for i, entry in enumerate(dupes) if FileFlags.IS_SYMLINK not in entry.flags), None
        )
        if symsrc is None:
            return 0
        start = 0
        srcfile = dupes[symsrc]

    if not quiet:
        out.write(f"[SRC] {srcfile.path}\n")

    linked = 0
    for index, target in enumerate(dupes[start:], start=start):
        if linktype is LinkType.HARDLINK:
            if srcfile.device != target.device:
                _warn(err, "warning: hard link target on different device, not linking:\n-//-> ",
                      target.path)
                settings.fail()
                continue
            if srcfile.inode == target.inode:
                if Flags.CONSIDERHARDLINKS in settings.flags and not quiet:
                    out.write(f"-==-> {target.path}\n")
                continue
        else:
            if (
                FileFlags.IS_SYMLINK in target.flags
                and FileFlags.IS_SYMLINK in dupes[symsrc].flags
            ):
                continue
            if index == symsrc:
                continue

        if not os.access(target.path, os.W_OK):
            _warn(err, "warning: link target is a read-only file, not linking:\n-//-> ",
                  target.path)
            settings.fail()
            continue

        if _has_changed(srcfile, settings):
            _warn(err, "warning: source file modified since scanned; changing source file:\n[SRC] ",
                  target.path)
            srcfile = target
            settings.fail()
            continue
        if _has_changed(target, settings):
            _warn(err, "warning: target file modified since scanned, not linking:\n-//-> ",
                  target.path)
            settings.fail()
            continue

        if os.name == "nt":
            src_links = _link_count(srcfile.path)
            if src_links is None:
                _warn(err, "warning: stat() on source file failed, changing source file:\n[SRC] ",
                      target.path)
                srcfile = target
                settings.fail()
                continue
            if src_links >= _WINDOWS_LINK_LIMIT:
                _warn(err, "warning: maximum source link count reached, changing source file:\n[SRC] ",
                      target.path)
                srcfile = target
                settings.fail()
                continue
            dest_links = _link_count(target.path)
            if dest_links is None:
                continue
            if dest_links >= _WINDOWS_LINK_LIMIT:
                _warn(err, "warning: maximum destination link count reached, skipping:\n-//-> ",
                      target.path)
                settings.fail()
                continue

        tempname = target.path + TEMP_SUFFIX
        try:
            os.rename(target.path, tempname)
        except OSError:
            _warn(err, "warning: cannot move link target to a temporary name, not linking:\n-//-> ",
                  target.path)
            settings.fail()
            try:
                os.rename(tempname, target.path)
            except OSError:
                pass
            continue

        reason = _make_link(srcfile, target, linktype, err)
        if reason is not None:
            settings.fail()
            if not quiet:
                out.write(f"-//-> {target.path}\n")
            err.write(f"warning: unable to link '{target.path}' -> '{srcfile.path}': {reason}\n")
            try:
                os.rename(tempname, target.path)
            except OSError:
                _revert_failed(settings, err, target.path, tempname)
            continue

        if not quiet:
            arrow = "-@@-> " if linktype is LinkType.SYMLINK else "----> "
            out.write(f"{arrow}{target.path}\n")
        if hashdb is not None:
            target.mtime = 0
            hashdb.add_entry(check=target)
        linked += 1

        try:
            os.remove(tempname)
        except OSError:
            _warn(err, "\nwarning: can't delete temp file, reverting: ", tempname)
            settings.fail()
            try:
                os.remove(target.path)
            except OSError:
                err.write("\nwarning: couldn't remove link to restore original file\n")
            else:
                try:
                    os.rename(tempname, target.path)
                except OSError:
                    _revert_failed(settings, err, target.path, tempname)

    if not quiet:
        out.write("\n")
    return linked


def linkfiles(
    files: Iterable[FileEntry],
    linktype: int,
    settings: Settings,
    only_current: bool = False,
    hashdb: HashDatabase | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Link every duplicate in each set to one file of that set; return the links made.

    Hard links point at the first file of a set; symlinks at the first file
    that is not itself a symlink. With ``only_current`` only the first entry
    of ``files`` is handled. Each target is renamed aside until its link
    exists, and put back if linking fails. Problems are reported on ``err``
    and recorded as a failed run in ``settings``.
    """
    stdout = sys.stdout if out is None else out
    stderr = sys.stderr if err is None else err
    kind = LinkType(linktype)
    if kind is LinkType.CLONE:
        raise ValueError("linkfiles(clone) called without clonefile support")

    entries = list(files)
    found_set = any(FileFlags.HAS_DUPES in entry.flags for entry in entries)

    linked = 0
    for head in entries:
        if FileFlags.HAS_DUPES in head.flags:
            linked += _link_set(head.dupe_set(), kind, settings, hashdb, stdout, stderr)
        if only_current:
            break

    if not found_set:
        stdout.write(NO_DUPES_MESSAGE)
    return linked