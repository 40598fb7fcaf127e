"""A text database of file hashes, used to skip rehashing unchanged files on repeat runs."""

from __future__ import annotations

import re
import sys
import time
from dataclasses import dataclass
from typing import TextIO

from dupescan.filestat import FileEntry, FileFlags

HASHDB_VERSION = 2
HASHDB_MIN_VERSION = 1
HASHDB_MAX_VERSION = 2
HEADER_TAG = "dupescan hashdb"
PATH_MAX = 4096

# Width of the fixed-size fields before the path on each entry line.
_FIXED_LEN = {1: 71, 2: 87}
_MASK64 = (1 << 64) - 1
_INT_RE = {
    10: re.compile(r"\s*([+-]?[0-9]+)"),
    16: re.compile(r"\s*([+-]?(?:0[xX])?[0-9a-fA-F]+)"),
}


class HashDbError(Exception):
    """The hash database could not be read or written."""


@dataclass(eq=False)
class HashDbEntry:
    """Stored hashes for one path, with the stat data they were taken under.

    ``hashcount`` is 1 when only the partial hash is known, 2 when the full
    hash is known too, and 0 when the entry has been invalidated.
    """

    path: str
    partialhash: int = 0
    fullhash: int = 0
    inode: int = 0
    size: int = 0
    mtime: int = 0
    hashcount: int = 0

    def matches(self, entry: FileEntry) -> bool:
        """Whether ``entry`` has the same mtime, inode and size as recorded."""
        return self.mtime == entry.mtime and self.inode == entry.inode and self.size == entry.size

    def to_line(self) -> str:
        return (
            f"{self.hashcount},{self.partialhash & _MASK64:016x},{self.fullhash & _MASK64:016x},"
            f"{self.mtime & _MASK64:016x},{self.size & _MASK64:016x},"
            f"{self.inode & _MASK64:016x},{self.path}\n"
        )


def _leading_int(text: str, base: int) -> int:
    """Parse the leading number of ``text`` the way strtol() does; 0 if there is none."""
    match = _INT_RE[base].match(text)
    return int(match.group(1), base) if match else 0


class HashDatabase:
    """Hashes of previously scanned files, keyed by path."""

    def __init__(self, algo: int = 0) -> None:
        self.algo = algo
        self.entries: dict[str, HashDbEntry] = {}
        self.dirty = False
        self.err: TextIO | None = None

    def _warn(self, message: str) -> None:
        (sys.stderr if self.err is None else self.err).write(message)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def load(self, dbname: str) -> int:
        """Read entries from ``dbname`` and return how many lines were loaded.

        A missing or empty file starts a new database and yields 0, as does a
        database made with a different hash algorithm (which is not loaded).
        Raises HashDbError for unreadable or malformed databases.
        """
        try:
            fh = open(dbname, encoding="utf-8", errors="surrogateescape", newline="")
        except FileNotFoundError:
            self._warn(f"Creating a new hash database '{dbname}'\n")
            return 0
        except OSError as exc:
            raise HashDbError(f"error reading hash database '{dbname}': {exc.strerror}") from exc

        with fh:
            try:
                header = fh.readline()
            except OSError as exc:
                raise HashDbError(f"error reading hash database '{dbname}': {exc.strerror}") from exc
            if not header:
                self._warn(f"Creating a new hash database '{dbname}'\n")
                return 0

            version, algo = self._parse_header(header, dbname)
            if algo != self.algo:
                self._warn(
                    "warning: hashdb uses a different hash algorithm than selected; not loading\n"
                )
                return 0

            fixed_len = _FIXED_LEN[version]
            loaded = 0
            try:
                for linenum, line in enumerate(fh, start=2):
                    self._load_line(line, fixed_len, linenum, dbname)
                    loaded += 1
            except OSError as exc:
                raise HashDbError(f"error reading hash database '{dbname}': {exc.strerror}") from exc
        return loaded

    @staticmethod
    def _parse_header(header: str, dbname: str) -> tuple[int, int]:
        tag, _, rest = header.rstrip("\n").partition(":")
        if tag != HEADER_TAG:
            raise HashDbError(f"error in header of hash database '{dbname}'")
        fields = rest.split(":", 1)[0].split(",")
        if len(fields) < 3:
            raise HashDbError(f"error in header of hash database '{dbname}'")
        version = _leading_int(fields[0], 10)
        algo = _leading_int(fields[1], 10)
        if not HASHDB_MIN_VERSION <= version <= HASHDB_MAX_VERSION:
            raise HashDbError(f"error: bad db version {version} in hash database '{dbname}'")
        return version, algo

    def _load_line(self, line: str, fixed_len: int, linenum: int, dbname: str) -> None:
        def bad_line() -> HashDbError:
            return HashDbError(f"error: bad line {linenum} in hash database '{dbname}':\n\n{line}")

        if len(line) < fixed_len + 1:
            raise bad_line()
        fields = line.split(",", 6)
        if len(fields) < 7:
            raise bad_line()

        hashcount = _leading_int(fields[0], 16)
        if hashcount not in (1, 2):
            raise bad_line()
        partialhash = _leading_int(fields[1], 16) & _MASK64
        fullhash = _leading_int(fields[2], 16) & _MASK64 if hashcount == 2 else 0
        mtime = _leading_int(fields[3], 16)
        size = _leading_int(fields[4], 16)
        if size == 0:
            raise bad_line()
        inode = _leading_int(fields[5], 16) & _MASK64

        path = line[fixed_len:].lstrip("\n").split("\n", 1)[0]
        if not path or len(path) > PATH_MAX:
            raise bad_line()

        entry = self.add_entry(path)
        entry.mtime = mtime
        entry.inode = inode
        entry.size = size
        entry.partialhash = partialhash
        entry.fullhash = fullhash
        entry.hashcount = hashcount

    def save(self, dbname: str, destroy: bool = False) -> int:
        """Write the database to ``dbname`` if it changed; return the entries written.

        Invalidated entries are dropped. With ``destroy`` the in-memory
        entries are discarded afterwards. Raises HashDbError on failure.
        """
        if not self.dirty and not destroy:
            return 0
        count = 0
        if self.dirty:
            try:
                with open(
                    dbname, "w", encoding="utf-8", errors="surrogateescape", newline=""
                ) as fh:
                    fh.write(f"{HEADER_TAG}:{HASHDB_VERSION},{self.algo},{int(time.time()):08x}\n")
                    for entry in self.entries.values():
                        if entry.hashcount != 0:
                            fh.write(entry.to_line())
                            count += 1
            except OSError as exc:
                raise HashDbError(
                    f"error: cannot write hashdb '{dbname}': {exc.strerror}"
                ) from exc
            self.dirty = False
        if destroy:
            self.entries.clear()
        return count

    def add_entry(self, path: str | None = None, check: FileEntry | None = None) -> HashDbEntry | None:
        """Record or refresh the entry for a path.

        With ``check``, an existing entry for its path is upgraded to carry the
        full hash when one is now known, or invalidated (returning None) if
        the file changed. A new entry takes its hashes from ``check`` when it
        has at least a partial hash. Without ``check``, a blank entry for
        ``path`` is stored and returned for the caller to fill in.
        """
        if path is None and check is None:
            return None
        if path is None:
            path = check.path

        if check is not None:
            existing = self.entries.get(check.path)
            if existing is not None:
                if existing.matches(check):
                    if existing.hashcount == 1 and FileFlags.HASH_FULL in check.flags:
                        existing.hashcount = 2
                        existing.fullhash = check.filehash
                        self.dirty = True
                    return existing
                existing.hashcount = 0
                self.dirty = True
                return None

            if FileFlags.HASH_PARTIAL not in check.flags:
                return HashDbEntry(path=path)

            self.dirty = True
            entry = HashDbEntry(
                path=check.path,
                partialhash=check.filehash_partial,
                fullhash=check.filehash,
                inode=check.inode,
                size=check.size,
                mtime=check.mtime,
                hashcount=2 if FileFlags.HASH_FULL in check.flags else 1,
            )
            self.entries[check.path] = entry
            return entry

        entry = HashDbEntry(path=path)
        self.entries[path] = entry
        return entry

    def read_entry(self, entry: FileEntry) -> bool:
        """Preload ``entry``'s hashes from the database; return whether any were loaded.

        A stored entry whose file has changed is invalidated instead.
        """
        stored = self.entries.get(entry.path)
        if stored is None:
            return False
        if not stored.matches(entry):
            stored.hashcount = 0
            self.dirty = True
            return False
        entry.filehash_partial = stored.partialhash
        if stored.hashcount == 2:
            entry.filehash = stored.fullhash
            entry.flags |= FileFlags.HASH_PARTIAL | FileFlags.HASH_FULL
        else:
            entry.flags |= FileFlags.HASH_PARTIAL
        return True