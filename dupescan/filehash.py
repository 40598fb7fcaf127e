"""Hashing of whole files or their leading parts, used for fast exclusion."""

from __future__ import annotations

import enum
import os
import struct

from dupescan.filestat import FileEntry, FileFlags

PARTIAL_HASH_SIZE = 4096
DEFAULT_CHUNK_SIZE = 65536
MIN_CHUNK_SIZE = 4096
MAX_CHUNK_SIZE = 16777216


class HashAlgorithm(enum.IntEnum):
    """Hash algorithms a file can be hashed with."""

    XXHASH2_64 = 0
    JODYHASH64 = 1


_ALGORITHM_NAMES = ("xxHash64 v2", "jodyhash v7")
_AVAILABLE = frozenset({HashAlgorithm.XXHASH2_64})


class FileHashError(Exception):
    """A file could not be hashed."""


def hash_algorithm_names() -> list[str]:
    """Names of the hash algorithms, indexed by their number."""
    return list(_ALGORITHM_NAMES)


_MASK = (1 << 64) - 1
_P1 = 11400714785074694791
_P2 = 14029467366897019727
_P3 = 1609587929392839161
_P4 = 9650029242287828579
_P5 = 2870177450012600261
_STRIPE = struct.Struct("<4Q")
_LANE64 = struct.Struct("<Q")
_LANE32 = struct.Struct("<I")


def _rotl(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (64 - bits))) & _MASK


def _round(acc: int, lane: int) -> int:
    acc = (acc + lane * _P2) & _MASK
    return (_rotl(acc, 31) * _P1) & _MASK


def _merge_round(acc: int, value: int) -> int:
    acc ^= _round(0, value)
    return (acc * _P1 + _P4) & _MASK


class _XXH64:
    """Streaming 64-bit xxHash state."""

    def __init__(self, seed: int = 0) -> None:
        self._seed = seed & _MASK
        self._acc = (
            (self._seed + _P1 + _P2) & _MASK,
            (self._seed + _P2) & _MASK,
            self._seed,
            (self._seed - _P1) & _MASK,
        )
        self._pending = b""
        self._total = 0

    def update(self, data: bytes) -> None:
        self._total += len(data)
        buf = self._pending + bytes(data)
        full = len(buf) - len(buf) % 32
        v1, v2, v3, v4 = self._acc
        for a, b, c, d in _STRIPE.iter_unpack(memoryview(buf)[:full]):
            v1 = _round(v1, a)
            v2 = _round(v2, b)
            v3 = _round(v3, c)
            v4 = _round(v4, d)
        self._acc = (v1, v2, v3, v4)
        self._pending = buf[full:]

    def digest(self) -> int:
        if self._total >= 32:
            v1, v2, v3, v4 = self._acc
            h = (_rotl(v1, 1) + _rotl(v2, 7) + _rotl(v3, 12) + _rotl(v4, 18)) & _MASK
            for acc in self._acc:
                h = _merge_round(h, acc)
        else:
            h = (self._seed + _P5) & _MASK
        h = (h + self._total) & _MASK

        tail = self._pending
        n8 = len(tail) - len(tail) % 8
        for (lane,) in _LANE64.iter_unpack(tail[:n8]):
            h ^= _round(0, lane)
            h = (_rotl(h, 27) * _P1 + _P4) & _MASK
        rest = tail[n8:]
        if len(rest) >= 4:
            (lane,) = _LANE32.unpack_from(rest)
            h ^= (lane * _P1) & _MASK
            h = (_rotl(h, 23) * _P2 + _P3) & _MASK
            rest = rest[4:]
        for byte in rest:
            h ^= (byte * _P5) & _MASK
            h = (_rotl(h, 11) * _P1) & _MASK

        h ^= h >> 33
        h = (h * _P2) & _MASK
        h ^= h >> 29
        h = (h * _P3) & _MASK
        h ^= h >> 32
        return h


def xxh64(data: bytes, seed: int = 0) -> int:
    """The 64-bit xxHash of ``data``."""
    state = _XXH64(seed)
    state.update(data)
    return state.digest()


def _check_algorithm(algo: int) -> HashAlgorithm:
    try:
        chosen = HashAlgorithm(algo)
    except ValueError:
        raise FileHashError(f"requested hash algorithm {algo} is not available") from None
    if chosen not in _AVAILABLE:
        raise FileHashError(
            f"requested hash algorithm {_ALGORITHM_NAMES[chosen]} [{int(chosen)}] is not available"
        )
    return chosen


def _advise(fh, offset: int, length: int) -> None:
    if hasattr(os, "posix_fadvise") and length > 0:
        fd = fh.fileno()
        os.posix_fadvise(fd, offset, length, os.POSIX_FADV_SEQUENTIAL)
        os.posix_fadvise(fd, offset, length, os.POSIX_FADV_WILLNEED)


def get_filehash(
    entry: FileEntry,
    max_read: int = 0,
    algo: int = HashAlgorithm.XXHASH2_64,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Hash the file, or its first ``max_read`` bytes when ``max_read`` is non-zero.

    When the entry already carries a partial hash, the first
    PARTIAL_HASH_SIZE bytes are skipped and, if that covers ``max_read``,
    the stored partial hash is returned as it is. Raises FileHashError on
    any failure.
    """
    _check_algorithm(algo)
    if entry.size == -1:
        raise FileHashError(f"no valid stat information for {entry.path}")

    fsize = entry.size
    if max_read > 0 and fsize > max_read:
        fsize = max_read

    has_partial = FileFlags.HASH_PARTIAL in entry.flags
    if has_partial and max_read != 0 and max_read <= PARTIAL_HASH_SIZE:
        return entry.filehash_partial

    try:
        fh = open(entry.path, "rb")
    except OSError as exc:
        raise FileHashError(f"{exc.strerror} error opening file {entry.path}") from exc

    state = _XXH64(0)
    with fh:
        start = 0
        if has_partial:
            try:
                fh.seek(PARTIAL_HASH_SIZE)
            except OSError as exc:
                raise FileHashError(f"error seeking in file {entry.path}") from exc
            start = PARTIAL_HASH_SIZE
            fsize -= PARTIAL_HASH_SIZE
        _advise(fh, start, fsize)

        while fsize > 0:
            to_read = min(chunk_size, fsize)
            try:
                chunk = fh.read(to_read)
            except OSError as exc:
                raise FileHashError(f"error reading from file {entry.path}") from exc
            if len(chunk) != to_read:
                raise FileHashError(f"error reading from file {entry.path}")
            state.update(chunk)
            fsize -= to_read

    return state.digest()