"""Extended filters (-X): include or exclude files by size, extension, path or date."""

from __future__ import annotations

import enum
import re
import time
from dataclasses import dataclass, field
from datetime import datetime

from dupescan.filestat import FileEntry


class ExtFilterError(ValueError):
    """A filter specification was invalid, or help on filters was asked for."""

    def __init__(self, message: str, help_requested: bool = False) -> None:
        super().__init__(message)
        self.help_requested = help_requested


class _XF(enum.IntFlag):
    EXCL_EXT = 0x001
    SIZE_EQ = 0x002
    SIZE_GT = 0x004
    SIZE_LT = 0x008
    ONLY_EXT = 0x010
    EXCL_STR = 0x020
    ONLY_STR = 0x040
    DATE_NEWER = 0x080
    DATE_OLDER = 0x100


_SIZE_GTEQ = _XF.SIZE_EQ | _XF.SIZE_GT
_SIZE_LTEQ = _XF.SIZE_EQ | _XF.SIZE_LT
_REQ_NUMBER = _XF.SIZE_EQ | _XF.SIZE_GT | _XF.SIZE_LT
_REQ_VALUE = _XF.EXCL_EXT | _REQ_NUMBER | _XF.ONLY_EXT
_REQ_DATE = _XF.DATE_NEWER | _XF.DATE_OLDER

_TAGS = {
    "noext": _XF.EXCL_EXT,
    "onlyext": _XF.ONLY_EXT,
    "size+": _XF.SIZE_GT,
    "size-": _XF.SIZE_LT,
    "size+=": _SIZE_GTEQ,
    "size-=": _SIZE_LTEQ,
    "size=": _XF.SIZE_EQ,
    "nostr": _XF.EXCL_STR,
    "onlystr": _XF.ONLY_STR,
    "newer": _XF.DATE_NEWER,
    "older": _XF.DATE_OLDER,
}


def _size_suffixes() -> dict[str, int]:
    table = {"B": 1}
    for power, letter in enumerate("KMGTPE", start=1):
        table[letter] = 1024**power
        table[letter + "IB"] = 1024**power
        table[letter + "B"] = 1000**power
    return table


_SIZE_SUFFIXES = _size_suffixes()
_SIZE_RE = re.compile(r"([0-9]+)(.*)", re.DOTALL)
_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")

_ERR_BAD_SUFFIX = "Invalid extfilter size suffix specified; use B or KMGTPE[i][B]"
_ERR_BAD_TIME = "Invalid extfilter date[time] was specified: -X filter:datetime"
_ERR_NO_VALUE = "extfilter value missing or invalid: -X filter:value"
_ERR_BAD_FILTER = "Invalid extfilter filter name was specified"


def parse_size(text: str) -> int:
    """Parse a byte count with an optional K/M/G/T/P/E[i][B] or B suffix."""
    match = _SIZE_RE.fullmatch(text)
    if match is None:
        raise ExtFilterError(_ERR_BAD_SUFFIX)
    size = int(match.group(1))
    suffix = match.group(2)
    if suffix:
        multiplier = _SIZE_SUFFIXES.get(suffix.upper())
        if multiplier is None:
            raise ExtFilterError(_ERR_BAD_SUFFIX)
        size *= multiplier
    return size


def parse_datetime(text: str) -> int:
    """Convert "YYYY-MM-DD[ HH:MM:SS]" local time to seconds since the epoch."""
    for fmt in _DATE_FORMATS:
        try:
            moment = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return int(time.mktime(moment.timetuple()))
    raise ExtFilterError(_ERR_BAD_TIME)


def match_extensions(path: str, extlist: str) -> bool:
    """Whether the file name's extension is one of the comma-separated ``extlist``.

    Matching ignores case; empty list items are skipped.
    """
    name = re.split(r"[/\\]", path)[-1]
    if "." not in name:
        return False
    ext = name.rsplit(".", 1)[1]
    if not ext:
        return False
    wanted = ext.lower()
    return any(item.lower() == wanted for item in extlist.split(",") if item)


def extfilter_help_text() -> str:
    """The detailed help text for the -X/--ext-filter options."""
    return (
        "Detailed help for dupescan -X/--ext-filter options\n"
        "General format: dupescan -X filter[:value][size_suffix]\n\n"
        "noext:ext1[,ext2,...]   \tExclude files with certain extension(s)\n\n"
        "onlyext:ext1[,ext2,...] \tOnly include files with certain extension(s)\n\n"
        "size[+-=]:size[suffix]  \tOnly Include files matching size criteria\n"
        "                        \tSize specs: + larger, - smaller, = equal to\n"
        "                        \tSpecs can be mixed, i.e. size+=:100k will\n"
        "                        \tonly include files 100KiB or more in size.\n\n"
        "nostr:text_string       \tExclude all paths containing the string\n"
        "onlystr:text_string     \tOnly allow paths containing the string\n"
        "                        \tHINT: you can use these for directories:\n"
        "                        \t-X nostr:/dir_x/  or  -X onlystr:/dir_x/\n"
        "newer:datetime          \tOnly include files newer than specified date\n"
        "older:datetime          \tOnly include files older than specified date\n"
        "                        \tDate/time format: \"YYYY-MM-DD HH:MM:SS\"\n"
        "                        \tTime is optional (remember to escape spaces!)\n"
        "\nSome filters take no value or multiple values. Filters that can take\n"
        "a numeric option generally support the size multipliers K/M/G/T/P/E\n"
        "with or without an added iB or B. Multipliers are binary-style unless\n"
        "the -B suffix is used, which will use decimal multipliers. For example,\n"
        "16k or 16kib = 16384; 16kb = 16000. Multipliers are case-insensitive.\n\n"
        "Filters have cumulative effects: dupescan -X size+:99 -X size-:101 will\n"
        "cause only files of exactly 100 bytes in size to be included.\n\n"
        "Extension matching is case-insensitive.\n"
        "Path substring matching is case-sensitive.\n"
    )


@dataclass(frozen=True)
class ExtFilter:
    """One parsed filter: its kind, a numeric value (size or time) and a text value."""

    kind: _XF
    size: int = 0
    param: str = ""


def _rejects(extf: ExtFilter, entry: FileEntry) -> bool:
    kind = extf.kind
    if kind == _XF.SIZE_EQ:
        return entry.size != extf.size
    if kind == _SIZE_LTEQ:
        return entry.size > extf.size
    if kind == _SIZE_GTEQ:
        return entry.size < extf.size
    if kind == _XF.SIZE_GT:
        return entry.size <= extf.size
    if kind == _XF.SIZE_LT:
        return entry.size >= extf.size
    if kind == _XF.EXCL_EXT:
        return match_extensions(entry.path, extf.param)
    if kind == _XF.ONLY_EXT:
        return not match_extensions(entry.path, extf.param)
    if kind == _XF.EXCL_STR:
        return extf.param in entry.path
    if kind == _XF.ONLY_STR:
        return extf.param not in entry.path
    if kind == _XF.DATE_NEWER:
        return entry.mtime < extf.size
    if kind == _XF.DATE_OLDER:
        return entry.mtime >= extf.size
    return False


@dataclass
class ExtFilterStack:
    """The filters given so far; their effects are cumulative."""

    filters: list[ExtFilter] = field(default_factory=list)

    def add(self, option: str) -> ExtFilter:
        """Parse ``filter[:value]`` and append it; raises ExtFilterError if invalid."""
        if option.lower() == "help":
            raise ExtFilterError("help requested for extended filters", help_requested=True)

        tag, _, value = option.partition(":")
        kind = _TAGS.get(tag)
        if kind is None:
            raise ExtFilterError(_ERR_BAD_FILTER)
        if kind & _REQ_VALUE and not value:
            raise ExtFilterError(_ERR_NO_VALUE)

        if kind & _REQ_NUMBER:
            extf = ExtFilter(kind, size=parse_size(value))
        elif kind & _REQ_DATE:
            extf = ExtFilter(kind, size=parse_datetime(value))
        else:
            extf = ExtFilter(kind, param=value)
        self.filters.append(extf)
        return extf

    def excludes(self, entry: FileEntry) -> bool:
        """Whether any filter rules ``entry`` out."""
        return any(_rejects(extf, entry) for extf in self.filters)