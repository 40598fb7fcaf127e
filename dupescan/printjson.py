"""Machine-readable JSON description of the run and its duplicate sets."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Sequence
from typing import TextIO

from dupescan.filestat import FileEntry, FileFlags
from dupescan.helptext import FEATURE_FLAGS, VERSION, VERSION_DATE


def _u16(value: int) -> str:
    return f"\\u{value & 0xFFFF:04x}"


def json_escape(text: str) -> str:
    """Escape ``text`` as the body of a pure-ASCII JSON string.

    Quotes and backslashes are backslash-escaped; control characters and
    everything beyond ASCII become \\u escapes, with surrogate pairs for
    characters outside the Basic Multilingual Plane.
    """
    parts: list[str] = []
    for ch in text:
        if ch in '"\\':
            parts.append("\\" + ch)
            continue
        code = ord(ch)
        if code >= 0x10000:
            code -= 0x10000
            parts.append(_u16(0xD800 + ((code >> 10) & 0x3FF)) + _u16(0xDC00 + (code & 0x3FF)))
        elif code < 0x20 or code > 0x7F:
            parts.append(_u16(code))
        else:
            parts.append(ch)
    return "".join(parts)


def _match_set(entry: FileEntry) -> str:
    file_list = ",\n".join(
        f'        {{ "filePath": "{json_escape(member.path)}" }}' for member in entry.dupe_set()
    )
    return (
        "    {\n"
        f'      "fileSize": {entry.size},\n'
        '      "fileList": [\n'
        f"{file_list}\n"
        "      ]\n"
        "    }"
    )


def printjson(
    files: Iterable[FileEntry], argv: Sequence[str], stream: TextIO | None = None
) -> None:
    """Write the version, command line, feature flags and every duplicate set as JSON."""
    out = sys.stdout if stream is None else stream
    features = " ".join(FEATURE_FLAGS) or "none"
    out.write("{\n")
    out.write(f'  "dupescanVersion": "{VERSION}",\n')
    out.write(f'  "dupescanVersionDate": "{VERSION_DATE}",\n')
    out.write(f'  "commandLine": "{json_escape(" ".join(argv))}",\n')
    out.write(f'  "extensionFlags": "{features}",\n')
    out.write('  "matchSets": [\n')
    out.write(",\n".join(_match_set(entry) for entry in files if FileFlags.HAS_DUPES in entry.flags))
    out.write("\n  ]\n}\n")