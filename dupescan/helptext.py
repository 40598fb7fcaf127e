"""Usage help and version information."""

from __future__ import annotations

import os
import struct
import sys
from typing import TextIO

from dupescan.filehash import MAX_CHUNK_SIZE, MIN_CHUNK_SIZE, hash_algorithm_names

VERSION = "1.27.3"
VERSION_DATE = "2023-08-26"

_ON_WINDOWS = os.name == "nt"
_DEDUPE = sys.platform.startswith("linux")

FEATURE_FLAGS: tuple[str, ...] = tuple(
    name for name, enabled in (("dedupe", _DEDUPE), ("windows", _ON_WINDOWS)) if enabled
)


def _help_lines() -> list[str]:
    lines = [
        "Usage: dupescan [options] FILES and/or DIRECTORIES...\n\n",
        "Duplicate file sets will be printed by default unless a different action\n",
        "option is specified (delete, summarize, link, dedupe, etc.)\n",
        " -0 --print-null  \toutput nulls instead of CR/LF (like 'find -print0')\n",
        " -1 --one-file-system\tdo not match files on different filesystems/devices\n",
        " -A --no-hidden    \texclude hidden files from consideration\n",
    ]
    if _DEDUPE:
        lines.append(" -B --dedupe      \tdo a copy-on-write (reflink/clone) deduplication\n")
    lines += [
        f" -C --chunk-size=#\toverride I/O chunk size in KiB "
        f"(min {MIN_CHUNK_SIZE // 1024}, max {MAX_CHUNK_SIZE // 1024})\n",
        " -d --delete      \tprompt user for files to preserve and delete all\n",
        "                  \tothers; important: under particular circumstances,\n",
        "                  \tdata may be lost when using this option together\n",
        "                  \twith -s or --symlinks, or when specifying a\n",
        "                  \tparticular directory more than once; refer to the\n",
        "                  \tdocumentation for additional information\n",
        " -e --error-on-dupe\texit on any duplicate found with status code 255\n",
        " -f --omit-first  \tomit the first file in each set of matches\n",
        " -h --help        \tdisplay this help message\n",
        " -H --hard-links  \ttreat any linked files as duplicate files. Normally\n",
        "                  \tlinked files are treated as non-duplicates for safety\n",
        " -i --reverse     \treverse (invert) the match sort order\n",
        " -I --isolate     \tfiles in the same specified directory won't match\n",
        " -j --json        \tproduce JSON (machine-readable) output\n",
        " -l --link-soft    \tmake relative symlinks for duplicates w/o prompting\n",
        " -L --link-hard    \thard link all duplicate files without prompting\n",
    ]
    if _ON_WINDOWS:
        lines += [
            "                  \tWindows allows a maximum of 1023 hard links per file;\n",
            "                  \tlinking large match sets will result in multiple sets\n",
            "                  \tof hard linked files due to this limit.\n",
        ]
    lines += [
        " -m --summarize   \tsummarize dupe information\n",
        " -M --print-summarize\tprint match sets and --summarize at the end\n",
        " -N --no-prompt   \ttogether with --delete, preserve the first file in\n",
        "                  \teach set of duplicates and delete the rest without\n",
        "                  \tprompting the user\n",
        " -o --order=BY    \tselect sort order for output, linking and deleting; by\n",
        "                  \tmtime (BY=time) or filename (BY=name, the default)\n",
        " -O --param-order  \tParameter order is more important than selected -o sort\n",
        " -p --permissions \tdon't consider files with different owner/group or\n",
        "                  \tpermission bits as duplicates\n",
        " -P --print=type  \tprint extra info (partial, early, fullhash)\n",
        " -q --quiet       \thide progress indicator\n",
        " -Q --quick       \tskip byte-for-byte confirmation for quick matching\n",
        "                  \tWARNING: -Q can result in data loss! Be very careful!\n",
        " -r --recurse     \tfor every directory, process its subdirectories too\n",
        " -R --recurse:    \tfor each directory given after this option follow\n",
        "                  \tsubdirectories encountered within (note the ':' at\n",
        "                  \tthe end of the option, manpage for more details)\n",
        " -s --symlinks    \tfollow symlinks\n",
        " -S --size        \tshow size of duplicate files\n",
        " -t --no-change-check\tdisable security check for file changes (aka TOCTTOU)\n",
        " -T --partial-only \tmatch based on partial hashes only. WARNING:\n",
        "                  \tEXTREMELY DANGEROUS paired with destructive actions!\n",
        " -u --print-unique\tprint only a list of unique (non-matched) files\n",
        " -U --no-trav-check\tdisable double-traversal safety check (BE VERY CAREFUL)\n",
        "                  \tThis fixes a Google Drive File Stream recursion issue\n",
        " -v --version     \tdisplay dupescan version information\n",
        " -X --ext-filter=x:y\tfilter files based on specified criteria\n",
        "                  \tUse '-X help' for detailed extfilter help\n",
        " -y --hash-db=file\tuse a hash database text file to speed up repeat runs\n",
        "                  \tPassing '-y .' will expand to  '-y dupescan_hashdb.txt'\n",
        " -z --zero-match  \tconsider zero-length files to be duplicates\n",
        " -Z --soft-abort  \tIf the user aborts (i.e. CTRL-C) act on matches so far\n",
    ]
    if not _ON_WINDOWS:
        lines.append("                  \tYou can send SIGUSR1 to the program to toggle this\n")
    return lines


def help_text(stream: TextIO | None = None) -> None:
    """Write the usage help to ``stream`` (standard output by default)."""
    out = sys.stdout if stream is None else stream
    out.write("".join(_help_lines()))


def _bitness() -> str:
    pointer_bits = struct.calcsize("P") * 8
    long_bits = struct.calcsize("l") * 8
    if pointer_bits == 64:
        return "64-bit i32" if long_bits == 32 else "64-bit"
    if pointer_bits == 32:
        return "32-bit i64" if long_bits == 64 else "32-bit"
    return f"{pointer_bits}-bit i{long_bits}"


def version_text(short_version: bool = False, stream: TextIO | None = None) -> None:
    """Write the version line, hash algorithms (unless short) and feature flags."""
    out = sys.stdout if stream is None else stream
    out.write(f"dupescan {VERSION} ({VERSION_DATE}) {_bitness()}\n")
    if not short_version:
        out.write("Hash algorithms available: " + ", ".join(hash_algorithm_names()) + "\n")
    flags = " ".join(FEATURE_FLAGS) if FEATURE_FLAGS else "none"
    out.write(f"Feature flags: {flags}\n")