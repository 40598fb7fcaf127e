"""Behaviour, action and print flags, and the settings object that carries them."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from typing import TextIO


class Flags(enum.IntFlag):
    """Behaviour modification flags."""

    RECURSE = enum.auto()
    HIDEPROGRESS = enum.auto()
    SOFTABORT = enum.auto()
    FOLLOWLINKS = enum.auto()
    INCLUDEEMPTY = enum.auto()
    CONSIDERHARDLINKS = enum.auto()
    RECURSEAFTER = enum.auto()
    NOPROMPT = enum.auto()
    EXCLUDEHIDDEN = enum.auto()
    PERMISSIONS = enum.auto()
    EXCLUDESIZE = enum.auto()
    QUICKCOMPARE = enum.auto()
    USEPARAMORDER = enum.auto()
    REVERSESORT = enum.auto()
    ISOLATE = enum.auto()
    ONEFS = enum.auto()
    PARTIALONLY = enum.auto()
    NOCHANGECHECK = enum.auto()
    NOTRAVCHECK = enum.auto()
    SKIPHASH = enum.auto()
    BENCHMARKSTOP = enum.auto()
    HASHDB = enum.auto()
    LOUD = enum.auto()
    DEBUG = enum.auto()


class ActionFlags(enum.IntFlag):
    """Flags selecting what is done with the matches."""

    PRINTMATCHES = enum.auto()
    PRINTUNIQUE = enum.auto()
    OMITFIRST = enum.auto()
    SUMMARIZEMATCHES = enum.auto()
    DELETEFILES = enum.auto()
    SHOWSIZE = enum.auto()
    HARDLINKFILES = enum.auto()
    DEDUPEFILES = enum.auto()
    MAKESYMLINKS = enum.auto()
    PRINTNULL = enum.auto()
    PRINTJSON = enum.auto()
    ERRORONDUPE = enum.auto()


class PrintFlags(enum.IntFlag):
    """Flags asking for extra information to be printed."""

    PARTIAL = enum.auto()
    EARLYMATCH = enum.auto()
    FULLHASH = enum.auto()


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@dataclass
class Settings:
    """Run-wide options and the exit status accumulated while acting on them."""

    flags: Flags = Flags(0)
    actions: ActionFlags = ActionFlags(0)
    print_flags: PrintFlags = PrintFlags(0)
    hash_algo: int = 0
    exit_status: int = EXIT_SUCCESS

    def fail(self) -> None:
        """Record that something went wrong; the run will exit with failure."""
        self.exit_status = EXIT_FAILURE


_PREFIXES = ((Flags, "F_"), (ActionFlags, "FA_"), (PrintFlags, "PF_"))


def dump_all_flags(settings: Settings, stream: TextIO | None = None) -> None:
    """Write the names of every flag set in ``settings`` to ``stream``."""
    out = sys.stderr if stream is None else stream
    values = {Flags: settings.flags, ActionFlags: settings.actions, PrintFlags: settings.print_flags}
    names = [
        prefix + member.name
        for enum_cls, prefix in _PREFIXES
        for member in enum_cls
        if member in values[enum_cls]
    ]
    out.write("\nSet flag dump:")
    for name in names:
        out.write(f" {name}")
    out.write(" [end of list]\n\n")
    out.flush()