"""Helpers for locating arguments in the typed and the reordered command lines."""

from __future__ import annotations

from collections.abc import Sequence


def findarg(arg: str, start: int, argv: Sequence[str]) -> int:
    """Index of the first ``arg`` at or after ``start``, or ``len(argv)`` if absent."""
    return next((i for i in range(start, len(argv)) if argv[i] == arg), max(start, len(argv)))


def nonoptafter(option: str, oldargv: Sequence[str], newargv: Sequence[str], optind: int) -> int:
    """Index in ``newargv`` of the first non-option argument given after ``option``.

    ``oldargv`` is the command line as typed and ``newargv`` the same arguments
    after option parsing reordered them, with non-options starting at ``optind``.
    """
    argc = len(oldargv)
    targetind = findarg(option, 1, oldargv)
    startat = 1
    for x in range(optind, argc):
        testind = findarg(newargv[x], startat, oldargv)
        if testind > targetind:
            return x
        startat = testind
    return max(optind, argc)