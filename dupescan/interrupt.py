"""Signal handling: CTRL-C interruption and the SIGUSR1 soft-abort toggle."""

from __future__ import annotations

import signal
import sys
from dataclasses import dataclass, field
from typing import TextIO

from dupescan.flags import Flags, Settings

_TOGGLE_NONE = 0
_TOGGLE_ON = 1
_TOGGLE_OFF = 2


@dataclass
class InterruptState:
    """Tracks interruption and soft-abort toggles for a run."""

    settings: Settings
    interrupted: bool = False
    _usr1_toggle: int = field(default=_TOGGLE_NONE, init=False, repr=False)

    def catch_interrupt(self, signum=None, frame=None) -> None:
        """Record an interrupt; the run will end with a failure status."""
        self.interrupted = True
        self.settings.fail()

    def catch_sigusr1(self, signum=None, frame=None) -> None:
        """Toggle soft abort and remember the change for later notice."""
        if Flags.SOFTABORT in self.settings.flags:
            self.settings.flags &= ~Flags.SOFTABORT
            self._usr1_toggle = _TOGGLE_OFF
        else:
            self.settings.flags |= Flags.SOFTABORT
            self._usr1_toggle = _TOGGLE_ON

    def check_sigusr1(self, stream: TextIO | None = None) -> None:
        """Report a pending soft-abort toggle once."""
        if self._usr1_toggle == _TOGGLE_NONE:
            return
        out = sys.stderr if stream is None else stream
        state = "ON" if self._usr1_toggle == _TOGGLE_ON else "OFF"
        out.write(f"\ndupescan received a USR1 signal; soft abort (-Z) is now {state}\n")
        self._usr1_toggle = _TOGGLE_NONE

    def install(self) -> None:
        """Install the handlers for SIGINT and, where it exists, SIGUSR1."""
        signal.signal(signal.SIGINT, self.catch_interrupt)
        if hasattr(signal, "SIGUSR1"):
            signal.signal(signal.SIGUSR1, self.catch_sigusr1)