"""Turn real-time signals into named triggers such as ``sigrtmin+3``."""

from __future__ import annotations

import signal
from collections import Counter
from collections.abc import Callable
from typing import Any


class RealtimeSignals:
    """Counts real-time signals as they arrive and emits them as triggers later."""

    def __init__(self, emit: Callable[[str], Any]) -> None:
        self.emit = emit
        self.rtmin = int(getattr(signal, "SIGRTMIN", 34))
        self.rtmax = int(getattr(signal, "SIGRTMAX", 64))
        self._counts: Counter[int] = Counter()
        self._flag = False

    def handle(self, signum: int, frame: Any = None) -> None:
        """Signal handler: record one delivery of ``signum``."""
        if signum < self.rtmin or signum > self.rtmax:
            return
        self._counts[signum - self.rtmin] += 1
        self._flag = True

    def pending(self) -> bool:
        """True if signals arrived since the last dispatch."""
        return self._flag

    def dispatch(self) -> int:
        """Emit one trigger per recorded signal; returns how many were emitted."""
        self._flag = False
        emitted = 0
        for offset in range(self.rtmax - self.rtmin):
            while self._counts[offset] > 0:
                self._counts[offset] -= 1
                self.emit(f"sigrtmin+{offset}")
                emitted += 1
        return emitted

    def subscribe(self) -> dict[int, Any]:
        """Install the handler for every real-time signal; returns the old handlers."""
        if not hasattr(signal, "SIGRTMIN"):
            raise OSError("real-time signals are not available on this platform")
        previous = {}
        for signum in range(self.rtmin, self.rtmax + 1):
            previous[signum] = signal.signal(signum, self.handle)
        return previous