"""Optional guard against executing the same confirm twice in quick succession.

Uses a rolling time window per confirm key.  The guard only sees this
process; the network's nonces remain the real backstop against double
spends.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Hashable


@dataclass
class ConfirmWindow:
    """Tracks when each key was last claimed."""

    window_seconds: float
    claimed: dict[Hashable, float] = field(default_factory=dict)

    def _prune(self) -> None:
        cutoff = time.monotonic() - self.window_seconds
        self.claimed = {k: t for k, t in self.claimed.items() if t > cutoff}

    def is_claimed(self, key: Hashable) -> bool:
        self._prune()
        return key in self.claimed

    def record(self, key: Hashable) -> None:
        self.claimed[key] = time.monotonic()

    def forget(self, key: Hashable) -> None:
        self.claimed.pop(key, None)


class ConfirmGuard:
    """Rejects an identical confirm seen within *window_seconds*.

    A window of 0 disables the guard.
    """

    def __init__(self, window_seconds: float = 0.0) -> None:
        self._window = ConfirmWindow(window_seconds=window_seconds)

    @property
    def enabled(self) -> bool:
        return self._window.window_seconds > 0

    def claim(self, key: Hashable) -> bool:
        """Return True if *key* may execute now, and remember it."""
        if not self.enabled:
            return True
        if self._window.is_claimed(key):
            return False
        self._window.record(key)
        return True

    def release(self, key: Hashable) -> None:
        """Forget *key* so a failed execution can be retried immediately."""
        self._window.forget(key)
