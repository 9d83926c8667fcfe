"""
debounce.py

One pending, cancellable timer per input. Each submit() cancels the pending
timer and starts a new one; only a timer that runs to completion calls back,
so a burst of keystrokes yields exactly one call carrying the last text.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

DEFAULT_DELAY_SECONDS = 0.3


class SearchDebouncer:
    def __init__(
        self,
        callback: Callable[[str], None],
        delay: float = DEFAULT_DELAY_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._callback = callback
        self._delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def submit(self, text: Optional[str]) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._generation += 1
            timer = self._timer_factory(self._delay, self._fire, args=(self._generation, text or ""))
            self._pending = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            self._generation += 1

    def _fire(self, generation: int, text: str) -> None:
        with self._lock:
            # superseded between expiry and acquiring the lock
            if generation != self._generation:
                return
            self._pending = None
        self._callback(text)
