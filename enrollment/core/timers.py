"""
OTP resend cooldown.

ResendCooldown is a pure countdown: it only moves when tick() is
called, which keeps the controller testable with simulated seconds. Ticker
is the optional live driver (one threading.Timer per second) that the
controller owns and cancels when the OTP step is left.
"""
from __future__ import annotations

import threading
from typing import Callable, Optional


class ResendCooldown:
    def __init__(self, seconds: int, remaining: int = 0):
        self.seconds = int(seconds)
        self.remaining = max(0, int(remaining))

    @property
    def can_resend(self) -> bool:
        return self.remaining <= 0

    def start(self) -> None:
        self.remaining = self.seconds

    def tick(self) -> bool:
        """Advance one second. Returns True on the tick that reaches zero."""
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return self.remaining == 0

    def reset(self) -> None:
        self.remaining = 0


class Ticker:
    """
    Calls `on_tick` every `interval` seconds on a background timer until
    cancelled or `on_tick` returns False.
    """

    def __init__(self, on_tick: Callable[[], bool], interval: float = 1.0):
        self._on_tick = on_tick
        self._interval = interval
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.RLock()
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._cancelled

    def start(self) -> None:
        with self._lock:
            self._cancelled = False
            self._schedule()

    def _schedule(self) -> None:
        self._timer = threading.Timer(self._interval, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
        # on_tick takes the owner's lock; the owner cancels while holding it
        keep_going = self._on_tick()
        with self._lock:
            if keep_going and not self._cancelled:
                self._schedule()
            else:
                self._timer = None

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
