from __future__ import annotations

import random
import time
from threading import Event, Lock


class OperationCancelled(RuntimeError):
    pass


class CancellationToken:
    """
    Cooperative stop flag shared by the import loop, the matcher fan-out and the scraper.

    Checked between items only; in-flight HTTP requests are allowed to finish.
    """

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, context: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelled(f"{context} cancelled")


def raise_if_cancelled(token: CancellationToken | None, context: str = "operation") -> None:
    if token is not None:
        token.raise_if_cancelled(context)


class RateLimiter:
    """Enforces a minimum interval between calls across threads."""

    def __init__(self, min_interval_seconds: float) -> None:
        self.min_interval_seconds = max(0.0, float(min_interval_seconds))
        self._lock = Lock()
        self._last_call = 0.0

    def wait(self) -> None:
        if self.min_interval_seconds <= 0:
            return
        with self._lock:
            now = time.monotonic()
            remaining = self._last_call + self.min_interval_seconds - now
            if remaining > 0:
                time.sleep(remaining)
            self._last_call = time.monotonic()


def sleep_with_jitter(seconds: float, *, max_jitter: float = 1.0) -> None:
    if seconds <= 0:
        return
    time.sleep(seconds + random.uniform(0.0, max_jitter))
