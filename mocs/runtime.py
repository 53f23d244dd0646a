from __future__ import annotations

import time
from threading import Event

from .errors import Cancelled


class Context:
    """Cancellation and deadline for a single reconcile pass.

    Created by whoever triggers the pass and handed down to every store call.
    Nothing inside a pass sets its own deadline.
    """

    def __init__(self, timeout_s: float | None = None) -> None:
        self._cancelled = Event()
        self.deadline = time.monotonic() + timeout_s if timeout_s is not None else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        if self.cancelled:
            raise Cancelled("context cancelled")
        if self.expired():
            raise Cancelled("context deadline exceeded")


def background() -> Context:
    return Context()
