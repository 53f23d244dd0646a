from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from . import db
from .resources import NamespacedName, StorageCluster
from .runtime import Context
from .store import ResourceStore

READY_PHASE = "Ready"


@dataclass(frozen=True)
class ReadinessState:
    ready: bool
    reason: str = ""


class ReadinessServer:
    """Process-wide readiness flag served by the /readyz probe."""

    def __init__(self, initial_reason: str = "Waiting for first reconcile.") -> None:
        self._lock = Lock()
        self._ready = False
        self._reason = initial_reason

    def set_ready(self) -> None:
        with self._lock:
            self._ready = True
            self._reason = ""

    def unset_ready(self, reason: str) -> None:
        with self._lock:
            self._ready = False
            self._reason = reason

    def status(self) -> ReadinessState:
        with self._lock:
            return ReadinessState(ready=self._ready, reason=self._reason)


def evaluate(sc: StorageCluster) -> ReadinessState:
    # The StorageCluster status contract only defines the literal phase name.
    if sc.status.phase == READY_PHASE:
        return ReadinessState(ready=True)
    return ReadinessState(ready=False, reason=f"{sc.kind} not ready.")


def update_readiness(ctx: Context, store: ResourceStore, sink: ReadinessServer, key: NamespacedName) -> ReadinessState:
    """Publish readiness derived from the StorageCluster at ``key``.

    A failed fetch is raised and leaves the sink as it was.
    """
    try:
        sc = store.get(ctx, StorageCluster, key)
    except Exception as e:
        db.log_event("ERROR", f"error getting StorageCluster: {e}", namespace=key.namespace, name=key.name)
        raise

    state = evaluate(sc)
    previous = sink.status()
    if state.ready:
        sink.set_ready()
    else:
        sink.unset_ready(state.reason)

    if previous != state:
        db.log_event(
            "INFO",
            "Readiness changed: ready" if state.ready else f"Readiness changed: {state.reason}",
            namespace=key.namespace,
            name=key.name,
        )
    return state
