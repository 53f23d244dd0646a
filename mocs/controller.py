from __future__ import annotations

from threading import Event, Lock, Thread

from . import db
from .errors import NotFound
from .reconciler import ManagedOCSReconciler, Result
from .resources import ManagedOCS, NamespacedName
from .runtime import Context
from .settings import settings


class Controller:
    """Periodically resyncs every ManagedOCS through the reconciler.

    All passes, timer driven or requested through ``reconcile_now``, run
    under one lock, so a key is never reconciled twice at the same time.
    """

    def __init__(
        self,
        reconciler: ManagedOCSReconciler,
        resync_interval_s: int | None = None,
        reconcile_timeout_s: int | None = None,
        namespace: str | None = None,
    ):
        self.reconciler = reconciler
        self.resync_interval_s = max(1, resync_interval_s or settings.resync_interval_s)
        self.reconcile_timeout_s = reconcile_timeout_s or settings.reconcile_timeout_s
        self.namespace = settings.namespace if namespace is None else namespace
        self._lock = Lock()
        self._stop = Event()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = Thread(target=self._loop, daemon=True)
        self._thr.start()

    def stop(self, timeout: float | None = None) -> None:
        """Ask the loop to exit; with a timeout, wait up to that long for it."""
        self._stop.set()
        if timeout is not None and self._thr is not None:
            self._thr.join(timeout)

    @property
    def running(self) -> bool:
        return self._thr is not None and self._thr.is_alive()

    def _context(self) -> Context:
        return Context(timeout_s=self.reconcile_timeout_s)

    def reconcile_now(self, key: NamespacedName) -> Result:
        with self._lock:
            return self.reconciler.reconcile(key, self._context())

    def _loop(self) -> None:
        db.log_event("INFO", "Controller started")
        while not self._stop.is_set():
            try:
                self.resync()
            except Exception as e:
                db.log_event("ERROR", f"Resync failed: {type(e).__name__}: {e}")
            self._stop.wait(self.resync_interval_s)
        db.log_event("INFO", "Controller stopped")

    def resync(self) -> dict[NamespacedName, Exception | None]:
        """Reconcile every ManagedOCS in scope once. Returns the outcome per key."""
        listed = self.reconciler.store.list(self._context(), ManagedOCS, namespace=self.namespace or None)
        keys = [m.key for m in listed]
        outcomes: dict[NamespacedName, Exception | None] = {}
        for key in keys:
            try:
                self.reconcile_now(key)
                outcomes[key] = None
            except NotFound as e:
                # Usually the ManagedOCS was deleted after listing.
                db.log_event("INFO", str(e), namespace=key.namespace, name=key.name)
                outcomes[key] = e
            except Exception as e:
                # Journalled by the reconciler; the next resync retries it.
                outcomes[key] = e
        return outcomes
