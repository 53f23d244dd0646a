from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mocs import db
from mocs.api_models import ApplyManagedOCSRequest, PhaseRequest, StorageClusterSpecRequest
from mocs.controller import Controller
from mocs.errors import (
    Cancelled,
    Conflict,
    NotFound,
    OwnershipError,
    ReconcileError,
    TemplateError,
    TransientStoreError,
)
from mocs.readiness import ReadinessServer
from mocs.reconciler import ManagedOCSReconciler
from mocs.resources import ManagedOCS, NamespacedName, ObjectMeta, StorageCluster, to_json
from mocs.runtime import Context
from mocs.settings import settings
from mocs.store import SqliteResourceStore
from mocs.templates import TemplateProvider

app = FastAPI(title="ManagedOCS Reconciler")

store = SqliteResourceStore()
readiness = ReadinessServer()
reconciler = ManagedOCSReconciler(store, readiness, TemplateProvider())
controller = Controller(reconciler)

_STATUS_BY_ERROR: list[tuple[type[ReconcileError], int]] = [
    (NotFound, 404),
    (Conflict, 409),
    (TemplateError, 422),
    (OwnershipError, 422),
    (TransientStoreError, 503),
    (Cancelled, 504),
]


@app.on_event("startup")
def startup() -> None:
    db.init_db()
    if settings.enable_controller:
        controller.start()


@app.on_event("shutdown")
def shutdown() -> None:
    controller.stop(timeout=5)


@app.exception_handler(ReconcileError)
async def reconcile_error_handler(request: Request, exc: ReconcileError) -> JSONResponse:
    code = 500
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            code = status
            break
    return JSONResponse(status_code=code, content={"error": type(exc).__name__, "detail": str(exc)})


def _ctx() -> Context:
    return Context(timeout_s=settings.reconcile_timeout_s)


# --- probes ---
@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> JSONResponse:
    st = readiness.status()
    if st.ready:
        return JSONResponse(status_code=200, content={"status": "ready"})
    return JSONResponse(status_code=503, content={"status": "not ready", "reason": st.reason})


# --- ManagedOCS ---
@app.put("/managedocs/{namespace}/{name}")
def apply_managed_ocs(namespace: str, name: str, req: ApplyManagedOCSRequest) -> dict[str, Any]:
    def mutate(m: ManagedOCS) -> None:
        m.spec.reconcile_strategy = req.reconcile_strategy
        m.metadata.labels = dict(req.labels)

    obj = ManagedOCS(metadata=ObjectMeta(name=name, namespace=namespace))
    out, op = store.create_or_update(_ctx(), obj, mutate)
    db.log_event("INFO", f"ManagedOCS {op.value}", namespace=namespace, name=name)
    return {"result": op.value, "object": to_json(out)}


@app.get("/managedocs/{namespace}/{name}")
def get_managed_ocs(namespace: str, name: str) -> dict[str, Any]:
    return to_json(store.get(_ctx(), ManagedOCS, NamespacedName(namespace=namespace, name=name)))


@app.delete("/managedocs/{namespace}/{name}")
def delete_managed_ocs(namespace: str, name: str) -> dict[str, str]:
    store.delete(_ctx(), ManagedOCS, NamespacedName(namespace=namespace, name=name))
    db.log_event("INFO", "ManagedOCS deleted", namespace=namespace, name=name)
    return {"status": "deleted"}


@app.post("/reconcile/{namespace}/{name}")
def reconcile(namespace: str, name: str) -> dict[str, Any]:
    result = controller.reconcile_now(NamespacedName(namespace=namespace, name=name))
    return {"requeue": result.requeue, "ready": readiness.status().ready}


# --- StorageCluster ---
@app.get("/storageclusters/{namespace}/{name}")
def get_storage_cluster(namespace: str, name: str) -> dict[str, Any]:
    return to_json(store.get(_ctx(), StorageCluster, NamespacedName(namespace=namespace, name=name)))


@app.put("/storageclusters/{namespace}/{name}/spec")
def edit_storage_cluster_spec(namespace: str, name: str, req: StorageClusterSpecRequest) -> dict[str, Any]:
    """Hand edit of the spec; a Strict reconcile will revert it."""
    ctx = _ctx()
    sc = store.get(ctx, StorageCluster, NamespacedName(namespace=namespace, name=name))
    sc.spec = req.spec
    return to_json(store.update(ctx, sc))


@app.put("/storageclusters/{namespace}/{name}/status")
def report_storage_cluster_phase(namespace: str, name: str, req: PhaseRequest) -> dict[str, Any]:
    ctx = _ctx()
    sc = store.get(ctx, StorageCluster, NamespacedName(namespace=namespace, name=name))
    sc.status.phase = req.phase
    return to_json(store.update_status(ctx, sc))


@app.get("/events")
def events(limit: int = 100) -> list[dict[str, Any]]:
    return db.latest_events(max(1, min(1000, limit)))
