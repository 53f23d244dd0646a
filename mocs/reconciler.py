from __future__ import annotations

from dataclasses import dataclass

from . import db
from .desired import effective_strategy, set_desired_storage_cluster
from .readiness import ReadinessServer, update_readiness
from .resources import ManagedOCS, NamespacedName, ObjectMeta, StorageCluster
from .runtime import Context, background
from .settings import settings
from .store import OperationResult, ResourceStore
from .templates import TemplateProvider


@dataclass(frozen=True)
class Result:
    requeue: bool = False


class ManagedOCSReconciler:
    """Drives one ManagedOCS towards its desired StorageCluster.

    Each pass:
      1) loads the ManagedOCS (missing parent ends the pass)
      2) records the effective reconcile strategy and create-or-updates the StorageCluster
      3) persists the ManagedOCS status, even if 2) failed
      4) recomputes readiness from the StorageCluster, even if 2) or 3) failed

    The first error in that order is raised; later ones only reach the event log.
    """

    def __init__(
        self,
        store: ResourceStore,
        readiness: ReadinessServer,
        templates: TemplateProvider | None = None,
        storage_cluster_name: str | None = None,
    ):
        self.store = store
        self.readiness = readiness
        self.templates = templates or TemplateProvider()
        self.storage_cluster_name = storage_cluster_name or settings.storage_cluster_name

    def storage_cluster_key(self, namespace: str) -> NamespacedName:
        return NamespacedName(namespace=namespace, name=self.storage_cluster_name)

    def reconcile(self, req: NamespacedName, ctx: Context | None = None) -> Result:
        ctx = ctx or background()
        db.log_event("INFO", "Reconciling ManagedOCS", namespace=req.namespace, name=req.name)

        managed_ocs = self.store.get(ctx, ManagedOCS, req)

        errors: list[Exception] = []
        for stage in (
            lambda: self._reconcile_phases(ctx, managed_ocs),
            lambda: self.store.update_status(ctx, managed_ocs),
            lambda: update_readiness(ctx, self.store, self.readiness, self.storage_cluster_key(req.namespace)),
        ):
            try:
                stage()
            except Exception as e:
                errors.append(e)

        if not errors:
            return Result()

        first, *rest = errors
        for e in rest:
            db.log_event(
                "WARN",
                f"Suppressed by earlier error: {type(e).__name__}: {e}",
                namespace=req.namespace,
                name=req.name,
            )
        db.log_event("ERROR", f"Reconcile failed: {type(first).__name__}: {first}", namespace=req.namespace, name=req.name)
        raise first

    def _reconcile_phases(self, ctx: Context, managed_ocs: ManagedOCS) -> None:
        strategy = effective_strategy(managed_ocs.spec.reconcile_strategy)
        managed_ocs.status.reconcile_strategy = strategy

        key = self.storage_cluster_key(managed_ocs.metadata.namespace)
        storage_cluster = StorageCluster(metadata=ObjectMeta(name=key.name, namespace=key.namespace))
        _, op = self.store.create_or_update(
            ctx,
            storage_cluster,
            lambda sc: set_desired_storage_cluster(strategy, managed_ocs, sc, self.templates),
        )
        if op is not OperationResult.UNCHANGED:
            db.log_event("INFO", f"StorageCluster {op.value}", namespace=key.namespace, name=key.name)
