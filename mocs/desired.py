from __future__ import annotations

from . import db
from .ownership import set_controller_reference
from .resources import ManagedOCS, ReconcileStrategy, StorageCluster
from .templates import TemplateProvider, storage_cluster_from_template


def effective_strategy(raw: str | None) -> ReconcileStrategy:
    """Only an explicit (case-insensitive) Unmanaged opts out; anything else is Strict."""
    if (raw or "").casefold() == ReconcileStrategy.UNMANAGED.value.casefold():
        return ReconcileStrategy.UNMANAGED
    return ReconcileStrategy.STRICT


def set_desired_storage_cluster(
    strategy: ReconcileStrategy,
    owner: ManagedOCS,
    sc: StorageCluster,
    templates: TemplateProvider,
) -> None:
    """Mutate ``sc`` in place into its desired state."""
    db.log_event(
        "INFO",
        f"Reconciling StorageCluster (reconcileStrategy={strategy.value})",
        namespace=sc.metadata.namespace,
        name=sc.metadata.name,
    )

    set_controller_reference(owner, sc)

    if strategy is ReconcileStrategy.STRICT:
        desired = storage_cluster_from_template(templates)
        # Spec only; metadata and status stay as they are.
        sc.spec = desired.spec
