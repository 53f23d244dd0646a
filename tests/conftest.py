import os
import sys

import pytest

# Ensure project root is importable (so `import main` works reliably across environments)
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from mocs import db  # noqa: E402
from mocs.readiness import ReadinessServer  # noqa: E402
from mocs.reconciler import ManagedOCSReconciler  # noqa: E402
from mocs.resources import (  # noqa: E402
    ManagedOCS,
    ManagedOCSSpec,
    ObjectMeta,
    StorageCluster,
    StorageClusterSpec,
)
from mocs.runtime import background  # noqa: E402
from mocs.settings import Settings  # noqa: E402
from mocs.store import SqliteResourceStore  # noqa: E402
from mocs.templates import TemplateProvider  # noqa: E402

NAMESPACE = "openshift-storage"


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the event journal and the default store at a per-test sqlite file."""
    path = str(tmp_path / "mocs.db")
    monkeypatch.setattr(db, "settings", Settings(db_path=path))
    db.init_db()
    return path


@pytest.fixture
def ctx():
    return background()


@pytest.fixture
def store():
    return SqliteResourceStore()


@pytest.fixture
def sink():
    return ReadinessServer()


@pytest.fixture
def templates(tmp_path):
    # Empty override dir so a MOCS_TEMPLATE_DIR in the environment cannot leak in.
    d = tmp_path / "templates"
    d.mkdir()
    return TemplateProvider(template_dir=str(d))


@pytest.fixture
def reconciler(store, sink, templates):
    return ManagedOCSReconciler(store, sink, templates, storage_cluster_name="ocs-storagecluster")


@pytest.fixture
def make_managed_ocs(store, ctx):
    def _make(name="managed-ocs", namespace=NAMESPACE, strategy=""):
        obj = ManagedOCS(
            metadata=ObjectMeta(name=name, namespace=namespace),
            spec=ManagedOCSSpec(reconcile_strategy=strategy),
        )
        return store.create(ctx, obj)

    return _make


@pytest.fixture
def make_storage_cluster(store, ctx):
    def _make(namespace=NAMESPACE, name="ocs-storagecluster", spec=None, phase="", labels=None):
        obj = StorageCluster(
            metadata=ObjectMeta(name=name, namespace=namespace, labels=labels or {}),
            spec=spec or StorageClusterSpec(),
        )
        created = store.create(ctx, obj)
        if phase:
            created.status.phase = phase
            created = store.update_status(ctx, created)
        return created

    return _make
