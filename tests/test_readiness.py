import pytest

from mocs.errors import NotFound
from mocs.readiness import ReadinessServer, ReadinessState, evaluate, update_readiness
from mocs.resources import NamespacedName, ObjectMeta, StorageCluster

from conftest import NAMESPACE

SC_KEY = NamespacedName(namespace=NAMESPACE, name="ocs-storagecluster")


class RecordingSink(ReadinessServer):
    def __init__(self):
        super().__init__()
        self.calls = []

    def set_ready(self):
        self.calls.append(("set_ready",))
        super().set_ready()

    def unset_ready(self, reason):
        self.calls.append(("unset_ready", reason))
        super().unset_ready(reason)


def test_sink_starts_not_ready():
    st = ReadinessServer().status()
    assert st.ready is False
    assert st.reason


@pytest.mark.parametrize(
    "phase,ready",
    [("Ready", True), ("ready", False), ("READY", False), ("", False), ("Progressing", False), ("Error", False)],
)
def test_evaluate_uses_literal_ready_phase(phase, ready):
    sc = StorageCluster(metadata=ObjectMeta(name="ocs-storagecluster", namespace=NAMESPACE))
    sc.status.phase = phase

    st = evaluate(sc)
    assert st.ready is ready
    if not ready:
        assert st.reason == "StorageCluster not ready."


def test_update_readiness_sets_ready(store, ctx, make_storage_cluster):
    make_storage_cluster(phase="Ready")
    sink = RecordingSink()

    assert update_readiness(ctx, store, sink, SC_KEY) == ReadinessState(ready=True)
    assert sink.calls == [("set_ready",)]
    assert sink.status().ready is True


def test_update_readiness_unsets_ready(store, ctx, make_storage_cluster):
    make_storage_cluster(phase="Progressing")
    sink = RecordingSink()
    sink.set_ready()
    sink.calls.clear()

    st = update_readiness(ctx, store, sink, SC_KEY)
    assert st == ReadinessState(ready=False, reason="StorageCluster not ready.")
    assert sink.calls == [("unset_ready", "StorageCluster not ready.")]


def test_repeated_updates_are_harmless(store, ctx, make_storage_cluster):
    make_storage_cluster(phase="Ready")
    sink = RecordingSink()
    for _ in range(3):
        update_readiness(ctx, store, sink, SC_KEY)
    assert sink.status() == ReadinessState(ready=True)


def test_missing_storage_cluster_is_an_error_not_unready(store, ctx):
    sink = RecordingSink()
    before = sink.status()

    with pytest.raises(NotFound):
        update_readiness(ctx, store, sink, SC_KEY)
    assert sink.calls == []
    assert sink.status() == before
