import pytest

from mocs.desired import effective_strategy, set_desired_storage_cluster
from mocs.errors import OwnershipError, TemplateError
from mocs.resources import ReconcileStrategy, StorageCluster, StorageClusterSpec, ObjectMeta
from mocs.templates import TemplateProvider, storage_cluster_from_template

from conftest import NAMESPACE


@pytest.mark.parametrize("raw", ["unmanaged", "UNMANAGED", "Unmanaged", "uNmAnAgEd"])
def test_unmanaged_is_case_insensitive(raw):
    assert effective_strategy(raw) is ReconcileStrategy.UNMANAGED


@pytest.mark.parametrize("raw", ["", None, "Strict", "strict", "none", "unmanaged ", "bogus"])
def test_everything_else_is_strict(raw):
    assert effective_strategy(raw) is ReconcileStrategy.STRICT


def _child(**spec):
    return StorageCluster(
        metadata=ObjectMeta(name="ocs-storagecluster", namespace=NAMESPACE, labels={"keep": "me"}),
        spec=StorageClusterSpec(**spec),
    )


def test_strict_replaces_spec_only(templates, make_managed_ocs):
    owner = make_managed_ocs()
    sc = _child(manage_nodes=True, mon_data_dir_host_path="/hand/edited")
    sc.status.phase = "Progressing"

    set_desired_storage_cluster(ReconcileStrategy.STRICT, owner, sc, templates)

    assert sc.spec == storage_cluster_from_template(templates).spec
    assert sc.metadata.name == "ocs-storagecluster"
    assert sc.metadata.labels == {"keep": "me"}
    assert sc.status.phase == "Progressing"
    assert [r.uid for r in sc.metadata.owner_references] == [owner.metadata.uid]


def test_unmanaged_leaves_spec_alone(templates, make_managed_ocs):
    owner = make_managed_ocs()
    sc = _child(manage_nodes=True, mon_data_dir_host_path="/hand/edited")
    before = sc.spec.model_copy(deep=True)

    set_desired_storage_cluster(ReconcileStrategy.UNMANAGED, owner, sc, templates)

    assert sc.spec == before
    assert sc.metadata.owner_references[0].kind == "ManagedOCS"


def test_strict_with_broken_template_raises(make_managed_ocs):
    owner = make_managed_ocs()
    sc = _child()
    with pytest.raises(TemplateError):
        set_desired_storage_cluster(ReconcileStrategy.STRICT, owner, sc, TemplateProvider(templates={}))


def test_unmanaged_never_reads_the_template(make_managed_ocs):
    owner = make_managed_ocs()
    sc = _child()
    set_desired_storage_cluster(ReconcileStrategy.UNMANAGED, owner, sc, TemplateProvider(templates={}))
    assert sc.metadata.owner_references


def test_cross_namespace_owner_is_rejected(templates, make_managed_ocs):
    owner = make_managed_ocs(namespace="elsewhere")
    with pytest.raises(OwnershipError):
        set_desired_storage_cluster(ReconcileStrategy.UNMANAGED, owner, _child(), templates)
