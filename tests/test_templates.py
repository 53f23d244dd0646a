import json

import pytest

from mocs.errors import TemplateError
from mocs.templates import STORAGE_CLUSTER_TEMPLATE, TemplateProvider, storage_cluster_from_template


def test_builtin_storage_cluster_template():
    sc = storage_cluster_from_template(TemplateProvider(template_dir=""))
    assert sc.spec.manage_nodes is False
    assert [s.name for s in sc.spec.storage_device_sets] == ["default"]
    assert sc.spec.storage_device_sets[0].data_pvc_template.storage == "1Ti"


def test_instances_are_independent():
    provider = TemplateProvider(template_dir="")
    a = provider.instantiate(STORAGE_CLUSTER_TEMPLATE)
    a["spec"]["manageNodes"] = True
    assert provider.instantiate(STORAGE_CLUSTER_TEMPLATE)["spec"]["manageNodes"] is False


def test_unknown_template():
    with pytest.raises(TemplateError, match="unknown template"):
        TemplateProvider(template_dir="", templates={}).instantiate(STORAGE_CLUSTER_TEMPLATE)


def test_override_from_directory(tmp_path):
    body = {
        "metadata": {"name": "x", "namespace": "y"},
        "spec": {"manageNodes": True, "storageDeviceSets": [{"name": "big", "count": 4}]},
    }
    (tmp_path / "storagecluster.json").write_text(json.dumps(body))

    sc = storage_cluster_from_template(TemplateProvider(template_dir=str(tmp_path)))
    assert sc.spec.manage_nodes is True
    assert sc.spec.storage_device_sets[0].count == 4


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"spec": {}}),  # no metadata
        json.dumps({"metadata": {"name": "x", "namespace": "y"}, "spec": {"storageDeviceSets": [{"count": -1}]}}),
    ],
)
def test_malformed_override_is_a_template_error(tmp_path, content):
    (tmp_path / "storagecluster.json").write_text(content)
    with pytest.raises(TemplateError):
        storage_cluster_from_template(TemplateProvider(template_dir=str(tmp_path)))


def test_misspelled_template_key_is_a_template_error(tmp_path):
    body = {
        "metadata": {"name": "x", "namespace": "y"},
        "spec": {"storageDeviceSet": [{"name": "default"}]},
    }
    (tmp_path / "storagecluster.json").write_text(json.dumps(body))

    with pytest.raises(TemplateError):
        storage_cluster_from_template(TemplateProvider(template_dir=str(tmp_path)))
