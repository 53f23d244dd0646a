from __future__ import annotations

import copy
import json
import os
from typing import Any

from pydantic import ValidationError

from .errors import TemplateError
from .resources import StorageCluster
from .settings import settings

STORAGE_CLUSTER_TEMPLATE = "storagecluster"

# Desired StorageCluster for a managed deployment. Metadata is a placeholder;
# only the spec is ever copied onto a live object.
_BUILTIN: dict[str, dict[str, Any]] = {
    STORAGE_CLUSTER_TEMPLATE: {
        "metadata": {"name": "ocs-storagecluster", "namespace": "openshift-storage"},
        "spec": {
            "manageNodes": False,
            "monDataDirHostPath": "/var/lib/rook",
            "storageDeviceSets": [
                {
                    "name": "default",
                    "count": 1,
                    "replica": 3,
                    "portable": True,
                    "dataPvcTemplate": {
                        "storageClassName": "gp2",
                        "storage": "1Ti",
                        "volumeMode": "Block",
                        "accessModes": ["ReadWriteOnce"],
                    },
                }
            ],
        },
    },
}


class TemplateProvider:
    """Hands out fresh copies of named resource templates.

    Built-in templates can be overridden per id by ``<template_dir>/<id>.json``.
    """

    def __init__(self, template_dir: str | None = None, templates: dict[str, dict[str, Any]] | None = None):
        self.template_dir = template_dir if template_dir is not None else settings.template_dir
        self._templates = dict(_BUILTIN if templates is None else templates)

    def instantiate(self, template_id: str) -> dict[str, Any]:
        if self.template_dir:
            path = os.path.join(self.template_dir, f"{template_id}.json")
            if os.path.exists(path):
                try:
                    with open(path, encoding="utf-8") as fh:
                        data = json.load(fh)
                except (OSError, ValueError) as e:
                    raise TemplateError(f"template '{template_id}' at {path} is unreadable: {e}") from e
                if not isinstance(data, dict):
                    raise TemplateError(f"template '{template_id}' at {path} is not a JSON object")
                return data

        if template_id not in self._templates:
            raise TemplateError(f"unknown template '{template_id}'")
        return copy.deepcopy(self._templates[template_id])


def storage_cluster_from_template(provider: TemplateProvider) -> StorageCluster:
    try:
        return StorageCluster.model_validate(provider.instantiate(STORAGE_CLUSTER_TEMPLATE))
    except ValidationError as e:
        raise TemplateError(f"template '{STORAGE_CLUSTER_TEMPLATE}' is malformed: {e}") from e
