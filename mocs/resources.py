from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    # camelCase keys, as the orchestration API spells them. Unknown keys are
    # rejected so a misspelled template field cannot silently drop a value.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class NamespacedName(BaseModel):
    namespace: str
    name: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class OwnerReference(_Model):
    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True


class ObjectMeta(_Model):
    name: str
    namespace: str
    uid: str = ""
    resource_version: int = 0
    labels: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)


class Resource(_Model):
    api_version: ClassVar[str]
    kind: ClassVar[str]

    metadata: ObjectMeta

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(namespace=self.metadata.namespace, name=self.metadata.name)


class ReconcileStrategy(str, Enum):
    STRICT = "Strict"
    UNMANAGED = "Unmanaged"


class ManagedOCSSpec(_Model):
    reconcile_strategy: str = ""


class ManagedOCSStatus(_Model):
    reconcile_strategy: ReconcileStrategy | None = None


class ManagedOCS(Resource):
    """Parent resource: what the operator is asked to manage."""

    api_version: ClassVar[str] = "ocs.openshift.io/v1alpha1"
    kind: ClassVar[str] = "ManagedOCS"

    spec: ManagedOCSSpec = Field(default_factory=ManagedOCSSpec)
    status: ManagedOCSStatus = Field(default_factory=ManagedOCSStatus)


class PVCTemplate(_Model):
    storage_class_name: str = ""
    storage: str = ""
    volume_mode: str = "Block"
    access_modes: list[str] = Field(default_factory=lambda: ["ReadWriteOnce"])


class StorageDeviceSet(_Model):
    name: str
    count: int = Field(1, ge=0)
    replica: int = Field(3, ge=1)
    portable: bool = True
    data_pvc_template: PVCTemplate = Field(default_factory=PVCTemplate)


class StorageClusterSpec(_Model):
    manage_nodes: bool = False
    mon_data_dir_host_path: str = ""
    storage_device_sets: list[StorageDeviceSet] = Field(default_factory=list)


class StorageClusterStatus(_Model):
    phase: str = ""


class StorageCluster(Resource):
    """Child resource, derived from a ManagedOCS."""

    api_version: ClassVar[str] = "ocs.openshift.io/v1"
    kind: ClassVar[str] = "StorageCluster"

    spec: StorageClusterSpec = Field(default_factory=StorageClusterSpec)
    status: StorageClusterStatus = Field(default_factory=StorageClusterStatus)


def to_json(obj: Resource) -> dict:
    return obj.model_dump(mode="json", by_alias=True)
