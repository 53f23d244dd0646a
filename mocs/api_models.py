from __future__ import annotations

from pydantic import BaseModel, Field

from .resources import StorageClusterSpec


class ApplyManagedOCSRequest(BaseModel):
    reconcile_strategy: str = Field("", description="Strict (default) or Unmanaged; case-insensitive")
    labels: dict[str, str] = Field(default_factory=dict)


class StorageClusterSpecRequest(BaseModel):
    spec: StorageClusterSpec


class PhaseRequest(BaseModel):
    phase: str = Field(..., description="StorageCluster status phase, e.g. Progressing, Ready")
