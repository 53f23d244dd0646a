from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Core
    db_path: str = os.getenv("MOCS_DB_PATH", "mocs.db")
    db_busy_timeout_ms: int = _env_int("MOCS_DB_BUSY_TIMEOUT_MS", 5000)
    # Namespace the controller resyncs; empty means every namespace.
    namespace: str = os.getenv("MOCS_NAMESPACE", "")
    # One StorageCluster per namespace, always under this name.
    storage_cluster_name: str = os.getenv("MOCS_STORAGE_CLUSTER_NAME", "ocs-storagecluster")
    template_dir: str | None = os.getenv("MOCS_TEMPLATE_DIR")

    # Dispatch
    enable_controller: bool = _env_bool("MOCS_ENABLE_CONTROLLER", True)
    resync_interval_s: int = _env_int("MOCS_RESYNC_INTERVAL_S", 10)
    reconcile_timeout_s: int = _env_int("MOCS_RECONCILE_TIMEOUT_S", 30)
    conflict_retries: int = _env_int("MOCS_CONFLICT_RETRIES", 5)


settings = Settings()
