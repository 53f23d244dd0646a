from __future__ import annotations

import json
import sqlite3
import uuid
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, TypeVar

from . import db
from .errors import Conflict, NotFound, ReconcileError, TransientStoreError
from .resources import NamespacedName, Resource, to_json
from .runtime import Context
from .settings import settings

R = TypeVar("R", bound=Resource)


class OperationResult(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class ResourceStore:
    """Namespaced resource storage with optimistic concurrency.

    Writes carry ``metadata.resourceVersion``; a stale version raises
    ``Conflict``. ``update`` never touches status and ``update_status``
    touches nothing else.
    """

    def __init__(self, conflict_retries: int | None = None):
        retries = settings.conflict_retries if conflict_retries is None else conflict_retries
        self.conflict_retries = max(1, int(retries))

    def get(self, ctx: Context, cls: type[R], key: NamespacedName) -> R:
        raise NotImplementedError

    def list(self, ctx: Context, cls: type[R], namespace: str | None = None) -> list[R]:
        raise NotImplementedError

    def create(self, ctx: Context, obj: R) -> R:
        raise NotImplementedError

    def update(self, ctx: Context, obj: R) -> R:
        raise NotImplementedError

    def update_status(self, ctx: Context, obj: R) -> R:
        raise NotImplementedError

    def delete(self, ctx: Context, cls: type[Resource], key: NamespacedName) -> None:
        raise NotImplementedError

    def create_or_update(self, ctx: Context, obj: R, mutate: Callable[[R], None]) -> tuple[R, OperationResult]:
        """Fetch ``obj`` by key, apply ``mutate`` and write it back.

        Creates when absent, updates only when ``mutate`` changed something.
        A conflicting write restarts the fetch-mutate-write cycle; the
        ``Conflict`` escapes once every attempt has collided.
        """
        cls = type(obj)
        key = obj.key
        last: Conflict | None = None
        for _ in range(self.conflict_retries):
            ctx.check()
            try:
                current = self.get(ctx, cls, key)
            except NotFound:
                desired = obj.model_copy(deep=True)
                mutate(desired)
                _ensure_same_key(desired, key)
                try:
                    return self.create(ctx, desired), OperationResult.CREATED
                except Conflict as e:
                    last = e
                    continue

            desired = current.model_copy(deep=True)
            mutate(desired)
            _ensure_same_key(desired, key)
            if desired == current:
                return current, OperationResult.UNCHANGED
            try:
                return self.update(ctx, desired), OperationResult.UPDATED
            except Conflict as e:
                last = e
        raise Conflict(f"{cls.kind} '{key}': gave up after {self.conflict_retries} conflicting writes ({last})")


def _ensure_same_key(obj: Resource, key: NamespacedName) -> None:
    if obj.key != key:
        raise ReconcileError(f"mutate changed object key from '{key}' to '{obj.key}'")


class SqliteResourceStore(ResourceStore):
    """Default store: resources kept as JSON rows next to the event journal."""

    def __init__(self, path: str | None = None, conflict_retries: int | None = None):
        super().__init__(conflict_retries)
        self.path = path

    @contextmanager
    def _conn(self, ctx: Context) -> Iterator[sqlite3.Connection]:
        ctx.check()
        try:
            with db.connect(self.path) as conn:
                yield conn
        except sqlite3.OperationalError as e:
            raise TransientStoreError(f"store unavailable: {e}") from e

    @staticmethod
    def _load(cls: type[R], row: sqlite3.Row) -> R:
        obj = cls.model_validate(json.loads(row["body"]))
        obj.metadata.uid = row["uid"]
        obj.metadata.resource_version = row["resource_version"]
        return obj

    def get(self, ctx: Context, cls: type[R], key: NamespacedName) -> R:
        with self._conn(ctx) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE kind=? AND namespace=? AND name=?",
                (cls.kind, key.namespace, key.name),
            ).fetchone()
        if row is None:
            raise NotFound(cls.kind, key.namespace, key.name)
        return self._load(cls, row)

    def list(self, ctx: Context, cls: type[R], namespace: str | None = None) -> list[R]:
        with self._conn(ctx) as conn:
            if namespace:
                rows = conn.execute(
                    "SELECT * FROM resources WHERE kind=? AND namespace=? ORDER BY name",
                    (cls.kind, namespace),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM resources WHERE kind=? ORDER BY namespace, name",
                    (cls.kind,),
                ).fetchall()
        return [self._load(cls, r) for r in rows]

    def create(self, ctx: Context, obj: R) -> R:
        created = obj.model_copy(deep=True)
        created.metadata.uid = created.metadata.uid or str(uuid.uuid4())
        created.metadata.resource_version = 1
        now = db.utc_now()
        with self._conn(ctx) as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO resources (kind, namespace, name, uid, resource_version, body, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        obj.kind,
                        created.metadata.namespace,
                        created.metadata.name,
                        created.metadata.uid,
                        1,
                        json.dumps(to_json(created)),
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise Conflict(f"{obj.kind} '{obj.key}' already exists") from e
        return created

    def _write(self, ctx: Context, obj: R, status_only: bool) -> R:
        cls = type(obj)
        key = obj.key
        with self._conn(ctx) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE kind=? AND namespace=? AND name=?",
                (cls.kind, key.namespace, key.name),
            ).fetchone()
            if row is None:
                raise NotFound(cls.kind, key.namespace, key.name)
            if row["resource_version"] != obj.metadata.resource_version:
                raise Conflict(
                    f"{cls.kind} '{key}' was modified: have version {obj.metadata.resource_version}, "
                    f"store has {row['resource_version']}"
                )

            stored = self._load(cls, row)
            if status_only:
                merged = stored.model_copy(update={"status": obj.status.model_copy(deep=True)})
            else:
                merged = obj.model_copy(update={"status": stored.status}, deep=True)
            merged.metadata.uid = row["uid"]
            merged.metadata.resource_version = row["resource_version"] + 1

            cur = conn.execute(
                """
                UPDATE resources SET body=?, resource_version=?, updated_at=?
                WHERE id=? AND resource_version=?
                """,
                (
                    json.dumps(to_json(merged)),
                    merged.metadata.resource_version,
                    db.utc_now(),
                    row["id"],
                    row["resource_version"],
                ),
            )
            if cur.rowcount == 0:
                raise Conflict(f"{cls.kind} '{key}' was modified concurrently")
        return merged

    def update(self, ctx: Context, obj: R) -> R:
        return self._write(ctx, obj, status_only=False)

    def update_status(self, ctx: Context, obj: R) -> R:
        return self._write(ctx, obj, status_only=True)

    def delete(self, ctx: Context, cls: type[Resource], key: NamespacedName) -> None:
        """Delete a resource and, recursively, everything it owns."""
        with self._conn(ctx) as conn:
            row = conn.execute(
                "SELECT id, uid FROM resources WHERE kind=? AND namespace=? AND name=?",
                (cls.kind, key.namespace, key.name),
            ).fetchone()
            if row is None:
                raise NotFound(cls.kind, key.namespace, key.name)

            doomed = [row["uid"]]
            conn.execute("DELETE FROM resources WHERE id=?", (row["id"],))
            while doomed:
                owner_uid = doomed.pop()
                for dep in conn.execute("SELECT id, uid, body FROM resources").fetchall():
                    refs = json.loads(dep["body"]).get("metadata", {}).get("ownerReferences", [])
                    if any(r.get("uid") == owner_uid for r in refs):
                        conn.execute("DELETE FROM resources WHERE id=?", (dep["id"],))
                        doomed.append(dep["uid"])
