from __future__ import annotations


class ReconcileError(Exception):
    """Base class for everything a reconcile pass can fail with."""


class NotFound(ReconcileError):
    def __init__(self, kind: str, namespace: str, name: str):
        super().__init__(f"{kind} '{namespace}/{name}' not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class Conflict(ReconcileError):
    """Optimistic-concurrency mismatch on write."""


class TemplateError(ReconcileError):
    """A desired-state template is missing or malformed."""


class OwnershipError(ReconcileError):
    """An owner reference cannot be set on the object."""


class TransientStoreError(ReconcileError):
    """The store could not be reached; retry later."""


class Cancelled(ReconcileError):
    """The pass context was cancelled or its deadline passed."""
