from __future__ import annotations

from .errors import OwnershipError
from .resources import OwnerReference, Resource


def _group(api_version: str) -> str:
    return api_version.split("/", 1)[0] if "/" in api_version else ""


def _same_owner(ref: OwnerReference, other: OwnerReference) -> bool:
    return _group(ref.api_version) == _group(other.api_version) and ref.kind == other.kind and ref.name == other.name


def controller_of(obj: Resource) -> OwnerReference | None:
    for ref in obj.metadata.owner_references:
        if ref.controller:
            return ref
    return None


def set_controller_reference(owner: Resource, obj: Resource) -> None:
    """Make ``owner`` the managing controller of ``obj``.

    Owner and object must share a namespace and ``obj`` may not already be
    controlled by someone else. Re-stamping the same owner is a no-op.
    """
    if owner.metadata.namespace != obj.metadata.namespace:
        raise OwnershipError(
            f"cross-namespace owner references are disallowed: owner {owner.kind} '{owner.key}', "
            f"object {obj.kind} '{obj.key}'"
        )
    if not owner.metadata.uid:
        raise OwnershipError(f"owner {owner.kind} '{owner.key}' has no uid; it must be persisted first")

    ref = OwnerReference(
        api_version=owner.api_version,
        kind=owner.kind,
        name=owner.metadata.name,
        uid=owner.metadata.uid,
    )

    existing = controller_of(obj)
    if existing is not None and not _same_owner(existing, ref):
        raise OwnershipError(
            f"{obj.kind} '{obj.key}' is already controlled by {existing.kind} '{existing.name}'"
        )

    refs = obj.metadata.owner_references
    for i, current in enumerate(refs):
        if _same_owner(current, ref):
            if current != ref:
                refs[i] = ref
            return
    refs.append(ref)
