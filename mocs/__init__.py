"""ManagedOCS reconciler.

Keeps a StorageCluster in every namespace that holds a ManagedOCS:
 - derives the StorageCluster spec from a template (Strict) or leaves it alone (Unmanaged)
 - owns the StorageCluster so it goes away with its ManagedOCS
 - reports readiness from the StorageCluster phase on /readyz
"""
