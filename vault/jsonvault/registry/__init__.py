"""
Collection registry for JSONVault.

The single shared vocabulary of logical collection names. Every other
component, and the administrative import/export flow, refers to live
files only through this registry.

Invariants:
    - The registry is closed: no runtime registration
    - Lookups have no side effects
"""

from .collections import DEFAULT_COLLECTIONS, CollectionRegistry, UnknownCollectionError

__all__ = ["CollectionRegistry", "UnknownCollectionError", "DEFAULT_COLLECTIONS"]
