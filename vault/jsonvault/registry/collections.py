"""
Collection registry for JSONVault.

The registry is the closed vocabulary of logical collection names shared by
the snapshot writer, restorer, auditor and the bulk import/export flow.

Invariants:
    - The set of names is fixed at construction and never grows at runtime
    - Iteration order is fixed, so manifests are reproducible
    - Every path is absolute

How to change safely:
    - Adding a collection is a code change to DEFAULT_COLLECTIONS
    - Never rename a logical name: existing manifests are keyed by it
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

# Logical name -> file name inside the data directory
DEFAULT_COLLECTIONS: Mapping[str, str] = MappingProxyType(
    {
        "customers": "customers.json",
        "quotes": "quotes.json",
        "dealers": "dealers.json",
        "pricing": "pricing-tiers.json",
        "users": "users.json",
    }
)


class UnknownCollectionError(KeyError):
    """Raised when a logical collection name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown collection: {self.name!r}"


class CollectionRegistry:
    """Static mapping from logical collection name to live file path.

    Example:
        >>> registry = CollectionRegistry.for_data_dir("/var/lib/jsonvault")
        >>> registry.path_for("pricing")
        PosixPath('/var/lib/jsonvault/pricing-tiers.json')
        >>> "orders" in registry
        False
    """

    def __init__(self, collections: Mapping[str, Path | str]) -> None:
        """Initialize the registry.

        Args:
            collections: Logical name -> absolute file path

        Raises:
            ValueError: If a path is not absolute or a name is empty
        """
        paths: dict[str, Path] = {}
        for name, path in collections.items():
            if not name:
                raise ValueError("Collection name must not be empty")
            path = Path(path)
            if not path.is_absolute():
                raise ValueError(f"Collection path must be absolute: {name} -> {path}")
            paths[name] = path
        self._paths: Mapping[str, Path] = MappingProxyType(paths)

    @classmethod
    def for_data_dir(cls, data_dir: Path | str) -> CollectionRegistry:
        """Build the default registry rooted at a data directory."""
        root = Path(data_dir).expanduser().resolve()
        return cls({name: root / filename for name, filename in DEFAULT_COLLECTIONS.items()})

    def path_for(self, name: str) -> Path:
        """Get the live file path of a collection.

        Raises:
            UnknownCollectionError: If name is not registered
        """
        try:
            return self._paths[name]
        except KeyError:
            raise UnknownCollectionError(name) from None

    def get(self, name: str) -> Path | None:
        return self._paths.get(name)

    def names(self) -> list[str]:
        return list(self._paths)

    def items(self) -> list[tuple[str, Path]]:
        return list(self._paths.items())

    def __contains__(self, name: object) -> bool:
        return name in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"CollectionRegistry({', '.join(self._paths)})"
