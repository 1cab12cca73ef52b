"""
Unit tests for the collection registry.

Tests cover:
- Default collections and their file names
- Lookup of known and unknown names
- Construction validation
"""

from pathlib import Path

import pytest

from vault.jsonvault.registry import DEFAULT_COLLECTIONS, CollectionRegistry, UnknownCollectionError


class TestCollectionRegistry:
    """Tests for CollectionRegistry."""

    @pytest.fixture
    def registry(self):
        return CollectionRegistry.for_data_dir("/srv/app/data")

    def test_default_collections(self, registry):
        assert registry.names() == ["customers", "quotes", "dealers", "pricing", "users"]
        assert len(registry) == len(DEFAULT_COLLECTIONS)

    def test_logical_name_differs_from_file_name(self, registry):
        assert registry.path_for("pricing") == Path("/srv/app/data/pricing-tiers.json")

    def test_path_for_unknown_raises(self, registry):
        with pytest.raises(UnknownCollectionError) as exc_info:
            registry.path_for("orders")

        assert exc_info.value.name == "orders"
        assert "orders" in str(exc_info.value)

    def test_unknown_collection_is_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.path_for("orders")

    def test_get_returns_none_for_unknown(self, registry):
        assert registry.get("orders") is None
        assert registry.get("users") == Path("/srv/app/data/users.json")

    def test_contains_and_iteration(self, registry):
        assert "quotes" in registry
        assert "orders" not in registry
        assert list(registry) == registry.names()

    def test_items_are_absolute(self, registry):
        assert all(path.is_absolute() for _, path in registry.items())

    def test_relative_data_dir_resolved(self):
        registry = CollectionRegistry.for_data_dir("relative/data")
        assert registry.path_for("users").is_absolute()

    def test_custom_collections(self):
        registry = CollectionRegistry({"orders": "/data/orders.json"})
        assert registry.names() == ["orders"]
        assert registry.path_for("orders") == Path("/data/orders.json")

    def test_rejects_relative_paths(self):
        with pytest.raises(ValueError):
            CollectionRegistry({"orders": "orders.json"})

    def test_rejects_empty_names(self):
        with pytest.raises(ValueError):
            CollectionRegistry({"": "/data/orders.json"})
