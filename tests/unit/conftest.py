"""
Shared fixtures for unit tests.

Every unit test runs against InMemoryStorage rooted at /data with a
deterministic clock, so snapshot names are predictable and distinct.
"""

from pathlib import Path

import pytest

from tests.helpers import StepClock
from vault.jsonvault.registry import CollectionRegistry
from vault.jsonvault.storage import InMemoryStorage

DATA_DIR = Path("/data")
BACKUP_ROOT = DATA_DIR / "backups"


@pytest.fixture
def storage():
    """Create fresh in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def registry():
    """Create the default registry rooted at /data."""
    return CollectionRegistry.for_data_dir(DATA_DIR)


@pytest.fixture
def clock():
    """Create a clock ticking one minute per call."""
    return StepClock()


@pytest.fixture
def backup_root():
    return BACKUP_ROOT
