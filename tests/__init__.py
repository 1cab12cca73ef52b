"""
JSONVault Test Suite.

This package contains:
- unit/: Unit tests (in-memory storage, manual timers)
- integration/: Integration tests (local filesystem, admin CLI, engine)
"""
