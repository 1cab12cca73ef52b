"""Test helpers shared by unit and integration tests."""

import json
from datetime import datetime, timedelta, timezone


class StepClock:
    """Clock that advances by a fixed step on every call."""

    def __init__(self, start=None, step=timedelta(minutes=1)):
        self.current = start or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        value = self.current
        self.current += self.step
        return value


def encode(records):
    """Serialize records the way the engine stores live files."""
    return json.dumps(records, indent=2, ensure_ascii=False).encode("utf-8")


def write_records(storage, registry, collection, records):
    storage.write_bytes(registry.path_for(collection), encode(records))


def read_records(storage, registry, collection):
    return json.loads(storage.read_bytes(registry.path_for(collection)).decode("utf-8"))
