"""
Snapshot directory naming.

Snapshot directories are named:
    <class>_<encoded timestamp>

where the timestamp is ISO-8601 UTC with millisecond precision
(2026-10-19T20:31:05.123Z) and the encoding replaces ':' and '.' with '-'
(2026-10-19T20-31-05-123Z). Because every encoded timestamp has the same
width and field order, comparing encoded timestamps as strings compares
the instants they describe.

Invariants:
    - decode_timestamp(encode_timestamp(ts)) == ts for every format_timestamp() output
    - Class labels never contain '_', so the first '_' splits class from timestamp
    - recency_key() orders snapshots by capture time across all classes
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)

NAME_SEPARATOR = "_"

_CLASS_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_ENCODED_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2})-(\d{2})-(\d{2})-(\d{3})Z$")


class SnapshotClass(str, Enum):
    """Known retention classes."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


DEFAULT_CLASS = SnapshotClass.HOURLY.value


@dataclass(frozen=True)
class SnapshotName:
    """A parsed snapshot directory name.

    Attributes:
        snapshot_class: Retention class label
        encoded: Filesystem-safe encoded timestamp
        timestamp: Capture instant (UTC)
    """

    snapshot_class: str
    encoded: str
    timestamp: datetime

    def __str__(self) -> str:
        return f"{self.snapshot_class}{NAME_SEPARATOR}{self.encoded}"


def format_timestamp(moment: datetime) -> str:
    """Format an instant as ISO-8601 UTC with milliseconds and a 'Z' suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def encode_timestamp(iso_timestamp: str) -> str:
    """Make a format_timestamp() string filesystem-safe."""
    return iso_timestamp.replace(":", "-").replace(".", "-")


def decode_timestamp(encoded: str) -> str:
    """Invert encode_timestamp().

    Raises:
        ValueError: If encoded is not an encoded timestamp
    """
    match = _ENCODED_RE.match(encoded)
    if not match:
        raise ValueError(f"Not an encoded snapshot timestamp: {encoded!r}")
    date, hours, minutes, seconds, millis = match.groups()
    return f"{date}T{hours}:{minutes}:{seconds}.{millis}Z"


def parse_timestamp(iso_timestamp: str) -> datetime:
    """Parse a format_timestamp() string back into an aware datetime."""
    return datetime.strptime(iso_timestamp, "%Y-%m-%dT%H:%M:%S.%fZ").replace(
        tzinfo=timezone.utc
    )


def is_valid_class(snapshot_class: str) -> bool:
    return bool(_CLASS_RE.match(snapshot_class))


def normalize_class(snapshot_class: str | SnapshotClass | None) -> str:
    """Resolve a requested class label, falling back to hourly.

    Unspecified or unusable labels (empty, containing '_' or path
    separators) become "hourly". Unknown but well-formed labels are kept
    and get the default retention.
    """
    if isinstance(snapshot_class, SnapshotClass):
        return snapshot_class.value
    if not snapshot_class:
        return DEFAULT_CLASS
    if not is_valid_class(snapshot_class):
        logger.warning(
            f"Invalid snapshot class {snapshot_class!r}, using {DEFAULT_CLASS!r}",
        )
        return DEFAULT_CLASS
    return snapshot_class


def snapshot_name(snapshot_class: str, moment: datetime) -> str:
    """Build the directory name for a snapshot captured at moment."""
    return f"{snapshot_class}{NAME_SEPARATOR}{encode_timestamp(format_timestamp(moment))}"


def parse_snapshot_name(name: str) -> SnapshotName:
    """Split a snapshot directory name into its class and timestamp.

    Raises:
        ValueError: If name is not a snapshot directory name
    """
    snapshot_class, sep, encoded = name.partition(NAME_SEPARATOR)
    if not sep or not is_valid_class(snapshot_class):
        raise ValueError(f"Not a snapshot name: {name!r}")
    iso_timestamp = decode_timestamp(encoded)
    return SnapshotName(
        snapshot_class=snapshot_class,
        encoded=encoded,
        timestamp=parse_timestamp(iso_timestamp),
    )


def class_prefix(snapshot_class: str) -> str:
    return f"{snapshot_class}{NAME_SEPARATOR}"


def recency_key(name: str) -> tuple[str, str]:
    """Sort key ordering snapshot names by capture time.

    Names that do not parse sort before every real snapshot (i.e. as oldest).
    """
    try:
        return (parse_snapshot_name(name).encoded, name)
    except ValueError:
        return ("", name)


def newest_first(names: list[str]) -> list[str]:
    """Sort snapshot names newest first."""
    return sorted(names, key=recency_key, reverse=True)
