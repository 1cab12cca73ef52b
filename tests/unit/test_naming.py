"""
Unit tests for snapshot directory naming.

Tests cover:
- Timestamp formatting and the filesystem-safe encoding
- Parsing snapshot names back into class and instant
- Class label normalization
- Recency ordering across classes
"""

from datetime import datetime, timedelta, timezone

import pytest

from vault.jsonvault.snapshot.naming import (
    SnapshotClass,
    decode_timestamp,
    encode_timestamp,
    format_timestamp,
    newest_first,
    normalize_class,
    parse_snapshot_name,
    recency_key,
    snapshot_name,
)

MOMENT = datetime(2026, 10, 19, 20, 31, 5, 123456, tzinfo=timezone.utc)


class TestTimestamps:
    """Tests for timestamp formatting and encoding."""

    def test_format_has_millisecond_precision(self):
        assert format_timestamp(MOMENT) == "2026-10-19T20:31:05.123Z"

    def test_format_converts_to_utc(self):
        """Aware non-UTC instants are rendered in UTC."""
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2026, 10, 19, 22, 31, 5, 123000, tzinfo=plus_two)

        assert format_timestamp(local) == "2026-10-19T20:31:05.123Z"

    def test_format_treats_naive_as_utc(self):
        assert format_timestamp(datetime(2026, 1, 2, 3, 4, 5)) == "2026-01-02T03:04:05.000Z"

    def test_encode_replaces_colons_and_dots(self):
        assert encode_timestamp("2026-10-19T20:31:05.123Z") == "2026-10-19T20-31-05-123Z"

    def test_decode_inverts_encode(self):
        iso = format_timestamp(MOMENT)
        assert decode_timestamp(encode_timestamp(iso)) == iso

    @pytest.mark.parametrize("bad", ["", "2026-10-19", "2026-10-19T20:31:05.123Z", "latest"])
    def test_decode_rejects_garbage(self, bad):
        with pytest.raises(ValueError):
            decode_timestamp(bad)


class TestSnapshotNames:
    """Tests for building and parsing snapshot directory names."""

    def test_snapshot_name(self):
        assert snapshot_name("daily", MOMENT) == "daily_2026-10-19T20-31-05-123Z"

    def test_parse_round_trip(self):
        parsed = parse_snapshot_name(snapshot_name("weekly", MOMENT))

        assert parsed.snapshot_class == "weekly"
        assert parsed.encoded == "2026-10-19T20-31-05-123Z"
        assert parsed.timestamp == MOMENT.replace(microsecond=123000)
        assert str(parsed) == "weekly_2026-10-19T20-31-05-123Z"

    def test_parse_custom_class(self):
        parsed = parse_snapshot_name("pre-import_2026-10-19T20-31-05-123Z")
        assert parsed.snapshot_class == "pre-import"

    @pytest.mark.parametrize(
        "name",
        ["manifest.json", "hourly", "hourly_", "Hourly_2026-10-19T20-31-05-123Z", "hourly_junk"],
    )
    def test_parse_rejects_non_snapshot_names(self, name):
        with pytest.raises(ValueError):
            parse_snapshot_name(name)


class TestNormalizeClass:
    """Tests for class label normalization."""

    def test_none_defaults_to_hourly(self):
        assert normalize_class(None) == "hourly"

    def test_empty_defaults_to_hourly(self):
        assert normalize_class("") == "hourly"

    def test_enum_member(self):
        assert normalize_class(SnapshotClass.WEEKLY) == "weekly"

    def test_known_label_kept(self):
        assert normalize_class("daily") == "daily"

    def test_unknown_wellformed_label_kept(self):
        assert normalize_class("monthly") == "monthly"

    @pytest.mark.parametrize("label", ["bad_label", "../etc", "a/b", "UPPER"])
    def test_unusable_label_falls_back(self, label):
        assert normalize_class(label) == "hourly"


class TestRecency:
    """Tests for recency ordering."""

    def test_orders_by_timestamp_across_classes(self):
        """Ordering ignores the class prefix."""
        older = snapshot_name("weekly", MOMENT)
        newer = snapshot_name("daily", MOMENT + timedelta(minutes=1))
        newest = snapshot_name("hourly", MOMENT + timedelta(minutes=2))

        assert newest_first([older, newest, newer]) == [newest, newer, older]

    def test_unparseable_names_sort_oldest(self):
        real = snapshot_name("hourly", MOMENT)

        assert recency_key("stray-file") < recency_key(real)
        assert newest_first(["stray-file", real]) == [real, "stray-file"]

    def test_order_is_deterministic(self):
        names = [snapshot_name("hourly", MOMENT + timedelta(seconds=i)) for i in range(10)]
        shuffled = names[5:] + names[:5]

        assert newest_first(shuffled) == list(reversed(names))
        assert newest_first(shuffled) == newest_first(list(reversed(shuffled)))
