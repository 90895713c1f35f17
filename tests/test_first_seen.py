"""
Tests for the first-seen tag store.
"""

from datetime import datetime, timezone

import pytest

from cloudsweep.core.exceptions import TagParseError
from cloudsweep.core.first_seen import (
    FIRST_SEEN_TAG_KEY,
    FirstSeenTracker,
    format_timestamp,
    parse_timestamp,
)
from cloudsweep.core.models import RunConfig, SystemClock


class TestTimestamps:
    """Tests for timestamp formatting and parsing."""

    def test_format_is_rfc3339_utc(self):
        """Test the tag value format."""
        moment = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2024-01-15T10:30:00Z"

    def test_format_drops_subseconds(self):
        """Test that fractional seconds are not written."""
        moment = datetime(2024, 1, 15, 10, 30, 0, 999999, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2024-01-15T10:30:00Z"

    def test_parse_rfc3339(self):
        """Test parsing the current format."""
        parsed = parse_timestamp("2024-01-15T10:30:00Z")
        assert parsed == datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

    def test_parse_offset(self):
        """Test parsing an RFC 3339 value with a numeric offset."""
        parsed = parse_timestamp("2024-01-15T12:30:00+02:00")
        assert parsed == datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

    def test_parse_legacy_format(self):
        """Test parsing the legacy format as UTC."""
        parsed = parse_timestamp("2024-01-15 10:30:00")
        assert parsed == datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["not-a-date", "", "2024-13-45T00:00:00Z", None])
    def test_parse_malformed(self, value):
        """Test that malformed values raise TagParseError."""
        with pytest.raises(TagParseError):
            parse_timestamp(value, resource_id="sg-123")


class TestFirstSeenTracker:
    """Tests for FirstSeenTracker."""

    def test_existing_tag_is_returned(self, run_config, make_candidate):
        """Test that an existing tag is read and never rewritten."""
        writes = []
        tracker = FirstSeenTracker(lambda *args: writes.append(args), run_config)
        candidate = make_candidate("sg-1", tags={FIRST_SEEN_TAG_KEY: "2023-06-01T00:00:00Z"})

        first_seen = tracker.ensure_first_seen(candidate)

        assert first_seen == datetime(2023, 6, 1, tzinfo=timezone.utc)
        assert writes == []

    def test_existing_legacy_tag(self, run_config, make_candidate):
        """Test that a legacy tag value is accepted."""
        tracker = FirstSeenTracker(None, run_config)
        candidate = make_candidate("sg-1", tags={FIRST_SEEN_TAG_KEY: "2023-06-01 08:00:00"})

        assert tracker.ensure_first_seen(candidate) == datetime(
            2023, 6, 1, 8, 0, 0, tzinfo=timezone.utc
        )

    def test_malformed_tag_raises(self, run_config, make_candidate):
        """Test that a malformed tag raises TagParseError."""
        tracker = FirstSeenTracker(None, run_config)
        candidate = make_candidate("sg-1", tags={FIRST_SEEN_TAG_KEY: "yesterday"})

        with pytest.raises(TagParseError) as exc_info:
            tracker.ensure_first_seen(candidate)
        assert exc_info.value.resource_id == "sg-1"

    def test_absent_tag_is_written(self, run_config, fake_clock, make_candidate):
        """Test that the current time is written and returned."""
        writes = []
        tracker = FirstSeenTracker(lambda *args: writes.append(args), run_config)

        first_seen = tracker.ensure_first_seen(make_candidate("sg-1"))

        assert first_seen == fake_clock.now()
        assert writes == [("sg-1", FIRST_SEEN_TAG_KEY, "2024-01-15T10:30:00Z")]

    def test_returned_time_within_call_window(self, make_candidate):
        """Test the returned time with the real clock."""
        tracker = FirstSeenTracker(lambda *args: None, RunConfig(clock=SystemClock()))

        before = datetime.now(timezone.utc)
        first_seen = tracker.ensure_first_seen(make_candidate("sg-1"))
        after = datetime.now(timezone.utc)

        assert before <= first_seen <= after

    def test_disabled_tagging_returns_now(self, fake_clock, make_candidate):
        """Test that disabled tagging skips the write but still returns now."""
        writes = []
        run_config = RunConfig(exclude_first_seen_tag=True, clock=fake_clock)
        tracker = FirstSeenTracker(lambda *args: writes.append(args), run_config)

        assert not tracker.tagging_enabled
        assert tracker.ensure_first_seen(make_candidate("sg-1")) == fake_clock.now()
        assert writes == []

    def test_untaggable_type_returns_now(self, run_config, fake_clock, make_candidate):
        """Test a resource type without a tag writer."""
        tracker = FirstSeenTracker(None, run_config)

        assert not tracker.tagging_enabled
        assert tracker.ensure_first_seen(make_candidate("sg-1")) == fake_clock.now()

    def test_write_failure_is_not_fatal(self, run_config, fake_clock, make_candidate, caplog):
        """Test that a failed write logs a warning and returns now."""

        def failing_writer(identifier, key, value):
            raise RuntimeError("AccessDenied")

        tracker = FirstSeenTracker(failing_writer, run_config)

        with caplog.at_level("WARNING"):
            first_seen = tracker.ensure_first_seen(make_candidate("sg-1"))

        assert first_seen == fake_clock.now()
        assert "Failed to write first-seen tag" in caplog.text
