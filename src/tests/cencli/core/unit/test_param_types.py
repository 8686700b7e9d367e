"""Tests for Click parameter types."""

import datetime

import click
import pytest

from cencli.core.param_types import (
    DURATION,
    ORG_ID,
    TIMESTAMP,
    format_duration,
    parse_duration,
)


@pytest.mark.unit
class TestDurations:
    """Tests for duration parsing and formatting."""

    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("30s", 30.0),
            ("1m30s", 90.0),
            ("500ms", 0.5),
            ("2h", 7200.0),
            ("1.5s", 1.5),
            ("0", 0.0),
        ],
    )
    def test_parse(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "30", "s", "1x", "5s junk"])
    def test_parse_rejects_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    @pytest.mark.parametrize(
        ("seconds", "text"),
        [(0, "0s"), (0.5, "500ms"), (30, "30s"), (90, "1m30s"), (3600, "1h")],
    )
    def test_format(self, seconds, text):
        assert format_duration(seconds) == text

    def test_param_type_rejects_negative(self):
        with pytest.raises(click.BadParameter):
            DURATION.convert("-5s", None, None)


@pytest.mark.unit
class TestUUIDType:
    """Tests for organization and collection IDs."""

    def test_normalizes_case(self):
        value = ORG_ID.convert("A1B2C3D4-0000-0000-0000-000000000001", None, None)

        assert value == "a1b2c3d4-0000-0000-0000-000000000001"

    def test_rejects_non_uuid(self):
        with pytest.raises(click.BadParameter, match="invalid organization ID"):
            ORG_ID.convert("not-a-uuid", None, None)


@pytest.mark.unit
class TestTimestampType:
    """Tests for RFC 3339 timestamps."""

    def test_zulu_suffix(self):
        value = TIMESTAMP.convert("2025-09-15T14:30:00Z", None, None)

        assert value == datetime.datetime(2025, 9, 15, 14, 30, tzinfo=datetime.timezone.utc)

    def test_naive_is_utc(self):
        value = TIMESTAMP.convert("2025-09-15T14:30:00", None, None)

        assert value.tzinfo == datetime.timezone.utc

    def test_offset_is_kept(self):
        value = TIMESTAMP.convert("2025-09-15T14:30:00+02:00", None, None)

        assert value.utcoffset() == datetime.timedelta(hours=2)

    def test_rejects_garbage(self):
        with pytest.raises(click.BadParameter):
            TIMESTAMP.convert("yesterday", None, None)
