"""Tests for the timezoneinfo library."""

import pytest

from tzdecode import timezoneinfo
from tzdecode.tz_rule import DstRule, MonthBased, StdRule


def test_invalid_zoneinfo() -> None:
    """Verify exception handling for an invalid timezone."""
    with pytest.raises(timezoneinfo.TimezoneInfoError, match="Unable to find timezone"):
        timezoneinfo.read("invalid")


def test_read_timezones() -> None:
    """Test the set of known timezones includes the tzdata package."""
    timezones = timezoneinfo.read_timezones()
    assert "America/Los_Angeles" in timezones
    assert "Asia/Tokyo" in timezones


def test_read_bytes() -> None:
    """Test reading the raw file contents for a timezone."""
    content = timezoneinfo.read_bytes("America/Los_Angeles")
    assert content.startswith(b"TZif")


def test_tzif() -> None:
    """Test decoding a timezone with daylight savings time."""
    result = timezoneinfo.read("America/Los_Angeles")
    assert result.version >= 2
    assert len(result.data.transitions) > 0
    assert len(result.data.transitions) == len(result.data.transition_types)
    assert "PST" in result.data.designations.values()
    assert "PDT" in result.data.designations.values()
    assert result.footer == "PST8PDT,M3.2.0,M11.1.0"


def test_read_rule() -> None:
    """Test decoding the footer of a timezone with daylight savings time."""
    rule = timezoneinfo.read_rule("America/Los_Angeles")
    assert rule
    assert rule.std == StdRule(abbr="PST", utc_offset=28800)
    assert rule.dst == DstRule(
        abbr="PDT",
        utc_offset=28800,
        std_offset=3600,
        start=MonthBased(month=3, week=2, day=0, midnight_offset=7200),
        end=MonthBased(month=11, week=1, day=0, midnight_offset=7200),
    )


def test_read_rule_fixed_offset() -> None:
    """Test decoding the footer of a timezone without daylight savings time."""
    rule = timezoneinfo.read_rule("Asia/Tokyo")
    assert rule
    assert rule.std == StdRule(abbr="JST", utc_offset=-32400)
    assert rule.dst is None


def test_read_rule_invalid() -> None:
    """Test reading a rule for an unknown timezone."""
    with pytest.raises(timezoneinfo.TimezoneInfoError, match="Unable to find timezone"):
        timezoneinfo.read_rule("Invalid/Zone")
