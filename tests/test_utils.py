"""
Tests for endurance MCP formatting helpers.
"""

from endurance_mcp.utils import format_distance, format_duration, format_pace


class TestFormatDuration:
    def test_hours(self):
        assert format_duration(3661) == "1h01m01s"

    def test_minutes(self):
        assert format_duration(1530) == "25m30s"

    def test_seconds(self):
        assert format_duration(45) == "45s"

    def test_zero(self):
        assert format_duration(0) == "0s"

    def test_float_seconds(self):
        assert format_duration(90.7) == "1m30s"


class TestFormatPace:
    def test_pace(self):
        assert format_pace(270) == "4:30/km"

    def test_single_digit_seconds(self):
        assert format_pace(245) == "4:05/km"

    def test_missing(self):
        assert format_pace(None) is None


class TestFormatDistance:
    def test_kilometers(self):
        assert format_distance(10000) == "10.0 km"

    def test_meters(self):
        assert format_distance(800) == "800 m"

    def test_zero(self):
        assert format_distance(0) == "0 m"
