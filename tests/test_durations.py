#!/usr/bin/env python3
"""
Tests for the duration codec.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from qicmd.durations import (
    parse_duration_seconds, format_duration_seconds, format_time_of_day,
    is_duration_literal, matches_time_pattern,
)


class TestParseDuration:
    """Test conversion of duration literals to seconds."""

    def test_compound_literal(self):
        assert parse_duration_seconds("2d3h") == 183600
        assert parse_duration_seconds("1h20m30s") == 4830

    def test_bare_integer_is_seconds(self):
        assert parse_duration_seconds("90") == 90
        assert parse_duration_seconds("-5") == -5

    def test_units_are_case_insensitive(self):
        assert parse_duration_seconds("1H30M") == 5400
        assert parse_duration_seconds("2D") == 172800

    def test_unrecognised_text_is_ignored(self):
        """Characters outside <int><unit> groups do not stop the scan."""
        assert parse_duration_seconds("1h and 30m") == 5400
        assert parse_duration_seconds("abc") == 0

    def test_repeated_units_are_summed(self):
        assert parse_duration_seconds("1m1m") == 120


class TestFormatDuration:
    """Test rendering of seconds as duration literals."""

    def test_zero(self):
        assert format_duration_seconds(0) == "0s"

    def test_components(self):
        assert format_duration_seconds(183600) == "2d3h"
        assert format_duration_seconds(4830) == "1h20m30s"
        assert format_duration_seconds(86400) == "1d"
        assert format_duration_seconds(59) == "59s"

    def test_sign_is_dropped(self):
        assert format_duration_seconds(-90) == "1m30s"

    @pytest.mark.parametrize("literal", ["1h20m30s", "2d3h", "45s", "1d1s", "3m"])
    def test_canonical_forms_round_trip(self, literal):
        assert format_duration_seconds(parse_duration_seconds(literal)) == literal

    def test_time_of_day(self):
        assert format_time_of_day(15, 6, 32) == "15h6m32s"
        assert format_time_of_day(0, 0, 0) == "0s"
        assert format_time_of_day(9, 0, 5) == "9h5s"


class TestDurationLiterals:
    """Test recognition of duration-shaped text."""

    def test_literals(self):
        assert is_duration_literal("30")
        assert is_duration_literal("2d3h")
        assert is_duration_literal("5m")
        assert is_duration_literal("-5")

    def test_non_literals(self):
        assert not is_duration_literal("")
        assert not is_duration_literal("abc")
        assert not is_duration_literal("1.5")

    def test_time_pattern_rejects_sign(self):
        assert matches_time_pattern("30")
        assert matches_time_pattern("1H2M")
        assert not matches_time_pattern("-30")
