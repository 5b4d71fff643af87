#!/usr/bin/env python3
"""
Tests for pipeline evaluation and generator dispatch.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from datetime import datetime
from unittest.mock import patch

from qicmd.converters import ConverterRegistry
from qicmd.pipeline import PipelineEvaluator, split_steps
from qicmd.generators import GeneratorDispatcher, unknown_function


@pytest.fixture
def evaluator():
    return PipelineEvaluator()


@pytest.fixture
def generators(evaluator):
    return GeneratorDispatcher(evaluator)


class TestSplitSteps:
    """Test pipeline step splitting."""

    def test_split(self):
        assert split_steps("Number.Abs => Number.Neg") == ["Number.Abs", "Number.Neg"]

    def test_blank_steps_dropped(self):
        assert split_steps(" a => => b ") == ["a", "b"]

    def test_empty(self):
        assert split_steps(None) == []
        assert split_steps("") == []


class TestPipelineEvaluator:
    """Test step-by-step conversion."""

    def test_unknown_step_stops_chain(self, evaluator):
        assert evaluator.evaluate("Number", "5", "Foo") == "5"

    def test_steps_after_unknown_are_skipped(self, evaluator):
        result = evaluator.run("String", "abc", "String.Upper => Bogus => String.Lower")
        assert result.text == "ABC"
        assert not result.completed
        assert result.stopped_at == "Bogus"

    def test_date_to_time(self, evaluator):
        result = evaluator.run("Date", "2024-01-01 15:06:32", "Time")
        assert result.text == "15h6m32s"
        assert result.value.type_name == "Time"

    def test_date_time_then_minutes(self, evaluator):
        assert evaluator.evaluate("Date", "2024-01-01 15:06:32", "Time => Time.Min") == "907"

    def test_time_step_after_date_is_exact(self, evaluator):
        """Only the exact spelling 'Time' triggers the time-of-day extraction."""
        result = evaluator.run("Date", "2024-01-01 15:06:32", "time")
        assert result.text == "2024-01-01 15:06:32"
        assert result.value.type_name == "Time"

    def test_chained_operations(self, evaluator):
        assert evaluator.evaluate("Number", "-5", "Number.Abs => Number.Neg") == "-5"

    def test_operation_sets_type_before_dot(self, evaluator):
        result = evaluator.run("Time", "1m", "Time.Number")
        assert result.text == "60"
        assert result.value.type_name == "Time"

    def test_type_step_changes_type(self, evaluator):
        result = evaluator.run("Number", "3600", "Time")
        assert result.text == "1h"
        assert result.value.type_name == "Time"

    def test_keys_ignore_case(self, evaluator):
        assert evaluator.evaluate("number", "-3", "number.abs") == "3"

    def test_failed_converter_stops_chain(self, evaluator):
        result = evaluator.run("Boolean", "maybe", "Boolean.Not => String.Upper")
        assert result.text == "maybe"
        assert not result.completed
        assert result.stopped_at == "Boolean.Not"

    def test_raising_converter_stops_chain(self):
        registry = ConverterRegistry.build()
        evaluator = PipelineEvaluator(registry)
        with patch.object(registry, 'convert', side_effect=OverflowError("too large")):
            result = evaluator.run("Number", "5", "Number.Abs => Number.Neg")
            default = evaluator.run("Number", "5")
        assert result.text == "5"
        assert not result.completed
        assert result.stopped_at == "Number.Abs"
        assert default.text == "5"

    def test_overflowing_round_keeps_value(self, evaluator):
        assert evaluator.evaluate("Number", "1e999", "Number.Round") == "1e999"

    def test_arrows_without_steps_keep_seed(self, evaluator):
        assert evaluator.evaluate("Time", "90", "=>") == "90"
        assert evaluator.evaluate("Time", "90", " => ") == "90"

    def test_no_pipeline_applies_default(self, evaluator):
        assert evaluator.evaluate("Time", "3600") == "1h"
        assert evaluator.evaluate("Date", "2024-01-05 09:03:07", "") == "2024/01/05 09:03:07"

    def test_no_pipeline_unknown_type(self, evaluator):
        assert evaluator.evaluate("Foo", "bar") == "bar"

    def test_completed_run(self, evaluator):
        result = evaluator.run("String", "hi", "String.Upper")
        assert result.completed
        assert result.stopped_at is None


class TestGeneratorDispatcher:
    """Test @-sigil generator calls."""

    CLOCK = datetime(2024, 1, 5, 9, 3, 7)

    def test_gettime(self, generators):
        with patch('qicmd.generators._now', return_value=self.CLOCK):
            assert generators.dispatch("gettime(Now)") == "9h3m7s"

    def test_getdate(self, generators):
        with patch('qicmd.generators._now', return_value=self.CLOCK):
            assert generators.dispatch("getdate(now)") == "2024/1/5 9:3:7"

    def test_names_ignore_case(self, generators):
        with patch('qicmd.generators._now', return_value=self.CLOCK):
            assert generators.dispatch("GetTime(Now)") == "9h3m7s"

    def test_ifeo(self, generators):
        expected = (
            'reg add "HKLM\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion\\'
            'Image File Execution Options\\notepad.exe" '
            '/v Debugger /t REG_SZ /d "debug.exe" /f'
        )
        assert generators.dispatch("ifeo(notepad.exe, debug.exe)") == expected

    def test_unknown_generator(self, generators):
        assert generators.dispatch("foo(1)") == "[Error: Unknown function 'foo']"
        assert unknown_function("bar") == "[Error: Unknown function 'bar']"

    def test_wrong_arguments(self, generators):
        assert generators.dispatch("gettime(Later)") == "[Error: Unknown function 'gettime']"
        assert generators.dispatch("ifeo(only-one)") == "[Error: Unknown function 'ifeo']"

    def test_not_a_call(self, generators):
        assert generators.dispatch("hello") == "hello"

    def test_pipeline_after_generator(self, generators):
        clock = datetime(2024, 1, 5, 15, 6, 32)
        with patch('qicmd.generators._now', return_value=clock):
            assert generators.dispatch("gettime(Now)", "Time.Sec") == "54392"
            assert generators.dispatch("getdate(Now)", "Date") == "2024/01/05 15:06:32"
