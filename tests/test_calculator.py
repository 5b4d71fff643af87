#!/usr/bin/env python3
"""
Tests for the infix arithmetic evaluator.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from qicmd.calculator import (
    calculate, tokenize, to_postfix, evaluate_postfix, apply_operator,
    CalculatorError, ExpressionSyntaxError, ExpressionDomainError,
    DivisionByZeroError,
)


class TestTokenizer:
    """Test expression tokenization."""

    def test_tokens(self):
        assert tokenize("12.5+(3)") == ['12.5', '+', '(', '3', ')']

    def test_whitespace_ignored(self):
        assert tokenize(" 2 *  3 ") == ['2', '*', '3']

    def test_second_decimal_point_starts_new_number(self):
        assert tokenize("1.2.3") == ['1.2', '.3']

    def test_invalid_character(self):
        with pytest.raises(ExpressionSyntaxError, match="invalid character"):
            tokenize("2+a")

    def test_empty(self):
        with pytest.raises(ExpressionSyntaxError, match="empty"):
            tokenize("   ")
        with pytest.raises(ExpressionSyntaxError):
            tokenize("")


class TestPostfix:
    """Test shunting-yard conversion."""

    def test_precedence(self):
        assert to_postfix(tokenize("3+4*2")) == ['3', '4', '2', '*', '+']

    def test_left_associative(self):
        assert to_postfix(tokenize("8-3-2")) == ['8', '3', '-', '2', '-']

    def test_power_right_associative(self):
        assert to_postfix(tokenize("2^3^2")) == ['2', '3', '2', '^', '^']

    def test_parentheses(self):
        assert to_postfix(tokenize("(2+1)^3")) == ['2', '1', '+', '3', '^']

    def test_unbalanced(self):
        with pytest.raises(ExpressionSyntaxError, match="parentheses"):
            to_postfix(tokenize("(2+3"))
        with pytest.raises(ExpressionSyntaxError, match="parentheses"):
            to_postfix(tokenize("2+3)"))


class TestCalculate:
    """Test complete evaluation."""

    @pytest.mark.parametrize("expression,expected", [
        ("(2+1)^3", 27),
        ("10/2+3*2", 11),
        ("3^2+1", 10),
        ("2^3^2", 512),
        ("8-3-2", 3),
        ("1.5*2", 3),
        ("(3 + 2) * 4", 20),
        ("2^(0-1)", 0.5),
        ("7", 7),
    ])
    def test_values(self, expression, expected):
        assert calculate(expression) == pytest.approx(expected)

    def test_divide_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            calculate("5/0")

    def test_divide_by_zero_is_domain_error(self):
        with pytest.raises(ExpressionDomainError):
            calculate("1/(2-2)")

    def test_zero_to_negative_power(self):
        with pytest.raises(ExpressionDomainError, match="negative power"):
            calculate("0^(1-2)")

    def test_negative_base_fractional_exponent(self):
        with pytest.raises(ExpressionDomainError, match="non-integer"):
            calculate("(0-8)^0.5")

    def test_negative_base_integer_exponent(self):
        assert calculate("(0-2)^3") == -8

    def test_overflow(self):
        with pytest.raises(ExpressionDomainError, match="range"):
            calculate("10^400")

    @pytest.mark.parametrize("expression", ["(2+3", "2+", "-3", "1.2.3", "()", "2+a", ""])
    def test_malformed(self, expression):
        with pytest.raises(ExpressionSyntaxError):
            calculate(expression)

    def test_domain_and_syntax_errors_are_distinct(self):
        assert not issubclass(ExpressionDomainError, ExpressionSyntaxError)
        assert not issubclass(ExpressionSyntaxError, ExpressionDomainError)
        assert issubclass(ExpressionDomainError, CalculatorError)
        assert issubclass(CalculatorError, ValueError)


class TestPostfixEvaluation:
    """Test the value stack directly."""

    def test_evaluate(self):
        assert evaluate_postfix(['2', '3', '+']) == 5

    def test_invalid_number(self):
        with pytest.raises(ExpressionSyntaxError, match="invalid number"):
            evaluate_postfix(['.'])

    def test_leftover_operands(self):
        with pytest.raises(ExpressionSyntaxError):
            evaluate_postfix(['1', '2'])

    def test_apply_operator(self):
        assert apply_operator(7, 2, '-') == 5
        assert apply_operator(2, 10, '^') == 1024
        with pytest.raises(ExpressionSyntaxError):
            apply_operator(1, 2, '%')
