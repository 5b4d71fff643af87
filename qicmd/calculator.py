#!/usr/bin/env python3
"""
Infix arithmetic evaluator.

Supports + - * / ^ and parentheses over decimal numbers. Expressions are
converted to postfix with the shunting-yard algorithm and then evaluated on a
value stack. ``^`` binds tightest and is right-associative; the other
operators are left-associative.

Examples:
    calculate("(2+1)^3")    -> 27.0
    calculate("10/2+3*2")   -> 11.0
"""

import math
import sys
from typing import Dict, List


PRECEDENCE: Dict[str, int] = {
    '+': 1,
    '-': 1,
    '*': 2,
    '/': 2,
    '^': 3,
}


class CalculatorError(ValueError):
    """Base class for arithmetic evaluation errors."""


class ExpressionSyntaxError(CalculatorError):
    """The expression is malformed."""


class ExpressionDomainError(CalculatorError):
    """The expression is well-formed but its value is undefined."""


class DivisionByZeroError(ExpressionDomainError):
    """Division by a value indistinguishable from zero."""


def is_operator(token: str) -> bool:
    return token in PRECEDENCE


def tokenize(expression: str) -> List[str]:
    """
    Split an expression into number, operator and parenthesis tokens.

    Whitespace is ignored. A number is a run of digits with at most one
    decimal point.
    """
    if expression is None or not expression.strip():
        raise ExpressionSyntaxError("expression is empty")

    text = ''.join(expression.split())
    tokens = []
    i = 0
    while i < len(text):
        char = text[i]
        if char.isdigit() or char == '.':
            start = i
            seen_point = False
            while i < len(text):
                if text[i].isdigit():
                    i += 1
                elif text[i] == '.' and not seen_point:
                    seen_point = True
                    i += 1
                else:
                    break
            tokens.append(text[start:i])
        elif is_operator(char) or char in '()':
            tokens.append(char)
            i += 1
        else:
            raise ExpressionSyntaxError(f"invalid character: {char!r}")
    return tokens


def to_postfix(tokens: List[str]) -> List[str]:
    """Reorder infix tokens into postfix (reverse Polish) order."""
    output: List[str] = []
    stack: List[str] = []

    for token in tokens:
        if is_operator(token):
            while stack and is_operator(stack[-1]) and (
                    PRECEDENCE[stack[-1]] > PRECEDENCE[token]
                    or (PRECEDENCE[stack[-1]] == PRECEDENCE[token] and token != '^')):
                output.append(stack.pop())
            stack.append(token)
        elif token == '(':
            stack.append(token)
        elif token == ')':
            while stack and stack[-1] != '(':
                output.append(stack.pop())
            if not stack:
                raise ExpressionSyntaxError("unbalanced parentheses")
            stack.pop()
        else:
            output.append(token)

    while stack:
        token = stack.pop()
        if token == '(':
            raise ExpressionSyntaxError("unbalanced parentheses")
        output.append(token)

    return output


def apply_operator(left: float, right: float, op: str) -> float:
    """Apply a binary operator, raising ExpressionDomainError for undefined results."""
    if op == '+':
        return left + right
    if op == '-':
        return left - right
    if op == '*':
        return left * right
    if op == '/':
        if abs(right) < sys.float_info.epsilon:
            raise DivisionByZeroError("division by zero")
        return left / right
    if op == '^':
        if abs(left) < sys.float_info.epsilon and right < 0:
            raise ExpressionDomainError("zero cannot be raised to a negative power")
        if left < 0 and not float(right).is_integer():
            raise ExpressionDomainError("negative base with a non-integer exponent")
        try:
            return math.pow(left, right)
        except OverflowError:
            raise ExpressionDomainError("result out of range")
    raise ExpressionSyntaxError(f"unsupported operator: {op!r}")


def evaluate_postfix(postfix: List[str]) -> float:
    """Evaluate a postfix token sequence."""
    stack: List[float] = []

    for token in postfix:
        if is_operator(token):
            if len(stack) < 2:
                raise ExpressionSyntaxError(f"operator {token!r} is missing an operand")
            right = stack.pop()
            left = stack.pop()
            stack.append(apply_operator(left, right, token))
        else:
            try:
                stack.append(float(token))
            except ValueError:
                raise ExpressionSyntaxError(f"invalid number: {token!r}")

    if len(stack) != 1:
        raise ExpressionSyntaxError("operands and operators do not match")

    return stack[0]


def calculate(expression: str) -> float:
    """Evaluate an infix arithmetic expression."""
    return evaluate_postfix(to_postfix(tokenize(expression)))
