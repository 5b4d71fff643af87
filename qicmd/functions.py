#!/usr/bin/env python3
"""
User-defined macro functions.

A function is a named list of command lines:

    def greet => echo hello
    def deploy => [ build ; test ; echo done ]
    def deploy => [
      build
      test
    ]

Invoking a function by name replays its commands through the session's
normal dispatch, so bodies may contain macro spans or call other functions.
The table belongs to a single session.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


DEF_KEYWORD = 'def'
_DEF_PATTERN = re.compile(r'^\s*def\s', re.IGNORECASE)
_COMMAND_SEPARATORS = re.compile(r'[;\r\n]')


class DefinitionError(ValueError):
    """Raised for a malformed function definition."""


@dataclass
class FunctionDefinition:
    """A named sequence of command lines."""
    name: str
    commands: List[str]
    single_line: bool = True

    def __str__(self) -> str:
        if self.single_line:
            return f"{self.name} => {self.commands[0]}"
        lines = [f"{self.name} => ["]
        lines.extend(f"  {command}" for command in self.commands)
        lines.append("]")
        return '\n'.join(lines)


def is_definition(line: str) -> bool:
    """True if the line starts with the def keyword."""
    return bool(_DEF_PATTERN.match(line))


def bracket_depth(text: str) -> int:
    """Net count of '[' over ']' in text."""
    return text.count('[') - text.count(']')


def parse_definition(source: str) -> FunctionDefinition:
    """
    Parse a definition into a FunctionDefinition.

    source may include the leading def keyword. Multi-line bodies are
    enclosed in brackets with commands separated by semicolons or line
    breaks; blank commands are dropped.

    Raises DefinitionError for a missing '=>', an empty name, an
    unterminated bracket block or an empty body.
    """
    text = source.strip()
    if is_definition(text):
        text = text[len(DEF_KEYWORD):].strip()

    name, arrow, body = text.partition('=>')
    if not arrow:
        raise DefinitionError("function definition must contain '=>'")

    name = name.strip()
    if not name:
        raise DefinitionError("function name cannot be empty")

    body = body.strip()
    if not body.startswith('['):
        if not body:
            raise DefinitionError("function must contain at least one command")
        return FunctionDefinition(name=name, commands=[body], single_line=True)

    if not body.endswith(']'):
        raise DefinitionError("multi-line body must end with ']'")

    commands = [
        command.strip()
        for command in _COMMAND_SEPARATORS.split(body[1:-1])
        if command.strip()
    ]
    if not commands:
        raise DefinitionError("function must contain at least one command")

    return FunctionDefinition(name=name, commands=commands, single_line=False)


class FunctionTable:
    """Case-insensitive store of function definitions."""

    def __init__(self):
        self._functions: Dict[str, FunctionDefinition] = {}

    def define(self, function: FunctionDefinition) -> FunctionDefinition:
        """Add or replace a function."""
        self._functions[function.name.lower()] = function
        return function

    def define_from_source(self, source: str) -> FunctionDefinition:
        """Parse and store a definition. Nothing is stored if parsing fails."""
        return self.define(parse_definition(source))

    def delete(self, name: str) -> bool:
        """Remove a function. Returns False if it did not exist."""
        return self._functions.pop(name.strip().lower(), None) is not None

    def get(self, name: str) -> Optional[FunctionDefinition]:
        if not name:
            return None
        return self._functions.get(name.strip().lower())

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[FunctionDefinition]:
        return iter(list(self._functions.values()))

    def __len__(self) -> int:
        return len(self._functions)

    def names(self) -> List[str]:
        return [function.name for function in self._functions.values()]

    def format_listing(self) -> str:
        """Human-readable listing, each body shown in the form it was declared."""
        if not self._functions:
            return "No functions defined"
        lines = ["Defined functions:", "═" * 60]
        lines.extend(str(function) for function in self._functions.values())
        return '\n'.join(lines)


class LineAccumulator:
    """
    Joins the physical lines of a bracketed definition into one logical line.

    A line that opens a definition with unbalanced '[' starts a block;
    following lines are collected until the bracket depth returns to zero.
    """

    def __init__(self):
        self._lines: List[str] = []
        self._depth = 0

    @property
    def pending(self) -> bool:
        """True while a definition block is still open."""
        return bool(self._lines)

    def feed(self, line: str) -> Optional[str]:
        """
        Add a physical line.

        Returns a complete logical line, or None while a block is open.
        """
        stripped = line.strip()

        if not self._lines:
            depth = bracket_depth(stripped)
            if is_definition(stripped) and '=>' in stripped and depth > 0:
                self._lines.append(stripped)
                self._depth = depth
                return None
            return stripped

        self._lines.append(stripped)
        self._depth += bracket_depth(stripped)
        if self._depth > 0:
            return None
        return self._flush()

    def finish(self) -> None:
        """Signal end of input. An open block is an error."""
        if self._lines:
            first = self._lines[0]
            self._lines = []
            self._depth = 0
            raise DefinitionError(f"unterminated bracket block: {first}")

    def _flush(self) -> str:
        logical = '\n'.join(self._lines)
        self._lines = []
        self._depth = 0
        return logical
