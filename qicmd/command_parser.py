#!/usr/bin/env python3
"""
Command parser for the qicmd shell.

Splits an already-expanded command line into a command name and its
arguments so the session can decide whether a built-in handles it. Lines
that are not built-ins are sent to the system shell verbatim, so this parser
never rewrites quoting or separators.

Design Principles:
- Single responsibility: Parse commands, don't execute them
- Pure functions with predictable outputs
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Command:
    """
    A command name with its arguments.

    args are the space-separated words after the name; argument_text is the
    untouched remainder of the line, for commands such as calc or cd whose
    argument may contain spaces.
    """
    name: str
    args: List[str] = field(default_factory=list)
    argument_text: str = ''
    raw: str = ''

    @property
    def keyword(self) -> str:
        """Lower-cased name used for built-in lookup."""
        return self.name.lower()

    def __str__(self) -> str:
        return ' '.join([self.name] + self.args)


class CommandParser:
    """Parser for single command lines."""

    def parse(self, command_line: str) -> Command:
        """Parse a command line. Blank input gives a Command with an empty name."""
        if not command_line or not command_line.strip():
            return Command(name='', raw=command_line or '')

        stripped = command_line.strip()
        parts = stripped.split()
        name = parts[0]
        argument_text = stripped[len(name):].strip()

        return Command(
            name=name,
            args=parts[1:],
            argument_text=argument_text,
            raw=command_line,
        )
