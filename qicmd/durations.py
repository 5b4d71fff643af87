#!/usr/bin/env python3
"""
Duration codec for qicmd.

Durations are written as compound literals such as ``2d3h`` or ``1h20m30s``:
one or more ``<integer><unit>`` groups where the unit is one of s, m, h, d
(case-insensitive). A bare integer is read as a number of seconds.
"""

import re
from typing import Dict


TIME_UNITS: Dict[str, int] = {
    's': 1,
    'm': 60,
    'h': 3600,
    'd': 86400,
}

# Order matters when formatting: largest unit first.
_FORMAT_UNITS = (('d', 86400), ('h', 3600), ('m', 60), ('s', 1))

_GROUP_PATTERN = re.compile(r'(\d+)([smhd])')
_INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')
_COMPOUND_PATTERN = re.compile(r'^(\d+[smhdSMHD])+$')
_SINGLE_PATTERN = re.compile(r'^\d+[smhdSMHD]?$')


def parse_duration_seconds(text: str) -> int:
    """
    Convert a duration literal to a total number of seconds.

    A bare (optionally signed) integer is returned as-is. Otherwise every
    ``<integer><unit>`` group found anywhere in the text is summed; characters
    that are not part of a group are ignored, so text without any group
    yields 0.
    """
    text = text.strip().lower()

    if _INTEGER_PATTERN.match(text):
        return int(text)

    total = 0
    for number, unit in _GROUP_PATTERN.findall(text):
        total += int(number) * TIME_UNITS[unit]
    return total


def format_duration_seconds(total: int) -> str:
    """
    Format a number of seconds as a compact duration literal.

    Zero-valued components are omitted and the sign is dropped:
    183600 -> '2d3h', 0 -> '0s'.
    """
    remaining = abs(int(total))
    if remaining == 0:
        return '0s'

    parts = []
    for unit, size in _FORMAT_UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{unit}")
    return ''.join(parts)


def format_time_of_day(hours: int, minutes: int, seconds: int) -> str:
    """Format a clock reading as a duration literal, e.g. 15:06:32 -> '15h6m32s'."""
    return format_duration_seconds(hours * 3600 + minutes * 60 + seconds)


def is_duration_literal(text: str) -> bool:
    """True for a bare integer or a compound/single-unit duration literal."""
    if not text or not text.strip():
        return False
    text = text.strip()
    return bool(
        _INTEGER_PATTERN.match(text)
        or _COMPOUND_PATTERN.match(text)
        or _SINGLE_PATTERN.match(text)
    )


def matches_time_pattern(text: str) -> bool:
    """
    True when text has the unsigned duration shape used by type detection.

    Unlike is_duration_literal, a signed integer does not match.
    """
    return bool(_COMPOUND_PATTERN.match(text) or _SINGLE_PATTERN.match(text))
