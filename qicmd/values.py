#!/usr/bin/env python3
"""
Typed values for the qicmd macro language.

Every value flowing through a pipeline is a plain string paired with the name
of its type. The type vocabulary is fixed (Number, Time, String, Boolean,
Date); this module also holds the literal parsers shared by the converters
and the type detector.

Design Principles:
- Values are immutable and ephemeral
- Literal recognition lives in one place
- Type detection order is part of the language and must not change
"""

import re
from dataclasses import dataclass
from datetime import datetime, date
from enum import Enum
from typing import Optional, Union

from .durations import matches_time_pattern


DATE_FORMAT = '%Y/%m/%d %H:%M:%S'

_INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')
_FLOAT_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')

# Layouts accepted as calendar date/time literals, tried in order after ISO 8601.
_DATE_LAYOUTS = (
    '%Y/%m/%d %H:%M:%S',
    '%Y/%m/%d %H:%M',
    '%Y/%m/%d',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %H:%M',
    '%m/%d/%Y',
)
_TIME_LAYOUTS = (
    '%H:%M:%S',
    '%H:%M',
)


class ValueType(Enum):
    """The fixed type vocabulary of the macro language."""
    NUMBER = 'Number'
    TIME = 'Time'
    STRING = 'String'
    BOOLEAN = 'Boolean'
    DATE = 'Date'

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional['ValueType']:
        """Look up a type by name, ignoring case. Unknown names give None."""
        if not name:
            return None
        lowered = name.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TypedValue:
    """
    A string value tagged with a type name.

    type_name is kept as text because an explicit macro tag may name a type
    outside the vocabulary; such values simply never match a converter.
    """
    type_name: str
    text: str

    @property
    def type(self) -> Optional[ValueType]:
        return ValueType.from_name(self.type_name)

    def __str__(self) -> str:
        return self.text


def canonical_type_name(name: str) -> str:
    """Return the vocabulary spelling of a type name, or the name unchanged."""
    value_type = ValueType.from_name(name)
    return value_type.value if value_type else name


def parse_int(text: str) -> Optional[int]:
    """Parse a plain decimal integer, or return None."""
    text = text.strip()
    if not _INTEGER_PATTERN.match(text):
        return None
    try:
        return int(text)
    except ValueError:
        # Beyond the interpreter's integer string conversion limit.
        return None


def parse_float(text: str) -> Optional[float]:
    """Parse a decimal floating-point literal (exponent allowed), or return None."""
    text = text.strip()
    if _FLOAT_PATTERN.match(text):
        return float(text)
    return None


def format_number(number: Union[int, float]) -> str:
    """
    Render a number the way Number values are written.

    Integral floats drop their fractional part; other floats keep up to 15
    significant digits.
    """
    if isinstance(number, bool):
        number = int(number)
    if isinstance(number, int):
        return str(number)
    if number != number or number in (float('inf'), float('-inf')):
        return str(number)
    if number.is_integer() and abs(number) < 1e15:
        return str(int(number))
    return format(number, '.15g')


def parse_datetime(text: str) -> Optional[datetime]:
    """
    Parse a calendar date/time literal.

    Bare times of day are placed on today's date. Returns None when the text
    matches no known layout.
    """
    text = text.strip()
    if not text:
        return None

    # fromisoformat accepts bare digit runs like '20240101'; those are Numbers.
    if not text.isdigit():
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass

    for layout in _DATE_LAYOUTS:
        try:
            return datetime.strptime(text, layout)
        except ValueError:
            continue

    for layout in _TIME_LAYOUTS:
        try:
            clock = datetime.strptime(text, layout).time()
        except ValueError:
            continue
        return datetime.combine(date.today(), clock)

    return None


def format_datetime(moment: datetime) -> str:
    """Render a date/time in the canonical 'yyyy/MM/dd HH:mm:ss' form."""
    return moment.strftime(DATE_FORMAT)


def detect_type(raw: str) -> ValueType:
    """
    Infer the type of a raw literal.

    Checks run in a fixed order and the first match wins:
    Date, then the duration pattern (so a bare integer such as '30' is Time),
    then Number, then Boolean, and String for everything else.
    """
    value = raw.strip()

    if parse_datetime(value) is not None:
        return ValueType.DATE

    if matches_time_pattern(value):
        return ValueType.TIME

    if parse_int(value) is not None or parse_float(value) is not None:
        return ValueType.NUMBER

    if value.lower() in ('true', 'false'):
        return ValueType.BOOLEAN

    return ValueType.STRING
