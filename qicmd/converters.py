#!/usr/bin/env python3
"""
Converter registry for the qicmd macro language.

A converter is a pure string-to-string function registered under one of
three case-insensitive key shapes:

- ``Type``          the type's default, normalizing conversion
- ``Type.Op``       an operation on values of that type
- ``TypeA.TypeB``   a cross-type conversion

The registry is built once at import time and is read-only afterwards.
Each converter returns a Conversion that either carries the new value or
reports why the step could not be applied. Most converters are best-effort
and hand back their input unchanged on malformed values; the few that report
failure cause the pipeline to stop, as does an arithmetic error raised on
extreme input.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, date, time, timedelta
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional

from .durations import (
    format_duration_seconds, format_time_of_day, is_duration_literal,
    parse_duration_seconds,
)
from .values import (
    ValueType, format_datetime, format_number, parse_datetime, parse_float,
    parse_int,
)


logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class Conversion:
    """Outcome of applying one converter."""
    ok: bool
    value: str
    error: Optional[str] = None

    @classmethod
    def success(cls, value: str) -> 'Conversion':
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, value: str, error: str) -> 'Conversion':
        return cls(ok=False, value=value, error=error)


ConverterFunc = Callable[[str], Conversion]


@dataclass(frozen=True)
class Converter:
    """A registered conversion and the key it answers to."""
    key: str
    source: ValueType
    operation: Optional[str]
    func: ConverterFunc

    def apply(self, value: str) -> Conversion:
        return self.func(value)


def _now() -> datetime:
    return datetime.now()


def _today() -> datetime:
    return datetime.combine(date.today(), time())


def _number_value(text: str):
    """Integer first, then floating point; None when neither parses."""
    number = parse_int(text)
    if number is None:
        number = parse_float(text)
    return number


# Default converters

def _to_number(value: str) -> Conversion:
    number = parse_int(value)
    return Conversion.success(str(number) if number is not None else value)


def _to_time(value: str) -> Conversion:
    if not is_duration_literal(value):
        return Conversion.success(value)
    seconds = parse_int(value)
    if seconds is None:
        # Compound literals such as 2d3h are already in duration form.
        return Conversion.success(value)
    return Conversion.success(format_duration_seconds(seconds))


def _to_string(value: str) -> Conversion:
    return Conversion.success(value)


def _to_boolean(value: str) -> Conversion:
    return Conversion.success(value.lower())


def _to_date(value: str) -> Conversion:
    moment = parse_datetime(value)
    return Conversion.success(format_datetime(moment) if moment else value)


# Number operations

def _number_abs(value: str) -> Conversion:
    number = _number_value(value)
    return Conversion.success(format_number(abs(number)) if number is not None else value)


def _number_neg(value: str) -> Conversion:
    number = _number_value(value)
    return Conversion.success(format_number(-number) if number is not None else value)


def _number_round(value: str) -> Conversion:
    number = parse_float(value)
    if number is None or not math.isfinite(number):
        return Conversion.success(value)
    return Conversion.success(format_number(round(number)))


def _number_double(value: str) -> Conversion:
    number = parse_float(value)
    if number is None:
        return Conversion.failure(value, f"not a number: {value!r}")
    return Conversion.success(format_number(number))


def _length(value: str) -> Conversion:
    return Conversion.success(str(len(value)))


# Time operations

def _seconds(value: str) -> Conversion:
    return Conversion.success(str(parse_duration_seconds(value)))


def _round_div(numerator: int, denominator: int) -> int:
    """Integer division rounded to nearest, ties to even."""
    quotient, remainder = divmod(numerator, denominator)
    twice = remainder * 2
    if twice > denominator or (twice == denominator and quotient % 2):
        quotient += 1
    return quotient


def _time_in(unit_seconds: int) -> ConverterFunc:
    def convert(value: str) -> Conversion:
        total = parse_duration_seconds(value)
        return Conversion.success(str(_round_div(total, unit_seconds)))
    return convert


# String operations

def _upper(value: str) -> Conversion:
    return Conversion.success(value.upper())


def _lower(value: str) -> Conversion:
    return Conversion.success(value.lower())


def _string_to_number(value: str) -> Conversion:
    return Conversion.success(value if parse_float(value) is not None else '0')


# Boolean operations

def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    return None


def _boolean_not(value: str) -> Conversion:
    flag = _parse_bool(value)
    if flag is None:
        return Conversion.failure(value, f"not a boolean: {value!r}")
    return Conversion.success(str(not flag).lower())


def _boolean_number(value: str) -> Conversion:
    flag = _parse_bool(value)
    if flag is None:
        return Conversion.failure(value, f"not a boolean: {value!r}")
    return Conversion.success('1' if flag else '0')


# Date operations

def _date_time(value: str) -> Conversion:
    moment = parse_datetime(value)
    if moment is None:
        logger.debug("Date.Time: cannot parse %r", value)
        return Conversion.success(value)
    return Conversion.success(format_time_of_day(moment.hour, moment.minute, moment.second))


def _offset_from(origin: Callable[[], datetime]) -> ConverterFunc:
    def convert(value: str) -> Conversion:
        try:
            moment = origin() + timedelta(seconds=parse_duration_seconds(value))
        except OverflowError:
            logger.debug("date offset %r out of range", value)
            return Conversion.success(value)
        return Conversion.success(format_datetime(moment))
    return convert


_N, _T, _S, _B, _D = (
    ValueType.NUMBER, ValueType.TIME, ValueType.STRING,
    ValueType.BOOLEAN, ValueType.DATE,
)

# (source type, operation or target type, function); operation None is the default.
_CONVERTERS = (
    (_N, None, _to_number),
    (_T, None, _to_time),
    (_S, None, _to_string),
    (_B, None, _to_boolean),
    (_D, None, _to_date),

    (_N, 'Length', _length),
    (_N, 'Double', _number_double),
    (_N, 'Abs', _number_abs),
    (_N, 'Neg', _number_neg),
    (_N, 'Round', _number_round),

    (_T, 'Sec', _seconds),
    (_T, 'Min', _time_in(60)),
    (_T, 'Hour', _time_in(3600)),
    (_T, 'Day', _time_in(86400)),

    (_S, 'Upper', _upper),
    (_S, 'Lower', _lower),
    (_S, 'Length', _length),

    (_B, 'Not', _boolean_not),
    (_B, 'Number', _boolean_number),

    (_T, 'Number', _seconds),
    (_N, 'String', _to_string),
    (_S, 'Number', _string_to_number),

    (_D, 'Time', _date_time),
    (_D, 'Now', _offset_from(lambda: _now())),
    (_D, 'UTC', _offset_from(lambda: _EPOCH)),
    (_D, 'Today', _offset_from(lambda: _today())),
)


def make_key(source: ValueType, operation: Optional[str] = None) -> str:
    """Build the display key for a converter, e.g. 'Number' or 'Number.Abs'."""
    return source.value if operation is None else f"{source.value}.{operation}"


class ConverterRegistry(Mapping):
    """
    Read-only, case-insensitive table of converters.

    Behaves as a Mapping from key text to Converter; lookups ignore case and
    surrounding whitespace.
    """

    def __init__(self, converters: List[Converter]):
        table: Dict[str, Converter] = {}
        for converter in converters:
            table[converter.key.lower()] = converter
        self._table = MappingProxyType(table)

    @classmethod
    def build(cls) -> 'ConverterRegistry':
        converters = [
            Converter(key=make_key(source, op), source=source, operation=op, func=func)
            for source, op, func in _CONVERTERS
        ]
        return cls(converters)

    def lookup(self, key: str) -> Optional[Converter]:
        """Find a converter by key, ignoring case. Missing keys give None."""
        if not key:
            return None
        return self._table.get(key.strip().lower())

    def __getitem__(self, key: str) -> Converter:
        converter = self.lookup(key)
        if converter is None:
            raise KeyError(key)
        return converter

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def __iter__(self) -> Iterator[str]:
        return (converter.key for converter in self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def convert(self, key: str, value: str) -> Optional[Conversion]:
        """Apply the converter registered under key, or return None if there is none."""
        converter = self.lookup(key)
        if converter is None:
            return None
        return converter.apply(value)


REGISTRY = ConverterRegistry.build()

