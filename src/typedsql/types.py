"""
Semantic value types for statement parameters and result columns.

This module provides:
- ParameterKind / BoundParameter: the tagged value bound at one parameter index
- TimePoint: 64-bit nanosecond time value
- adapt_parameter: Python value -> (kind, driver value) dispatch
- extract_column: driver value -> declared column type dispatch
- Column: result column metadata

Both dispatch tables are registries keyed by Python type, so callers can add
their own parameter and column types next to the built-in ones.
"""
import datetime
import enum
import math
import re
import reprlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Self

import dateutil.parser

INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_NANOS_PER_SECOND = 10 ** 9

_describe = reprlib.Repr()
_describe.maxstring = 80
_describe.maxother = 80


class ParameterKind(enum.Enum):
    """Storage class a parameter is bound as."""
    INTEGER = 'integer'
    TIME_POINT = 'time_point'
    DOUBLE = 'double'
    TEXT = 'text'
    BLOB = 'blob'


@dataclass(frozen=True)
class BoundParameter:
    """One applied binding: 1-based index, semantic kind and the value handed to the driver."""
    index: int
    kind: ParameterKind
    value: Any


class TimePoint(int):
    """Signed 64-bit count of nanoseconds since the Unix epoch.
    """
    __slots__ = ()

    @classmethod
    def from_datetime(cls, value: datetime.datetime) -> Self:
        """Convert a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        delta = value - _EPOCH
        seconds = delta.days * 86_400 + delta.seconds
        return cls(seconds * _NANOS_PER_SECOND + delta.microseconds * 1000)

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parse an ISO 8601 timestamp."""
        return cls.from_datetime(dateutil.parser.isoparse(text))

    def to_datetime(self, tz: datetime.tzinfo = datetime.timezone.utc) -> datetime.datetime:
        """Convert to an aware datetime (microsecond precision)."""
        return (_EPOCH + datetime.timedelta(microseconds=self // 1000)).astimezone(tz)

    def __repr__(self) -> str:
        return f'TimePoint({int(self)})'


# Parameter binding - Python value -> driver value

ParameterAdapter = Callable[[Any], Any]

_parameter_adapters: dict[type, tuple[ParameterKind, ParameterAdapter]] = {}


def register_parameter_type(py_type: type, kind: ParameterKind,
                            adapter: ParameterAdapter) -> None:
    """Register how values of `py_type` (and subclasses) are bound.

    `adapter` returns the value handed to the driver and raises TypeError or
    ValueError for values that cannot be bound.
    """
    _parameter_adapters[py_type] = (kind, adapter)


def _lookup_adapter(value: Any) -> tuple[ParameterKind, ParameterAdapter]:
    for klass in type(value).__mro__:
        if klass in _parameter_adapters:
            return _parameter_adapters[klass]
    raise TypeError(f'Unsupported parameter type: {type(value).__name__}')


def _check_range(value: int, low: int, high: int, kind: ParameterKind) -> int:
    if not low <= value <= high:
        raise ValueError(f'{value} out of range for {kind.value} parameter')
    return value


def adapt_parameter(value: Any, strict_integer_range: bool = True) -> tuple[ParameterKind, Any]:
    """Resolve the kind and driver value for a parameter.

    Raises TypeError for unsupported types and ValueError for values outside
    the kind's domain.
    """
    kind, adapter = _lookup_adapter(value)
    native = adapter(value)
    if kind is ParameterKind.INTEGER:
        if strict_integer_range:
            return kind, _check_range(native, INT32_MIN, INT32_MAX, kind)
        return kind, _check_range(native, INT64_MIN, INT64_MAX, kind)
    if kind is ParameterKind.TIME_POINT:
        return kind, _check_range(native, INT64_MIN, INT64_MAX, kind)
    return kind, native


def describe_value(value: Any) -> str:
    """Short textual description of a parameter value for error messages."""
    if isinstance(value, str):
        return _describe.repr(value)[1:-1]
    if isinstance(value, bytes | bytearray | memoryview):
        return f'<blob of {memoryview(value).nbytes} bytes>'
    if isinstance(value, int | float):
        return str(value)
    return _describe.repr(value)


def _adapt_text(value: str) -> str:
    value.encode('utf-8')
    return value


def _adapt_blob(value: bytes | bytearray | memoryview) -> bytes | bytearray | memoryview:
    if isinstance(value, memoryview) and not value.c_contiguous:
        raise ValueError('Blob buffers must be contiguous')
    return value


register_parameter_type(int, ParameterKind.INTEGER, int)
register_parameter_type(bool, ParameterKind.INTEGER, int)
register_parameter_type(TimePoint, ParameterKind.TIME_POINT, int)
register_parameter_type(datetime.datetime, ParameterKind.TIME_POINT,
                        lambda v: int(TimePoint.from_datetime(v)))
register_parameter_type(float, ParameterKind.DOUBLE, float)
register_parameter_type(str, ParameterKind.TEXT, _adapt_text)
register_parameter_type(bytes, ParameterKind.BLOB, _adapt_blob)
register_parameter_type(bytearray, ParameterKind.BLOB, _adapt_blob)
register_parameter_type(memoryview, ParameterKind.BLOB, _adapt_blob)


# Column extraction - driver value -> declared type
#
# Coercions follow SQLite's sqlite3_column_* rules: NULL reads as the zero
# value of the requested type, text converts to a number by its leading
# numeric prefix, reals outside the int64 range clamp to its bounds.

ColumnExtractor = Callable[[Any], Any]

_column_extractors: dict[type, ColumnExtractor] = {}


def register_column_type(py_type: type, extractor: ColumnExtractor) -> None:
    """Register how a raw column value is read as `py_type`."""
    _column_extractors[py_type] = extractor


_NUMERIC_PREFIX = re.compile(r'^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')
_INTEGER_TEXT = re.compile(r'^\s*[+-]?\d+\s*$')


def _clamp_int64(value: float | int) -> int:
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if math.isinf(value) or not INT64_MIN <= value <= INT64_MAX:
            return INT64_MAX if value > 0 else INT64_MIN
    return max(INT64_MIN, min(INT64_MAX, int(value)))


def _text_prefix_to_float(text: str) -> float:
    """Value of the leading numeric prefix of `text`, 0.0 when there is none."""
    match = _NUMERIC_PREFIX.match(text)
    if match is None:
        return 0.0
    return float(match.group(0))


def _as_text(raw: Any) -> str:
    if isinstance(raw, bytes | bytearray | memoryview):
        return bytes(raw).decode('utf-8', 'replace')
    return str(raw)


def _to_int(raw: Any) -> int:
    if raw is None:
        return 0
    if isinstance(raw, int | float):
        return _clamp_int64(raw)
    text = _as_text(raw).strip()
    try:
        return _clamp_int64(int(text))
    except ValueError:
        return _clamp_int64(_text_prefix_to_float(text))


def _to_float(raw: Any) -> float:
    if raw is None:
        return 0.0
    if isinstance(raw, int | float):
        return float(raw)
    return _text_prefix_to_float(_as_text(raw))


def _to_str(raw: Any) -> str:
    if raw is None:
        return ''
    return _as_text(raw)


def _to_bytes(raw: Any) -> bytes:
    if raw is None:
        return b''
    if isinstance(raw, bytes | bytearray | memoryview):
        return bytes(raw)
    return str(raw).encode('utf-8')


def _to_time_point(raw: Any) -> TimePoint:
    if isinstance(raw, str) and not _INTEGER_TEXT.match(raw):
        try:
            return TimePoint(_clamp_int64(TimePoint.parse(raw.strip())))
        except (ValueError, OverflowError):
            pass
    return TimePoint(_to_int(raw))


register_column_type(int, _to_int)
register_column_type(bool, lambda raw: bool(_to_int(raw)))
register_column_type(float, _to_float)
register_column_type(str, _to_str)
register_column_type(bytes, _to_bytes)
register_column_type(TimePoint, _to_time_point)
register_column_type(datetime.datetime, lambda raw: _to_time_point(raw).to_datetime())


def check_column_types(column_types: Iterable[Any]) -> tuple[type, ...]:
    """Validate declared column types and return them as a tuple."""
    column_types = tuple(column_types)
    for column_type in column_types:
        if column_type not in _column_extractors:
            name = getattr(column_type, '__name__', repr(column_type))
            raise TypeError(f'Unsupported column type: {name}')
    return column_types


def extract_column(column_type: type, raw: Any) -> Any:
    """Convert a raw column value to `column_type`."""
    return _column_extractors[column_type](raw)


# Column - Result column metadata

class Column:
    """Result column metadata: driver-reported name and declared Python type."""

    def __init__(self, name: str | None, python_type: type,
                 decl_type: str | None = None) -> None:
        self.name = name
        self.python_type = python_type
        self.decl_type = decl_type

    @classmethod
    def from_description(cls, description: Iterable[tuple] | None,
                         column_types: tuple[type, ...]) -> list[Self]:
        """Pair a driver cursor description with the declared column types."""
        description = list(description or [])
        columns = []
        for index, python_type in enumerate(column_types):
            item = description[index] if index < len(description) else ()
            name = item[0] if len(item) > 0 else None
            decl_type = item[1] if len(item) > 1 else None
            columns.append(cls(name, python_type, decl_type))
        return columns

    def __repr__(self) -> str:
        return f'Column(name={self.name!r}, python_type={self.python_type.__name__})'

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'python_type': self.python_type.__name__,
            'decl_type': self.decl_type,
        }

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        return [col.name if col.name is not None else f'column_{i}'
                for i, col in enumerate(columns)]

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict]:
        return {name: col.to_dict() for name, col in zip(Column.get_names(columns), columns)}
