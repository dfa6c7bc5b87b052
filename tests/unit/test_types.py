"""Unit tests for parameter adaptation and column extraction."""
import datetime
import decimal

import pytest
from typedsql.types import Column, ParameterKind, TimePoint, _parameter_adapters
from typedsql.types import adapt_parameter, check_column_types, describe_value
from typedsql.types import extract_column, register_parameter_type

# =============================================================================
# Parameter adaptation
# =============================================================================


class TestAdaptParameter:
    """Python values resolve to a parameter kind and a driver value."""

    def test_builtin_kinds(self, value_dict):
        assert adapt_parameter(value_dict['int_value']) == (ParameterKind.INTEGER, 42)
        assert adapt_parameter(True) == (ParameterKind.INTEGER, 1)
        assert adapt_parameter(value_dict['float_value']) == (ParameterKind.DOUBLE, 3.14159)
        assert adapt_parameter('hello') == (ParameterKind.TEXT, 'hello')

        kind, native = adapt_parameter(value_dict['time_point'])
        assert kind is ParameterKind.TIME_POINT
        assert native == 1_700_000_000_123_456_789

    def test_blob_is_passed_through(self, value_dict):
        """Test blob buffers are handed over without copying"""
        buffer = bytearray(value_dict['blob_value'])
        kind, native = adapt_parameter(buffer)
        assert kind is ParameterKind.BLOB
        assert native is buffer

    def test_datetime_binds_as_time_point(self, value_dict):
        kind, native = adapt_parameter(value_dict['datetime_value'])
        assert kind is ParameterKind.TIME_POINT
        assert native == 1_700_000_000_123_456_000

    def test_integer_range(self, value_dict):
        """Test plain ints are 32-bit unless the range check is relaxed"""
        assert adapt_parameter(value_dict['int_max'])[1] == 2 ** 31 - 1
        assert adapt_parameter(value_dict['int_min'])[1] == -2 ** 31
        with pytest.raises(ValueError):
            adapt_parameter(2 ** 31)
        assert adapt_parameter(2 ** 31, strict_integer_range=False)[1] == 2 ** 31
        with pytest.raises(ValueError):
            adapt_parameter(2 ** 63, strict_integer_range=False)

    def test_time_point_range(self):
        with pytest.raises(ValueError):
            adapt_parameter(TimePoint(2 ** 63))

    def test_unsupported_types(self):
        with pytest.raises(TypeError):
            adapt_parameter(None)
        with pytest.raises(TypeError):
            adapt_parameter([1, 2])

    def test_unencodable_text(self):
        with pytest.raises(ValueError):
            adapt_parameter('\ud800')

    def test_register_parameter_type(self):
        """Test extra parameter types can be registered"""
        register_parameter_type(decimal.Decimal, ParameterKind.TEXT, str)
        try:
            assert adapt_parameter(decimal.Decimal('1.50')) == (ParameterKind.TEXT, '1.50')
        finally:
            _parameter_adapters.pop(decimal.Decimal)


def test_describe_value():
    assert describe_value('hello') == 'hello'
    assert describe_value(42) == '42'
    assert describe_value(b'\x00' * 10) == '<blob of 10 bytes>'
    assert describe_value(memoryview(b'abc')) == '<blob of 3 bytes>'
    assert len(describe_value('x' * 1000)) < 100

# =============================================================================
# TimePoint
# =============================================================================


def test_time_point_datetime_conversion(value_dict):
    point = TimePoint.from_datetime(value_dict['datetime_value'])
    assert point == 1_700_000_000_123_456_000
    assert point.to_datetime() == value_dict['datetime_value']


def test_time_point_naive_datetime_is_utc():
    naive = datetime.datetime(1970, 1, 1, 0, 0, 1)
    assert TimePoint.from_datetime(naive) == 10 ** 9


def test_time_point_before_epoch():
    point = TimePoint.from_datetime(datetime.datetime(1969, 12, 31, 23, 59, 59,
                                                      tzinfo=datetime.timezone.utc))
    assert point == -10 ** 9
    assert point.to_datetime().year == 1969


def test_time_point_parse():
    assert TimePoint.parse('1970-01-01T00:00:02+00:00') == 2 * 10 ** 9
    assert repr(TimePoint(5)) == 'TimePoint(5)'

# =============================================================================
# Column extraction
# =============================================================================


class TestExtractColumn:
    """Raw driver values convert to the declared column type."""

    def test_null_reads_as_zero_value(self):
        assert extract_column(int, None) == 0
        assert extract_column(float, None) == 0.0
        assert extract_column(str, None) == ''
        assert extract_column(bytes, None) == b''
        assert extract_column(TimePoint, None) == TimePoint(0)

    def test_numeric_text_coercion(self):
        assert extract_column(int, '17') == 17
        assert extract_column(int, '2.9') == 2
        assert extract_column(int, 'abc') == 0
        assert extract_column(float, '2.5') == 2.5
        assert extract_column(str, 42) == '42'
        assert extract_column(bytes, 'hé') == 'hé'.encode()

    def test_blob_is_copied(self):
        raw = bytearray(b'abc')
        value = extract_column(bytes, raw)
        assert value == b'abc'
        assert type(value) is bytes

    def test_time_point_columns(self):
        value = extract_column(TimePoint, 1_700_000_000_000_000_000)
        assert isinstance(value, TimePoint)
        assert extract_column(TimePoint, '1970-01-01T00:00:01Z') == 10 ** 9
        moment = extract_column(datetime.datetime, 10 ** 9)
        assert moment == datetime.datetime(1970, 1, 1, 0, 0, 1, tzinfo=datetime.timezone.utc)

    def test_infinite_real_clamps_to_int64(self):
        """Test reals outside the integer range clamp instead of failing"""
        assert extract_column(int, float('inf')) == 2 ** 63 - 1
        assert extract_column(int, float('-inf')) == -2 ** 63
        assert extract_column(int, 1e30) == 2 ** 63 - 1
        assert extract_column(int, float('nan')) == 0
        assert extract_column(int, '1e999') == 2 ** 63 - 1

    def test_numeric_prefix_of_text(self):
        """Test numeric text converts by its leading numeric prefix"""
        assert extract_column(int, '12abc') == 12
        assert extract_column(int, '  -7 apples') == -7
        assert extract_column(float, '2.5kg') == 2.5
        assert extract_column(float, 'abc') == 0.0
        assert extract_column(int, b'34xyz') == 34

    def test_unparseable_time_text(self):
        """Test text that is neither a number nor ISO 8601 reads as zero"""
        assert extract_column(TimePoint, 'abc') == TimePoint(0)
        assert extract_column(TimePoint, '') == TimePoint(0)
        assert extract_column(TimePoint, ' 42 ') == TimePoint(42)
        assert extract_column(datetime.datetime, 'not a date') == datetime.datetime(
            1970, 1, 1, tzinfo=datetime.timezone.utc)

    def test_bool_column(self):
        assert extract_column(bool, 1) is True
        assert extract_column(bool, None) is False


def test_check_column_types():
    assert check_column_types([int, str]) == (int, str)
    with pytest.raises(TypeError, match='Unsupported column type: Decimal'):
        check_column_types([int, decimal.Decimal])


def test_column_metadata():
    description = (('id', None, None, None, None, None, None),
                   ('name', None, None, None, None, None, None))
    columns = Column.from_description(description, (int, str))
    assert Column.get_names(columns) == ['id', 'name']
    assert Column.get_column_types_dict(columns)['name']['python_type'] == 'str'


def test_column_metadata_without_description():
    columns = Column.from_description(None, (int, str))
    assert Column.get_names(columns) == ['column_0', 'column_1']
