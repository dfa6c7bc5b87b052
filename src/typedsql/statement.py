"""
Prepared statement over a sqlite3 connection.

The driver cursor stands in for the native statement handle:

- prepare: the SQL text is compiled (via EXPLAIN, which never runs it) when
  the Statement is created, and the placeholder count is recorded
- bind: values are placed at the next 1-based parameter index
- step: the first step runs the statement with the bound values, every step
  fetches one row
- reset: the pending result, the bindings and the retained blobs are dropped

Results are read through QueryResult (see typedsql.result), which steps the
statement lazily as it is consumed.
"""
import logging
import re
import sqlite3
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any, Self

from typedsql import status
from typedsql.exceptions import BindError, PrepareError, StepError
from typedsql.exceptions import wrap_driver_error
from typedsql.options import StatementOptions, load_statement_options
from typedsql.result import QueryResult
from typedsql.types import BoundParameter, ParameterKind, adapt_parameter
from typedsql.types import check_column_types, describe_value, extract_column

__all__ = ['Statement', 'dumpsql']

logger = logging.getLogger(__name__)

_BINDING_COUNT = re.compile(r'statement uses (\d+)')


def dumpsql(func):
    """Decorator for logging statement execution and bound parameters."""
    @wraps(func)
    def wrapper(self: 'Statement', *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{self.sql}\nargs: {self._describe_parameters()}')
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.error(f'Error with statement:\nSQL:\n{self.sql}\nargs: {self._describe_parameters()}')
            raise
        finally:
            logger.debug(f'Statement time: {time.time() - start:.4f}s')
    return wrapper


class Statement:
    """One prepared SQL statement with positional typed bindings.

    A Statement is bound, executed (or iterated through execute_query), then
    reset for reuse. It is shared by reference: result views keep it alive for
    as long as they are iterated. Not safe for concurrent use.
    """

    def __init__(self, connection: sqlite3.Connection, sql: str,
                 options: StatementOptions | dict[str, Any] | None = None) -> None:
        """Prepare `sql` on an open connection.

        Args:
            connection: Open sqlite3 connection, owned by the caller
            sql: SQL text of a single statement, using positional placeholders
            options: StatementOptions or a dict of option values

        Raises
            PrepareError: the engine could not compile `sql`
        """
        self.options = load_statement_options(options)
        self._connection = connection
        self._sql = sql
        self._cursor: sqlite3.Cursor | None = None
        self._parameters: list[BoundParameter] = []
        self._bound_blobs: list[bytes | bytearray | memoryview] = []
        self._next_parameter_index = 1
        self._executing = False
        self._exhausted = False
        self._current_row: Sequence[Any] | None = None
        self._parameter_count = self._prepare()
        logger.debug(f'Prepared statement ({self._parameter_count} parameters):\n{sql}')

    def _prepare(self) -> int:
        """Compile the SQL text and return its placeholder count.

        The driver compiles before it checks the number of bindings, so a
        binding count error means the text compiled; its message carries the
        count. Any other error means the text did not compile.
        """
        check_sql = self._sql
        if not self._sql.lstrip().upper().startswith('EXPLAIN'):
            check_sql = f'EXPLAIN {self._sql}'
        try:
            self._cursor = self._connection.cursor()
            explain = self._connection.cursor()
        except sqlite3.Error as exc:
            raise wrap_driver_error(PrepareError, exc, self._sql) from exc
        try:
            explain.execute(check_sql)
        except sqlite3.ProgrammingError as exc:
            match = _BINDING_COUNT.search(str(exc))
            if match is None:
                self._cursor.close()
                self._cursor = None
                raise wrap_driver_error(PrepareError, exc, self._sql) from exc
            return int(match.group(1))
        except (sqlite3.Error, sqlite3.Warning) as exc:
            self._cursor.close()
            self._cursor = None
            raise wrap_driver_error(PrepareError, exc, self._sql) from exc
        finally:
            explain.close()
        return 0

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    @property
    def next_parameter_index(self) -> int:
        """1-based index the next bound value will occupy."""
        return self._next_parameter_index

    @property
    def parameter_count(self) -> int:
        """Number of placeholders in the statement."""
        return self._parameter_count

    @property
    def bound_parameters(self) -> tuple[BoundParameter, ...]:
        return tuple(self._parameters)

    @property
    def bound_blobs(self) -> tuple[bytes | bytearray | memoryview, ...]:
        """Binary buffers retained for the current execution."""
        return tuple(self._bound_blobs)

    @property
    def finalized(self) -> bool:
        return self._cursor is None

    @property
    def description(self) -> tuple[tuple, ...] | None:
        """Driver column description, available once the statement has run."""
        if self._cursor is None or not self._executing:
            return None
        return self._cursor.description

    @property
    def column_names(self) -> list[str]:
        return [item[0] for item in self.description or ()]

    def bind(self, *values: Any) -> Self:
        """Bind values to the next parameter indices, left to right.

        Supported types: int and bool (32-bit integer), TimePoint and
        datetime (64-bit time value), float, str, bytes-like buffers, and any
        type added with `register_parameter_type`.

        A failing value raises BindError; values bound before it stay bound
        and `next_parameter_index` stays advanced past them. Reset before
        binding a new sequence.

        Returns this statement for chaining.
        """
        if not values:
            raise TypeError('bind() requires at least one value')
        for value in values:
            self._bind_value(value)
        return self

    def _bind_value(self, value: Any) -> None:
        index = self._next_parameter_index
        if self._cursor is None:
            raise BindError(index, describe_value(value), status.SQLITE_MISUSE,
                            'statement has been finalized')
        if self._executing:
            raise BindError(index, describe_value(value), status.SQLITE_MISUSE,
                            'statement must be reset before binding')
        if index > self._parameter_count:
            raise BindError(index, describe_value(value), status.SQLITE_RANGE,
                            f'statement has {self._parameter_count} parameters')
        try:
            kind, native = adapt_parameter(value, self.options.strict_integer_range)
        except (TypeError, ValueError) as exc:
            raise BindError(index, describe_value(value), status.SQLITE_MISMATCH,
                            str(exc)) from exc
        self._parameters.append(BoundParameter(index, kind, native))
        if kind is ParameterKind.BLOB:
            self._bound_blobs.append(native)
        self._next_parameter_index += 1

    def reset(self) -> Self:
        """Return the statement to its unexecuted, unbound state.

        Safe whether or not the previous execution ran to completion.
        """
        try:
            if self._cursor is not None and self._executing:
                self._cursor.close()
                try:
                    self._cursor = self._connection.cursor()
                except sqlite3.Error as exc:
                    self._cursor = None
                    raise wrap_driver_error(StepError, exc, self._sql) from exc
        finally:
            self._parameters.clear()
            self._bound_blobs.clear()
            self._next_parameter_index = 1
            self._executing = False
            self._exhausted = False
            self._current_row = None
        return self

    def execute_and_reset(self) -> Self:
        """Run the statement to completion, discarding rows, then reset.

        On StepError the statement is not reset; call reset() before reuse.
        """
        while self._step():
            pass
        return self.reset()

    def execute_query(self, *column_types: type) -> QueryResult:
        """Return a lazy view of the result rows typed as `column_types`.

        Raises TypeError when a column type has no registered extractor.
        """
        return QueryResult(self, check_column_types(column_types))

    def finalize(self) -> None:
        """Release the statement handle. Later binds and steps fail."""
        if self._cursor is None:
            return
        self._cursor.close()
        self._cursor = None
        self._parameters.clear()
        self._bound_blobs.clear()
        self._executing = False
        self._current_row = None
        logger.debug(f'Finalized statement:\n{self._sql}')

    @dumpsql
    def _execute(self) -> None:
        values = [parameter.value for parameter in self._parameters]
        if self.options.pad_unbound_parameters:
            values.extend([None] * (self._parameter_count - len(values)))
        self._executing = True
        try:
            self._cursor.execute(self._sql, values)
        except sqlite3.Error as exc:
            self._exhausted = True
            raise wrap_driver_error(StepError, exc, self._sql) from exc
        if self._cursor.description is None:
            self._exhausted = True

    def _step(self) -> bool:
        """Advance to the next row. False once execution is exhausted."""
        if self._cursor is None:
            raise StepError(self._sql, status.SQLITE_MISUSE, 'statement has been finalized')
        if not self._executing:
            self._execute()
        if self._exhausted:
            self._current_row = None
            return False
        try:
            row = self._cursor.fetchone()
        except sqlite3.Error as exc:
            self._exhausted = True
            self._current_row = None
            raise wrap_driver_error(StepError, exc, self._sql) from exc
        if row is None:
            self._exhausted = True
            self._current_row = None
            return False
        self._current_row = row
        return True

    def _obtain_column_value(self, index: int, column_type: type) -> Any:
        """Read column `index` (0-based) of the current row as `column_type`.

        Only valid while a row is current. A column past the end of the row
        reads as NULL.
        """
        row = self._current_row
        raw = row[index] if index < len(row) else None
        return extract_column(column_type, raw)

    def _describe_parameters(self) -> list[str] | str:
        if not self.options.log_parameters:
            return '<hidden>'
        return [describe_value(parameter.value) for parameter in self._parameters]

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        self.finalize()

    def __copy__(self):
        raise TypeError('Statement objects cannot be copied')

    def __deepcopy__(self, memo):
        raise TypeError('Statement objects cannot be copied')

    def __repr__(self) -> str:
        state = 'finalized' if self._cursor is None else f'next_parameter_index={self._next_parameter_index}'
        return f'Statement({self._sql!r}, {state})'
