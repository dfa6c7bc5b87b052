"""
Statement-level exception classes.

Engine failures (prepare, bind, step) derive from StatementError and are
recoverable by resetting the statement. IterationProtocolError marks misuse
of a result cursor and is kept outside that branch.
"""
import sqlite3

from typedsql.status import status_from_exception, status_name


class DatabaseError(Exception):
    """Base class for all typedsql errors.
    """


class StatementError(DatabaseError):
    """Engine rejected an operation on a prepared statement.
    """

    def __init__(self, message: str, status_code: int | None = None,
                 engine_message: str | None = None) -> None:
        self.status_code = status_code
        self.status_name = status_name(status_code)
        self.engine_message = engine_message
        detail = f'{message}. Return code: {status_code} ({self.status_name})'
        if engine_message:
            detail = f'{detail}: {engine_message}'
        super().__init__(detail)


class PrepareError(StatementError):
    """SQL text could not be compiled into a statement.
    """

    def __init__(self, sql: str, status_code: int | None = None,
                 engine_message: str | None = None) -> None:
        self.sql = sql
        super().__init__(f'Error when preparing SQL statement {sql!r}',
                         status_code, engine_message)


class BindError(StatementError):
    """A parameter value was rejected.
    """

    def __init__(self, parameter_index: int, value_description: str,
                 status_code: int | None = None, engine_message: str | None = None) -> None:
        self.parameter_index = parameter_index
        self.value_description = value_description
        super().__init__(
            f'SQLite error when binding parameter {parameter_index} '
            f"to value '{value_description}'",
            status_code, engine_message)


class StepError(StatementError):
    """Execution failed while stepping the statement.
    """

    def __init__(self, sql: str, status_code: int | None = None,
                 engine_message: str | None = None) -> None:
        self.sql = sql
        super().__init__(f'Error processing SQLite statement {sql!r}',
                         status_code, engine_message)


class IterationProtocolError(DatabaseError):
    """Result cursor used outside its protocol (advanced past the end).
    """


def wrap_driver_error(error_cls: type[StatementError], exc: sqlite3.Error | sqlite3.Warning,
                      *args) -> StatementError:
    """Build `error_cls` from a driver exception, keeping its status and message.
    """
    return error_cls(*args, status_code=status_from_exception(exc), engine_message=str(exc))
