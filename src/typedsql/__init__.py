"""
Typed prepared statements for SQLite.

Bind an ordered sequence of typed parameters into one prepared statement,
execute it, and read the result as a lazily stepped sequence of tuples whose
column types are declared at the call site:

    stmt = typedsql.prepare(cn, 'select id, name from topics where id > ?')
    for topic_id, name in stmt.bind(10).execute_query(int, str):
        ...
"""
__version__ = '0.1.0'

from typing import Any

from typedsql.exceptions import BindError, DatabaseError, IterationProtocolError
from typedsql.exceptions import PrepareError, StatementError, StepError
from typedsql.options import StatementOptions, iterdict_data_loader
from typedsql.options import load_statement_options, pandas_numpy_data_loader
from typedsql.options import pandas_pyarrow_data_loader
from typedsql.result import QueryResult, RowCursor
from typedsql.statement import Statement
from typedsql.types import BoundParameter, Column, ParameterKind, TimePoint
from typedsql.types import register_column_type, register_parameter_type


def prepare(connection: Any, sql: str, options: StatementOptions | dict[str, Any] | str | None = None,
            config: Any | None = None, **kw: Any) -> Statement:
    """Prepare a statement on an open sqlite3 connection.

    Options may be given as a StatementOptions object, a dict, a config path,
    or as keyword arguments.
    """
    return Statement(connection, sql, load_statement_options(options, config, **kw))


__all__ = [
    'BindError',
    'BoundParameter',
    'Column',
    'DatabaseError',
    'IterationProtocolError',
    'ParameterKind',
    'PrepareError',
    'QueryResult',
    'RowCursor',
    'Statement',
    'StatementError',
    'StatementOptions',
    'StepError',
    'TimePoint',
    'iterdict_data_loader',
    'load_statement_options',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'prepare',
    'register_column_type',
    'register_parameter_type',
]
