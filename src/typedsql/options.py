from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any

import pandas as pd
import pyarrow as pa
from typedsql.types import Column

from libb import ConfigOptions, attrdict, load_options

__all__ = [
    'StatementOptions',
    'load_statement_options',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
]


def iterdict_data_loader(data, columns, **kwargs) -> list[attrdict]:
    """Minimal data loader.

    Returns one attrdict per row keyed by column name.
    """
    if not data:
        return []
    names = Column.get_names(columns)
    return [attrdict(zip(names, row)) for row in data]


def _empty_dataframe(columns) -> pd.DataFrame:
    """Create empty DataFrame with column metadata."""
    df = pd.DataFrame(columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, with columns preserved for empty results.
    Declared column types are kept in the DataFrame.attrs attribute.
    """
    if not data:
        return _empty_dataframe(columns)

    df = pd.DataFrame.from_records(list(data), columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, with columns preserved for empty results.
    """
    if not data:
        return _empty_dataframe(columns)

    column_names = Column.get_names(columns)
    columns_data = [[row[i] for row in data] for i in range(len(column_names))]
    df = pa.table(columns_data, names=column_names).to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


@dataclass
class StatementOptions(ConfigOptions):
    """Options

    - data_loader: Callable used by QueryResult.load (default: iterdict_data_loader)
    - log_parameters: Include bound values in debug SQL logging (default: True)
    - strict_integer_range: Reject int parameters outside signed 32-bit (default: True)
    - pad_unbound_parameters: Bind missing trailing parameters as NULL (default: True)
    """
    data_loader: Callable[..., Any] | None = None
    log_parameters: bool = True
    strict_integer_range: bool = True
    pad_unbound_parameters: bool = True

    def __post_init__(self):
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader
        if not callable(self.data_loader):
            raise ValueError('data_loader must be callable')


def load_statement_options(options: StatementOptions | dict[str, Any] | str | None = None,
                           config: Any | None = None, **kw: Any) -> StatementOptions:
    """Resolve statement options from an options object, dict, config path or keywords.
    """
    if isinstance(options, StatementOptions):
        for field in fields(options):
            kw.pop(field.name, None)
        return options
    if options is None and config is None:
        return StatementOptions(**kw)
    options_func = load_options(cls=StatementOptions)(lambda o, c: o)
    return options_func(options, config, **kw)
