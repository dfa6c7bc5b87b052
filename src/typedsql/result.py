"""
Lazy, typed, single-pass view over a statement's result rows.

QueryResult follows the begin/end cursor protocol: begin() steps the
statement once, so an empty result gives a cursor equal to end(). Each cursor
is also a Python iterator, so a QueryResult can be used in a for loop.

Stepping mutates the shared statement. A second begin() on a partially
consumed result continues where the statement is, it does not restart.
"""
import logging
from typing import TYPE_CHECKING, Any, Self

from typedsql.exceptions import IterationProtocolError
from typedsql.types import Column

if TYPE_CHECKING:
    from typedsql.statement import Statement

__all__ = ['QueryResult', 'RowCursor']

logger = logging.getLogger(__name__)


class RowCursor:
    """Position in a result: number of rows stepped, or POSITION_END."""

    POSITION_END = -1

    def __init__(self, statement: 'Statement', column_types: tuple[type, ...],
                 position: int) -> None:
        self._statement = statement
        self._column_types = column_types
        self._position = position
        if position != self.POSITION_END:
            self._step()

    @property
    def statement(self) -> 'Statement':
        return self._statement

    @property
    def position(self) -> int:
        return self._position

    @property
    def at_end(self) -> bool:
        return self._position == self.POSITION_END

    def _step(self) -> None:
        if self._statement._step():
            self._position += 1
        else:
            self._position = self.POSITION_END

    def advance(self) -> Self:
        """Step to the next row; moves to the end sentinel when exhausted.

        Raises IterationProtocolError on a cursor already at the end.
        """
        if self._position == self.POSITION_END:
            raise IterationProtocolError('Cannot increment result iterator beyond result set!')
        self._step()
        return self

    def current(self) -> tuple:
        """Current row as a tuple of the declared column types."""
        if self._position == self.POSITION_END:
            raise IterationProtocolError('Cannot read a row from the end of the result set!')
        return tuple(self._statement._obtain_column_value(index, column_type)
                     for index, column_type in enumerate(self._column_types))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RowCursor):
            return NotImplemented
        return self._statement is other._statement and self._position == other._position

    __hash__ = None

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> tuple:
        if self._position == self.POSITION_END:
            raise StopIteration
        row = self.current()
        self.advance()
        return row

    def __repr__(self) -> str:
        position = 'end' if self.at_end else self._position
        return f'RowCursor(position={position})'


class QueryResult:
    """Typed rows of one statement execution.

    Holds the statement (keeping it alive) and the declared column types;
    nothing else is buffered.
    """

    def __init__(self, statement: 'Statement', column_types: tuple[type, ...]) -> None:
        self._statement = statement
        self._column_types = column_types

    @property
    def statement(self) -> 'Statement':
        return self._statement

    @property
    def column_types(self) -> tuple[type, ...]:
        return self._column_types

    @property
    def columns(self) -> list[Column]:
        """Column metadata; names are known once the statement has run."""
        return Column.from_description(self._statement.description, self._column_types)

    def begin(self) -> RowCursor:
        return RowCursor(self._statement, self._column_types, 0)

    def end(self) -> RowCursor:
        return RowCursor(self._statement, self._column_types, RowCursor.POSITION_END)

    def __iter__(self) -> RowCursor:
        return self.begin()

    def load(self, data_loader=None, **kwargs: Any) -> Any:
        """Consume the remaining rows through a data loader.

        Uses the statement's configured loader unless one is given.
        """
        rows = list(self)
        data_loader = data_loader or self._statement.options.data_loader
        logger.debug(f'Loading {len(rows)} rows with {getattr(data_loader, "__name__", data_loader)}')
        return data_loader(rows, self.columns, **kwargs)
