"""
SQLite result codes and mapping of driver exceptions onto them.

The sqlite3 driver raises DB-API exceptions; from Python 3.11 on they carry
the engine's extended result code as ``sqlite_errorcode``. Older drivers (and
errors raised by the driver itself, e.g. binding count checks) only tell us
the exception class, so a class-based fallback is used.
"""
import sqlite3

SQLITE_OK = 0
SQLITE_ERROR = 1
SQLITE_INTERNAL = 2
SQLITE_BUSY = 5
SQLITE_LOCKED = 6
SQLITE_NOMEM = 7
SQLITE_READONLY = 8
SQLITE_INTERRUPT = 9
SQLITE_IOERR = 10
SQLITE_CORRUPT = 11
SQLITE_FULL = 13
SQLITE_CANTOPEN = 14
SQLITE_SCHEMA = 17
SQLITE_TOOBIG = 18
SQLITE_CONSTRAINT = 19
SQLITE_MISMATCH = 20
SQLITE_MISUSE = 21
SQLITE_RANGE = 25
SQLITE_NOTADB = 26
SQLITE_ROW = 100
SQLITE_DONE = 101

_STATUS_NAMES: dict[int, str] = {
    code: name for name, code in globals().items()
    if name.startswith('SQLITE_') and isinstance(code, int)
}

# Checked in order; subclasses first.
_EXCEPTION_STATUS: tuple[tuple[type, int], ...] = (
    (sqlite3.IntegrityError, SQLITE_CONSTRAINT),
    (sqlite3.DataError, SQLITE_TOOBIG),
    (sqlite3.ProgrammingError, SQLITE_MISUSE),
    (sqlite3.InterfaceError, SQLITE_MISUSE),
    (sqlite3.NotSupportedError, SQLITE_MISUSE),
    (sqlite3.InternalError, SQLITE_INTERNAL),
    (sqlite3.OperationalError, SQLITE_ERROR),
    (sqlite3.DatabaseError, SQLITE_ERROR),
)


def status_name(code: int | None) -> str:
    """Return the symbolic name for a result code.

    Extended result codes are named after their primary code.
    """
    if code is None:
        return 'SQLITE_UNKNOWN'
    if code in _STATUS_NAMES:
        return _STATUS_NAMES[code]
    return _STATUS_NAMES.get(code & 0xFF, f'SQLITE_{code}')


def status_from_exception(exc: BaseException) -> int:
    """Get the engine result code behind a driver exception.
    """
    code = getattr(exc, 'sqlite_errorcode', None)
    if isinstance(code, int):
        return code
    for exc_type, status in _EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return status
    return SQLITE_ERROR
