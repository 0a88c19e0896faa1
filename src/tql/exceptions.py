"""
Error taxonomy for query translation and result binding.

Driver errors are never wrapped; the groups at the bottom of this module let
callers catch them across backends.
"""
import sqlite3
from typing import Any

import psycopg


class DatabaseError(Exception):
    """Base class for all tql errors.
    """


class QueryError(DatabaseError):
    """Error translating query text or its parameters.
    """


class ValidationError(DatabaseError):
    """Query returned an unexpected number of rows.
    """


class TypeConversionError(DatabaseError):
    """Error binding values between Python types and result rows.
    """


class UnknownDialectError(DatabaseError, ValueError):
    """Driver identifier is not present in the dialect registry.
    """

    def __init__(self, driver: Any, available: list[str] | None = None) -> None:
        self.driver = driver
        msg = f'Unknown dialect: {driver}'
        if available:
            msg = f'{msg}. Available: {available}'
        super().__init__(msg)


class ParameterNotFoundError(QueryError, KeyError):
    """Named token has no corresponding supplied value.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"query parameter '{name}' not found in provided parameters")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateParameterNameError(QueryError):
    """Same parameter name supplied by more than one source.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'found parameter with duplicate name: {name}')


class MixedParameterStyleError(QueryError):
    """Query text mixes native positional placeholders with named tokens.
    """

    def __init__(self, dialect: str, positional: str) -> None:
        self.dialect = dialect
        self.positional = positional
        super().__init__(
            f'mixed positional ({positional!r}) and named parameters '
            f'in query for dialect {dialect}')


class NoRowsError(ValidationError):
    """Query returned no rows where at least one was required.
    """

    def __init__(self, msg: str = 'query returned no rows') -> None:
        super().__init__(msg)


class MultipleResultsError(ValidationError):
    """Query returned more than one row where at most one was required.
    """

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f'found multiple results expected single: got {count} rows')


class MissingFieldTagError(TypeConversionError):
    """Exported field of a record parameter source has no column tag.
    """

    def __init__(self, record_type: type, field: str) -> None:
        self.record_type = record_type
        self.field = field
        super().__init__(
            f"field {field} of {record_type.__qualname__} is not tagged with 'db' tag")


class UnmappedColumnError(TypeConversionError):
    """Result column has no destination field tagged for it.
    """

    def __init__(self, record_type: type, column: str) -> None:
        self.record_type = record_type
        self.column = column
        super().__init__(
            f'no matching field found in {record_type.__qualname__} for column: {column}')


class InvalidDestinationTypeError(TypeConversionError):
    """Destination type cannot hold a single row.
    """

    def __init__(self, row_type: Any, reason: str = 'collection types cannot be bound to a row') -> None:
        self.row_type = row_type
        super().__init__(f'invalid destination type {row_type!r}: {reason}')


class ScanError(TypeConversionError):
    """Row value could not be bound into the destination type.
    """

    def __init__(self, msg: str, column: str | None = None) -> None:
        self.column = column
        super().__init__(msg)


class RowCloseError(DatabaseError):
    """Closing the row iterator failed.

    ``pending`` holds the error that was already in flight when the close was
    attempted, if any; the close failure itself is chained as ``__cause__``.
    """

    def __init__(self, error: BaseException, pending: BaseException | None = None) -> None:
        self.pending = pending
        msg = f'failed to close rows: {error}'
        if pending is not None:
            msg = f'{msg} (while handling: {pending!r})'
        super().__init__(msg)


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    sqlite3.ProgrammingError,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )
