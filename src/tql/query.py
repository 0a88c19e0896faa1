"""
Query operations binding result rows into typed values.

Every function takes a querier (any DB-API connection, a SQLAlchemy
connection or a ``Client``), the destination type of one row, the SQL text
and the call-time arguments. Arguments are mappings, dataclass records
(named ``:name`` tokens) or plain values (native positional placeholders).

The dialect is resolved from the connection unless passed explicitly. Driver
errors propagate unchanged; nothing is retried.
"""
import logging
from typing import Any, TypeVar

from tql.dialects import Dialect, resolve_dialect
from tql.exceptions import MultipleResultsError, NoRowsError
from tql.mapping import binder_for
from tql.rows import open_rows
from tql.sql import prepare_query
from tql.types import ExecResult

__all__ = [
    'query_many',
    'query_first',
    'query_single',
    'query_first_or_default',
    'query_single_or_default',
    'execute',
]

T = TypeVar('T')

logger = logging.getLogger(__name__)


def query_many(cn: Any, row_type: type[T], sql: str, *params: Any,
               dialect: str | Dialect | None = None) -> list[T]:
    """Execute a query and bind every row into ``row_type``.

    Returns an empty list when no rows match.
    """
    binder = binder_for(row_type)
    query = prepare_query(sql, params, resolve_dialect(cn, dialect))

    result: list[T] = []
    with open_rows(cn, query) as rows:
        bind = None
        for row in rows:
            if bind is None:
                bind = binder.compile(rows.columns)
            result.append(bind(row))
    logger.debug(f'Query returned {len(result)} rows of {row_type!r}')
    return result


def query_first(cn: Any, row_type: type[T], sql: str, *params: Any,
                dialect: str | Dialect | None = None) -> T:
    """Execute a query and bind its first row into ``row_type``.

    Raises NoRowsError if the query returns no rows.
    """
    binder = binder_for(row_type)
    query = prepare_query(sql, params, resolve_dialect(cn, dialect))

    with open_rows(cn, query) as rows:
        row = rows.fetchone()
        if row is None:
            raise NoRowsError
        return binder.compile(rows.columns)(row)


def query_single(cn: Any, row_type: type[T], sql: str, *params: Any,
                 dialect: str | Dialect | None = None) -> T:
    """Execute a query expected to return exactly one row.

    Raises NoRowsError for zero rows and MultipleResultsError for more than one.
    """
    results = query_many(cn, row_type, sql, *params, dialect=dialect)
    if not results:
        raise NoRowsError
    if len(results) > 1:
        raise MultipleResultsError(len(results))
    return results[0]


def query_first_or_default(cn: Any, row_type: type[T], default: T, sql: str,
                           *params: Any, dialect: str | Dialect | None = None) -> T:
    """Variant of query_first returning ``default`` when no rows match.
    """
    try:
        return query_first(cn, row_type, sql, *params, dialect=dialect)
    except NoRowsError:
        return default


def query_single_or_default(cn: Any, row_type: type[T], default: T, sql: str,
                            *params: Any, dialect: str | Dialect | None = None) -> T:
    """Variant of query_single returning ``default`` when no rows match.

    More than one row still raises MultipleResultsError.
    """
    try:
        return query_single(cn, row_type, sql, *params, dialect=dialect)
    except NoRowsError:
        return default


def execute(cn: Any, sql: str, *params: Any,
            dialect: str | Dialect | None = None) -> ExecResult:
    """Execute a statement and return the driver's execution outcome.

    Does not commit; transactions belong to the connection.

    >>> import sqlite3
    >>> conn = sqlite3.connect(':memory:')
    >>> execute(conn, 'CREATE TABLE test (id INTEGER, name TEXT)').rowcount
    -1
    >>> execute(conn, 'INSERT INTO test VALUES (:id, :name)', {'id': 1, 'name': 'test'})
    ExecResult(rowcount=1, lastrowid=1)
    """
    query = prepare_query(sql, params, resolve_dialect(cn, dialect))
    with open_rows(cn, query) as rows:
        result = ExecResult(rows.rowcount, rows.lastrowid)
    logger.debug(f'Executed statement, {result.rowcount} rows affected')
    return result


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
