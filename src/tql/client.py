"""
Client handle binding one connection to one dialect.

The dialect is resolved once when the client is built and passed to every
call made through it, so clients for different drivers can be used side by
side from any number of threads.
"""
import logging
from typing import Any, Self, TypeVar

import sqlalchemy as sa
from tql import query
from tql.dialects import Dialect, resolve_dialect
from tql.rows import get_raw_connection
from tql.types import ExecResult

__all__ = ['Client']

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Client:
    """Wraps a DB-API connection with typed query methods.

    Accepts a raw DB-API connection or a SQLAlchemy connection. The client
    is itself a querier: it can be passed wherever a connection is expected.
    """

    def __init__(self, connection: Any, dialect: str | Dialect | None = None,
                 options: Any | None = None) -> None:
        self.sa_connection = connection if isinstance(connection, sa.engine.Connection) else None
        self.connection = get_raw_connection(connection)
        self.dialect = resolve_dialect(connection, dialect)
        self.options = options
        logger.debug(f'Client using dialect {self.dialect.name}')

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'Client(dialect={self.dialect.name!r}, connection={self.connection!r})'

    def cursor(self) -> Any:
        """Open a cursor on the underlying DB-API connection."""
        return self.connection.cursor()

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    def close(self) -> None:
        """Close the connection (and its SQLAlchemy wrapper, if any)."""
        if self.sa_connection is not None:
            if not self.sa_connection.closed:
                self.sa_connection.close()
        else:
            self.connection.close()
        logger.debug('Connection closed')

    def query_many(self, row_type: type[T], sql: str, *params: Any) -> list[T]:
        return query.query_many(self, row_type, sql, *params, dialect=self.dialect)

    def query_first(self, row_type: type[T], sql: str, *params: Any) -> T:
        return query.query_first(self, row_type, sql, *params, dialect=self.dialect)

    def query_single(self, row_type: type[T], sql: str, *params: Any) -> T:
        return query.query_single(self, row_type, sql, *params, dialect=self.dialect)

    def query_first_or_default(self, row_type: type[T], default: T, sql: str,
                               *params: Any) -> T:
        return query.query_first_or_default(self, row_type, default, sql, *params,
                                            dialect=self.dialect)

    def query_single_or_default(self, row_type: type[T], default: T, sql: str,
                                *params: Any) -> T:
        return query.query_single_or_default(self, row_type, default, sql, *params,
                                             dialect=self.dialect)

    def execute(self, sql: str, *params: Any) -> ExecResult:
        return query.execute(self, sql, *params, dialect=self.dialect)
