"""
Cursor lifecycle for queries and statements.

A cursor is opened per call and closed on every exit path. A failing close
is never discarded: it raises ``RowCloseError``, which also carries the
error that was already in flight, if any.
"""
import logging
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from functools import wraps
from typing import Any

import sqlalchemy as sa
from tql.exceptions import RowCloseError
from tql.sql import RewrittenQuery

__all__ = [
    'Rows',
    'open_rows',
    'get_raw_connection',
    'dumpsql',
    'IterChunk',
]

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(cursor: Any, query: RewrittenQuery, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{query.text}\nargs: {query.args}')
        try:
            result = func(cursor, query, *args, **kwargs)
            if hasattr(cursor, 'statusmessage'):
                logger.debug(f'Query result: {cursor.statusmessage}')
            return result
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{query.text}\nargs: {query.args}')
            raise
        finally:
            logger.debug(f'Query time: {time.time() - start:.4f}s')
    return wrapper


@dumpsql
def _execute(cursor: Any, query: RewrittenQuery) -> None:
    if query.args:
        cursor.execute(query.text, query.args)
    else:
        cursor.execute(query.text)


def get_raw_connection(cn: Any) -> Any:
    """Extract the object that hands out DB-API cursors.
    """
    if isinstance(cn, sa.engine.Connection):
        return cn.connection
    return cn


def IterChunk(cursor: Any, size: int = 5000) -> Iterator[tuple]:
    """Iterate through cursor results in chunks."""
    while True:
        chunked = cursor.fetchmany(size)
        if not chunked:
            break
        yield from chunked


class Rows:
    """Result rows of one executed query.

    Iterating yields the remaining rows as sequences in column order.
    """

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor
        self._columns: list[str] | None = None

    @property
    def columns(self) -> list[str]:
        """Column names from the cursor description, read once."""
        if self._columns is None:
            self._columns = [desc[0] for desc in (self.cursor.description or [])]
        return self._columns

    @property
    def rowcount(self) -> int:
        return self.cursor.rowcount

    @property
    def lastrowid(self) -> Any:
        return getattr(self.cursor, 'lastrowid', None)

    def __iter__(self) -> Iterator[Sequence[Any]]:
        if self.cursor.description is None:
            return iter(())
        return IterChunk(self.cursor)

    def fetchone(self) -> Sequence[Any] | None:
        if self.cursor.description is None:
            return None
        return self.cursor.fetchone()


def _close(cursor: Any, pending: BaseException | None) -> None:
    try:
        cursor.close()
    except Exception as err:
        logger.error(f'Failed to close cursor: {err}')
        raise RowCloseError(err, pending) from err


@contextmanager
def open_rows(cn: Any, query: RewrittenQuery) -> Iterator[Rows]:
    """Execute ``query`` on a fresh cursor of ``cn`` and yield its rows.

    The cursor is closed however the block exits.
    """
    cursor = get_raw_connection(cn).cursor()
    try:
        _execute(cursor, query)
        yield Rows(cursor)
    except BaseException as err:
        _close(cursor, err)
        raise
    _close(cursor, None)
