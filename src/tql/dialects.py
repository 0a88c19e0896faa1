"""
Dialect registry: placeholder syntax per driver.

Every dialect uses ``:name`` for named tokens. Positional placeholders come
in two families:

- ordinal: ``$1, $2, ...`` (Postgres wire protocol drivers)
- repeated: every placeholder is the same token, ``?`` (sqlite3, MySQL wire
  drivers, pyodbc) or ``%s`` (DB-API ``format`` paramstyle drivers such as
  psycopg and pymysql)

The table is fixed at import time. Which dialect a call uses is decided per
connection (see ``resolve_dialect``), never by process-wide state.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import sqlalchemy as sa
from tql.exceptions import UnknownDialectError

__all__ = [
    'Dialect',
    'get_dialect',
    'get_dialect_name',
    'resolve_dialect',
    'get_available_dialects',
    'is_supported_dialect',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Dialect:
    """Placeholder syntax profile of a driver family."""
    name: str
    positional: str
    ordinal: bool = False
    named: str = ':'

    def placeholder(self, number: int) -> str:
        """Positional placeholder for the ``number``-th substitution (1-based)."""
        if self.ordinal:
            return f'{self.positional}{number}'
        return self.positional

    def is_positional_at(self, sql: str, i: int) -> bool:
        """Check whether a native positional placeholder starts at ``sql[i]``."""
        if not sql.startswith(self.positional, i):
            return False
        if self.ordinal:
            nxt = i + len(self.positional)
            return nxt < len(sql) and sql[nxt].isdigit()
        if self.escapes_percent:
            return i == 0 or sql[i - 1] != '%'
        return True

    @property
    def escapes_percent(self) -> bool:
        """Literal ``%`` must be doubled once the query carries parameters."""
        return self.positional.startswith('%')


def _family(positional: str, ordinal: bool, *names: str) -> dict[str, Dialect]:
    return {name: Dialect(name, positional, ordinal) for name in names}


_DIALECTS: MappingProxyType[str, Dialect] = MappingProxyType({
    **_family('$', True, 'postgres', 'pgx', 'pq-timeouts', 'cloudsqlpostgres',
              'ql', 'nrpostgres', 'cockroach', 'asyncpg'),
    **_family('?', False, 'mysql', 'nrmysql', 'mariadb', 'sqlite3', 'nrsqlite3',
              'sqlite', 'pyodbc'),
    **_family('%s', False, 'psycopg', 'psycopg2', 'postgresql', 'pymysql',
              'mysqldb'),
    })

# Driver names (SQLAlchemy ``dialect.driver`` or the root module of a raw
# connection type) that differ from registry keys
_DRIVER_ALIASES = MappingProxyType({
    'mysql': 'pymysql',  # mysql.connector, format paramstyle
    'pysqlite': 'sqlite3',
    'mariadbconnector': 'mariadb',
    'mysqlconnector': 'pymysql',
    })


def get_available_dialects() -> list[str]:
    """Return list of registered dialect names."""
    return list(_DIALECTS.keys())


def is_supported_dialect(name: str) -> bool:
    """Check if a dialect is supported."""
    return name in _DIALECTS


def get_dialect(driver: 'str | Dialect') -> Dialect:
    """Resolve a driver identifier to its dialect.

    >>> get_dialect('postgres').placeholder(2)
    '$2'
    >>> get_dialect('sqlite3').placeholder(2)
    '?'
    """
    if isinstance(driver, Dialect):
        return driver
    try:
        return _DIALECTS[driver]
    except (KeyError, TypeError):
        raise UnknownDialectError(driver, get_available_dialects()) from None


def get_dialect_name(obj: Any) -> str:
    """Get the driver identifier for a connection-like object.

    Handles clients, SQLAlchemy connections, pool-proxied connections and raw
    DB-API connections (detected by the root module of their type).
    """
    dialect = getattr(obj, 'dialect', None)
    if isinstance(dialect, Dialect):
        return dialect.name

    if isinstance(obj, sa.engine.Connection):
        driver = str(obj.dialect.driver).lower()
        return _DRIVER_ALIASES.get(driver, driver)

    if hasattr(obj, 'dbapi_connection'):
        return get_dialect_name(obj.dbapi_connection)

    module = type(obj).__module__.split('.')[0].lower()
    module = _DRIVER_ALIASES.get(module, module)
    if module in _DIALECTS:
        return module

    raise UnknownDialectError(f'{type(obj).__module__}.{type(obj).__name__}')


def resolve_dialect(cn: Any, dialect: 'str | Dialect | None' = None) -> Dialect:
    """Pick the dialect for a call: explicit value first, else detect from ``cn``."""
    if dialect is not None:
        return get_dialect(dialect)
    return get_dialect(get_dialect_name(cn))


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
