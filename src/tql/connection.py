"""
Connection acquisition from DatabaseOptions through SQLAlchemy.

Engines are created with NullPool and kept in a thread-safe registry keyed
by their options; every `connect()` call opens one fresh DB-API connection
wrapped in a `Client`.
"""
import atexit
import logging
import sqlite3
import threading
from collections.abc import Callable
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from tql.client import Client
from tql.options import DatabaseOptions

__all__ = [
    'connect',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    if options.drivername == 'sqlite':
        return url_creator(
            drivername='sqlite',
            database=options.database
        )

    if options.drivername == 'postgresql':
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)

        return url_creator(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    raise ValueError(f'Unsupported database type: {options.drivername}')


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = repr(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        url = create_url_from_options(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}

        if options.drivername == 'sqlite':
            connect_args: dict[str, Any] = {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
            if options.timeout:
                connect_args['timeout'] = options.timeout
            engine_kwargs['connect_args'] = connect_args

        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


def connect(options: DatabaseOptions | dict[str, Any], **kw: Any) -> Client:
    """Open a connection and wrap it in a Client.

    Args:
        options: DatabaseOptions object or dictionary of options
        **kw: Additional keyword arguments overriding dictionary options

    Returns
        Client bound to the dialect of the new connection
    """
    if not isinstance(options, DatabaseOptions):
        options = DatabaseOptions.from_dict(options, **kw)

    engine = get_engine_for_options(options)
    sa_connection = engine.connect()
    return Client(sa_connection, dialect=options.dialect, options=options)
