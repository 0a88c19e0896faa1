"""
Typed SQL queries over DB-API connections.

Queries use either named ``:name`` tokens or the driver's native positional
placeholders; rows are bound into scalars, optional scalars, dicts or tagged
dataclass records.

All operations can be called either as:
- Module functions: tql.query_many(cn, Row, sql, *params)
- Client methods: client.query_many(Row, sql, *params)
"""
__version__ = '0.1.0'

from tql.client import Client
from tql.connection import connect, dispose_all_engines
from tql.dialects import Dialect, get_available_dialects, get_dialect
from tql.dialects import get_dialect_name, is_supported_dialect
from tql.exceptions import DatabaseError, DbConnectionError
from tql.exceptions import DuplicateParameterNameError, IntegrityError
from tql.exceptions import InvalidDestinationTypeError, MissingFieldTagError
from tql.exceptions import MixedParameterStyleError, MultipleResultsError
from tql.exceptions import NoRowsError, OperationalError
from tql.exceptions import ParameterNotFoundError, ProgrammingError
from tql.exceptions import QueryError, RowCloseError, ScanError
from tql.exceptions import TypeConversionError, UnknownDialectError
from tql.exceptions import UnmappedColumnError, ValidationError
from tql.mapping import RowBinder, register_binder
from tql.options import DatabaseOptions
from tql.query import execute, query_first, query_first_or_default
from tql.query import query_many, query_single, query_single_or_default
from tql.sql import RewrittenQuery, prepare_query, rewrite_query
from tql.types import ExecResult, column

__all__ = [
    'connect',
    'dispose_all_engines',
    'Client',
    'DatabaseOptions',
    'Dialect',
    'get_dialect',
    'get_dialect_name',
    'get_available_dialects',
    'is_supported_dialect',
    'query_many',
    'query_first',
    'query_single',
    'query_first_or_default',
    'query_single_or_default',
    'execute',
    'prepare_query',
    'rewrite_query',
    'RewrittenQuery',
    'ExecResult',
    'column',
    'RowBinder',
    'register_binder',
    'DatabaseError',
    'QueryError',
    'ValidationError',
    'TypeConversionError',
    'NoRowsError',
    'MultipleResultsError',
    'ParameterNotFoundError',
    'DuplicateParameterNameError',
    'MissingFieldTagError',
    'UnmappedColumnError',
    'MixedParameterStyleError',
    'InvalidDestinationTypeError',
    'UnknownDialectError',
    'ScanError',
    'RowCloseError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
    'DbConnectionError',
]
