"""
Result mapping: bind result rows into destination types.

A destination type is matched once to one binding strategy:

- RecordBinder: dataclass records, columns matched by ``'db'`` field tags
- NullableBinder: ``X | None``; SQL NULL becomes ``None``
- MappingBinder: ``dict``; the row as ``{column: value}``
- ScalarBinder: any other type; single-column rows

Collection types are rejected: a collection is only ever the outer result
of ``query_many``, never the type of one row.

Strategies for custom types can be registered explicitly:

    @register_binder(Money)
    class MoneyBinder(ScalarBinder):
        ...
"""
import datetime
import decimal
import logging
import types
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import MISSING, fields
from typing import Any, Union, get_args, get_origin, get_type_hints

import dateutil.parser
from tql.cache import Cache, cached_metadata
from tql.exceptions import InvalidDestinationTypeError, ScanError
from tql.exceptions import UnmappedColumnError
from tql.types import column_tag, exported_fields, is_record_type

__all__ = [
    'RowBinder',
    'RecordBinder',
    'NullableBinder',
    'MappingBinder',
    'ScalarBinder',
    'binder_for',
    'register_binder',
    'record_columns',
    'coerce',
]

logger = logging.getLogger(__name__)

RowFunc = Callable[[Sequence[Any]], Any]

_COLLECTION_TYPES = (list, tuple, set, frozenset, Sequence)

# Registry of destination type -> binder class
_BINDER_REGISTRY: dict[Any, type['RowBinder']] = {}


def register_binder(row_type: Any):
    """Decorator to register a binder class for a destination type.

    Usage:
        @register_binder(Money)
        class MoneyBinder(ScalarBinder):
            ...
    """
    def decorator(cls: type['RowBinder']) -> type['RowBinder']:
        manager = Cache.get_instance()
        with manager.lock:
            _BINDER_REGISTRY[row_type] = cls
            # drop a strategy selected before this registration
            manager.get_cache('binders').pop(row_type, None)
        return cls
    return decorator


def _optional_inner(tp: Any) -> tuple[bool, Any]:
    """Split ``X | None`` into ``(True, X)``; other types give ``(False, tp)``."""
    if get_origin(tp) in {Union, types.UnionType}:
        args = get_args(tp)
        if type(None) in args:
            rest = tuple(a for a in args if a is not type(None))
            if len(rest) == 1:
                return True, rest[0]
            return True, Any
    return False, tp


def _is_collection(tp: Any) -> bool:
    origin = get_origin(tp) or tp
    return isinstance(origin, type) and origin in _COLLECTION_TYPES


def _is_mapping(tp: Any) -> bool:
    return tp is dict or get_origin(tp) is dict


def _text(value):
    return value.decode() if isinstance(value, bytes) else value


def convert_date(value) -> datetime.date:
    """Convert ISO 8601 date string to date object"""
    if isinstance(value, datetime.datetime):
        return value.date()
    return dateutil.parser.isoparse(_text(value)).date()


def convert_datetime(value) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object"""
    return dateutil.parser.isoparse(_text(value))


def convert_time(value) -> datetime.time:
    """Convert ISO 8601 time string to time object"""
    return dateutil.parser.isoparser().parse_isotime(_text(value))


def convert_int(value) -> int:
    """Integral values only; a fractional part is an error, not truncated.

    >>> convert_int(2.0)
    2
    >>> convert_int(1.9)
    Traceback (most recent call last):
    ...
    ValueError: 1.9 has a fractional part
    """
    if isinstance(value, float | decimal.Decimal) and value != int(value):
        raise ValueError(f'{value} has a fractional part')
    return int(_text(value))


_TRUE = {'1', 't', 'true'}
_FALSE = {'0', 'f', 'false'}


def convert_bool(value) -> bool:
    """Accept 0/1 numbers and the usual true/false spellings.

    >>> convert_bool('false'), convert_bool(1)
    (False, True)
    """
    if isinstance(value, int | float | decimal.Decimal):
        if value in {0, 1}:
            return bool(value)
        raise ValueError(f'{value} is not a valid bool')
    text = str(_text(value)).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f'{value!r} is not a valid bool')


def _to_uuid(value):
    if isinstance(value, bytes) and len(value) == 16:
        return uuid.UUID(bytes=value)
    if isinstance(value, bytes):
        value = value.decode()
    return uuid.UUID(str(value))


_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    datetime.datetime: convert_datetime,
    datetime.date: convert_date,
    datetime.time: convert_time,
    int: convert_int,
    bool: convert_bool,
    decimal.Decimal: lambda v: decimal.Decimal(str(v)),
    uuid.UUID: _to_uuid,
    str: lambda v: str(_text(v)),
    }


def _narrower(tp: type, value: Any) -> bool:
    """bool passes isinstance for int, datetime for date."""
    return ((tp is int and isinstance(value, bool))
            or (tp is datetime.date and isinstance(value, datetime.datetime)))


def coerce(value: Any, tp: Any, column: str | None = None) -> Any:
    """Convert a non-NULL column value into ``tp``.

    Values already of the right type pass through, as does anything bound to
    ``Any``, ``object`` or a parameterized generic.

    >>> coerce(420, str)
    '420'
    >>> coerce('2024-01-31', datetime.date)
    datetime.date(2024, 1, 31)
    """
    if tp is Any or tp is object or get_origin(tp) is not None or not isinstance(tp, type):
        return value
    if isinstance(value, tp) and not _narrower(tp, value):
        return value
    converter = _CONVERTERS.get(tp, tp)
    try:
        return converter(value)
    except (TypeError, ValueError, OverflowError, decimal.InvalidOperation) as err:
        raise ScanError(
            f'cannot convert {type(value).__name__} value {value!r} to {tp.__name__}'
            + (f' for column {column}' if column else '') + f': {err}',
            column=column) from err


class RowBinder(ABC):
    """Binds rows of one result set into a destination type.
    """

    def __init__(self, row_type: Any) -> None:
        self.row_type = row_type

    @abstractmethod
    def compile(self, columns: Sequence[str]) -> RowFunc:
        """Build the per-row function for a result set with ``columns``.

        Called once per query, before the first row is bound.
        """


class ScalarBinder(RowBinder):
    """Binds single-column rows into a plain type. NULL is an error.
    """

    def compile(self, columns: Sequence[str]) -> RowFunc:
        column = self._single_column(columns)
        row_type = self.row_type

        def bind(row: Sequence[Any]) -> Any:
            value = row[0]
            if value is None:
                raise ScanError(
                    f'converting NULL to {getattr(row_type, "__name__", row_type)} '
                    f'is unsupported for column {column}', column=column)
            return coerce(value, row_type, column)
        return bind

    def _single_column(self, columns: Sequence[str]) -> str:
        if len(columns) != 1:
            raise ScanError(
                f'expected 1 column for {self.row_type!r}, got {len(columns)}: {list(columns)}')
        return columns[0]


class NullableBinder(ScalarBinder):
    """Binds single-column rows into ``X | None``; NULL gives ``None``.
    """

    def __init__(self, row_type: Any) -> None:
        super().__init__(row_type)
        _, self.inner = _optional_inner(row_type)

    def compile(self, columns: Sequence[str]) -> RowFunc:
        column = self._single_column(columns)
        inner = self.inner

        def bind(row: Sequence[Any]) -> Any:
            value = row[0]
            if value is None:
                return None
            return coerce(value, inner, column)
        return bind


class MappingBinder(RowBinder):
    """Binds rows into dicts keyed by column name.
    """

    def compile(self, columns: Sequence[str]) -> RowFunc:
        columns = tuple(columns)
        return lambda row: dict(zip(columns, row))


@cached_metadata('record_columns')
def record_columns(cls: type) -> dict[str, tuple[str, Any, bool]]:
    """Column tag -> ``(attribute, type, nullable)`` for a record destination.

    Only exported, tagged fields take part; untagged fields are left alone.
    """
    hints = get_type_hints(cls)
    table = {}
    for f in exported_fields(cls):
        tag = column_tag(f)
        if tag is None:
            continue
        nullable, tp = _optional_inner(hints.get(f.name, Any))
        table[tag] = (f.name, tp, nullable)
    return table


def _unset_fields(cls: type, covered: set[str]) -> dict[str, None]:
    """Init fields without defaults that a result set does not cover."""
    return {f.name: None for f in fields(cls)
            if f.init and f.name not in covered
            and f.default is MISSING and f.default_factory is MISSING}


class RecordBinder(RowBinder):
    """Binds rows into dataclass records by column tag.

    Every column must have a tagged field; fields the result does not cover
    keep their default, or ``None`` when they have none.
    """

    def compile(self, columns: Sequence[str]) -> RowFunc:
        table = record_columns(self.row_type)
        slots = []
        for column in columns:
            try:
                attr, tp, nullable = table[column]
            except KeyError:
                raise UnmappedColumnError(self.row_type, column) from None
            slots.append((column, attr, tp, nullable))

        row_type = self.row_type
        unset = _unset_fields(row_type, {attr for _, attr, _, _ in slots})
        # init=False fields are set on the built record
        late = {f.name for f in fields(row_type) if not f.init}

        def bind(row: Sequence[Any]) -> Any:
            values = dict(unset)
            after = {}
            for (column, attr, tp, nullable), value in zip(slots, row):
                if value is None:
                    if not nullable and tp is not Any:
                        raise ScanError(
                            f'converting NULL to {getattr(tp, "__name__", tp)} is unsupported '
                            f'for column {column} of {row_type.__qualname__}', column=column)
                else:
                    value = coerce(value, tp, column)
                (after if attr in late else values)[attr] = value
            record = row_type(**values)
            for attr, value in after.items():
                object.__setattr__(record, attr, value)
            return record
        return bind


@cached_metadata('binders')
def binder_for(row_type: Any) -> RowBinder:
    """Select the binding strategy for a destination type.

    >>> type(binder_for(int)).__name__
    'ScalarBinder'
    >>> type(binder_for(str | None)).__name__
    'NullableBinder'
    """
    if row_type in _BINDER_REGISTRY:
        return _BINDER_REGISTRY[row_type](row_type)

    if _is_collection(row_type):
        raise InvalidDestinationTypeError(row_type)

    nullable, inner = _optional_inner(row_type)
    if nullable:
        if is_record_type(inner) or _is_collection(inner) or _is_mapping(inner):
            raise InvalidDestinationTypeError(
                row_type, 'only scalar types can be bound as nullable')
        return NullableBinder(row_type)

    if is_record_type(row_type):
        return RecordBinder(row_type)

    if _is_mapping(row_type):
        return MappingBinder(row_type)

    return ScalarBinder(row_type)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
