"""
Parameter binding: merge call-time arguments into one name to value mapping.

Each argument is classified once into one of three shapes:

- MAPPING: any ``collections.abc.Mapping``; keys become parameter names
- RECORD: a dataclass instance; each exported field's ``'db'`` tag becomes a
  parameter name and the field's current value the parameter value
- POSITIONAL: anything else, including objects implementing the sqlite3
  ``__conform__`` adapter protocol; passed to the driver as a positional
  argument and never contributes a name
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from tql.cache import cached_metadata
from tql.exceptions import DuplicateParameterNameError, MissingFieldTagError
from tql.types import column_tag, exported_fields, is_record

__all__ = [
    'SourceKind',
    'ParameterSource',
    'classify_source',
    'record_tags',
    'bind_params',
    'positional_args',
]

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    """Shapes a call-time argument can take."""
    MAPPING = auto()
    RECORD = auto()
    POSITIONAL = auto()


@dataclass(frozen=True, slots=True)
class ParameterSource:
    kind: SourceKind
    value: Any


def classify_source(value: Any) -> ParameterSource:
    """Classify one call-time argument.

    >>> classify_source({'id': 1}).kind
    <SourceKind.MAPPING: 1>
    >>> classify_source(42).kind
    <SourceKind.POSITIONAL: 3>
    """
    if isinstance(value, ParameterSource):
        return value
    if isinstance(value, Mapping):
        return ParameterSource(SourceKind.MAPPING, value)
    if is_record(value) and not hasattr(value, '__conform__'):
        return ParameterSource(SourceKind.RECORD, value)
    return ParameterSource(SourceKind.POSITIONAL, value)


@cached_metadata('record_tags')
def record_tags(cls: type) -> tuple[tuple[str, str], ...]:
    """Ordered ``(tag, attribute)`` pairs for a record used as a parameter source.

    Every exported field must be tagged; one untagged field rejects the whole
    type, whether or not a query references it.
    """
    pairs = []
    for f in exported_fields(cls):
        tag = column_tag(f)
        if tag is None:
            raise MissingFieldTagError(cls, f.name)
        pairs.append((tag, f.name))
    return tuple(pairs)


def _merge(parameters: dict[str, Any], name: str, value: Any) -> None:
    if name in parameters:
        raise DuplicateParameterNameError(name)
    parameters[name] = value


def bind_params(*params: Any) -> dict[str, Any]:
    """Build the named parameter set from call-time arguments.

    >>> bind_params({'id': '123'}, 5)
    {'id': '123'}
    >>> bind_params({'id': 1}, {'id': 2})
    Traceback (most recent call last):
    ...
    tql.exceptions.DuplicateParameterNameError: found parameter with duplicate name: id
    """
    parameters: dict[str, Any] = {}
    for source in map(classify_source, params):
        if source.kind is SourceKind.MAPPING:
            for name, value in source.value.items():
                _merge(parameters, name, value)
        elif source.kind is SourceKind.RECORD:
            for tag, attr in record_tags(type(source.value)):
                _merge(parameters, tag, getattr(source.value, attr))
    return parameters


def positional_args(*params: Any) -> tuple[Any, ...]:
    """Arguments meant for native positional placeholders, in call order."""
    return tuple(source.value for source in map(classify_source, params)
                 if source.kind is SourceKind.POSITIONAL)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
