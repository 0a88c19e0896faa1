"""
Record and result types shared by the binder and the mapper.

Records are dataclasses whose fields carry a ``'db'`` metadata tag naming the
SQL column (or named parameter) they correspond to:

>>> from dataclasses import dataclass
>>> @dataclass
... class User:
...     id: str = column('id')
...     email: str | None = column('email', default=None)
>>> column_tag(fields(User)[1])
'email'
"""
import dataclasses
from dataclasses import dataclass, fields
from typing import Any

__all__ = [
    'TAG',
    'column',
    'column_tag',
    'exported_fields',
    'is_record',
    'is_record_type',
    'ExecResult',
]

TAG = 'db'


def column(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to the SQL column ``name``.

    Accepts the same keyword arguments as ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[TAG] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def column_tag(f: dataclasses.Field) -> str | None:
    return f.metadata.get(TAG)


def exported_fields(cls: type) -> tuple[dataclasses.Field, ...]:
    """Dataclass fields that are part of the public record shape.

    Fields whose name starts with an underscore are private and ignored.
    """
    return tuple(f for f in fields(cls) if not f.name.startswith('_'))


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def is_record(value: Any) -> bool:
    """Check whether ``value`` is a dataclass instance (not the class)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


@dataclass(frozen=True, slots=True)
class ExecResult:
    """Execution outcome as reported by the driver cursor."""
    rowcount: int
    lastrowid: Any = None

    @property
    def rows_affected(self) -> int:
        return self.rowcount

    @property
    def last_insert_id(self) -> Any:
        return self.lastrowid


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
