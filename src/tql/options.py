from dataclasses import dataclass, fields
from typing import Any

from tql.dialects import get_available_dialects, is_supported_dialect

__all__ = ['DatabaseOptions', 'SUPPORTED_DRIVERS']

SUPPORTED_DRIVERS = ('postgresql', 'sqlite')


@dataclass
class DatabaseOptions:
    """Options

    supported driver names: `postgresql`, `sqlite`

    `dialect` overrides the placeholder dialect detected from the connection
    (`psycopg` for postgresql, `sqlite3` for sqlite). `timeout` is the
    connect timeout in seconds for postgresql and the busy timeout for sqlite.
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    dialect: str = None

    def __post_init__(self):
        if self.drivername not in SUPPORTED_DRIVERS:
            raise ValueError(f'drivername must be one of: {list(SUPPORTED_DRIVERS)}')
        if self.drivername == 'sqlite' and not self.database:
            raise ValueError('database is required for sqlite')
        if self.dialect is not None and not is_supported_dialect(self.dialect):
            raise ValueError(f'dialect must be one of: {get_available_dialects()}')

    @classmethod
    def from_dict(cls, options: dict[str, Any], **kw: Any) -> 'DatabaseOptions':
        """Build options from a mapping, keyword arguments taking precedence.

        Unknown keys are rejected.
        """
        merged = {**options, **kw}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ValueError(f'Unknown database options: {unknown}')
        return cls(**merged)
