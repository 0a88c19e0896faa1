"""
SQL parameter translation with a single-pass tokenizer.

Named ``:name`` tokens are rewritten into the dialect's positional syntax
while the matching argument list is built in occurrence order:

    SQL + params → bind names → scan once → RewrittenQuery(text, args)

Main entry points:
- `prepare_query(sql, params, dialect)` - bind call-time arguments and rewrite
- `rewrite_query(sql, dialect, parameters, positional)` - rewrite only

Scanning rules:
- quoted strings, quoted identifiers and comments are copied verbatim and
  never contain placeholders or names
- ``::`` (Postgres cast) and a ``:`` not followed by a name character are
  copied verbatim
- a query must use exactly one placeholder style; native positional
  placeholders next to named tokens fail the whole call
"""
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from tql.dialects import Dialect, get_dialect
from tql.exceptions import MixedParameterStyleError, ParameterNotFoundError
from tql.params import bind_params, positional_args

__all__ = [
    'RewrittenQuery',
    'is_name_char',
    'rewrite_query',
    'prepare_query',
]

logger = logging.getLogger(__name__)


class State(Enum):
    """Scanner states."""
    NORMAL = auto()
    IN_NAME = auto()
    IN_QUOTE = auto()
    IN_LINE_COMMENT = auto()
    IN_BLOCK_COMMENT = auto()


@dataclass(frozen=True, slots=True)
class RewrittenQuery:
    """Driver-ready query text and its ordered arguments."""
    text: str
    args: tuple[Any, ...] = ()


def is_name_char(c: str) -> bool:
    return c.isalnum() or c == '_'


class _Scanner:
    """Left-to-right rewrite of one query."""

    def __init__(self, sql: str, dialect: Dialect, parameters: Mapping[str, Any]) -> None:
        self.sql = sql
        self.dialect = dialect
        self.parameters = parameters
        self.out: list[str] = []
        self.args: list[Any] = []
        self.name: list[str] = []
        self.state = State.NORMAL
        self.quote = ''
        self.saw_positional = False

    def run(self) -> None:
        sql, i, n = self.sql, 0, len(self.sql)
        while i < n:
            c = sql[i]

            if self.state is State.IN_NAME:
                if is_name_char(c):
                    self.name.append(c)
                    i += 1
                    continue
                # terminator is reprocessed in NORMAL
                self.substitute()

            if self.state is State.IN_QUOTE:
                self.emit(c)
                if c == self.quote:
                    self.state = State.NORMAL
                i += 1
                continue

            if self.state is State.IN_LINE_COMMENT:
                self.emit(c)
                if c == '\n':
                    self.state = State.NORMAL
                i += 1
                continue

            if self.state is State.IN_BLOCK_COMMENT:
                if sql.startswith('*/', i):
                    self.emit('*/')
                    self.state = State.NORMAL
                    i += 2
                else:
                    self.emit(c)
                    i += 1
                continue

            if c in {"'", '"', '`'}:
                self.quote = c
                self.state = State.IN_QUOTE
            elif sql.startswith('--', i):
                self.state = State.IN_LINE_COMMENT
            elif sql.startswith('/*', i):
                self.emit('/*')
                self.state = State.IN_BLOCK_COMMENT
                i += 2
                continue
            elif c == self.dialect.named:
                if sql.startswith(self.dialect.named * 2, i):
                    self.emit(self.dialect.named * 2)
                    i += 2
                    continue
                if i + 1 < n and is_name_char(sql[i + 1]):
                    self.state = State.IN_NAME
                    self.name = []
                    i += 1
                    continue
            elif self.dialect.is_positional_at(sql, i):
                self.saw_positional = True

            self.emit(c)
            i += 1

        if self.state is State.IN_NAME:
            self.substitute()

    def emit(self, text: str) -> None:
        if self.dialect.escapes_percent:
            text = text.replace('%', '%%')
        self.out.append(text)

    def substitute(self) -> None:
        name = ''.join(self.name)
        try:
            value = self.parameters[name]
        except KeyError:
            raise ParameterNotFoundError(name) from None
        self.args.append(value)
        self.out.append(self.dialect.placeholder(len(self.args)))
        self.state = State.NORMAL


def rewrite_query(sql: str, dialect: 'Dialect | str', parameters: Mapping[str, Any],
                  positional: Sequence[Any] = ()) -> RewrittenQuery:
    """Rewrite named tokens into the dialect's positional placeholders.

    Each occurrence gets its own placeholder (numbered 1..n for ordinal
    dialects) and its own argument, so a name used twice is bound twice.
    Without named tokens the text and the positional arguments are returned
    unchanged.

    >>> rewrite_query('SELECT * FROM t WHERE id = :id;', 'postgres', {'id': '123'})
    RewrittenQuery(text='SELECT * FROM t WHERE id = $1;', args=('123',))
    >>> rewrite_query('SELECT * FROM t WHERE id = :id', 'sqlite3', {'id': '123'})
    RewrittenQuery(text='SELECT * FROM t WHERE id = ?', args=('123',))
    >>> rewrite_query('SELECT * FROM t WHERE id = ?', 'sqlite3', {}, ['123'])
    RewrittenQuery(text='SELECT * FROM t WHERE id = ?', args=('123',))
    """
    dialect = get_dialect(dialect)
    scanner = _Scanner(sql, dialect, parameters)
    scanner.run()

    if not scanner.args:
        return RewrittenQuery(sql, tuple(positional))

    if scanner.saw_positional:
        raise MixedParameterStyleError(dialect.name, dialect.positional)

    return RewrittenQuery(''.join(scanner.out), tuple(scanner.args))


def prepare_query(sql: str, params: Sequence[Any], dialect: 'Dialect | str') -> RewrittenQuery:
    """Bind call-time arguments and rewrite the query for ``dialect``.
    """
    parameters = bind_params(*params)
    query = rewrite_query(sql, dialect, parameters, positional_args(*params))
    logger.debug(f'Prepared query with {len(query.args)} parameters: {query.text[:60]}...')
    return query


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
