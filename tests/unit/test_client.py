import sqlite3

import pytest
import sqlalchemy as sa
from tql import Client
from tql.exceptions import UnknownDialectError


def test_raw_connection(fake_connection):
    cn = fake_connection(columns=['id'], rows=[('a',)])
    client = Client(cn)

    assert client.sa_connection is None
    assert client.connection is cn
    assert client.dialect.name == 'sqlite3'
    assert client.query_many(str, 'SELECT id FROM t WHERE id = :id', {'id': 'a'}) == ['a']


def test_dialect_override_applies_to_every_call(fake_connection):
    cn = fake_connection(rowcount=1)
    client = Client(cn, dialect='postgres')

    client.execute('UPDATE t SET a = :a WHERE b = :b', {'a': 1, 'b': 2})
    assert cn.last_cursor.executed == [('UPDATE t SET a = $1 WHERE b = $2', (1, 2))]


def test_unknown_dialect(fake_connection):
    with pytest.raises(UnknownDialectError):
        Client(fake_connection(), dialect='oracle')


def test_context_manager_closes_raw_connection():
    conn = sqlite3.connect(':memory:')

    with Client(conn) as client:
        assert client.query_single(int, 'SELECT 1') == 1

    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute('SELECT 1')


def test_sqlalchemy_connection():
    engine = sa.create_engine('sqlite://')
    sa_conn = engine.connect()
    client = Client(sa_conn)

    assert client.sa_connection is sa_conn
    assert client.dialect.name == 'sqlite3'
    assert client.query_single(int, 'SELECT 2') == 2

    client.close()
    assert sa_conn.closed
    engine.dispose()
