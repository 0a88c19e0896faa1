"""
Fixtures for SQLite-specific integration tests.
"""
import pytest
import tql


@pytest.fixture
def sqlite_file_client(tmp_path):
    """File-based SQLite client for testing persistence across connections."""
    db_file = str(tmp_path / 'tql_test.db')

    client = tql.connect({
        'drivername': 'sqlite',
        'database': db_file
    })

    # Create test schema
    client.execute("""
    CREATE TABLE test_table (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        value INTEGER NOT NULL
    )
    """)

    # Insert test data
    client.execute("""
    INSERT INTO test_table (name, value) VALUES
    ('Alice', 10),
    ('Bob', 20),
    ('Charlie', 30)
    """)
    client.commit()

    yield client, db_file

    client.close()
