import sqlite3

import pytest


@pytest.fixture
def sqlite_conn():
    """Create an in-memory SQLite database for testing"""
    conn = sqlite3.connect(':memory:', isolation_level=None)

    # Create test schema
    conn.execute("""
    CREATE TABLE test_table (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        value INTEGER NOT NULL
    )
    """)

    # Insert test data
    conn.execute("""
    INSERT INTO test_table (name, value) VALUES
    ('Alice', 10),
    ('Bob', 20),
    ('Charlie', 30)
    """)

    yield conn
    conn.close()


@pytest.fixture
def messages_conn():
    """In-memory SQLite database with a topics/messages schema"""
    conn = sqlite3.connect(':memory:', isolation_level=None)

    conn.execute("""
    CREATE TABLE topics (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
    """)
    conn.execute("""
    CREATE TABLE messages (
        id INTEGER PRIMARY KEY,
        topic_id INTEGER NOT NULL,
        timestamp INTEGER NOT NULL,
        data BLOB NOT NULL
    )
    """)

    yield conn
    conn.close()
