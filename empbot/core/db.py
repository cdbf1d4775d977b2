"""
SQLite foundation for the document store.
Documents are JSON objects addressed by (project_id, collection, doc_id).
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional
from . import config

REQUIRED_TABLES = ['documents']

@contextmanager
def get_db(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection in autocommit mode.

    Callers that need atomic read-modify-write open their own
    transaction with BEGIN IMMEDIATE.
    """
    conn = sqlite3.connect(db_path or config.DB_PATH, timeout=30, isolation_level=None)
    try:
        yield conn
    finally:
        conn.close()

def init_db(db_path: Optional[str] = None):
    """Initialize the database with required tables."""
    Path(db_path or config.DB_PATH).parent.mkdir(parents=True, exist_ok=True)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS documents (
                project_id TEXT NOT NULL,
                collection TEXT NOT NULL,
                doc_id TEXT NOT NULL,
                data TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (project_id, collection, doc_id)
            )
        ''')

        # Notes are listed per collection in creation order
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_documents_collection_created ON documents(project_id, collection, created_at)')

def health_check(db_path: Optional[str] = None):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]
            return all(table in table_names for table in REQUIRED_TABLES)
    except sqlite3.Error:
        return False
