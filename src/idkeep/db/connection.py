"""
SQLite connection management for the credential store.
Every statement is parameterized; key material never appears in SQL text.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..errors import DatabaseError
from ..logger import get_logger

logger = get_logger(__name__)

MEMORY_PATH = ":memory:"


class DatabaseConnection:
    """
    Lazily opened SQLite connection with transaction support.
    """

    def __init__(self, db_path: str):
        """
        Args:
            db_path: Path to the database file, or ":memory:"
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._depth = 0

    @property
    def in_memory(self) -> bool:
        return self.db_path == MEMORY_PATH

    def connect(self) -> sqlite3.Connection:
        """
        Open the connection if needed and return it.

        Raises:
            DatabaseError: If the database cannot be opened
        """
        if self._connection is not None:
            return self._connection

        try:
            if not self.in_memory:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            # Autocommit off; transactions are opened explicitly.
            conn = sqlite3.connect(self.db_path, isolation_level='DEFERRED')
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA trusted_schema = OFF")
            if not self.in_memory:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.row_factory = sqlite3.Row

            self._connection = conn
            logger.debug("Opened database %s", self.db_path)
            return conn

        except (sqlite3.Error, OSError) as e:
            raise DatabaseError(f"Failed to open database {self.db_path}: {e}")

    def close(self):
        """Close the connection if it is open."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """
        Run one statement.

        Raises:
            DatabaseError: If SQLite rejects the statement
        """
        conn = self.connect()
        try:
            return conn.execute(sql, params)
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise DatabaseError(f"SQL execution failed: {e}")

    def fetch_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Run a query and return its first row, or None."""
        return self.execute(sql, params).fetchone()

    def fetch_all(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a query and return every row."""
        return self.execute(sql, params).fetchall()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Commit on success, roll back on any exception.
        Nested blocks join the outermost one, which alone commits or rolls back.

        Usage:
            with db.transaction():
                db.execute(...)
        """
        conn = self.connect()
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield conn
            if outermost:
                conn.commit()
        except Exception:
            if outermost:
                conn.rollback()
            raise
        finally:
            self._depth -= 1

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and self._connection is not None:
            self._connection.rollback()
        self.close()
