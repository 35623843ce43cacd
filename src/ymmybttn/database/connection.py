"""SQLite connection management with context managers."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path


class DatabaseConnection:
    """Manages SQLite connections with foreign key enforcement.

    Every call opens its own short-lived connection, so one instance can be
    shared between the UI thread and sync workers.
    """

    def __init__(self, db_path: str | Path, busy_timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.busy_timeout = busy_timeout

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=self.busy_timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def get_connection(self):
        """Yield a connection that auto-commits or rolls back."""
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Yield a connection inside an explicit write transaction.

        ``BEGIN IMMEDIATE`` takes the write lock up front so no other
        writer can interleave with the statements issued here. Nothing is
        visible to other connections until the commit succeeds.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()):
        """Run a single statement and return the fetched rows."""
        with self.get_connection() as conn:
            cursor = conn.execute(sql, params)
            return cursor.fetchall()

    def scalar(self, sql: str, params: tuple = ()):
        """Run a query and return the first column of the first row."""
        rows = self.execute(sql, params)
        return rows[0][0] if rows else None
