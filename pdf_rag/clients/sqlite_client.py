import asyncio
import sqlite3
import threading
from sqlite3 import Connection

SQLITE_URL_PREFIX = "sqlite:///"
WRITE_STATEMENTS = ("INSERT", "UPDATE", "DELETE", "CREATE", "DROP")


def database_path_from_url(database_url: str) -> str:
    """Turn ``sqlite:///path/to.db`` (or a bare path) into a sqlite3 path."""
    if database_url.startswith(SQLITE_URL_PREFIX):
        return database_url[len(SQLITE_URL_PREFIX):] or ":memory:"
    return database_url


class SqliteClient:
    """SQLite database client with connection management."""

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        # Used from worker threads; every statement runs under _lock
        self._connection = sqlite3.connect(
            database_path_from_url(connection_string),
            check_same_thread=False,
        )
        self._lock = threading.Lock()

    @property
    def connection(self) -> Connection:
        """Get the database connection."""
        return self._connection

    def execute_query(self, query: str, params=None):
        """Execute a query and return all results."""
        with self._lock:
            cursor = self._connection.cursor()
            try:
                if params:
                    cursor.execute(query, params)
                else:
                    cursor.execute(query)

                # Commit for write operations
                if query.strip().upper().startswith(WRITE_STATEMENTS):
                    self._connection.commit()

                return cursor.fetchall()
            finally:
                cursor.close()

    async def execute_query_async(self, query: str, params=None):
        """Run ``execute_query`` in a worker thread so the event loop keeps serving."""
        return await asyncio.to_thread(self.execute_query, query, params)

    def ping(self) -> None:
        """Round-trip a trivial query; raises sqlite3.Error if unusable."""
        self.execute_query("SELECT 1")

    def close(self):
        """Close the database connection."""
        with self._lock:
            self._connection.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        self.close()
        return False
