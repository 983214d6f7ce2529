import sqlite3
from typing import Protocol


class Storage(Protocol):
    """Key-value store the session credential is persisted in."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; nothing survives a restart."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteStorage:
    def __init__(self, db_name="session.db"):
        """
        Initialize SQLite-backed storage.
        The credential survives restarts as long as the same file is used.
        """
        self.conn = sqlite3.connect(db_name, check_same_thread=False)
        self.create_tables()

    def create_tables(self):
        """Create the key-value table."""
        cursor = self.conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        ''')
        self.conn.commit()

    def get(self, key):
        """Retrieve a value by key."""
        cursor = self.conn.cursor()
        cursor.execute('SELECT value FROM kv WHERE key = ?', (key,))
        row = cursor.fetchone()
        return row[0] if row else None

    def set(self, key, value):
        """Insert or overwrite a value."""
        cursor = self.conn.cursor()
        cursor.execute('''
            INSERT INTO kv (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
        ''', (key, value))
        self.conn.commit()

    def remove(self, key):
        """Delete a key; missing keys are ignored."""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM kv WHERE key = ?', (key,))
        self.conn.commit()

    def close(self):
        """Close the database connection."""
        self.conn.close()
