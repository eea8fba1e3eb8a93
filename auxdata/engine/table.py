"""
KeyValueTable - SQL access to one key-value table.
"""

from collections.abc import Iterator

from auxdata.engine.session import Session
from auxdata.models.record import Record, TableName
from auxdata.models.ttl import NEVER_EXPIRES


class KeyValueTable:
    """
    Thin accessor over a table with columns (key, value, exp).

    The table name is a validated TableName and is the only value
    interpolated into statements; everything else is bound as a parameter.
    Statements run on the session, so they join whatever transaction the
    session has open.
    """

    def __init__(self, session: Session, table: TableName) -> None:
        """
        Initialize the accessor.

        Args:
            session: Session holding the connection.
            table: Validated table identifier.
        """
        self._session = session
        self.table = table

    def create(self) -> None:
        """Create the table and its partial expiry index (idempotent)."""
        self._session.execute(
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            " key   TEXT PRIMARY KEY,"
            " value TEXT NOT NULL,"
            " exp   INTEGER NOT NULL"
            ")"
        )
        self._session.execute(
            f"CREATE INDEX IF NOT EXISTS {self.table.index_name} "
            f"ON {self.table}(exp) WHERE exp != {NEVER_EXPIRES}"
        )

    def fetch(self, key: str) -> Record | None:
        row = self._session.fetchone(
            f"SELECT key, value, exp FROM {self.table} WHERE key = ? LIMIT 1",
            (key,),
        )
        if row is None:
            return None
        return Record(key=row[0], value=row[1], exp=int(row[2]))

    def exists(self, key: str, now: int) -> bool:
        """
        Check for a non-expired row without reading its value.

        Args:
            key: The key to check.
            now: Current instant in epoch seconds.
        """
        row = self._session.fetchone(
            f"SELECT 1 FROM {self.table} "
            f"WHERE key = ? AND (exp = ? OR exp >= ?) LIMIT 1",
            (key, NEVER_EXPIRES, now),
        )
        return row is not None

    def scan(self) -> Iterator[Record]:
        """Iterate over every row, expired ones included."""
        for row in self._session.iterate(f"SELECT key, value, exp FROM {self.table}"):
            yield Record(key=row[0], value=row[1], exp=int(row[2]))

    def page(self, limit: int, offset: int) -> list[Record]:
        """
        Fetch one window of rows ordered by key.

        Args:
            limit: Maximum number of rows.
            offset: Number of rows to skip.
        """
        rows = self._session.fetchall(
            f"SELECT key, value, exp FROM {self.table} ORDER BY key LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [Record(key=row[0], value=row[1], exp=int(row[2])) for row in rows]

    def upsert(self, record: Record) -> None:
        """Insert a row, replacing value and expiry of an existing key."""
        self._session.execute(
            f"INSERT OR REPLACE INTO {self.table} (key, value, exp) VALUES (?, ?, ?)",
            (record.key, record.value, record.exp),
        )

    def update_value(self, key: str, value: str) -> None:
        """Rewrite the value of an existing row, leaving its expiry untouched."""
        self._session.execute(
            f"UPDATE {self.table} SET value = ? WHERE key = ?",
            (value, key),
        )

    def delete(self, key: str) -> int:
        cursor = self._session.execute(
            f"DELETE FROM {self.table} WHERE key = ?", (key,)
        )
        return cursor.rowcount

    def delete_if_expired(self, key: str, now: int) -> int:
        """Delete a row only if it is still expired (another handle may have rewritten it)."""
        cursor = self._session.execute(
            f"DELETE FROM {self.table} WHERE key = ? AND exp != ? AND exp < ?",
            (key, NEVER_EXPIRES, now),
        )
        return cursor.rowcount

    def delete_all(self) -> int:
        cursor = self._session.execute(f"DELETE FROM {self.table}")
        return cursor.rowcount

    def delete_expired(self, now: int) -> int:
        """
        Delete every row whose expiry instant is before now.

        Returns:
            Number of rows removed.
        """
        cursor = self._session.execute(
            f"DELETE FROM {self.table} WHERE exp != ? AND exp < ?",
            (NEVER_EXPIRES, now),
        )
        return cursor.rowcount

    def counts(self, now: int) -> tuple[int, int]:
        """
        Count rows in a single statement.

        Returns:
            Tuple of (total, expired).
        """
        row = self._session.fetchone(
            f"SELECT COUNT(*), "
            f"COALESCE(SUM(CASE WHEN exp != ? AND exp < ? THEN 1 ELSE 0 END), 0) "
            f"FROM {self.table}",
            (NEVER_EXPIRES, now),
        )
        return int(row[0]), int(row[1])
