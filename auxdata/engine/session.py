"""
Session - Transaction manager over a single SQLite connection.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from auxdata.models.exceptions import (
    InvalidArgumentError,
    StorageBusyError,
    StorageError,
    StorageUnavailableError,
    TransactionAlreadyActiveError,
    TransactionNotActiveError,
)

logger = logging.getLogger(__name__)


class Session:
    """
    Owns the connection of one store handle and scopes its transactions.

    The connection runs in autocommit mode; transactions are opened
    explicitly with BEGIN IMMEDIATE so the writer lock is held from the
    first statement. Read-modify-write sequences therefore serialize
    against other handles instead of failing when a reader upgrades.

    Provides:
    - begin()/commit()/rollback(): explicit, non-reentrant transaction
    - transaction(): context manager, commit on success, rollback on error
    - atomic(): context manager that opens a transaction, or a savepoint
      when one is already open
    """

    def __init__(self, connection: sqlite3.Connection, path: str) -> None:
        """
        Initialize the session.

        Args:
            connection: Open connection with isolation_level=None.
            path: Path of the database file (for messages).
        """
        self.path = path
        self._conn: sqlite3.Connection | None = connection
        self._savepoint_seq = 0

    @property
    def closed(self) -> bool:
        return self._conn is None

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None and self._conn.in_transaction

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageUnavailableError(f"Store is closed: {self.path}")
        return self._conn

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        """Map sqlite3 failures onto the auxdata error taxonomy."""
        try:
            yield
        except sqlite3.OperationalError as e:
            message = str(e).lower()
            if "locked" in message or "busy" in message:
                logger.warning(f"Writer lock not acquired on {self.path}: {e}")
                raise StorageBusyError(
                    f"Database is busy, lock not acquired in time: {self.path}"
                ) from e
            raise StorageError(f"SQLite error on {self.path}: {e}") from e
        except sqlite3.ProgrammingError as e:
            if "closed" in str(e).lower():
                raise StorageUnavailableError(f"Store is closed: {self.path}") from e
            raise StorageError(f"SQLite error on {self.path}: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error on {self.path}: {e}") from e
        except (UnicodeEncodeError, OverflowError) as e:
            # Raised by sqlite3 while binding a parameter
            raise InvalidArgumentError(f"Parameter cannot be stored: {e}") from e

    def execute(self, sql: str, params: tuple | dict = ()) -> sqlite3.Cursor:
        """
        Execute a single statement.

        Raises:
            StorageBusyError: If the lock wait exceeded the busy timeout.
            StorageError: For any other database failure.
        """
        conn = self._connection()
        with self._translate_errors():
            return conn.execute(sql, params)

    def fetchone(self, sql: str, params: tuple | dict = ()) -> Any:
        conn = self._connection()
        with self._translate_errors():
            return conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple | dict = ()) -> list[Any]:
        conn = self._connection()
        with self._translate_errors():
            return conn.execute(sql, params).fetchall()

    def iterate(self, sql: str, params: tuple | dict = ()) -> Iterator[Any]:
        """
        Yield rows from a live cursor.

        Errors raised while stepping the cursor are translated like those of
        execute().
        """
        conn = self._connection()
        with self._translate_errors():
            yield from conn.execute(sql, params)

    # -- transaction control ---------------------------------------------------

    def begin(self) -> None:
        """
        Open a transaction and take the writer lock.

        Raises:
            TransactionAlreadyActiveError: If a transaction is already open.
        """
        if self.in_transaction:
            raise TransactionAlreadyActiveError()
        self.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        if not self.in_transaction:
            raise TransactionNotActiveError("No active transaction to commit")
        self.execute("COMMIT")

    def rollback(self) -> None:
        if not self.in_transaction:
            raise TransactionNotActiveError("No active transaction to roll back")
        self.execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator["Session"]:
        """
        Scope a transaction: commits on success, rolls back on any exception.

        The original exception is re-raised unchanged.
        """
        self.begin()
        try:
            yield self
        except BaseException as e:
            self._rollback_quietly(e)
            raise

        try:
            self.commit()
        except BaseException as e:
            self._rollback_quietly(e)
            raise

    @contextmanager
    def atomic(self) -> Iterator["Session"]:
        """
        All-or-nothing scope for multi-statement operations.

        Opens a transaction when none is active. Inside an existing
        transaction a savepoint is used, so a failing batch undoes only its
        own statements and the caller's transaction stays usable.
        """
        if not self.in_transaction:
            with self.transaction():
                yield self
            return

        self._savepoint_seq += 1
        name = f"auxdata_sp_{self._savepoint_seq}"
        self.execute(f"SAVEPOINT {name}")
        try:
            yield self
        except BaseException:
            if self.in_transaction:
                self.execute(f"ROLLBACK TO SAVEPOINT {name}")
                self.execute(f"RELEASE SAVEPOINT {name}")
            raise
        self.execute(f"RELEASE SAVEPOINT {name}")

    def _rollback_quietly(self, error: BaseException) -> None:
        # SQLite may already have rolled back on its own (e.g. disk full)
        if self.in_transaction:
            logger.warning(f"Transaction rolled back on {self.path}: {error!r}")
            self.rollback()

    def close(self) -> None:
        """Close the connection, rolling back anything left open."""
        if self._conn is None:
            return
        if self._conn.in_transaction:
            logger.warning(f"Closing {self.path} with an open transaction, rolling back")
            self._conn.rollback()
        self._conn.close()
        self._conn = None
