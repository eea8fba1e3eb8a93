"""
StoreInitializer - Create the database file, configure it and provision the table.
"""

import logging
import os
import sqlite3
from pathlib import Path

from auxdata.engine.session import Session
from auxdata.models.exceptions import StoragePermissionError, StorageUnavailableError
from auxdata.models.record import TableName
from auxdata.engine.table import KeyValueTable

logger = logging.getLogger(__name__)


def build_database_path(root: str | os.PathLike, database: str) -> str:
    """Join a root directory and a database file name into an absolute path."""
    return os.path.join(os.path.abspath(os.fspath(root)), database)


class StoreInitializer:
    """
    Handles one-time setup of a store's backing file.

    Responsibilities:
    - Create the root directory when it is missing
    - Check read/write permissions on the file or its directory
    - Open the connection with WAL journaling, NORMAL sync and a busy timeout
    - Create the key-value table and its expiry index
    """

    def __init__(self, database_path: str, busy_timeout: float) -> None:
        """
        Initialize the initializer.

        Args:
            database_path: Full path of the SQLite file.
            busy_timeout: Seconds a write waits for the lock before failing.
        """
        self.database_path = database_path
        self.busy_timeout = busy_timeout
        self._dir = os.path.dirname(database_path)

    def _ensure_directory(self) -> None:
        try:
            Path(self._dir).mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise StoragePermissionError(
                f"Unable to create directory: {self._dir}"
            ) from e
        except OSError as e:
            raise StorageUnavailableError(
                f"Unable to create directory: {self._dir}: {e}"
            ) from e

        if not os.path.isdir(self._dir):
            raise StorageUnavailableError(f"Not a directory: {self._dir}")

    def _check_permissions(self) -> None:
        if os.path.isdir(self.database_path):
            raise StorageUnavailableError(
                f"Database path is a directory: {self.database_path}"
            )
        if os.path.exists(self.database_path):
            if not os.access(self.database_path, os.R_OK):
                raise StoragePermissionError(
                    f"Database exists but is not readable: {self.database_path}"
                )
            if not os.access(self.database_path, os.W_OK):
                raise StoragePermissionError(
                    f"Database exists but is not writable: {self.database_path}"
                )
        elif not os.access(self._dir, os.W_OK):
            raise StoragePermissionError(
                f"Directory is not writable to create the database: {self._dir}"
            )

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self.database_path,
                timeout=self.busy_timeout,
                isolation_level=None,
            )
        except sqlite3.Error as e:
            raise StorageUnavailableError(
                f"Unable to open/create SQLite database {self.database_path}: {e}"
            ) from e
        return conn

    def open_session(self) -> Session:
        """
        Open and configure a session on the database file.

        Returns:
            Session with pragmas applied.

        Raises:
            StoragePermissionError: If permissions forbid using the file.
            StorageUnavailableError: If the file cannot be created or opened.
        """
        self._ensure_directory()
        self._check_permissions()

        session = Session(self._connect(), self.database_path)
        try:
            session.execute("PRAGMA journal_mode = WAL")
            # NORMAL is safe in WAL mode and avoids an fsync per commit
            session.execute("PRAGMA synchronous = NORMAL")
            session.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout * 1000)}")
        except Exception:
            session.close()
            raise
        return session

    def provision(self, session: Session, table: TableName) -> KeyValueTable:
        """Create the table and index if they do not exist yet."""
        kv_table = KeyValueTable(session, table)
        kv_table.create()
        logger.debug(f"Opened store {self.database_path} (table {table})")
        return kv_table

    def initialize(self, table: TableName) -> tuple[Session, KeyValueTable]:
        """
        Run the full setup.

        Returns:
            Tuple of (session, table accessor).
        """
        session = self.open_session()
        try:
            kv_table = self.provision(session, table)
        except Exception:
            session.close()
            raise
        return session, kv_table
