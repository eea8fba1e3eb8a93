"""
Store - Main key-value store API.
"""

import logging
import os
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from auxdata.engine.initializer import StoreInitializer, build_database_path
from auxdata.interfaces.simple_cache import SimpleCache
from auxdata.models.codec import JsonCodec
from auxdata.models.exceptions import InvalidArgumentError, InvalidKeyError
from auxdata.models.record import Record, Stats, TableName
from auxdata.models.ttl import TTL, expiry_instant, normalize_ttl

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Store(SimpleCache):
    """
    Persistent key-value store on top of a SQLite table.

    Provides:
    - set/get/has/delete and their *_multiple batch forms
    - pull(key): read and delete atomically
    - increment/decrement: atomic integer counters
    - transaction(fn): run several operations all-or-nothing
    - all/keys/chunk/iter_chunks: full and paged reads
    - clean_expired/stats: maintenance

    Architecture:
    - Values are JSON text, expiry is an integer epoch second or -1 (never)
    - Expired rows stay on disk until get/all/clean_expired remove them
    - Every call reads from the database; nothing is cached in memory

    A Store handle is meant for one thread. Threads and processes that share
    a database file each open their own handle.
    """

    DEFAULT_DATABASE = "auxdata.db"

    DEFAULT_TABLE = "settings"

    # Seconds a write waits for the SQLite writer lock
    DEFAULT_BUSY_TIMEOUT = 5.0

    MAX_BUSY_TIMEOUT = 60.0

    def __init__(
        self,
        root: str | os.PathLike,
        database: str | None = None,
        table: str = DEFAULT_TABLE,
        *,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
        codec: JsonCodec | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Open (and create if needed) a store.

        Args:
            root: Directory holding the database file.
            database: Database file name (default: auxdata.db).
            table: Table name; unsafe characters are replaced by underscores.
            busy_timeout: Seconds a write waits for the lock (max 60).
            codec: Value codec (default: JsonCodec()).
            clock: Callable returning epoch seconds (default: time.time).

        Raises:
            InvalidArgumentError: If an argument is out of range.
            StoragePermissionError: If the file or directory is not accessible.
            StorageUnavailableError: If the database cannot be created or opened.
        """
        if root is None or not os.fspath(root).strip():
            raise InvalidArgumentError("root cannot be empty")

        if busy_timeout <= 0:
            raise InvalidArgumentError(f"busy_timeout must be positive, got {busy_timeout}")
        if busy_timeout > self.MAX_BUSY_TIMEOUT:
            raise InvalidArgumentError(
                f"busy_timeout cannot exceed {self.MAX_BUSY_TIMEOUT} seconds, got {busy_timeout}"
            )

        self.path = build_database_path(root, database or self.DEFAULT_DATABASE)
        self.busy_timeout = busy_timeout
        self._table_name = TableName.sanitize(table)
        self._codec = codec or JsonCodec()
        self._clock = clock or time.time

        initializer = StoreInitializer(self.path, busy_timeout)
        self._session, self._table = initializer.initialize(self._table_name)

    @classmethod
    def open(
        cls,
        root: str | os.PathLike,
        database: str | None = None,
        table: str = DEFAULT_TABLE,
        **options: Any,
    ) -> "Store":
        """
        Open a store under root.

        Example:
            Store.open("storage")
            Store.open("storage", "custom.db")
        """
        return cls(root, database, table, **options)

    @classmethod
    def database(
        cls, name: str, table: str = DEFAULT_TABLE, **options: Any
    ) -> "PendingStore":
        """
        Name the database first and pick its directory later.

        Example:
            settings = Store.database("configs.db").at("storage")

        Raises:
            InvalidArgumentError: If name is empty.
        """
        if not name:
            raise InvalidArgumentError("Database name cannot be empty")
        return PendingStore(database=name, table=table, options=options)

    @property
    def table(self) -> str:
        return self._table_name.name

    @property
    def in_transaction(self) -> bool:
        return self._session.in_transaction

    def _now(self) -> int:
        return int(self._clock())

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str) or key == "":
            raise InvalidKeyError(key)
        try:
            key.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidKeyError(key, "Keys must be valid UTF-8 text") from None

    @staticmethod
    def _check_step(by: Any) -> None:
        if isinstance(by, bool) or not isinstance(by, int):
            raise InvalidArgumentError(f"Step must be an integer, got {by!r}")

    # -- writes ----------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """
        Store a single key-value pair.

        Args:
            key: Non-empty key.
            value: JSON-compatible value.
            ttl: None (never expires), seconds, or a timedelta. Zero expires
                 immediately, a negative number never expires.

        Returns:
            True on success.

        Raises:
            InvalidKeyError: If key is empty or not a string.
            EncodingError: If value is not JSON-compatible.
            ValueTooLargeError: If the encoded value exceeds the size limit.
        """
        self._check_key(key)

        now = self._now()
        exp = expiry_instant(normalize_ttl(ttl, now), now)
        encoded = self._codec.encode(value)

        self._table.upsert(Record(key=key, value=encoded, exp=exp))
        return True

    def set_multiple(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None
    ) -> bool:
        """
        Store several pairs in one transaction.

        An invalid key anywhere in the batch rolls back the whole batch.

        Args:
            values: Mapping or iterable of (key, value) pairs.
            ttl: Time-to-live shared by every key.
        """
        items = list(values.items()) if isinstance(values, Mapping) else list(values)
        seconds = normalize_ttl(ttl, self._now())

        with self._session.atomic():
            for key, value in items:
                self.set(key, value, seconds)

        return True

    def delete(self, key: str) -> bool:
        """Remove a key. A missing key is not an error."""
        self._table.delete(key)
        return True

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        """
        Remove several keys in one transaction.

        Raises:
            InvalidKeyError: If any key is invalid (nothing is deleted).
        """
        keys = list(keys)

        with self._session.atomic():
            for key in keys:
                self._check_key(key)
                self._table.delete(key)

        return True

    def clear(self) -> bool:
        """Remove every record with a single statement."""
        self._table.delete_all()
        return True

    # -- reads -----------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value.

        An expired record is deleted on the way and reported as missing.

        Args:
            key: The key to look up.
            default: Returned when the key is missing or expired.

        Returns:
            The decoded value, or default.

        Raises:
            DecodingError: If the stored value is corrupted.
        """
        record = self._table.fetch(key)
        if record is None:
            return default

        now = self._now()
        if record.is_expired(now):
            self._table.delete_if_expired(key, now)
            logger.debug(f"Removed expired key {key!r} from {self.table}")
            return default

        return self._codec.decode(record.value)

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        """
        Retrieve several values.

        Returns:
            Dict of key -> value (or default), in the order keys were given.

        Raises:
            InvalidKeyError: If any key is invalid; no lookup is done then.
        """
        keys = list(keys)
        for key in keys:
            self._check_key(key)

        return {key: self.get(key, default) for key in keys}

    def pull(self, key: str, default: Any = None) -> Any:
        """Retrieve a value and delete it in the same transaction."""
        with self._session.atomic():
            value = self.get(key, default)
            self._table.delete(key)
            return value

    def has(self, key: str) -> bool:
        """
        Check that a non-expired record exists, without decoding it.

        Unlike get(), expired records are left in place.
        """
        return self._table.exists(key, self._now())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def all(self) -> dict[str, Any]:
        """
        Retrieve every non-expired key and value.

        Loads the whole table into memory; use chunk() or iter_chunks() for
        large tables. Expired records found by the scan are deleted in one
        transaction afterwards.
        """
        now = self._now()
        result: dict[str, Any] = {}
        expired: list[str] = []

        for record in self._table.scan():
            if record.is_expired(now):
                expired.append(record.key)
                continue
            result[record.key] = self._codec.decode(record.value)

        if expired:
            with self._session.atomic():
                for key in expired:
                    self._table.delete_if_expired(key, now)
            logger.debug(f"Removed {len(expired)} expired keys from {self.table}")

        return result

    def keys(self) -> list[str]:
        """Return the non-expired keys (same cost as all())."""
        return list(self.all())

    def iter_chunks(self, size: int) -> Iterator[dict[str, Any]]:
        """
        Lazily page through the table.

        Args:
            size: Number of rows fetched per page.

        Returns:
            Iterator of dicts holding the non-expired records of each page.
            Pages without live records are skipped. Expired records are not
            deleted.

        Raises:
            InvalidArgumentError: If size is not a positive integer.
        """
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InvalidArgumentError(f"Chunk size must be greater than 0, got {size!r}")
        return self._pages(size)

    def _pages(self, size: int) -> Iterator[dict[str, Any]]:
        offset = 0
        while True:
            rows = self._table.page(size, offset)
            if not rows:
                break

            now = self._now()
            page = {
                record.key: self._codec.decode(record.value)
                for record in rows
                if not record.is_expired(now)
            }
            if page:
                yield page

            offset += size
            if len(rows) < size:
                break

    def chunk(self, size: int, callback: Callable[[dict[str, Any]], Any]) -> None:
        """
        Process the table page by page.

        Example:
            store.chunk(100, lambda items: print(len(items)))

        Args:
            size: Number of rows per page.
            callback: Called once per page with a dict of key -> value.
        """
        for page in self.iter_chunks(size):
            callback(page)

    # -- counters --------------------------------------------------------------

    def increment(self, key: str, by: int = 1) -> int:
        """
        Atomically add to an integer value.

        A missing or expired key is initialized to `by` (and never expires).
        An existing key keeps its expiry.

        Args:
            key: Key holding the counter.
            by: Step, may be negative.

        Returns:
            The new value.

        Raises:
            InvalidKeyError: If key is empty.
            InvalidArgumentError: If by or the stored value is not an integer.
        """
        self._check_key(key)
        self._check_step(by)

        with self._session.atomic():
            record = self._table.fetch(key)

            if record is None or record.is_expired(self._now()):
                self.set(key, by)
                return by

            current = self._as_int(key, self._codec.decode(record.value))
            new_value = current + by
            self._table.update_value(key, self._codec.encode(new_value))
            return new_value

    def decrement(self, key: str, by: int = 1) -> int:
        """Atomically subtract from an integer value."""
        self._check_step(by)
        return self.increment(key, -by)

    @staticmethod
    def _as_int(key: str, value: Any) -> int:
        if isinstance(value, bool):
            raise InvalidArgumentError(f"Value stored at {key!r} is not an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise InvalidArgumentError(f"Value stored at {key!r} is not an integer")

    # -- transactions and maintenance ------------------------------------------

    def transaction(self, fn: Callable[["Store"], T]) -> T:
        """
        Run fn(store) inside a transaction.

        Commits when fn returns and rolls back when it raises; the exception
        is re-raised unchanged.

        Example:
            store.transaction(lambda s: (s.set("a", 1), s.set("b", 2)))

        Returns:
            Whatever fn returns.

        Raises:
            TransactionAlreadyActiveError: If called from inside another
                transaction on the same store.
        """
        with self._session.transaction():
            return fn(self)

    def clean_expired(self) -> int:
        """
        Delete every expired record.

        Returns:
            Number of records removed.
        """
        removed = self._table.delete_expired(self._now())
        if removed:
            logger.info(f"Swept {removed} expired keys from {self.table}")
        return removed

    def stats(self) -> Stats:
        """Count records and measure the database files."""
        total, expired = self._table.counts(self._now())
        return Stats(total=total, active=total - expired, expired=expired, size=self._disk_size())

    def _disk_size(self) -> int:
        size = 0
        for path in (self.path, self.path + "-wal"):
            if os.path.exists(path):
                size += os.path.getsize(path)
        return size

    # -- lifecycle -------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying connection."""
        self._session.close()

    @property
    def closed(self) -> bool:
        return self._session.closed

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Store(path={self.path!r}, table={self.table!r})"


@dataclass
class PendingStore:
    """
    A store whose database name is known but whose directory is not.

    Created by Store.database(); at(root) opens the store.
    """

    database: str
    table: str = Store.DEFAULT_TABLE
    options: dict[str, Any] = field(default_factory=dict)

    def at(self, root: str | os.PathLike) -> Store:
        return Store(root, self.database, self.table, **self.options)
