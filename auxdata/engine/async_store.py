"""
AsyncStore - asyncio front end for Store.
"""

import asyncio
import functools
import inspect
import os
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from auxdata.engine.store import Store
from auxdata.models.exceptions import InvalidArgumentError, StorageUnavailableError
from auxdata.models.record import Stats
from auxdata.models.ttl import TTL

T = TypeVar("T")

_EXHAUSTED = object()


class AsyncStore:
    """
    Async wrapper that runs a Store on a dedicated worker thread.

    SQLite calls block, so every operation is shipped to a single-thread
    executor owned by this object. All calls on one AsyncStore therefore
    run one at a time on the same thread and the wrapped handle is never
    shared between threads.

    Usage:
        async with AsyncStore("storage") as store:
            await store.set("key", {"a": 1})

        store = await AsyncStore.create("storage")
        ...
        await store.close()
    """

    def __init__(
        self,
        root: str | os.PathLike,
        database: str | None = None,
        table: str = Store.DEFAULT_TABLE,
        **options: Any,
    ) -> None:
        """
        Prepare an async store. Nothing is opened until create() or async with.

        Args:
            root: Directory holding the database file.
            database: Database file name (default: auxdata.db).
            table: Table name.
            **options: Keyword options forwarded to Store.
        """
        self._open_args = (root, database, table)
        self._options = options
        self._store: Store | None = None
        self._executor: ThreadPoolExecutor | None = None

    @classmethod
    async def create(
        cls,
        root: str | os.PathLike,
        database: str | None = None,
        table: str = Store.DEFAULT_TABLE,
        **options: Any,
    ) -> "AsyncStore":
        """
        Async factory method: build and open the store.

        Returns:
            Opened AsyncStore.
        """
        async_store = cls(root, database, table, **options)
        await async_store.open()
        return async_store

    async def open(self) -> None:
        """Open the underlying Store on the worker thread (no-op if open)."""
        if self._store is not None:
            return

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="auxdata")
        loop = asyncio.get_running_loop()
        root, database, table = self._open_args
        try:
            store = await loop.run_in_executor(
                executor, functools.partial(Store, root, database, table, **self._options)
            )
        except BaseException:
            executor.shutdown(wait=False)
            raise

        self._executor = executor
        self._store = store

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        if self._store is None or self._executor is None:
            raise StorageUnavailableError("AsyncStore is not open")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    def _require_store(self) -> Store:
        if self._store is None:
            raise StorageUnavailableError("AsyncStore is not open")
        return self._store

    @property
    def path(self) -> str:
        return self._require_store().path

    async def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        return await self._run(self._require_store().set, key, value, ttl)

    async def set_multiple(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: TTL = None
    ) -> bool:
        return await self._run(self._require_store().set_multiple, values, ttl)

    async def get(self, key: str, default: Any = None) -> Any:
        return await self._run(self._require_store().get, key, default)

    async def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        return await self._run(self._require_store().get_multiple, list(keys), default)

    async def pull(self, key: str, default: Any = None) -> Any:
        return await self._run(self._require_store().pull, key, default)

    async def has(self, key: str) -> bool:
        return await self._run(self._require_store().has, key)

    async def delete(self, key: str) -> bool:
        return await self._run(self._require_store().delete, key)

    async def delete_multiple(self, keys: Iterable[str]) -> bool:
        return await self._run(self._require_store().delete_multiple, list(keys))

    async def clear(self) -> bool:
        return await self._run(self._require_store().clear)

    async def all(self) -> dict[str, Any]:
        return await self._run(self._require_store().all)

    async def keys(self) -> list[str]:
        return await self._run(self._require_store().keys)

    async def increment(self, key: str, by: int = 1) -> int:
        return await self._run(self._require_store().increment, key, by)

    async def decrement(self, key: str, by: int = 1) -> int:
        return await self._run(self._require_store().decrement, key, by)

    async def transaction(self, fn: Callable[[Store], T]) -> T:
        """
        Run the synchronous fn(store) inside a transaction on the worker thread.

        fn receives the wrapped Store, so its calls are plain (non-async).

        Raises:
            InvalidArgumentError: If fn is a coroutine function, or returns an
                awaitable (the transaction is rolled back then).
        """
        if inspect.iscoroutinefunction(fn):
            raise InvalidArgumentError(
                "transaction() needs a synchronous function, it runs on the worker thread"
            )

        def run(store: Store) -> T:
            result = fn(store)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise InvalidArgumentError("transaction() function returned an awaitable")
            return result

        return await self._run(self._require_store().transaction, run)

    async def clean_expired(self) -> int:
        return await self._run(self._require_store().clean_expired)

    async def stats(self) -> Stats:
        return await self._run(self._require_store().stats)

    async def iter_chunks(self, size: int) -> AsyncIterator[dict[str, Any]]:
        """
        Async generator over the pages of Store.iter_chunks().

        Each page is fetched on the worker thread when requested.
        """
        pages = await self._run(self._require_store().iter_chunks, size)
        while True:
            page = await self._run(next, pages, _EXHAUSTED)
            if page is _EXHAUSTED:
                break
            yield page

    async def chunk(self, size: int, callback: Callable[[dict[str, Any]], Any]) -> None:
        """Call callback once per page; coroutine callbacks are awaited."""
        async for page in self.iter_chunks(size):
            result = callback(page)
            if inspect.isawaitable(result):
                await result

    async def close(self) -> None:
        """Close the store and stop the worker thread."""
        if self._store is None or self._executor is None:
            return
        try:
            await self._run(self._store.close)
        finally:
            self._executor.shutdown(wait=False)
            self._store = None
            self._executor = None

    async def __aenter__(self) -> "AsyncStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
