"""
Tests for several handles sharing one database file.
"""

import multiprocessing
import threading

import pytest

from auxdata import StorageBusyError, Store

_MISSING = object()


def _increment_worker(root: str, count: int) -> None:
    with Store(root) as store:
        for _ in range(count):
            store.increment("counter")


def _run_threads(target, args_list) -> list[BaseException]:
    errors: list[BaseException] = []

    def run(*args):
        try:
            target(*args)
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=run, args=args) for args in args_list]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


@pytest.fixture
def shared_root(temp_dir):
    """Provide a directory whose database already exists in WAL mode."""
    with Store(temp_dir):
        pass
    return temp_dir


class TestThreads:
    """Tests with one handle per thread."""

    def test_increments_are_not_lost(self, shared_root):
        errors = _run_threads(_increment_worker, [(shared_root, 50)] * 4)

        assert errors == []
        with Store(shared_root) as store:
            assert store.get("counter") == 200

    def test_pull_hands_out_each_value_once(self, shared_root):
        with Store(shared_root) as store:
            store.set_multiple({f"job:{i}": i for i in range(20)})

        pulled: list[int] = []
        lock = threading.Lock()

        def worker():
            with Store(shared_root) as store:
                for i in range(20):
                    value = store.pull(f"job:{i}", _MISSING)
                    if value is not _MISSING:
                        with lock:
                            pulled.append(value)

        errors = _run_threads(worker, [()] * 4)

        assert errors == []
        assert sorted(pulled) == list(range(20))

    def test_batches_are_all_or_nothing_for_readers(self, shared_root):
        def writer():
            with Store(shared_root) as store:
                for i in range(20):
                    store.set_multiple({"a": i, "b": i})

        snapshots: list[tuple] = []

        def reader():
            with Store(shared_root) as store:
                for _ in range(40):
                    snapshot = store.all()
                    snapshots.append((snapshot.get("a"), snapshot.get("b")))

        errors = _run_threads(lambda kind: writer() if kind == "w" else reader(), [("w",), ("r",)])

        assert errors == []
        assert all(a == b for a, b in snapshots)


class TestLocking:
    """Tests for lock contention between handles."""

    def test_busy_error_after_timeout(self, shared_root):
        with Store(shared_root) as a, Store(shared_root, busy_timeout=0.2) as b:
            with pytest.raises(StorageBusyError):
                a.transaction(lambda s: (s.set("held", 1), b.set("blocked", 2)))

            # a rolled back, so nothing was written by either handle
            assert a.get("held") is None
            assert b.get("blocked") is None
            assert not a.in_transaction

    def test_readers_see_last_committed_state(self, shared_root):
        with Store(shared_root) as a, Store(shared_root) as b:
            a.set("key", "before")
            seen = []

            def update(s):
                s.set("key", "after")
                seen.append(b.get("key"))

            a.transaction(update)

            assert seen == ["before"]
            assert b.get("key") == "after"

    def test_readers_never_see_rolled_back_writes(self, shared_root):
        with Store(shared_root) as a, Store(shared_root) as b:
            def fail(s):
                s.set("key", "uncommitted")
                raise KeyError("abort")

            with pytest.raises(KeyError):
                a.transaction(fail)

            assert b.get("key") is None


@pytest.mark.skipif(
    "fork" not in multiprocessing.get_all_start_methods(),
    reason="needs the fork start method",
)
class TestProcesses:
    """Tests with one handle per process."""

    def test_increments_across_processes(self, shared_root):
        ctx = multiprocessing.get_context("fork")
        processes = [
            ctx.Process(target=_increment_worker, args=(shared_root, 30)) for _ in range(3)
        ]
        for process in processes:
            process.start()
        for process in processes:
            process.join(timeout=60)

        assert [process.exitcode for process in processes] == [0, 0, 0]
        with Store(shared_root) as store:
            assert store.get("counter") == 90
