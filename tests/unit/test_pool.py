"""Unit tests for the generic connection pool.

Note: Tests access private attributes (_pool_id, _slots) intentionally to
verify the slot bookkeeping.
"""
# pyright: reportPrivateUsage=false

import threading
import time
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from querykit.exceptions import (
    ArgumentError,
    ForeignPoolObjectError,
    PoolClosedError,
    PoolError,
    PoolExhaustedError,
)
from querykit.pool import ConnectionPool, PooledConnection


def test_acquire_and_clear(fake_pool: Any) -> None:
    connections = [fake_pool.acquire() for _ in range(25)]

    assert fake_pool.live_objects == 25
    assert fake_pool.size() == 25
    assert len({connection.id for connection in connections}) == 25

    fake_pool.clear()

    assert fake_pool.live_objects == 0
    assert fake_pool.size() == 0
    assert all(not connection.is_leased for connection in connections)
    assert all(connection.pool_index is None for connection in connections)
    for physical in fake_pool.opened:
        physical.close.assert_called_once()

    # Connections detached by clear() free as a no-op.
    connections[0].free()
    assert fake_pool.live_objects == 0


def test_free_none_raises(fake_pool: Any) -> None:
    with pytest.raises(ArgumentError):
        fake_pool.free(None)


def test_free_foreign_connection(fake_pool_type: Any) -> None:
    first, second = fake_pool_type(), fake_pool_type()
    try:
        foreign = second.acquire()

        first.free(foreign)
        assert foreign.is_leased
        assert second.live_objects == 1

        with pytest.raises(ForeignPoolObjectError):
            first.free(foreign, throw_if_foreign=True)

        second.free(foreign, throw_if_foreign=True)
        assert second.live_objects == 0
    finally:
        first.close()
        second.close()


def test_free_twice_is_noop(fake_pool: Any) -> None:
    keep = fake_pool.acquire()
    released = fake_pool.acquire()

    fake_pool.free(released)
    fake_pool.free(released)
    released.free()

    assert fake_pool.live_objects == 1
    assert keep.is_leased
    assert not released.is_leased


def test_free_swaps_with_last_leased_slot(fake_pool: Any) -> None:
    first, second, third = (fake_pool.acquire() for _ in range(3))

    fake_pool.free(first)

    assert third.pool_index == 0
    assert second.pool_index == 1
    assert first.pool_index == 2
    assert fake_pool._slots[: fake_pool.live_objects] == [third, second]


def test_free_all_with_predicate(fake_pool: Any) -> None:
    connections = [fake_pool.acquire() for _ in range(10)]
    targets = {connection.id for connection in connections[::3]}

    freed = fake_pool.free_all(lambda connection: connection.id in targets)

    assert freed == len(targets) == 4
    assert fake_pool.live_objects == 6
    for connection in connections:
        assert connection.is_leased is (connection.id not in targets)


def test_free_all_without_predicate(fake_pool: Any) -> None:
    for _ in range(5):
        fake_pool.acquire()

    assert fake_pool.free_all() == 5
    assert fake_pool.live_objects == 0
    assert fake_pool.size() == 5


def test_free_closes_physical_connection(fake_pool: Any) -> None:
    pooled = fake_pool.acquire()
    physical = pooled.connection

    pooled.free()

    physical.close.assert_called_once()
    assert not pooled.is_open
    with pytest.raises(PoolError, match="not leased"):
        _ = pooled.connection

    again = fake_pool.acquire()
    assert again is pooled
    assert again.connection is not physical
    assert len(fake_pool.opened) == 2


def test_keep_alive_reuses_physical_connection(fake_pool_type: Any) -> None:
    pool = fake_pool_type(keep_alive=True)
    try:
        pooled = pool.acquire()
        physical = pooled.connection
        pool.free(pooled)

        physical.close.assert_not_called()
        assert pooled.idle_since is not None

        again = pool.acquire()
        assert again.connection is physical
        assert again.idle_since is None
        assert len(pool.opened) == 1
    finally:
        pool.close()


def test_initial_size_and_connection_hook(fake_pool_type: Any) -> None:
    hook = MagicMock()
    pool = fake_pool_type(keep_alive=True, initial_size=3, on_connection_create=hook)
    try:
        assert pool.size() == 3
        assert pool.live_objects == 0
        assert hook.call_count == 3
        assert [call.args[0] for call in hook.call_args_list] == pool.opened
    finally:
        pool.close()


def test_initial_size_requires_keep_alive(fake_pool_type: Any) -> None:
    with pytest.raises(ArgumentError, match="keep_alive"):
        fake_pool_type(initial_size=2)


def test_failed_open_releases_slot(fake_pool_type: Any) -> None:
    pool = fake_pool_type()
    try:
        with patch.object(fake_pool_type, "_connect", side_effect=RuntimeError("refused")):
            with pytest.raises(RuntimeError, match="refused"):
                pool.acquire()
        assert pool.live_objects == 0

        pooled = pool.acquire()
        assert pooled.is_open
    finally:
        pool.close()


def test_max_size_times_out(fake_pool_type: Any) -> None:
    pool = fake_pool_type(max_size=2, acquire_timeout=0.05)
    try:
        pool.acquire()
        pool.acquire()
        with pytest.raises(PoolExhaustedError):
            pool.acquire()
        assert pool.size() == 2
    finally:
        pool.close()


def test_max_size_waits_for_free(fake_pool_type: Any) -> None:
    pool = fake_pool_type(max_size=1, acquire_timeout=5.0)
    try:
        held = pool.acquire()
        timer = threading.Timer(0.05, held.free)
        timer.start()

        started = time.monotonic()
        pooled = pool.acquire()

        assert pooled is held
        assert time.monotonic() - started < 5.0
        timer.join()
    finally:
        pool.close()


def test_invalid_max_size(fake_pool_type: Any) -> None:
    with pytest.raises(ArgumentError):
        fake_pool_type(max_size=0)


def test_closed_pool_rejects_acquire(fake_pool: Any) -> None:
    pooled = fake_pool.acquire()
    fake_pool.close()

    assert fake_pool.is_closed
    assert not pooled.is_leased
    with pytest.raises(PoolClosedError):
        fake_pool.acquire()
    fake_pool.close()


def test_provide_connection_frees_on_error(fake_pool: Any) -> None:
    with pytest.raises(ValueError):
        with fake_pool.provide_connection() as pooled:
            assert fake_pool.live_objects == 1
            raise ValueError("boom")
    assert fake_pool.live_objects == 0
    assert not pooled.is_leased


def test_pooled_connection_context_manager(fake_pool: Any) -> None:
    with fake_pool.acquire() as pooled:
        pooled.cursor()
        pooled.commit()
        pooled.rollback()
        assert pooled.pool is fake_pool
    assert fake_pool.live_objects == 0


def test_perform_visits_leased_connections(fake_pool: Any) -> None:
    leased = [fake_pool.acquire() for _ in range(3)]
    fake_pool.free(leased[1])
    seen: list[PooledConnection] = []

    fake_pool.perform(seen.append)

    assert sorted(c.id for c in seen) == sorted([leased[0].id, leased[2].id])


def test_concurrent_acquire_returns_distinct_connections(fake_pool: Any) -> None:
    """Test that concurrent threads never share a leased connection."""
    results: list[str] = []
    exceptions: list[Exception] = []
    lock = threading.Lock()
    barrier = threading.Barrier(10)

    def worker() -> None:
        try:
            barrier.wait()
            for _ in range(50):
                pooled = fake_pool.acquire()
                with lock:
                    results.append(pooled.id)
                    assert pooled.is_leased
                fake_pool.free(pooled)
        except Exception as e:
            exceptions.append(e)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    if exceptions:
        pytest.fail(f"Thread exceptions: {exceptions}")
    assert len(results) == 500
    assert fake_pool.live_objects == 0
    assert fake_pool.size() <= 10


def test_concurrent_leases_are_unique(fake_pool: Any) -> None:
    held: list[PooledConnection] = []
    lock = threading.Lock()

    def worker() -> None:
        pooled = fake_pool.acquire()
        with lock:
            held.append(pooled)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len({pooled.id for pooled in held}) == 20
    assert fake_pool.live_objects == 20


def test_last_inserted_id(fake_pool: Any) -> None:
    cursor = MagicMock(lastrowid=42)
    assert fake_pool.get_last_inserted_id(cursor) == 42
    cursor.lastrowid = None
    with pytest.raises(PoolError):
        fake_pool.get_last_inserted_id(cursor)


def test_create_parameter(fake_pool: Any) -> None:
    parameter = fake_pool.create_parameter("characterID", value=5)
    assert parameter.parameter_name == "@characterID"
    assert parameter.value == 5
    assert fake_pool.auto_increment_value is None


def test_unpooled_connection_is_not_tracked(fake_pool: Any) -> None:
    connection = fake_pool.create_unpooled_connection()
    assert connection in fake_pool.opened
    assert fake_pool.size() == 0


def test_pool_is_abstract() -> None:
    with pytest.raises(TypeError):
        ConnectionPool()  # type: ignore[abstract]
