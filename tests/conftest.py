from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from querykit.adapters.sqlite import SqliteConnectionPool
from querykit.builder import QueryBuilder
from querykit.dialects import MYSQL
from querykit.pool import ConnectionPool

here = Path(__file__).parent
root_path = here.parent


class FakePool(ConnectionPool):
    """Pool handing out ``MagicMock`` connections; used by the unit tests."""

    settings = MYSQL
    adapter_name = "fake"

    __slots__ = ("opened",)

    def __init__(self, connection_parameters: dict[str, Any] | None = None, **kwargs: Any) -> None:
        self.opened: list[MagicMock] = []
        super().__init__(connection_parameters, **kwargs)

    def _connect(self) -> MagicMock:
        connection = MagicMock(name=f"connection-{len(self.opened)}")
        self.opened.append(connection)
        return connection


@pytest.fixture
def qb() -> QueryBuilder:
    return QueryBuilder("mysql")


@pytest.fixture
def sqlite_qb() -> QueryBuilder:
    return QueryBuilder("sqlite")


@pytest.fixture
def fake_pool_type() -> type[FakePool]:
    return FakePool


@pytest.fixture
def fake_pool() -> Generator[FakePool, None, None]:
    pool = FakePool()
    yield pool
    pool.close()


@pytest.fixture
def sqlite_pool(tmp_path: Path) -> Generator[SqliteConnectionPool, None, None]:
    pool = SqliteConnectionPool({"database": str(tmp_path / "querykit.db"), "timeout": 5.0})
    yield pool
    pool.close()
