"""Unit tests for the PyMySQL-backed pool; the driver is patched out."""

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from querykit.adapters.mysql import MySQLConfig, MySQLConnectionPool
from querykit.dialects import MYSQL
from querykit.exceptions import DatabaseConnectionError
from querykit.parameters import ParameterStyle
from querykit.runner import QueryRunner


@pytest.fixture
def connect() -> Generator[MagicMock, None, None]:
    with patch("querykit.adapters.mysql.pool.pymysql.connect") as mock_connect:
        mock_connect.side_effect = lambda **kwargs: MagicMock(name="pymysql-connection")
        yield mock_connect


def test_pool_class_attributes() -> None:
    assert MySQLConnectionPool.settings is MYSQL
    assert MySQLConnectionPool.parameter_style is ParameterStyle.NAMED_PYFORMAT


def test_connection_defaults(connect: MagicMock) -> None:
    pool = MySQLConnectionPool({"host": "db", "user": "app", "database": "game"})
    try:
        pool.acquire()
        connect.assert_called_once_with(
            charset="utf8mb4", autocommit=True, host="db", user="app", database="game"
        )
    finally:
        pool.close()


def test_explicit_parameters_override_defaults(connect: MagicMock) -> None:
    pool = MySQLConnectionPool({"charset": "latin1", "autocommit": False})
    try:
        pool.acquire()
        assert connect.call_args.kwargs["charset"] == "latin1"
        assert connect.call_args.kwargs["autocommit"] is False
    finally:
        pool.close()


def test_runner_executes_pyformat_statements(connect: MagicMock) -> None:
    pool = MySQLConnectionPool({"host": "db"})
    runner = QueryRunner(pool, flush_interval=None)
    cursor = MagicMock(rowcount=1, lastrowid=12)
    runner.connection.cursor.return_value = cursor  # type: ignore[attr-defined]
    try:
        result = runner.execute_insert(
            None,
            "INSERT IGNORE INTO `active_trade_item` (`item_id`,`character_id`) VALUES (@item_id,@character_id)",
            {"item_id": 3, "character_id": 4},
        )
    finally:
        runner.close()
        pool.close()

    cursor.execute.assert_called_once_with(
        "INSERT IGNORE INTO `active_trade_item` (`item_id`,`character_id`) VALUES (%(item_id)s,%(character_id)s)",
        {"item_id": 3, "character_id": 4},
    )
    assert result.last_inserted_id == 12


def test_config_builds_mysql_pool(connect: MagicMock) -> None:
    config = MySQLConfig(connection_parameters={"host": "db"}, pool_config={"max_size": 10})
    try:
        pool = config.provide_pool()
        assert isinstance(pool, MySQLConnectionPool)
        assert pool.connection_parameters["host"] == "db"
        assert pool.max_size == 10
    finally:
        config.close_pool()


def test_config_tests_connection_on_create(connect: MagicMock) -> None:
    opened: list[MagicMock] = []
    connect.side_effect = lambda **kwargs: opened.append(MagicMock(name="pymysql-connection")) or opened[-1]
    config = MySQLConfig(connection_parameters={"host": "db", "database": "game"})
    try:
        assert config.database == "db/game"
        assert len(opened) == 1
        opened[0].cursor.return_value.execute.assert_called_once_with("SELECT 1")
        opened[0].close.assert_called_once()
    finally:
        config.close_pool()


def test_unreachable_server_names_the_target(connect: MagicMock) -> None:
    connect.side_effect = OSError("connection refused")
    config = MySQLConfig(connection_parameters={"host": "db", "database": "game"})

    with pytest.raises(DatabaseConnectionError, match="'db/game'") as exc_info:
        config.provide_pool()
    assert isinstance(exc_info.value.__cause__, OSError)
    assert config.pool_instance is None
