from __future__ import annotations

import json
from typing import Any

import pytest
from typer.testing import CliRunner

from pgfacade import config, main

runner = CliRunner()


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DB_HOST", "db.example")
    monkeypatch.setenv("DB_USER", "reporter")
    monkeypatch.setenv("DB_PASSWORD", "hunter2")
    monkeypatch.setenv("DB_NAME", "sales")
    monkeypatch.delenv("DB_PORT", raising=False)
    monkeypatch.delenv("DB_SSLMODE", raising=False)
    monkeypatch.delenv("DB_MAX_CONN", raising=False)
    monkeypatch.delenv("DB_CONNECT_TIMEOUT", raising=False)
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)
    config.get_settings.cache_clear()
    yield monkeypatch
    config.get_settings.cache_clear()


class _Calls:
    def __init__(self) -> None:
        self.pools: list[Any] = []
        self.closed: list[Any] = []
        self.queries: list[tuple[Any, ...]] = []


@pytest.fixture
def fake_backend(cli_env) -> _Calls:
    calls = _Calls()

    def fake_new_pool(cfg):
        pool = object()
        calls.pools.append((cfg, pool))
        return pool

    def fake_query_structs(pool, row_type, sql, *args):
        calls.queries.append((pool, row_type, sql, args))
        return [{"id": 1, "name": "a"}, {"id": 2, "name": None}]

    def fake_execute(pool, sql, *args):
        calls.queries.append((pool, None, sql, args))

    cli_env.setattr(main, "new_pool", fake_new_pool)
    cli_env.setattr(main, "close", calls.closed.append)
    cli_env.setattr(main, "query_structs", fake_query_structs)
    cli_env.setattr(main, "execute", fake_execute)
    return calls


def test_info_masks_password(cli_env) -> None:
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "reporter:***@db.example:5432/sales" in result.output
    assert "hunter2" not in result.output
    assert "pool defaults" in result.output


def test_query_prints_json_and_closes_pool(fake_backend) -> None:
    result = runner.invoke(main.app, ["query", "SELECT * FROM t WHERE id > $1", "0", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [{"id": 1, "name": "a"}, {"id": 2, "name": None}]
    (pool, row_type, sql, args) = fake_backend.queries[0]
    assert row_type is dict
    assert sql == "SELECT * FROM t WHERE id > $1"
    assert args == ("0",)
    assert fake_backend.closed == [pool]


def test_query_limit_appends_pagination(fake_backend) -> None:
    result = runner.invoke(main.app, ["query", "SELECT * FROM t", "--limit", "5", "--offset", "10"])

    assert result.exit_code == 0, result.output
    (_, _, sql, args) = fake_backend.queries[0]
    assert sql == "SELECT * FROM t LIMIT $1 OFFSET $2"
    assert args == (5, 10)


def test_query_renders_table(fake_backend) -> None:
    result = runner.invoke(main.app, ["query", "SELECT * FROM t"])

    assert result.exit_code == 0, result.output
    assert "name" in result.output
    assert "NULL" in result.output


def test_exec_runs_statement(fake_backend) -> None:
    result = runner.invoke(main.app, ["exec", "DELETE FROM t WHERE id = $1", "3"])

    assert result.exit_code == 0, result.output
    assert "OK" in result.output
    assert fake_backend.queries[0][2:] == ("DELETE FROM t WHERE id = $1", ("3",))
    assert len(fake_backend.closed) == 1
