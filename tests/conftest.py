"""
Pytest configuration for pgfacade.

Provides fixtures for:
- Settings and DSN for integration tests (from environment variables)
- A live pool against a real PostgreSQL, skipped when unreachable
- In-memory fake pool/connection/cursor objects for unit tests
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple

import psycopg
import pytest

from pgfacade.config import Settings
from pgfacade.infrastructure.db_factory import build_conninfo, close, new_pool
from pgfacade.utils.profiler import configure_query_timing


@pytest.fixture(autouse=True)
def _reset_query_timing() -> Generator[None, None, None]:
    """Every test starts with the default timing sink."""
    configure_query_timing()
    yield
    configure_query_timing()


# ---------------------------------------------------------------------------
# Fakes for unit tests
# ---------------------------------------------------------------------------


class FakeCursor:
    """
    Stand-in for `psycopg.RawCursor` driven by the owning pool's script.

    Row factories are applied at execute time, as psycopg does.
    """

    def __init__(self, conn: "FakeConnection", row_factory: Any = None) -> None:
        self.connection = conn
        self._row_factory = row_factory
        self.description: Optional[List[SimpleNamespace]] = None
        self._rows: List[Tuple[Any, ...]] = []
        self._make_row: Any = tuple

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        del exc_type, exc, tb
        return False

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> "FakeCursor":
        pool = self.connection.pool
        pool.executed.append((sql, params))
        outcome = pool.results.get(sql, ([], []))
        if isinstance(outcome, Exception):
            raise outcome
        columns, rows = outcome
        self.description = [SimpleNamespace(name=c) for c in columns] if columns else None
        self._rows = [tuple(r) for r in rows]
        if self._row_factory is not None:
            self._make_row = self._row_factory(self)
        return self

    def _require_result(self) -> None:
        if self.description is None:
            raise psycopg.ProgrammingError("the last operation didn't produce a result")

    def fetchall(self) -> List[Any]:
        self._require_result()
        rows, self._rows = self._rows, []
        return [self._make_row(r) for r in rows]

    def fetchmany(self, size: int) -> List[Any]:
        self._require_result()
        rows, self._rows = self._rows[:size], self._rows[size:]
        return [self._make_row(r) for r in rows]


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self.pool = pool
        self.commits = 0
        self.rollbacks = 0

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        self.pool.executed.append((sql, params))
        outcome = self.pool.results.get(sql)
        if isinstance(outcome, Exception):
            raise outcome

    def commit(self) -> None:
        if self.pool.commit_error is not None:
            raise self.pool.commit_error
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
        if self.pool.rollback_error is not None:
            raise self.pool.rollback_error


class FakePool:
    """
    Stand-in for `psycopg_pool.ConnectionPool`.

    `results` maps SQL text to either `(columns, rows)` or an exception to
    raise from `execute`. Every executed statement lands in `executed`.
    """

    def __init__(self) -> None:
        self.results: Dict[str, Any] = {}
        self.executed: List[Tuple[str, Optional[Sequence[Any]]]] = []
        self.connections: List[FakeConnection] = []
        self.returned: List[FakeConnection] = []
        self.timeouts: List[Optional[float]] = []
        self.getconn_error: Optional[Exception] = None
        self.commit_error: Optional[Exception] = None
        self.rollback_error: Optional[Exception] = None
        self.closed = False

    def add_result(self, sql: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        self.results[sql] = (list(columns), [tuple(r) for r in rows])

    def fail(self, sql: str, error: Exception) -> None:
        self.results[sql] = error

    def getconn(self, timeout: Optional[float] = None) -> FakeConnection:
        self.timeouts.append(timeout)
        if self.getconn_error is not None:
            raise self.getconn_error
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn

    def putconn(self, conn: FakeConnection) -> None:
        self.returned.append(conn)

    @contextmanager
    def connection(self, timeout: Optional[float] = None) -> Generator[FakeConnection, None, None]:
        conn = self.getconn(timeout=timeout)
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            self.putconn(conn)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_pool(monkeypatch: pytest.MonkeyPatch) -> FakePool:
    """A fake pool with `RawCursor` patched to `FakeCursor` in the helper modules."""
    monkeypatch.setattr("pgfacade.queries.RawCursor", FakeCursor)
    monkeypatch.setattr("pgfacade.transactions.RawCursor", FakeCursor)
    return FakePool()


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "postgres"),
        db_sslmode=os.getenv("DB_SSLMODE", ""),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_conninfo(test_settings.db_config())


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_pool(test_settings: Settings, db_connection_available: bool):
    """
    Session-scoped live pool for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    pool = new_pool(test_settings.db_config(), wait=True)
    try:
        yield pool
    finally:
        close(pool)


@pytest.fixture
def sample_tables(test_dsn: str, db_pool) -> Generator[None, None, None]:
    """
    Create and seed the `t` and `j` tables used by integration tests.

    `t(id int, name text)` holds (1, 'a') and (2, 'b'); `j(data jsonb)` starts empty.
    """
    ddl = """
        DROP TABLE IF EXISTS t;
        DROP TABLE IF EXISTS j;
        CREATE TABLE t (id int PRIMARY KEY, name text NOT NULL);
        CREATE TABLE j (id serial PRIMARY KEY, data jsonb NOT NULL);
        INSERT INTO t (id, name) VALUES (1, 'a'), (2, 'b');
    """
    with psycopg.connect(test_dsn, autocommit=True) as conn:
        conn.execute(ddl)
    yield
    with psycopg.connect(test_dsn, autocommit=True) as conn:
        conn.execute("DROP TABLE IF EXISTS t; DROP TABLE IF EXISTS j;")
