"""Engine and session factory for Postgres (asyncpg) and SQLite (aiosqlite)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _engine_options(database_url: str, echo: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if _is_sqlite(database_url):
        options["connect_args"] = {"check_same_thread": False}
    elif database_url.startswith("postgresql"):
        options.update(pool_size=10, max_overflow=20)
    return options


def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
    """Have SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside a real transaction.

    The sqlite3 driver defers BEGIN until the first DML statement, which breaks
    ``begin_nested()``. Fan-out wraps every in-app notification in a savepoint.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    engine = create_async_engine(database_url, **_engine_options(database_url, echo))
    if _is_sqlite(database_url):
        _install_sqlite_transaction_hooks(engine)
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded attributes after commit; views are built after the unit of work ends."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
