"""Database engine and session configuration."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event, make_url
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

# Execution option requesting a write-locking transaction on SQLite.
WRITE_LOCK_OPTION = "quotebook_write_lock"


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import quotebook.models  # noqa: E402,F401


def build_engine(url: str, *, echo: bool = False, busy_timeout: float = 30.0) -> Engine:
    """Create an engine for ``url``.

    For SQLite the driver's implicit transaction handling is disabled so the
    engine controls ``BEGIN`` itself: read transactions use a deferred
    ``BEGIN`` and transactions carrying the write-lock option use
    ``BEGIN IMMEDIATE``, which serializes concurrent writers on the database
    lock instead of failing when a shared lock is upgraded.
    """
    options: dict[str, Any] = {}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": busy_timeout}
        if _is_memory_database(url):
            # Every thread must see the same in-memory database.
            options["poolclass"] = StaticPool

    engine = create_engine(url, echo=echo, **options)
    if engine.dialect.name == "sqlite":
        _install_sqlite_hooks(engine)
    return engine


def _is_memory_database(url: str) -> bool:
    database = make_url(url).database
    return database in (None, "", ":memory:") or "mode=memory" in url


def is_single_connection(engine: Engine) -> bool:
    """Return True if all callers of ``engine`` share one DBAPI connection."""
    return isinstance(engine.pool, StaticPool)


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:  # type: ignore[no-untyped-def]
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def build_sessionmaker(engine: Engine) -> sessionmaker:
    """Return a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
