# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from quotebook.main import create_app
from quotebook.services import QuoteEngine


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    """Return the path of a fresh SQLite database file."""
    return tmp_path / "quotes.db"


@pytest.fixture()
def engine(db_path: Path) -> Iterator[QuoteEngine]:
    """Open an engine on an empty database and close it afterwards."""
    quote_engine = QuoteEngine.open(str(db_path))
    try:
        yield quote_engine
    finally:
        if not quote_engine.closed:
            quote_engine.close()


@pytest.fixture()
def seeded_engine(engine: QuoteEngine) -> QuoteEngine:
    """Engine holding two quotes, the first of them downvoted below threshold."""
    first = engine.add_quote("Ada", "Q1")
    engine.add_quote("Bob", "Q2")
    for voter in ("x", "y", "z"):
        engine.downvote(first, voter)
    return engine


@pytest.fixture()
def make_client() -> Iterator[Callable[[QuoteEngine], TestClient]]:
    """Return a factory building test clients around an engine."""
    clients: list[TestClient] = []

    def _make(quote_engine: QuoteEngine) -> TestClient:
        app: FastAPI = create_app(quote_engine)
        client = TestClient(app, base_url="http://test")
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture()
def client(engine: QuoteEngine, make_client: Callable[[QuoteEngine], TestClient]) -> TestClient:
    """Test client for an engine without web credentials."""
    return make_client(engine)
