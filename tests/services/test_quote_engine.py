"""Tests for quote storage, listing and the cached count."""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest

from quotebook.services import (
    SCORE_THRESHOLD,
    EngineClosedError,
    NotFoundError,
    QuoteEngine,
    StoreUnavailableError,
    rank_by_score,
)
from tests.helpers import ledger_rows, quote_row_count


def test_add_quote_assigns_sequential_ids(engine) -> None:
    """New quotes receive increasing ids and a creation timestamp."""
    before = datetime.now(UTC) - timedelta(seconds=1)
    first = engine.add_quote("Ada", "Q1")
    second = engine.add_quote("Bob", "Q2")

    assert (first, second) == (1, 2)
    quote = engine.get_quote(first)
    assert quote.author == "Ada"
    assert quote.text == "Q1"
    assert quote.created_at.tzinfo is not None
    assert before <= quote.created_at <= datetime.now(UTC)
    assert (quote.upvotes, quote.downvotes, quote.score) == (0, 0, 0)


def test_ids_are_not_reused_after_delete(engine) -> None:
    """Deleting the newest quote does not free its id."""
    engine.add_quote("Ada", "Q1")
    last = engine.add_quote("Bob", "Q2")
    assert engine.delete_quote(last) is True

    assert engine.add_quote("Cy", "Q3") == last + 1


def test_edit_quote_changes_text_only(engine) -> None:
    """Editing keeps id, author, timestamp and votes."""
    quote_id = engine.add_quote("Ada", "before")
    engine.upvote(quote_id, "v1")
    original = engine.get_quote(quote_id)

    assert engine.edit_quote(quote_id, "after") is True

    edited = engine.get_quote(quote_id)
    assert edited.text == "after"
    assert edited.author == original.author
    assert edited.created_at == original.created_at
    assert edited.upvotes == 1


def test_edit_and_delete_missing_quote_are_noops(engine) -> None:
    """Editing or deleting an unknown id reports False without raising."""
    assert engine.edit_quote(999, "text") is False
    assert engine.delete_quote(999) is False
    assert engine.count() == 0


def test_delete_quote_removes_its_votes(engine, db_path) -> None:
    """Deleting a quote cascades to every vote on it."""
    quote_id = engine.add_quote("Ada", "Q1")
    engine.upvote(quote_id, "a")
    engine.downvote(quote_id, "b")

    assert engine.delete_quote(quote_id) is True

    assert ledger_rows(db_path, quote_id) == []
    assert engine.votes(quote_id) == (0, 0)
    with pytest.raises(NotFoundError):
        engine.get_quote(quote_id)


def test_delete_is_idempotent(engine) -> None:
    """A second delete of the same id returns False and keeps the count."""
    quote_id = engine.add_quote("Ada", "Q1")
    engine.add_quote("Bob", "Q2")

    assert engine.delete_quote(quote_id) is True
    assert engine.delete_quote(quote_id) is False
    assert engine.count() == 1


def test_get_quote_missing_raises(engine) -> None:
    """Unknown ids raise NotFoundError carrying the id."""
    with pytest.raises(NotFoundError) as excinfo:
        engine.get_quote(42)
    assert excinfo.value.quote_id == 42


def test_list_all_filters_low_scores(seeded_engine) -> None:
    """Quotes at or below the threshold are hidden from filtered listings."""
    assert seeded_engine.get_quote(1).score == -3
    assert [q.id for q in seeded_engine.list_all(filter_low=True)] == [2]
    assert [q.id for q in seeded_engine.list_all(filter_low=False)] == [2, 1]


def test_threshold_is_exclusive(engine) -> None:
    """A score exactly at the threshold is filtered out, one above is kept."""
    at_threshold = engine.add_quote("Ada", "at")
    above = engine.add_quote("Bob", "above")
    for voter in ("x", "y"):
        engine.downvote(at_threshold, voter)
    engine.downvote(above, "x")

    assert engine.get_quote(at_threshold).score == SCORE_THRESHOLD
    assert [q.id for q in engine.list_all()] == [above]


def test_list_all_orders_newest_first(engine) -> None:
    """Listings come back in descending id order."""
    ids = [engine.add_quote("Ada", f"Q{i}") for i in range(5)]
    assert [q.id for q in engine.list_all(filter_low=False)] == list(reversed(ids))


def test_list_all_empty(engine) -> None:
    """An empty store lists nothing."""
    assert engine.list_all() == []
    assert engine.list_all(filter_low=False) == []


def test_rank_by_score_breaks_ties_by_newest(engine) -> None:
    """Ranking sorts by score descending, then by id descending."""
    q1 = engine.add_quote("Ada", "Q1")
    q2 = engine.add_quote("Bob", "Q2")
    q3 = engine.add_quote("Cy", "Q3")
    q4 = engine.add_quote("Di", "Q4")
    engine.upvote(q1, "x")
    engine.upvote(q1, "y")
    engine.upvote(q2, "x")
    engine.upvote(q3, "x")
    engine.downvote(q4, "x")

    ranked = rank_by_score(engine.list_all(filter_low=False))

    assert [q.id for q in ranked] == [q1, q3, q2, q4]


def test_random_quote_respects_filter(seeded_engine) -> None:
    """The filtered random pick never returns a quote at or below threshold."""
    for _ in range(20):
        quote = seeded_engine.random_quote(filter_low=True)
        assert quote.id == 2
        assert quote.score > SCORE_THRESHOLD


def test_random_quote_unfiltered_reaches_every_quote(seeded_engine) -> None:
    """Without the filter both quotes are candidates."""
    seen = {seeded_engine.random_quote(filter_low=False).id for _ in range(200)}
    assert seen == {1, 2}


def test_random_quote_no_candidates(engine) -> None:
    """An empty candidate set raises NotFoundError."""
    with pytest.raises(NotFoundError):
        engine.random_quote(filter_low=False)

    quote_id = engine.add_quote("Ada", "Q1")
    for voter in ("x", "y", "z"):
        engine.downvote(quote_id, voter)
    with pytest.raises(NotFoundError) as excinfo:
        engine.random_quote(filter_low=True)
    assert excinfo.value.quote_id is None


def test_count_tracks_adds_and_deletes(engine, db_path) -> None:
    """The cached count matches the table after mixed mutations."""
    ids = [engine.add_quote("Ada", f"Q{i}") for i in range(4)]
    engine.delete_quote(ids[1])
    engine.delete_quote(ids[1])
    engine.delete_quote(999)

    assert engine.count() == 3
    assert engine.count() == quote_row_count(db_path)


def test_count_rebuilt_on_reopen(engine, db_path) -> None:
    """Reopening the store reloads the count from the table."""
    for i in range(3):
        engine.add_quote("Ada", f"Q{i}")
    engine.delete_quote(1)
    engine.close()

    with QuoteEngine.open(str(db_path)) as reopened:
        assert reopened.count() == 2
        assert reopened.count() == quote_row_count(db_path)
        assert [q.id for q in reopened.list_all(filter_low=False)] == [3, 2]


def test_open_accepts_sqlite_url(db_path) -> None:
    """Both bare paths and SQLAlchemy URLs open the same store."""
    with QuoteEngine.open(str(db_path)) as engine:
        engine.add_quote("Ada", "Q1")
    with QuoteEngine.open(f"sqlite:///{db_path}") as engine:
        assert engine.count() == 1


def test_open_unreachable_location_fails(tmp_path) -> None:
    """A path inside a missing directory cannot be opened."""
    with pytest.raises(StoreUnavailableError):
        QuoteEngine.open(str(tmp_path / "missing" / "dir" / "quotes.db"))


def test_open_unknown_dialect_fails() -> None:
    """An unsupported database URL is reported as unavailable."""
    with pytest.raises(StoreUnavailableError):
        QuoteEngine.open("nosuchdialect://localhost/quotes")


def test_operations_after_close_raise(engine) -> None:
    """Every operation on a closed engine raises EngineClosedError."""
    quote_id = engine.add_quote("Ada", "Q1")
    engine.close()

    calls = [
        lambda: engine.add_quote("Bob", "Q2"),
        lambda: engine.edit_quote(quote_id, "x"),
        lambda: engine.delete_quote(quote_id),
        lambda: engine.upvote(quote_id, "v"),
        lambda: engine.downvote(quote_id, "v"),
        lambda: engine.unvote(quote_id, "v"),
        lambda: engine.votes(quote_id),
        lambda: engine.get_quote(quote_id),
        lambda: engine.random_quote(),
        lambda: engine.list_all(),
        engine.count,
        engine.close,
    ]
    for call in calls:
        with pytest.raises(EngineClosedError):
            call()


def test_open_empty_location_fails() -> None:
    """An empty location is rejected instead of opening a throwaway store."""
    with pytest.raises(StoreUnavailableError):
        QuoteEngine.open("")
    with pytest.raises(StoreUnavailableError):
        QuoteEngine.open("   ")


def test_open_rejects_overlong_web_password(db_path) -> None:
    """A web password bcrypt cannot hash is reported as unavailable."""
    with pytest.raises(StoreUnavailableError):
        QuoteEngine.open(str(db_path), "admin:" + "x" * 100)


def test_memory_store_shared_across_threads() -> None:
    """An in-memory store is the same database from every thread."""
    with QuoteEngine.open(":memory:") as engine:
        quote_id = engine.add_quote("Ada", "Q1")

        with ThreadPoolExecutor(max_workers=4) as pool:
            listed = pool.submit(engine.list_all, False).result()
            applied = list(pool.map(lambda v: engine.upvote(quote_id, v), ["a", "b", "c", "a"]))
            added = list(pool.map(lambda i: engine.add_quote("Bob", f"Q{i}"), range(5)))

        assert [q.id for q in listed] == [quote_id]
        assert applied.count(True) == 3
        assert engine.votes(quote_id) == (3, 0)
        assert len(set(added)) == 5
        assert engine.count() == 6
