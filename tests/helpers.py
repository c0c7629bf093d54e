"""Direct database access for inspecting the stores behind an engine."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, select

from quotebook.models import Quote, QuoteVote


def ledger_rows(db_path: Path, quote_id: int, voter: str | None = None) -> list[tuple[str, int, int]]:
    """Return ``(voter, vote, date)`` rows for a quote, read outside the engine."""
    raw = create_engine(f"sqlite:///{db_path}")
    try:
        stmt = select(QuoteVote.voter, QuoteVote.vote, QuoteVote.date).where(
            QuoteVote.quote_id == quote_id
        )
        if voter is not None:
            stmt = stmt.where(QuoteVote.voter == voter)
        with raw.connect() as conn:
            return [tuple(row) for row in conn.execute(stmt)]
    finally:
        raw.dispose()


def quote_row_count(db_path: Path) -> int:
    """Return the true number of rows in the quotes table."""
    raw = create_engine(f"sqlite:///{db_path}")
    try:
        with raw.connect() as conn:
            return len(conn.execute(select(Quote.id)).all())
    finally:
        raw.dispose()


def run_sql(db_path: Path, statement: str) -> None:
    """Execute raw SQL against the database file and commit."""
    raw = create_engine(f"sqlite:///{db_path}")
    try:
        with raw.begin() as conn:
            conn.exec_driver_sql(statement)
    finally:
        raw.dispose()
