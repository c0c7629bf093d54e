"""Storage and voting engine for quotes.

The engine is the only owner of the ``quotes`` and ``votes`` tables. Every
mutation runs inside its own transaction; vote changes and cascading deletes
are all-or-nothing. Vote counts are never stored, they are aggregated from the
``votes`` table by every read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager, nullcontext
from threading import Lock
from typing import Final

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quotebook.core.security import WebCredentials
from quotebook.core.settings import Settings, normalize_location
from quotebook.db.session import (
    WRITE_LOCK_OPTION,
    Base,
    build_engine,
    build_sessionmaker,
    is_single_connection,
)
from quotebook.db.time import from_unix, to_unix, utcnow
from quotebook.models import Quote, QuoteVote, VoteDirection
from quotebook.schemas import QuoteOut
from quotebook.services.errors import (
    EngineClosedError,
    NotFoundError,
    QuoteEngineError,
    StoreUnavailableError,
    TransactionFailedError,
)
from quotebook.services.record_counter import RecordCounter

__all__ = ["QuoteEngine", "SCORE_THRESHOLD", "rank_by_score"]

logger = logging.getLogger(__name__)

# Filtered queries keep only quotes whose score is strictly above this value.
SCORE_THRESHOLD: Final[int] = -2


def _vote_count(direction: VoteDirection):  # type: ignore[no-untyped-def]
    return (
        select(func.count())
        .select_from(QuoteVote)
        .where(QuoteVote.quote_id == Quote.id, QuoteVote.vote == direction.value)
        .correlate(Quote)
        .scalar_subquery()
    )


def _select_quotes(filter_low: bool):  # type: ignore[no-untyped-def]
    upvotes = _vote_count(VoteDirection.UP)
    downvotes = _vote_count(VoteDirection.DOWN)
    stmt = select(
        Quote.id,
        Quote.date,
        Quote.author,
        Quote.quote,
        upvotes.label("upvotes"),
        downvotes.label("downvotes"),
    )
    if filter_low:
        stmt = stmt.where(upvotes - downvotes > SCORE_THRESHOLD)
    return stmt


def _to_quote_out(row: Row) -> QuoteOut:
    return QuoteOut(
        id=row.id,
        created_at=from_unix(row.date),
        author=row.author,
        text=row.quote,
        upvotes=row.upvotes,
        downvotes=row.downvotes,
    )


def rank_by_score(quotes: Iterable[QuoteOut]) -> list[QuoteOut]:
    """Order quotes by score, highest first, newer ids winning ties."""
    return sorted(quotes, key=lambda q: (q.score, q.id), reverse=True)


class QuoteEngine:
    """Transactional quote store with one vote per voter per quote.

    Use :meth:`open` to construct an engine; it materializes the schema and
    loads the cached quote count before returning.
    """

    def __init__(self, engine: Engine, credentials: WebCredentials | None = None) -> None:
        self._engine = engine
        self._session_factory = build_sessionmaker(engine)
        self._counter = RecordCounter()
        # A single shared connection (in-memory SQLite) cannot interleave
        # transactions from several threads.
        self._connection_lock = Lock() if is_single_connection(engine) else nullcontext()
        self._closed = False
        self.credentials = credentials

    @classmethod
    def open(
        cls,
        location: str,
        web_auth: str | None = None,
        *,
        echo: bool = False,
        busy_timeout: float = 30.0,
    ) -> QuoteEngine:
        """Open or create the quote store at ``location``.

        Args:
            location: SQLAlchemy URL or a path to a SQLite file.
            web_auth: Optional ``user:password`` gating the web page.
            echo: Log every SQL statement.
            busy_timeout: Seconds a writer waits for the SQLite lock.

        Raises:
            StoreUnavailableError: If the store cannot be opened or the schema
                cannot be created. Nothing is left open in that case.
        """
        engine: Engine | None = None
        try:
            credentials = WebCredentials.parse(web_auth)
            url = normalize_location(location)
            engine = build_engine(url, echo=echo, busy_timeout=busy_timeout)
            Base.metadata.create_all(bind=engine)
            quote_engine = cls(engine, credentials=credentials)
            total = quote_engine._reload_count()
        except (SQLAlchemyError, ValueError) as err:
            if engine is not None:
                engine.dispose()
            logger.error("Quote store unavailable at %s: %s", location, err)
            raise StoreUnavailableError(f"Cannot open quote store {location!r}: {err}") from err

        logger.info("Opened quote store %s with %d quotes", engine.url, total)
        return quote_engine

    @classmethod
    def from_settings(cls, settings: Settings) -> QuoteEngine:
        """Open the store described by ``settings``."""
        return cls.open(
            settings.database_url,
            settings.web_auth,
            echo=settings.sql_debug,
            busy_timeout=settings.sqlite_busy_timeout,
        )

    def _reload_count(self) -> int:
        """Recount stored quotes and reset the cached count."""
        with self._connection_lock, self._session_factory() as session:
            total = session.scalar(select(func.count()).select_from(Quote)) or 0
        self._counter.reset(total)
        return total

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the backing store; later calls raise EngineClosedError."""
        self._require_open()
        self._closed = True
        self._engine.dispose()
        logger.info("Closed quote store %s", self._engine.url)

    def __enter__(self) -> QuoteEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self._closed:
            self.close()

    def _require_open(self) -> None:
        if self._closed:
            raise EngineClosedError()

    @contextmanager
    def _transaction(self, operation: str, *, write: bool = True) -> Iterator[Session]:
        """Run a block in one transaction, committing on success.

        Write transactions take the database write lock when they begin.
        Store failures are rolled back and re-raised as
        TransactionFailedError; engine errors raised by the block roll back
        and propagate unchanged.
        """
        self._require_open()
        with self._connection_lock:
            session = self._session_factory()
            try:
                with session.begin():
                    if write:
                        session.connection(execution_options={WRITE_LOCK_OPTION: True})
                    yield session
            except QuoteEngineError:
                logger.debug("Rolled back %s", operation)
                raise
            except SQLAlchemyError as err:
                logger.warning("Rolled back %s: %s", operation, err)
                raise TransactionFailedError(operation, err) from err
            finally:
                session.close()

    @staticmethod
    def _ensure_quote(session: Session, quote_id: int) -> None:
        exists = session.scalar(select(select(Quote.id).where(Quote.id == quote_id).exists()))
        if not exists:
            raise NotFoundError(quote_id)

    # Mutations

    def add_quote(self, author: str, text: str) -> int:
        """Store a new quote and return its id."""
        with self._transaction("add quote") as session:
            record = Quote(date=to_unix(utcnow()), author=author, quote=text)
            session.add(record)
            session.flush()
            quote_id = record.id

        self._counter.adjust(1)
        logger.debug("Added quote %d by %s", quote_id, author)
        return quote_id

    def edit_quote(self, quote_id: int, text: str) -> bool:
        """Replace the text of a quote.

        Returns:
            False if no quote has ``quote_id``.
        """
        with self._transaction("edit quote") as session:
            result = session.execute(
                update(Quote).where(Quote.id == quote_id).values(quote=text)
            )
            changed = result.rowcount == 1

        logger.debug("Edit quote %d: changed=%s", quote_id, changed)
        return changed

    def delete_quote(self, quote_id: int) -> bool:
        """Delete a quote and every vote on it in one transaction.

        Returns:
            False if no quote has ``quote_id``.
        """
        with self._transaction("delete quote") as session:
            session.execute(delete(QuoteVote).where(QuoteVote.quote_id == quote_id))
            result = session.execute(delete(Quote).where(Quote.id == quote_id))
            deleted = result.rowcount == 1

        if deleted:
            self._counter.adjust(-1)
        logger.debug("Delete quote %d: deleted=%s", quote_id, deleted)
        return deleted

    # Votes

    def upvote(self, quote_id: int, voter: str) -> bool:
        """Cast an upvote, replacing a downvote by the same voter.

        Returns:
            False if ``voter`` had already upvoted the quote.

        Raises:
            NotFoundError: If the quote does not exist.
        """
        return self._cast(quote_id, voter, VoteDirection.UP)

    def downvote(self, quote_id: int, voter: str) -> bool:
        """Cast a downvote, replacing an upvote by the same voter.

        Returns:
            False if ``voter`` had already downvoted the quote.

        Raises:
            NotFoundError: If the quote does not exist.
        """
        return self._cast(quote_id, voter, VoteDirection.DOWN)

    def _cast(self, quote_id: int, voter: str, direction: VoteDirection) -> bool:
        operation = "upvote" if direction is VoteDirection.UP else "downvote"
        with self._transaction(operation) as session:
            self._ensure_quote(session, quote_id)
            current = session.scalar(
                select(QuoteVote.vote).where(
                    QuoteVote.quote_id == quote_id, QuoteVote.voter == voter
                )
            )
            if current == direction.value:
                return False
            if current is not None:
                session.execute(
                    delete(QuoteVote).where(
                        QuoteVote.quote_id == quote_id, QuoteVote.voter == voter
                    )
                )
            session.execute(
                insert(QuoteVote).values(
                    quote_id=quote_id,
                    voter=voter,
                    vote=direction.value,
                    date=to_unix(utcnow()),
                )
            )

        logger.debug("%s on quote %d by %s applied", operation, quote_id, voter)
        return True

    def unvote(self, quote_id: int, voter: str) -> bool:
        """Withdraw ``voter``'s vote on a quote.

        Returns:
            False if there was no vote to remove.

        Raises:
            NotFoundError: If the quote does not exist.
        """
        with self._transaction("unvote") as session:
            self._ensure_quote(session, quote_id)
            result = session.execute(
                delete(QuoteVote).where(
                    QuoteVote.quote_id == quote_id, QuoteVote.voter == voter
                )
            )
            removed = result.rowcount > 0

        logger.debug("unvote on quote %d by %s: removed=%s", quote_id, voter, removed)
        return removed

    # Queries

    def votes(self, quote_id: int) -> tuple[int, int]:
        """Return ``(upvotes, downvotes)`` for a quote.

        A quote that does not exist has no votes, so ``(0, 0)`` is returned
        rather than an error.
        """
        with self._transaction("count votes", write=False) as session:
            up = session.scalar(
                select(func.count()).select_from(QuoteVote).where(
                    QuoteVote.quote_id == quote_id,
                    QuoteVote.vote == VoteDirection.UP.value,
                )
            )
            down = session.scalar(
                select(func.count()).select_from(QuoteVote).where(
                    QuoteVote.quote_id == quote_id,
                    QuoteVote.vote == VoteDirection.DOWN.value,
                )
            )
        return int(up or 0), int(down or 0)

    def get_quote(self, quote_id: int) -> QuoteOut:
        """Return a quote with its vote counts.

        Raises:
            NotFoundError: If the quote does not exist.
        """
        with self._transaction("get quote", write=False) as session:
            row = session.execute(
                _select_quotes(filter_low=False).where(Quote.id == quote_id)
            ).first()
        if row is None:
            raise NotFoundError(quote_id)
        return _to_quote_out(row)

    def random_quote(self, filter_low: bool = True) -> QuoteOut:
        """Return a uniformly random quote.

        Args:
            filter_low: Only consider quotes scoring above SCORE_THRESHOLD.

        Raises:
            NotFoundError: If no quote qualifies.
        """
        with self._transaction("get random quote", write=False) as session:
            row = session.execute(
                _select_quotes(filter_low).order_by(func.random()).limit(1)
            ).first()
        if row is None:
            raise NotFoundError()
        return _to_quote_out(row)

    def list_all(self, filter_low: bool = True) -> list[QuoteOut]:
        """Return quotes newest first, optionally dropping low scorers."""
        with self._transaction("list quotes", write=False) as session:
            rows = session.execute(
                _select_quotes(filter_low).order_by(Quote.id.desc())
            ).all()
        return [_to_quote_out(row) for row in rows]

    def count(self) -> int:
        """Return the cached number of stored quotes."""
        self._require_open()
        return self._counter.get()
