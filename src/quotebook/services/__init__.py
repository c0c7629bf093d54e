"""Business logic services for the quote database."""

from .errors import (
    EngineClosedError,
    NotFoundError,
    QuoteEngineError,
    StoreUnavailableError,
    TransactionFailedError,
)
from .quote_engine import SCORE_THRESHOLD, QuoteEngine, rank_by_score
from .record_counter import ReadWriteLock, RecordCounter

__all__ = [
    "QuoteEngine",
    "SCORE_THRESHOLD",
    "rank_by_score",
    "RecordCounter",
    "ReadWriteLock",
    "QuoteEngineError",
    "StoreUnavailableError",
    "EngineClosedError",
    "NotFoundError",
    "TransactionFailedError",
]
