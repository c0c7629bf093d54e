"""Quote storage with one-vote-per-voter popularity tracking."""

from quotebook.services.errors import (
    EngineClosedError,
    NotFoundError,
    QuoteEngineError,
    StoreUnavailableError,
    TransactionFailedError,
)
from quotebook.services.quote_engine import SCORE_THRESHOLD, QuoteEngine, rank_by_score

__version__ = "0.1.0"

__all__ = [
    "QuoteEngine",
    "SCORE_THRESHOLD",
    "rank_by_score",
    "QuoteEngineError",
    "StoreUnavailableError",
    "EngineClosedError",
    "NotFoundError",
    "TransactionFailedError",
]
