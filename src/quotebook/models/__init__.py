"""SQLAlchemy models for the quote database."""

from .quote import Quote
from .vote import QuoteVote, VoteDirection

__all__ = ["Quote", "QuoteVote", "VoteDirection"]
