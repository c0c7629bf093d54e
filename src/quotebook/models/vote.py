"""Models capturing votes on quotes."""

from enum import IntEnum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from quotebook.db.session import Base


class VoteDirection(IntEnum):
    """Stored value of a vote."""

    UP = 1
    DOWN = -1


class QuoteVote(Base):
    """Per-voter vote on a quote.

    The composite primary key allows at most one row per (quote, voter); a
    change of direction replaces the row so ``date`` is the latest cast.
    """

    __tablename__ = "votes"
    __table_args__ = (
        CheckConstraint("vote IN (1, -1)", name="ck_votes_vote"),
        Index("quotesid", "quote_id"),
        Index("votesvote", "vote"),
    )

    # No ON DELETE CASCADE: the engine removes votes before their quote.
    quote_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("quotes.id"),
        primary_key=True,
    )
    voter: Mapped[str] = mapped_column(Text, primary_key=True)

    # 1 = upvote, -1 = downvote.
    vote: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    # Unix seconds of the most recent cast.
    date: Mapped[int] = mapped_column(Integer, nullable=False)
