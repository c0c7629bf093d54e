"""SQLAlchemy model for stored quotes."""

from sqlalchemy import Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from quotebook.db.session import Base


class Quote(Base):
    """A short text record with its author and creation time.

    ``id`` and ``date`` are assigned on insert and never change; only the
    ``quote`` text may be edited afterwards.
    """

    __tablename__ = "quotes"
    __table_args__ = (
        Index("quotesdate", "date"),
        # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows.
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Unix seconds.
    date: Mapped[int] = mapped_column(Integer, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    quote: Mapped[str] = mapped_column(Text, nullable=False)
