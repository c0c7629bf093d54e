"""Quote-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field


class QuoteOut(BaseModel):
    """A quote together with its vote counts."""

    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime
    author: str
    text: str
    upvotes: int = 0
    downvotes: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> int:
        """Upvotes minus downvotes."""
        return self.upvotes - self.downvotes


class VoteTally(BaseModel):
    """Upvote and downvote counts for a single quote."""

    quote_id: int
    up: int
    down: int
