"""Pydantic schemas for quote read results."""

from .quote import QuoteOut, VoteTally

__all__ = ["QuoteOut", "VoteTally"]
