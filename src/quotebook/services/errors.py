"""Exceptions raised by the quote engine."""

from __future__ import annotations


class QuoteEngineError(RuntimeError):
    """Base exception raised for quote engine failures."""


class StoreUnavailableError(QuoteEngineError):
    """Raised when the backing store cannot be opened or initialized."""


class EngineClosedError(QuoteEngineError):
    """Raised when an operation is attempted after the engine was closed."""

    def __init__(self) -> None:
        super().__init__("Quote engine is closed")


class NotFoundError(QuoteEngineError):
    """Raised when a quote id, or any candidate quote, does not exist."""

    def __init__(self, quote_id: int | None = None) -> None:
        self.quote_id = quote_id
        if quote_id is None:
            message = "No matching quotes"
        else:
            message = f"Quote not found: {quote_id}"
        super().__init__(message)


class TransactionFailedError(QuoteEngineError):
    """Raised after a multi-statement operation failed and was rolled back."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        super().__init__(f"Failed to {operation}: {cause}")
