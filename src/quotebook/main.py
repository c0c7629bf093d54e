"""Web application exposing the quote engine."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

from quotebook.api import pages_router
from quotebook.services import QuoteEngine, QuoteEngineError

logger = logging.getLogger(__name__)


def create_app(engine: QuoteEngine) -> FastAPI:
    """Build the web application around an open engine.

    The caller owns ``engine`` and closes it after the server stops.
    """
    app = FastAPI(
        title="Quotes",
        description="Stored quotes ranked by voter popularity",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.engine = engine

    @app.exception_handler(QuoteEngineError)
    async def engine_error_handler(request: Request, exc: QuoteEngineError) -> PlainTextResponse:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
        return PlainTextResponse(
            "Internal Server Error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    app.include_router(pages_router)
    return app
