"""Shared web dependencies for engine access and page gating."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from quotebook.services import QuoteEngine

basic_scheme = HTTPBasic(auto_error=False, realm="Quotes")


def get_engine(request: Request) -> QuoteEngine:
    """Return the quote engine attached to the running application."""
    return request.app.state.engine


EngineDep = Annotated[QuoteEngine, Depends(get_engine)]


def require_credentials(
    engine: EngineDep,
    credentials: Annotated[HTTPBasicCredentials | None, Depends(basic_scheme)],
) -> None:
    """Reject the request unless it carries the configured basic credentials.

    Does nothing when the engine was opened without web credentials.

    Raises:
        HTTPException: 401 with a Basic challenge on missing or wrong credentials.
    """
    expected = engine.credentials
    if expected is None:
        return
    if credentials is None or not expected.verify(credentials.username, credentials.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": 'Basic realm="Quotes"'},
        )
