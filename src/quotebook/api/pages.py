"""HTML and JSON views over the quote engine."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from quotebook.schemas import QuoteOut
from quotebook.services import NotFoundError, rank_by_score

from .dependencies import EngineDep, require_credentials

router = APIRouter(dependencies=[Depends(require_credentials)])

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# IRC-style "<nick> message" segments.
_SPEAKER_LINE = re.compile(r"<[^>]+>[^<]+")


def split_lines(text: str) -> list[str]:
    """Split a quote into one line per ``<nick> message`` segment."""
    matches = _SPEAKER_LINE.findall(text)
    return matches or [text]


templates.env.filters["split_lines"] = split_lines


def _toggle_href(request: Request, flag: str) -> str:
    params = dict(request.query_params)
    params[flag] = "true"
    return "/?" + urlencode(params)


@router.get("/", response_class=HTMLResponse)
def quotes_page(
    request: Request,
    engine: EngineDep,
    all: bool = False,  # noqa: A002 - query parameter name
    votesort: bool = False,
) -> HTMLResponse:
    """Render every quote as a table, hiding low scorers unless ``all`` is set."""
    quotes = engine.list_all(filter_low=not all)
    if votesort:
        quotes = rank_by_score(quotes)

    return templates.TemplateResponse(
        request,
        "quotes.html",
        {
            "quotes": quotes,
            "total": engine.count(),
            "all_href": _toggle_href(request, "all"),
            "votesort_href": _toggle_href(request, "votesort"),
        },
    )


@router.get("/random")
def random_quote(engine: EngineDep, all: bool = False) -> QuoteOut:  # noqa: A002
    """Return a random quote, hiding low scorers unless ``all`` is set."""
    try:
        return engine.random_quote(filter_low=not all)
    except NotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err


@router.get("/health")
def health_check(engine: EngineDep) -> dict[str, object]:
    """Report liveness and the cached quote count."""
    return {"status": "ok", "quotes": engine.count()}
