"""Command line administration for the quote database."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from quotebook.core.logging import configure_logging
from quotebook.core.settings import Settings, get_settings
from quotebook.schemas import QuoteOut, VoteTally
from quotebook.services import NotFoundError, QuoteEngine, QuoteEngineError, rank_by_score

EXIT_NOT_FOUND = 1
EXIT_ENGINE_ERROR = 2


def _format_quote(quote: QuoteOut) -> str:
    stamp = quote.created_at.strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"#{quote.id} [{quote.score:+d} | +{quote.upvotes}/-{quote.downvotes}] "
        f"{stamp} <{quote.author}> {quote.text}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quotebook", description="Manage the quote database")
    parser.add_argument(
        "--database",
        default=None,
        help="Database URL or SQLite file path (defaults to DATABASE_URL)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Store a new quote")
    add.add_argument("author")
    add.add_argument("text")

    edit = sub.add_parser("edit", help="Replace the text of a quote")
    edit.add_argument("id", type=int)
    edit.add_argument("text")

    remove = sub.add_parser("delete", help="Delete a quote and its votes")
    remove.add_argument("id", type=int)

    for name, help_text in (
        ("upvote", "Upvote a quote"),
        ("downvote", "Downvote a quote"),
        ("unvote", "Withdraw a vote"),
    ):
        vote = sub.add_parser(name, help=help_text)
        vote.add_argument("id", type=int)
        vote.add_argument("voter")

    get = sub.add_parser("get", help="Show a single quote")
    get.add_argument("id", type=int)

    votes = sub.add_parser("votes", help="Show vote counts for a quote")
    votes.add_argument("id", type=int)

    rand = sub.add_parser("random", help="Show a random quote")
    rand.add_argument("--all", action="store_true", help="Include low-scoring quotes")

    listing = sub.add_parser("list", help="List quotes, newest first")
    listing.add_argument("--all", action="store_true", help="Include low-scoring quotes")
    listing.add_argument("--votesort", action="store_true", help="Order by score")

    sub.add_parser("count", help="Show the number of stored quotes")

    serve = sub.add_parser("serve", help="Run the web page")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def _emit(args: argparse.Namespace, payload: object, text: str) -> None:
    if args.json:
        print(json.dumps(payload, default=str))
    else:
        print(text)


def _run(engine: QuoteEngine, args: argparse.Namespace, settings: Settings) -> int:
    command = args.command
    if command == "add":
        quote_id = engine.add_quote(args.author, args.text)
        _emit(args, {"id": quote_id}, f"Added quote #{quote_id}")
    elif command == "edit":
        changed = engine.edit_quote(args.id, args.text)
        _emit(args, {"changed": changed}, f"Edited quote #{args.id}" if changed else "No quote edited")
    elif command == "delete":
        deleted = engine.delete_quote(args.id)
        _emit(args, {"deleted": deleted}, f"Deleted quote #{args.id}" if deleted else "No quote deleted")
    elif command in ("upvote", "downvote"):
        applied = getattr(engine, command)(args.id, args.voter)
        _emit(args, {"applied": applied}, "Vote recorded" if applied else "Vote already recorded")
    elif command == "unvote":
        removed = engine.unvote(args.id, args.voter)
        _emit(args, {"removed": removed}, "Vote removed" if removed else "No vote to remove")
    elif command == "get":
        quote = engine.get_quote(args.id)
        _emit(args, quote.model_dump(mode="json"), _format_quote(quote))
    elif command == "votes":
        up, down = engine.votes(args.id)
        tally = VoteTally(quote_id=args.id, up=up, down=down)
        _emit(args, tally.model_dump(), f"+{up} / -{down}")
    elif command == "random":
        quote = engine.random_quote(filter_low=not args.all)
        _emit(args, quote.model_dump(mode="json"), _format_quote(quote))
    elif command == "list":
        quotes = engine.list_all(filter_low=not args.all)
        if args.votesort:
            quotes = rank_by_score(quotes)
        _emit(
            args,
            [q.model_dump(mode="json") for q in quotes],
            "\n".join(_format_quote(q) for q in quotes),
        )
    elif command == "count":
        total = engine.count()
        _emit(args, {"count": total}, str(total))
    elif command == "serve":
        import uvicorn

        from quotebook.main import create_app

        uvicorn.run(
            create_app(engine),
            host=args.host or settings.web_host,
            port=args.port or settings.web_port,
            log_config=None,
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.database:
        settings = settings.model_copy(update={"database_url": args.database})
    configure_logging(settings)

    try:
        engine = QuoteEngine.from_settings(settings)
    except QuoteEngineError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ENGINE_ERROR

    try:
        return _run(engine, args, settings)
    except NotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except QuoteEngineError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ENGINE_ERROR
    finally:
        engine.close()


if __name__ == "__main__":
    sys.exit(main())
