#!/usr/bin/env python3
"""CLI for querying the GoodReads API."""

import argparse
import json
import sys
from pathlib import Path

from common.env import env
from common.logger import error, setup_logging, success

from .cache import CacheStore
from .client import GoodReadsClient
from .errors import GoodReadsError


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _client(args) -> GoodReadsClient:
    return GoodReadsClient(args.api_key, args.cache_dir)


def cmd_author(args):
    """Show an author."""
    with _client(args) as client:
        _print_json(client.get_author(args.author_id))
    return 0


def cmd_author_books(args):
    """List books by an author."""
    with _client(args) as client:
        _print_json(client.get_books_by_author(args.author_id, page=args.page))
    return 0


def cmd_book(args):
    """Show a book by GoodReads ID."""
    with _client(args) as client:
        _print_json(client.get_book(args.book_id))
    return 0


def cmd_isbn(args):
    """Show a book by ISBN."""
    with _client(args) as client:
        _print_json(client.get_book_by_isbn(args.isbn))
    return 0


def cmd_title(args):
    """Show a book by title."""
    with _client(args) as client:
        _print_json(client.get_book_by_title(args.title, author=args.author))
    return 0


def cmd_user(args):
    """Show a user by ID or username."""
    with _client(args) as client:
        if args.username:
            _print_json(client.get_user_by_username(args.username))
        else:
            _print_json(client.get_user(args.user_id))
    return 0


def cmd_review(args):
    """Show a review."""
    with _client(args) as client:
        _print_json(client.get_review(args.review_id, page=args.page))
    return 0


def cmd_shelf(args):
    """List a user's shelf."""
    with _client(args) as client:
        _print_json(
            client.get_shelf(args.user_id, args.shelf, sort=args.sort, limit=args.limit, page=args.page)
        )
    return 0


def cmd_all_books(args):
    """List all of a user's books."""
    with _client(args) as client:
        _print_json(client.get_all_books(args.user_id, sort=args.sort, limit=args.limit, page=args.page))
    return 0


def cmd_latest_reads(args):
    """List a user's most recently read books."""
    with _client(args) as client:
        _print_json(
            client.get_latest_reads(args.user_id, sort=args.sort, limit=args.limit, page=args.page)
        )
    return 0


def cmd_cache_sweep(args):
    """Remove expired cache entries."""
    removed = CacheStore(args.cache_dir).sweep_expired()
    success(f"Removed {removed} expired cache entries from {args.cache_dir}")
    return 0


def cmd_cache_clear(args):
    """Remove every cache entry."""
    removed = CacheStore(args.cache_dir).clear()
    success(f"Removed {removed} cache entries from {args.cache_dir}")
    return 0


def _add_listing_options(parser, default_sort):
    parser.add_argument(
        "--sort",
        default=default_sort,
        help=f"title, author, rating, year_pub, date_pub, date_read, date_added, avg_rating (default: {default_sort})",
    )
    parser.add_argument("--limit", type=int, default=100, help="Books per page, 1-200 (default: 100)")
    parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goodreads",
        description="Query the GoodReads API with caching and rate limiting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  goodreads isbn 0441172717\n"
            "  goodreads title 'Dune' --author 'Frank Herbert'\n"
            "  goodreads shelf 12345 to-read --sort date_added\n"
            "  goodreads cache-sweep\n"
        ),
    )
    parser.add_argument(
        "--api-key",
        default=env.goodreads_api_key(),
        help="GoodReads API key (default: $GOODREADS_API_KEY)",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=env.goodreads_cache_dir(),
        help="Response cache directory (default: $GOODREADS_CACHE_DIR or ./cache)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command")

    author_parser = subparsers.add_parser("author", help="Show an author")
    author_parser.add_argument("author_id", type=int)
    author_parser.set_defaults(func=cmd_author)

    author_books_parser = subparsers.add_parser("author-books", help="List books by an author")
    author_books_parser.add_argument("author_id", type=int)
    author_books_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    author_books_parser.set_defaults(func=cmd_author_books)

    book_parser = subparsers.add_parser("book", help="Show a book by GoodReads ID")
    book_parser.add_argument("book_id", type=int)
    book_parser.set_defaults(func=cmd_book)

    isbn_parser = subparsers.add_parser("isbn", help="Show a book by ISBN")
    isbn_parser.add_argument("isbn")
    isbn_parser.set_defaults(func=cmd_isbn)

    title_parser = subparsers.add_parser("title", help="Show a book by title")
    title_parser.add_argument("title")
    title_parser.add_argument("--author", default="", help="Author name, for a more accurate match")
    title_parser.set_defaults(func=cmd_title)

    user_parser = subparsers.add_parser("user", help="Show a user")
    user_group = user_parser.add_mutually_exclusive_group(required=True)
    user_group.add_argument("user_id", type=int, nargs="?")
    user_group.add_argument("--username", help="Look the user up by username instead of ID")
    user_parser.set_defaults(func=cmd_user)

    review_parser = subparsers.add_parser("review", help="Show a review")
    review_parser.add_argument("review_id", type=int)
    review_parser.add_argument("--page", type=int, default=1, help="Page of comments (default: 1)")
    review_parser.set_defaults(func=cmd_review)

    shelf_parser = subparsers.add_parser("shelf", help="List a user's shelf")
    shelf_parser.add_argument("user_id", type=int)
    shelf_parser.add_argument("shelf", help="read, currently-reading, to-read, or a custom shelf")
    _add_listing_options(shelf_parser, "title")
    shelf_parser.set_defaults(func=cmd_shelf)

    all_books_parser = subparsers.add_parser("all-books", help="List all of a user's books")
    all_books_parser.add_argument("user_id", type=int)
    _add_listing_options(all_books_parser, "title")
    all_books_parser.set_defaults(func=cmd_all_books)

    latest_parser = subparsers.add_parser("latest-reads", help="List a user's latest reads")
    latest_parser.add_argument("user_id", type=int)
    _add_listing_options(latest_parser, "date_read")
    latest_parser.set_defaults(func=cmd_latest_reads)

    sweep_parser = subparsers.add_parser("cache-sweep", help="Remove expired cache entries")
    sweep_parser.set_defaults(func=cmd_cache_sweep)

    clear_parser = subparsers.add_parser("cache-clear", help="Remove every cache entry")
    clear_parser.set_defaults(func=cmd_cache_clear)

    return parser


def main(argv=None):
    """Main entry point for the GoodReads CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=args.log_level)

    try:
        return args.func(args)
    except GoodReadsError as e:
        error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
