"""GoodReads API client."""

from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

import requests

from common.constants import API_URL, CACHE_TTL, DEFAULT_CACHE_DIR, REQUEST_TIMEOUT
from common.env import env
from common.logger import get_logger

from .cache import CacheStore
from .errors import ConfigurationError
from .pipeline import RequestPipeline
from .rate_limiter import RateLimiter

logger = get_logger(__name__)


class GoodReadsClient:
    """Client for the GoodReads API.

    Every call goes through a file-backed response cache (one hour by
    default) and a one-request-per-second throttle. Responses are returned
    as nested dicts/lists whether the endpoint speaks XML or JSON.

    Methods implemented:
    - author.show (get_author, show_author)
    - author.books (get_books_by_author)
    - book.show (get_book)
    - book.show_by_isbn (get_book_by_isbn)
    - book.title (get_book_by_title)
    - reviews.list (get_shelf, get_latest_reads, get_all_books)
    - review.show (get_review)
    - user.show (get_user, show_user, get_user_by_username)

    Example:
        >>> with GoodReadsClient("my-key", cache_dir="./cache") as client:
        ...     book = client.get_book_by_isbn("0441172717")
        ...     book["book"]["title"]
        'Dune'
    """

    def __init__(
        self,
        api_key: str,
        cache_dir: str | Path = DEFAULT_CACHE_DIR,
        *,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
        api_root: str = API_URL,
        cache_ttl: float = CACHE_TTL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize the client and purge expired cache entries.

        Args:
            api_key: GoodReads developer key (required)
            cache_dir: Existing, writable directory for cached responses
            session: HTTP session to use (a new one is created if omitted)
            rate_limiter: Throttle to use (a new one-second limiter if omitted)
            api_root: API root URL without trailing slash
            cache_ttl: Seconds a cached response stays valid
            timeout: HTTP timeout in seconds

        Raises:
            ConfigurationError: If the API key is empty or the cache directory
                is missing or not writable
        """
        if not api_key:
            raise ConfigurationError("A GoodReads API key is required")

        self.api_key = str(api_key)
        self.cache = CacheStore(cache_dir)
        self.cache.sweep_expired()
        self.pipeline = RequestPipeline(
            cache=self.cache,
            rate_limiter=rate_limiter,
            session=session,
            api_root=api_root,
            cache_ttl=cache_ttl,
            timeout=timeout,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "GoodReadsClient":
        """Build a client from GOODREADS_API_KEY / GOODREADS_CACHE_DIR / GOODREADS_API_URL."""
        kwargs.setdefault("api_root", env.goodreads_api_url())
        return cls(env.goodreads_api_key(), env.goodreads_cache_dir(), **kwargs)

    def get_author(self, author_id: int) -> dict[str, Any]:
        """Get details for a given author."""
        return self._request("author/show", {"key": self.api_key, "id": int(author_id)})

    def get_books_by_author(self, author_id: int, page: int = 1) -> dict[str, Any]:
        """Get books by a given author.

        Args:
            author_id: GoodReads author ID
            page: Page offset, 1-N
        """
        return self._request(
            "author/list",
            {"key": self.api_key, "id": int(author_id), "page": int(page)},
        )

    def get_book(self, book_id: int) -> dict[str, Any]:
        """Get details for a given book."""
        return self._request("book/show", {"key": self.api_key, "id": int(book_id)})

    def get_book_by_isbn(self, isbn: str) -> dict[str, Any]:
        """Get details for a given book by ISBN (ISBN-10 or ISBN-13)."""
        return self._request(f"book/isbn/{quote_plus(str(isbn))}", {"key": self.api_key})

    def get_book_by_title(self, title: str, author: str = "") -> dict[str, Any]:
        """Get details for a given book by title.

        Args:
            title: Book title
            author: Author name; optional, narrows the match. Sent even when empty.
        """
        # The title goes out pre-encoded, so it is encoded twice on the wire
        return self._request(
            "book/title",
            {"key": self.api_key, "title": quote_plus(title), "author": author},
        )

    def get_user(self, user_id: int) -> dict[str, Any]:
        """Get details for a given user."""
        return self._request("user/show", {"key": self.api_key, "id": int(user_id)})

    def get_user_by_username(self, username: str) -> dict[str, Any]:
        """Get details for a given user by username."""
        return self._request("user/show", {"key": self.api_key, "username": username})

    def get_review(self, review_id: int, page: int = 1) -> dict[str, Any]:
        """Get details of a particular review.

        Args:
            review_id: GoodReads review ID
            page: Page of review comments, 1-N
        """
        return self._request(
            "review/show",
            {"key": self.api_key, "id": int(review_id), "page": int(page)},
        )

    def get_shelf(
        self,
        user_id: int,
        shelf: str,
        sort: str = "title",
        limit: int = 100,
        page: int = 1,
    ) -> dict[str, Any]:
        """Get a shelf for a given user.

        Args:
            user_id: GoodReads user ID
            shelf: read, currently-reading, to-read, or a custom shelf name
            sort: title, author, rating, year_pub, date_pub, date_read,
                date_added, avg_rating, etc.
            limit: Books per page, 1-200
            page: Page number, 1-N
        """
        # review/list only speaks XML
        return self._request(
            "review/list",
            {
                "v": 2,
                "format": "xml",
                "key": self.api_key,
                "id": int(user_id),
                "shelf": shelf,
                "sort": sort,
                "page": page,
                "per_page": limit,
            },
        )

    def get_all_books(
        self,
        user_id: int,
        sort: str = "title",
        limit: int = 100,
        page: int = 1,
    ) -> dict[str, Any]:
        """Get all books for a given user, across shelves."""
        return self._request(
            "review/list",
            {
                "v": 2,
                "format": "xml",
                "key": self.api_key,
                "id": int(user_id),
                "sort": sort,
                "page": page,
                "per_page": limit,
            },
        )

    def get_latest_reads(
        self,
        user_id: int,
        sort: str = "date_read",
        limit: int = 100,
        page: int = 1,
    ) -> dict[str, Any]:
        """Get the latest books read by a given user."""
        return self.get_shelf(user_id, "read", sort, limit, page)

    def show_author(self, author_id: int) -> dict[str, Any]:
        """Alias of get_author."""
        return self.get_author(author_id)

    def show_user(self, user_id: int) -> dict[str, Any]:
        """Alias of get_user."""
        return self.get_user(user_id)

    def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        return self.pipeline.execute(endpoint, params)

    def close(self) -> None:
        """Close the HTTP session."""
        self.pipeline.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
