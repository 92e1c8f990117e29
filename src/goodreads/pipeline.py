"""Request pipeline: cache lookup, throttled fetch, normalization, cache write."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import requests

from common.constants import API_URL, CACHE_TTL, REQUEST_TIMEOUT, USER_AGENT
from common.logger import get_logger

from .cache import CacheStore, make_cache_key
from .errors import ProtocolError, RateLimitError, TransportError
from .normalizers import ResponseFormat, get_normalizer
from .rate_limiter import RateLimiter

logger = get_logger(__name__)


def build_query(parameters: Mapping[str, Any]) -> str:
    """Form-encode parameters in insertion order.

    None values are omitted, empty strings are sent as-is (``author=``) and
    booleans become 1/0.

    Example:
        >>> build_query({"key": "abc", "title": "Dune Messiah", "author": ""})
        'key=abc&title=Dune+Messiah&author='
    """
    pairs = []
    for name, value in parameters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = int(value)
        pairs.append((name, value))
    return urlencode(pairs)


@dataclass(frozen=True)
class RequestSpec:
    """A single API call: endpoint, parameters and expected wire format."""

    endpoint: str
    parameters: dict[str, Any] = field(default_factory=dict)
    response_format: ResponseFormat = ResponseFormat.XML

    @classmethod
    def from_parameters(cls, endpoint: str, parameters: Mapping[str, Any] | None = None) -> "RequestSpec":
        """Build a spec, picking JSON only when ``format=json`` is requested."""
        parameters = dict(parameters or {})
        response_format = (
            ResponseFormat.JSON if parameters.get("format") == "json" else ResponseFormat.XML
        )
        return cls(endpoint=endpoint, parameters=parameters, response_format=response_format)

    @property
    def cache_key(self) -> str:
        return make_cache_key(self.endpoint, self.parameters)

    def url(self, api_root: str = API_URL) -> str:
        return f"{api_root.rstrip('/')}/{self.endpoint}?{build_query(self.parameters)}"


class RequestPipeline:
    """Execute API requests through the response cache.

    Per call: check cache → (hit: return) | (miss: throttle → GET →
    normalize → cache write → return). Cache, transport and normalization
    errors are raised to the caller; nothing partial is returned or cached.
    """

    def __init__(
        self,
        cache: CacheStore,
        rate_limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
        api_root: str = API_URL,
        cache_ttl: float = CACHE_TTL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize the pipeline.

        Args:
            cache: Store for normalized responses
            rate_limiter: Throttle shared by every request of this pipeline
            session: HTTP session (a new one is created if omitted)
            api_root: API root URL without trailing slash
            cache_ttl: Seconds a cached response stays valid
            timeout: HTTP timeout in seconds
        """
        self.cache = cache
        self.rate_limiter = rate_limiter or RateLimiter()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.api_root = api_root.rstrip("/")
        self.cache_ttl = cache_ttl
        self.timeout = timeout

    def execute(self, endpoint: str, parameters: Mapping[str, Any] | None = None) -> Any:
        """Return the normalized response for an endpoint call.

        Args:
            endpoint: API endpoint path (e.g., 'book/show')
            parameters: Query parameters, in wire order

        Returns:
            Normalized response (nested dicts/lists/scalars)

        Raises:
            ConfigurationError: If the cache directory is unusable
            TransportError: If the HTTP request fails
            ProtocolError: If the response cannot be normalized
        """
        spec = RequestSpec.from_parameters(endpoint, parameters)
        key = spec.cache_key

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {endpoint}")
            return cached

        logger.debug(f"Cache miss for {endpoint}")
        response = self._fetch(spec)

        url = spec.url(self.api_root)
        try:
            result = get_normalizer(spec.response_format).normalize(response.content)
        except ProtocolError as e:
            raise ProtocolError(
                f'Server error on "{url}": {response.text}', url=url, body=response.text
            ) from e

        if result is None:
            raise ProtocolError(
                f'Server error on "{url}": {response.text}', url=url, body=response.text
            )

        self.cache.put(key, result, ttl_seconds=self.cache_ttl)
        return result

    def _fetch(self, spec: RequestSpec) -> requests.Response:
        """Perform one throttled GET for ``spec``.

        Raises:
            TransportError: On network failure or HTTP error status
            RateLimitError: On HTTP 429
        """
        url = spec.url(self.api_root)
        headers = {"Accept": spec.response_format.accept_header}

        self.rate_limiter.wait_if_needed()
        try:
            logger.debug(f"GET {url}")
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Method failed: {spec.endpoint}: timed out", endpoint=spec.endpoint) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Method failed: {spec.endpoint}: {e}", endpoint=spec.endpoint) from e
        finally:
            self.rate_limiter.record_request()

        if response.status_code == 429:
            raise RateLimitError(
                f"Method failed: {spec.endpoint}: GoodReads rate limit exceeded",
                endpoint=spec.endpoint,
                status_code=429,
            )
        if response.status_code >= 400:
            raise TransportError(
                f"Method failed: {spec.endpoint}: HTTP {response.status_code}",
                endpoint=spec.endpoint,
                status_code=response.status_code,
            )

        return response

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
