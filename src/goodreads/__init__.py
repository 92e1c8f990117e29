"""Cached, rate-limited client for the GoodReads API."""

from .cache import CacheEntry, CacheStore, make_cache_key
from .client import GoodReadsClient
from .errors import (
    ConfigurationError,
    GoodReadsError,
    ProtocolError,
    RateLimitError,
    TransportError,
)
from .normalizers import ResponseFormat
from .pipeline import RequestPipeline, RequestSpec
from .rate_limiter import RateLimiter

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "CacheStore",
    "ConfigurationError",
    "GoodReadsClient",
    "GoodReadsError",
    "ProtocolError",
    "RateLimitError",
    "RateLimiter",
    "RequestPipeline",
    "RequestSpec",
    "ResponseFormat",
    "TransportError",
    "make_cache_key",
]
