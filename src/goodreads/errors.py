"""Exceptions raised by the GoodReads client."""


class GoodReadsError(Exception):
    """Base exception for GoodReads client errors."""

    pass


class ConfigurationError(GoodReadsError):
    """Client is misconfigured: missing API key or unusable cache directory."""

    pass


class TransportError(GoodReadsError):
    """HTTP request failed at the network or HTTP layer."""

    def __init__(self, message: str, endpoint: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(TransportError):
    """Upstream rejected the request as too frequent (HTTP 429)."""

    pass


class ProtocolError(GoodReadsError):
    """Response body could not be parsed into a usable structure.

    ``url`` is filled in by the request pipeline; the normalizers only know
    the body.
    """

    def __init__(self, message: str, url: str | None = None, body: str | bytes | None = None):
        super().__init__(message)
        self.url = url
        self.body = body
