"""Abstract base class for response normalizers."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class ResponseFormat(Enum):
    """Wire format of an API response."""

    XML = "xml"
    JSON = "json"

    @property
    def accept_header(self) -> str:
        """MIME type requested in the Accept header."""
        return f"application/{self.value}"


class ResponseNormalizer(ABC):
    """Base class for response normalizers.

    Normalizers convert a raw response body into the canonical structure
    (dicts, lists and scalars) handed back to callers. Each wire format has
    its own normalizer; an XML document and the equivalent JSON document
    normalize to the same structure.
    """

    format: ResponseFormat

    @abstractmethod
    def normalize(self, body: bytes) -> Any:
        """Convert a raw response body to the canonical structure.

        Args:
            body: Raw HTTP response body

        Returns:
            Nested dicts/lists/scalars

        Raises:
            ProtocolError: If the body cannot be parsed. Partial results are
                never returned.
        """
        pass
