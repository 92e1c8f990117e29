"""Response normalizers: raw XML or JSON bodies to one canonical structure."""

from .base import ResponseFormat, ResponseNormalizer
from .json_normalizer import JSONNormalizer
from .xml_normalizer import XMLNormalizer

_NORMALIZERS: dict[ResponseFormat, type[ResponseNormalizer]] = {
    ResponseFormat.XML: XMLNormalizer,
    ResponseFormat.JSON: JSONNormalizer,
}


def get_normalizer(response_format: ResponseFormat) -> ResponseNormalizer:
    """Return a normalizer instance for the given wire format."""
    return _NORMALIZERS[response_format]()


__all__ = [
    "JSONNormalizer",
    "ResponseFormat",
    "ResponseNormalizer",
    "XMLNormalizer",
    "get_normalizer",
]
