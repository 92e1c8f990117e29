"""Normalizer for JSON responses."""

import json
from typing import Any

from ..errors import ProtocolError
from .base import ResponseFormat, ResponseNormalizer


class JSONNormalizer(ResponseNormalizer):
    """Decode JSON bodies; the decoded document is already canonical."""

    format = ResponseFormat.JSON

    def normalize(self, body: bytes) -> Any:
        try:
            result = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProtocolError(f"Malformed JSON response: {e}", body=body) from e

        if result is None:
            raise ProtocolError("JSON response decoded to null", body=body)

        return result
