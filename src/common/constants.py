"""Shared constants for the goodreads client.

For environment-based configuration (API key, cache directory, etc.), use the env module:
    from common.env import env
    api_key = env.goodreads_api_key()
"""

from pathlib import Path

# Root URL of the API (no trailing slash)
API_URL = "https://www.goodreads.com"

# How long cached responses live for (seconds)
CACHE_TTL = 3600

# Minimum delay between outbound requests (seconds)
SLEEP_BETWEEN_REQUESTS = 1.0

# HTTP timeout for a single request (seconds)
REQUEST_TIMEOUT = 10

# Cache directory used when none is configured
DEFAULT_CACHE_DIR = Path("./cache")

USER_AGENT = "goodreads-client/0.1.0"
