"""Environment configuration interface for the goodreads client.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import API_URL, DEFAULT_CACHE_DIR

# Load environment variables from .env file if it exists
load_dotenv()


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def goodreads_api_key() -> str:
        """Get the GoodReads API key.

        Returns:
            API key, defaults to empty string
        """
        return os.getenv("GOODREADS_API_KEY", "")

    @staticmethod
    def goodreads_cache_dir() -> Path:
        """Get the response cache directory.

        Returns:
            Path to cache directory, defaults to ./cache
        """
        return Path(os.getenv("GOODREADS_CACHE_DIR", str(DEFAULT_CACHE_DIR)))

    @staticmethod
    def goodreads_api_url() -> str:
        """Get the API root URL.

        Returns:
            API root without trailing slash, defaults to https://www.goodreads.com
        """
        return os.getenv("GOODREADS_API_URL", API_URL).rstrip("/")

    @staticmethod
    def log_level() -> str:
        """Get the logging level.

        Returns:
            Upper-cased level name, defaults to 'INFO'
        """
        return os.getenv("LOG_LEVEL", "INFO").upper()


# Singleton instance for convenient access
env = Environment()
