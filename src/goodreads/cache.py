"""File-backed response cache with per-entry expiry."""

import hashlib
import json
import math
import os
import tempfile
import time
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from common.constants import CACHE_TTL
from common.logger import get_logger

from .errors import ConfigurationError

logger = get_logger(__name__)

ENTRY_SUFFIX = ".json"
TEMP_PREFIX = ".tmp-"

# Keeps file names well under the 255-byte limit whatever the endpoint path holds
MAX_PREFIX_LENGTH = 64


def make_cache_key(endpoint: str, parameters: Mapping[str, Any]) -> str:
    """Build a deterministic cache key for a request.

    The key depends on the endpoint and the parameter set, not on parameter
    insertion order, and is stable across processes.

    Args:
        endpoint: API endpoint path (e.g., 'book/show')
        parameters: Query parameters sent with the request

    Returns:
        Key of the form '<endpoint_with_underscores>-<sha256 hex>'

    Example:
        >>> make_cache_key("book/show", {"id": 1, "key": "k"}) == make_cache_key(
        ...     "book/show", {"key": "k", "id": 1}
        ... )
        True
    """
    canonical = json.dumps(
        {"endpoint": endpoint, "parameters": dict(parameters)},
        sort_keys=True,
        ensure_ascii=True,
        separators=(",", ":"),
        default=str,
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    prefix = endpoint.strip("/").replace("/", "_").replace("%", "")[:MAX_PREFIX_LENGTH]
    return f"{prefix}-{digest}"


@dataclass
class CacheEntry:
    """A cached response payload and the time it stops being valid."""

    payload: Any
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return self.expires_at <= now

    def to_json(self) -> str:
        return json.dumps({"expires_at": self.expires_at, "payload": self.payload})

    @classmethod
    def from_json(cls, text: str) -> "CacheEntry":
        """Deserialize an entry.

        Raises:
            ValueError: If the text is not a valid serialized entry
        """
        data = json.loads(text)
        if not isinstance(data, dict) or "payload" not in data:
            raise ValueError("cache entry is not an object with a payload")
        expires_at = data.get("expires_at")
        if isinstance(expires_at, bool) or not isinstance(expires_at, int | float):
            raise ValueError("cache entry has no numeric expires_at")
        if not math.isfinite(expires_at):
            raise ValueError("cache entry expires_at is not finite")
        return cls(payload=data["payload"], expires_at=float(expires_at))


class CacheStore:
    """Directory of JSON files, one per cached request.

    There is no in-memory layer: every lookup reads the entry file, so
    several client instances (or processes) can share one directory.

    Example:
        >>> store = CacheStore("./cache")
        >>> entry = store.put("book_show-abc", {"title": "Dune"}, ttl_seconds=60)
        >>> store.get("book_show-abc")
        {'title': 'Dune'}
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}{ENTRY_SUFFIX}"

    def get(self, key: str) -> Any | None:
        """Return the cached payload for ``key``, or None if absent or expired.

        Expired and corrupt entries are deleted as a side effect.

        Raises:
            ConfigurationError: If the cache directory is unusable
        """
        self._check_directory()
        path = self.path_for(key)

        try:
            entry = CacheEntry.from_json(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except ValueError as e:
            # Includes UnicodeDecodeError
            logger.warning(f"Discarding corrupt cache entry {path.name}: {e}")
            self._remove(path)
            return None
        except OSError as e:
            raise ConfigurationError(f"Cannot read cache entry {path}: {e}") from e

        if entry.is_expired():
            logger.debug(f"Cache entry {path.name} expired")
            self._remove(path)
            return None

        return entry.payload

    def put(self, key: str, payload: Any, ttl_seconds: float = CACHE_TTL) -> CacheEntry:
        """Write (or overwrite) the entry for ``key``.

        The entry is written to a temporary file and moved into place, so
        readers never see a partial file. Concurrent writers: last one wins.

        Raises:
            ConfigurationError: If the cache directory is unusable or the write fails
        """
        self._check_directory()
        entry = CacheEntry(payload=payload, expires_at=time.time() + ttl_seconds)
        path = self.path_for(key)

        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=TEMP_PREFIX, suffix=ENTRY_SUFFIX)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(entry.to_json())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ConfigurationError(f"Cannot write cache entry {path}: {e}") from e

        return entry

    def sweep_expired(self) -> int:
        """Delete every expired or corrupt entry.

        Temporary files older than the default TTL (left by a writer that
        died mid-write) are removed as well.

        Returns:
            Number of entries removed

        Raises:
            ConfigurationError: If the cache directory is unusable
        """
        self._check_directory()
        now = time.time()
        removed = 0

        for path in self._entry_paths():
            try:
                entry = CacheEntry.from_json(path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                # Another process got there first
                continue
            except ValueError:
                entry = None
            except OSError as e:
                raise ConfigurationError(f"Cannot read cache entry {path}: {e}") from e

            if entry is None or entry.is_expired(now):
                self._remove(path)
                removed += 1

        for path in self._temp_paths():
            try:
                stale = path.stat().st_mtime + CACHE_TTL <= now
            except FileNotFoundError:
                continue
            except OSError as e:
                raise ConfigurationError(f"Cannot stat cache file {path}: {e}") from e
            if stale:
                self._remove(path)

        if removed:
            logger.info(f"Removed {removed} expired cache entries from {self.directory}")
        return removed

    def clear(self) -> int:
        """Delete every entry regardless of expiry, plus leftover temporary files.

        Returns:
            Number of entries removed
        """
        self._check_directory()
        removed = 0
        for path in self._entry_paths():
            self._remove(path)
            removed += 1
        for path in self._temp_paths():
            self._remove(path)
        return removed

    def _list(self) -> list[Path]:
        try:
            return sorted(self.directory.iterdir())
        except OSError as e:
            raise ConfigurationError(f"Cannot list cache directory {self.directory}: {e}") from e

    def _entry_paths(self) -> Iterator[Path]:
        for path in self._list():
            if path.suffix == ENTRY_SUFFIX and not path.name.startswith(".") and path.is_file():
                yield path

    def _temp_paths(self) -> Iterator[Path]:
        for path in self._list():
            if path.name.startswith(TEMP_PREFIX) and path.suffix == ENTRY_SUFFIX and path.is_file():
                yield path

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot delete cache entry {path}: {e}") from e

    def _check_directory(self) -> None:
        if not self.directory.is_dir():
            raise ConfigurationError(f"Cache directory does not exist: {self.directory}")
        if not os.access(self.directory, os.W_OK | os.X_OK):
            raise ConfigurationError(f"Cache directory not writable: {self.directory}")
