"""
Cache backends for gitembed.

The resolver only ever talks to the small `CacheBackend` interface
(get/set/delete/delete_by_prefix with per-entry TTLs), so any key/value store
with expiry support can be plugged in. Two implementations ship here: an
in-memory store for tests and one-shot runs, and a JSON-file store that keeps
one file per key in the user cache directory.
"""

import json
import os
import re
import tempfile
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from gitembed.constants import APP_NAME
from gitembed.log_utils import logger

_UNSAFE_KEY_CHARS_RX = re.compile(r"[^A-Za-z0-9_.\-]")


def _parse_iso_datetime_utc(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp and normalize it to UTC.

    Parameters:
        value (Any): An ISO 8601 datetime representation (commonly a string). Falsey values or unparsable values are treated as absent.

    Returns:
        A timezone-aware datetime in UTC if parsing succeeds, `None` otherwise.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CacheBackend(ABC):
    """Key/value store with per-entry time-to-live."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value, or None when the key is missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store `value` under `key` for `ttl_seconds`. Returns True on success."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key` if present."""

    @abstractmethod
    def delete_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with `prefix` and return how many were removed."""


class InMemoryCache(CacheBackend):
    """
    Process-local cache backed by a dict.

    Expiry is evaluated lazily on read. The clock is injectable so tests can move
    time forward without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        self._entries[key] = (value, self._clock() + ttl_seconds)
        return True

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def delete_by_prefix(self, prefix: str) -> int:
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def keys(self):
        """Return the keys currently held, including ones that have expired but not been read."""
        return list(self._entries)


class FileCache(CacheBackend):
    """
    Cache that stores each entry as a JSON file in a cache directory.

    Each file holds the value under "data" alongside UTC `cached_at` and
    `expires_at` ISO-8601 timestamps. Writes go through a temporary file and an
    atomic rename; unreadable or expired files are treated as misses and removed.
    """

    def __init__(self, cache_dir: Optional[str] = None):
        """
        Initialize the FileCache with a cache directory.

        Parameters:
            cache_dir (Optional[str]): Path to use for on-disk caches. If None, the platformdirs user cache directory for gitembed is used and created if missing.
        """
        self.cache_dir = cache_dir or self._get_default_cache_dir()
        self._ensure_cache_dir_exists()

    def _get_default_cache_dir(self) -> str:
        import platformdirs

        return platformdirs.user_cache_dir(APP_NAME)

    def _ensure_cache_dir_exists(self) -> None:
        """
        Ensure the cache directory exists, creating it if necessary.

        Raises:
            OSError: If the directory cannot be created or is otherwise inaccessible.
        """
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create cache directory {self.cache_dir}: {e}")
            raise

    @staticmethod
    def _file_name_for(key: str) -> str:
        return f"{_UNSAFE_KEY_CHARS_RX.sub('-', key)}.json"

    def get_cache_file_path(self, key: str) -> str:
        """Return the absolute path of the file that holds `key`."""
        return os.path.join(self.cache_dir, self._file_name_for(key))

    def _atomic_write_json(self, file_path: str, data: Dict[str, Any]) -> bool:
        """
        Write `data` to `file_path` as JSON through a temporary file and atomic replace.

        Returns:
            bool: `True` if the file was written and moved into place successfully, `False` on error.
        """
        try:
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.cache_dir, prefix="tmp-", suffix=".json"
            )
        except OSError as e:
            logger.error(f"Could not create temporary file for {file_path}: {e}")
            return False

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_f:
                json.dump(data, temp_f, indent=2)
            os.replace(temp_path, file_path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write to {file_path}: {e}")
            return False
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
        return True

    def _remove(self, file_path: str) -> bool:
        try:
            os.remove(file_path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not remove cache file {file_path}: {e}")
            return False

    def get(self, key: str) -> Any:
        file_path = self.get_cache_file_path(key)
        if not os.path.exists(file_path):
            return None

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                cache_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Discarding unreadable cache file {file_path}: {e}")
            self._remove(file_path)
            return None

        if not isinstance(cache_data, dict):
            self._remove(file_path)
            return None
        # Distinct keys can sanitize to the same file name
        if cache_data.get("key") != key:
            return None

        expires_at = _parse_iso_datetime_utc(cache_data.get("expires_at"))
        if expires_at is None or datetime.now(timezone.utc) >= expires_at:
            logger.debug(f"Cache expired for {key}")
            self._remove(file_path)
            return None

        return cache_data.get("data")

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        now = datetime.now(timezone.utc)
        cache_data = {
            "key": key,
            "data": value,
            "cached_at": now.isoformat(),
            "expires_at": (now + timedelta(seconds=ttl_seconds)).isoformat(),
        }
        return self._atomic_write_json(self.get_cache_file_path(key), cache_data)

    def delete(self, key: str) -> None:
        file_path = self.get_cache_file_path(key)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                cache_data = json.load(f)
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            cache_data = None

        # Leave a colliding key's entry in place
        if isinstance(cache_data, dict) and cache_data.get("key") != key:
            return
        self._remove(file_path)

    def delete_by_prefix(self, prefix: str) -> int:
        file_prefix = _UNSAFE_KEY_CHARS_RX.sub("-", prefix)
        removed = 0
        try:
            names = os.listdir(self.cache_dir)
        except OSError as e:
            logger.warning(f"Could not list cache directory {self.cache_dir}: {e}")
            return 0

        for name in names:
            if name.startswith(file_prefix) and name.endswith(".json"):
                if self._remove(os.path.join(self.cache_dir, name)):
                    removed += 1
        logger.debug(f"Removed {removed} cache entries with prefix {prefix}")
        return removed
