"""File-backed cache of processed tweet IDs."""

import json
import threading
from pathlib import Path
from typing import Any, Iterable, Union
import logging

logger = logging.getLogger(__name__)

# Key used by the old nested cache format: {"processed_tweets": {"<id>": true}}
LEGACY_CACHE_KEY = "processed_tweets"


class CacheError(Exception):
    """Raised when the cache file cannot be read, parsed or written."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _ids_from_mapping(mapping: dict[str, Any]) -> set[str]:
    return {str(key) for key, value in mapping.items() if value}


def parse_cache_data(data: Any) -> set[str]:
    """Extract processed IDs from decoded cache JSON.

    Accepts the flat shape ``{"<id>": true}`` and the legacy nested shape
    ``{"processed_tweets": {"<id>": true}}``.

    Raises:
        CacheError: If the data matches neither shape
    """
    if not isinstance(data, dict):
        raise CacheError(f"unexpected cache format: {type(data).__name__}")

    legacy = data.get(LEGACY_CACHE_KEY)
    if isinstance(legacy, dict):
        logger.info("Successfully converted old cache format")
        return _ids_from_mapping(legacy)

    if not all(isinstance(value, bool) for value in data.values()):
        raise CacheError("unexpected cache format: values must be booleans")

    return _ids_from_mapping(data)


class ProcessedCache:
    """Set of tweet IDs that were already forwarded to Dynalist."""

    def __init__(
        self,
        file_path: Union[str, Path],
        processed: Iterable[str] = (),
    ):
        self.file_path = Path(file_path)
        self._processed: set[str] = set(processed)
        self._lock = threading.Lock()

    @classmethod
    def load(cls, file_path: Union[str, Path]) -> "ProcessedCache":
        """Load the cache from disk, creating an empty one if absent.

        Args:
            file_path: Path to the JSON cache file

        Returns:
            Loaded cache

        Raises:
            CacheError: If the directory cannot be created or the file is invalid
        """
        path = Path(file_path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"failed to create cache directory: {e}") from e

        logger.debug(f"Attempting to load cache from: {path}")
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("Cache file doesn't exist, creating new cache")
            return cls(path)
        except OSError as e:
            raise CacheError(f"failed to read cache file: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"failed to parse cache file: {e}") from e

        cache = cls(path, parse_cache_data(data))
        logger.info(f"Cache loaded successfully with {len(cache)} processed tweets")
        return cache

    def is_processed(self, tweet_id: str) -> bool:
        with self._lock:
            return tweet_id in self._processed

    def mark_processed(self, tweet_id: str) -> None:
        with self._lock:
            self._processed.add(tweet_id)

    def save(self) -> None:
        """Persist the cache in the flat format.

        Raises:
            CacheError: If the file cannot be written
        """
        with self._lock:
            payload = {tweet_id: True for tweet_id in sorted(self._processed)}
            count = len(payload)

            logger.debug(f"Writing cache to file: {self.file_path}")
            try:
                self.file_path.write_text(
                    json.dumps(payload, indent=2), encoding="utf-8"
                )
            except OSError as e:
                raise CacheError(f"failed to write cache file: {e}") from e

        logger.info(f"Cache saved successfully with {count} processed tweets")

    def __contains__(self, tweet_id: object) -> bool:
        with self._lock:
            return tweet_id in self._processed

    def __len__(self) -> int:
        with self._lock:
            return len(self._processed)
