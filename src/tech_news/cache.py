from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from typing import Optional

logger = logging.getLogger("technews")


class Cache:
    """
    On-disk cache of extracted article bodies, one JSON file per URL.

    A ``ttl`` of zero or less keeps entries forever. Any filesystem problem
    is logged and reported as a miss.
    """

    def __init__(self, cache_dir: str, ttl: int):
        self.cache_dir = cache_dir
        self.ttl = ttl
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            logger.warning("Cache directory %s is unavailable: %s", cache_dir, e)

    def _get_cache_path(self, url: str) -> str:
        hashed_key = hashlib.sha256(url.encode()).hexdigest()
        return os.path.join(self.cache_dir, f"{hashed_key}.json")

    def _expired(self, stored_at: float) -> bool:
        return self.ttl > 0 and time.time() - stored_at > self.ttl

    def get(self, url: str) -> Optional[str]:
        cache_path = self._get_cache_path(url)
        if not os.path.exists(cache_path):
            return None

        try:
            with open(cache_path, "r") as f:
                entry = json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.warning("Failed to read from cache file %s: %s", cache_path, e)
            return None

        if not isinstance(entry, dict):
            logger.warning("Ignoring malformed cache file %s", cache_path)
            self.invalidate(url)
            return None

        if self._expired(entry.get("stored_at", 0)):
            logger.debug("Cached content expired for %s", url)
            self.invalidate(url)
            return None

        content = entry.get("content")
        if not isinstance(content, str):
            return None
        logger.debug("Cache hit for %s", url)
        return content

    def set(self, url: str, content: str) -> None:
        cache_path = self._get_cache_path(url)
        entry = {"url": url, "stored_at": time.time(), "content": content}
        try:
            with open(cache_path, "w") as f:
                json.dump(entry, f)
            logger.debug("Cached content for %s", url)
        except IOError as e:
            logger.warning("Failed to write to cache file %s: %s", cache_path, e)

    def invalidate(self, url: str) -> None:
        try:
            os.unlink(self._get_cache_path(url))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to drop cached content for %s: %s", url, e)

    def clear(self) -> None:
        """Remove every cached article body."""
        try:
            filenames = os.listdir(self.cache_dir)
        except OSError as e:
            logger.warning("Cannot list cache directory %s: %s", self.cache_dir, e)
            return
        for filename in filenames:
            file_path = os.path.join(self.cache_dir, filename)
            try:
                if os.path.isfile(file_path) and filename.endswith(".json"):
                    os.unlink(file_path)
            except OSError as e:
                logger.error("Failed to delete cache file %s: %s", file_path, e)
        logger.info("Cache cleared.")
