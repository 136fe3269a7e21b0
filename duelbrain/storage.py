from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

try:
    import redis  # type: ignore
except ImportError:  # redis is optional
    redis = None  # type: ignore

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract base class for the flat key-value stores behind the best record."""

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the stored value for key, or None if it was never saved."""
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Persist a JSON-serializable value under key."""
        pass


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(initial or {})

    def load(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def save(self, key: str, value: Any) -> None:
        self.data[key] = value


class FileStore(KeyValueStore):
    """
    All keys live in one JSON object at <state_dir>/records.json.
    The directory is created on first save so reading never touches the disk layout.
    """

    def __init__(self, state_dir: str, filename: str = "records.json"):
        self.state_dir = state_dir
        self.filename = filename

    def _path(self) -> str:
        return os.path.join(self.state_dir, self.filename)

    def _read_all(self) -> Dict[str, Any]:
        p = self._path()
        if not os.path.exists(p):
            return {}
        with open(p, "r", encoding="utf-8") as f:
            d = json.load(f)
        return d if isinstance(d, dict) else {}

    def load(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def save(self, key: str, value: Any) -> None:
        d = self._read_all()
        d[key] = value
        os.makedirs(self.state_dir, exist_ok=True)
        tmp = self._path() + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(d, f)
        os.replace(tmp, self._path())


class RedisStore(KeyValueStore):
    """
    Keys:
      rps:record:<key> -> JSON string
    """

    def __init__(self, url: str, prefix: str = "rps:record:"):
        if redis is None:
            raise RuntimeError("redis package is not installed")
        self.prefix = prefix
        self._redis = redis.from_url(url, decode_responses=True)  # str <-> str

    def _k(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def load(self, key: str) -> Optional[Any]:
        s = self._redis.get(self._k(key))
        if s is None:
            return None
        return json.loads(s)

    def save(self, key: str, value: Any) -> None:
        self._redis.set(self._k(key), json.dumps(value))


def get_store(state_dir: str, redis_url: Optional[str] = None) -> KeyValueStore:
    """Redis when REDIS_URL is configured and the client is importable, else a JSON file."""
    url = redis_url if redis_url is not None else os.getenv("REDIS_URL")
    if url and redis is not None:
        try:
            return RedisStore(url)
        except Exception as e:
            logger.warning("Redis store unavailable, using file storage: %s", e)
    return FileStore(state_dir)
