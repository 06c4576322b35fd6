"""Single-key, file-backed persistence for the aggregated video snapshot."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from .models import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


class CacheUnavailable(RuntimeError):
    """Raised when the local cache cannot be read or written."""


class CacheStore(Protocol):
    def read(self) -> Optional[CacheEntry]: ...

    def write(self, entry: CacheEntry) -> None: ...

    def invalidate(self) -> None: ...


def now_ms() -> int:
    return int(time.time() * 1000)


def is_fresh(entry: CacheEntry, now: Optional[int] = None, ttl_ms: int = DEFAULT_TTL_MS) -> bool:
    """True while the entry is strictly younger than ``ttl_ms``."""
    current = now_ms() if now is None else now
    return current - entry.timestamp < ttl_ms


class JsonFileCacheStore:
    """Stores cache blobs in one JSON document, keyed by name.

    Writes go through a temporary file in the same directory followed by an
    atomic rename, so readers see either the previous or the new document.
    """

    def __init__(self, path: str, key: str = "videoCache"):
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return self._key

    def read(self) -> Optional[CacheEntry]:
        document = self._load_document()
        blob = document.get(self._key)
        if blob is None:
            return None
        try:
            return CacheEntry.model_validate(blob)
        except ValidationError as exc:
            raise CacheUnavailable(f"Cache entry '{self._key}' in {self._path} is invalid") from exc

    def write(self, entry: CacheEntry) -> None:
        try:
            document = self._load_document()
        except CacheUnavailable:
            logger.warning("Overwriting unreadable cache file %s", self._path)
            document = {}
        document[self._key] = entry.to_payload()
        self._persist(document)
        logger.info(
            "Cached %s videos from %s channels under '%s'",
            len(entry.records),
            len(entry.channel_directory),
            self._key,
        )

    def invalidate(self) -> None:
        try:
            document = self._load_document()
        except CacheUnavailable:
            logger.warning("Discarding unreadable cache file %s", self._path)
            document = {}
        else:
            if self._key not in document:
                return
            del document[self._key]
        self._persist(document)
        logger.info("Invalidated cache entry '%s'", self._key)

    def _load_document(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise CacheUnavailable(f"Cannot read cache file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CacheUnavailable(f"Cache file {self._path} does not contain a JSON object")
        return data

    def _persist(self, document: Dict[str, Any]) -> None:
        tmp_path: Optional[Path] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile("w", dir=self._path.parent, delete=False, encoding="utf-8") as tmp:
                tmp_path = Path(tmp.name)
                json.dump(document, tmp, ensure_ascii=False)
                tmp.flush()
            tmp_path.replace(self._path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise CacheUnavailable(f"Cannot write cache file {self._path}: {exc}") from exc


__all__ = [
    "CacheStore",
    "CacheUnavailable",
    "DEFAULT_TTL_MS",
    "JsonFileCacheStore",
    "is_fresh",
    "now_ms",
]
