from __future__ import annotations

import hashlib
import json
import time
from typing import Dict, Optional, Tuple

from ..config import SETTINGS
from ..processing.pipeline import PipelineConfig


CacheEntry = Tuple[float, bytes]


def render_key(source: bytes, config: PipelineConfig) -> str:
    digest = hashlib.sha256(source)
    digest.update(json.dumps(config.as_dict(), sort_keys=True).encode("utf-8"))
    return digest.hexdigest()


class ResponseCache:
    def __init__(self, ttl: float | None = None, max_entries: int | None = None) -> None:
        self._ttl = SETTINGS.cache_ttl if ttl is None else ttl
        self._max_entries = SETTINGS.cache_size if max_entries is None else max_entries
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if not entry:
            return None
        timestamp, data = entry
        if time.time() - timestamp > self._ttl:
            self._entries.pop(key, None)
            return None
        return data

    def put(self, key: str, data: bytes) -> None:
        if self._max_entries <= 0:
            return
        while key not in self._entries and len(self._entries) >= self._max_entries:
            oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
            self._entries.pop(oldest, None)
        self._entries[key] = (time.time(), data)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


CACHE = ResponseCache()
_last_good_png: bytes = b""


def remember_last_good(data: bytes) -> None:
    global _last_good_png
    _last_good_png = data


def last_good_png() -> Optional[bytes]:
    return _last_good_png or None
