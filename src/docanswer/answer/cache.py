"""Process-wide answer cache with TTL expiry."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable

from docanswer.models import AnswerCacheEntry, AnswerResponse

LOGGER = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"
DEFAULT_TOP_K = 5


def build_cache_key(project_id: str | None, question: str, top_k: int | None = None) -> str:
    """Key on project scope, normalized question and requested top-k.

    An empty project id is the global scope. ``top_k`` is keyed as requested,
    before clamping, so ``0`` and ``5`` never share an entry.
    """
    scope = project_id or GLOBAL_SCOPE
    return f"{scope}:{question.strip().lower()}:{DEFAULT_TOP_K if top_k is None else top_k}"


class AnswerCache:
    """Thread-safe TTL cache of composed answers.

    Expired entries are discarded when read. When ``max_entries`` is set the
    least recently used entry is evicted once the cap is exceeded. Concurrent
    misses for the same key resolve as last write wins.
    """

    def __init__(
        self,
        ttl_ms: int,
        *,
        max_entries: int | None = 512,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_ms = ttl_ms
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, AnswerCacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> AnswerCacheEntry | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                LOGGER.debug("Answer cache entry expired: %s", key)
                return None
            self._entries.move_to_end(key)
            return entry

    def set(self, key: str, response: AnswerResponse) -> AnswerCacheEntry:
        now = self._clock()
        entry = AnswerCacheEntry(
            key=key,
            expires_at=now + self.ttl_ms / 1000.0,
            created_at=now,
            response=response,
        )
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    LOGGER.debug("Answer cache evicted: %s", evicted)
        return entry

    def invalidate(self, project_id: str | None = None) -> int:
        """Drop entries answered from ``project_id``'s chunks.

        Global-scope answers search every project, so they are always dropped.
        """
        prefixes = {f"{GLOBAL_SCOPE}:"}
        if project_id:
            prefixes.add(f"{project_id}:")
        with self._lock:
            stale = [key for key in self._entries if any(key.startswith(p) for p in prefixes)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
