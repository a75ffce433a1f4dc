"""Process-local cache of fetched manifest text.

One :class:`ContentCache` belongs to one resolver instance, which serves one
interactive session. Entries never expire; :meth:`ContentCache.clear` is the
only eviction. Concurrent requests for the same key share a single in-flight
fetch, so a file is downloaded (and charged to the quota) once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from kustomap.observability.logging import get_logger

_log = get_logger("sources.cache")

CacheKey = tuple[str, str, str, str, str]  # host, owner, project, branch, path


class ContentCache:
    """Maps ``(host, owner, project, branch, path)`` to raw file text."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, str] = {}
        self._in_flight: dict[CacheKey, asyncio.Future[str]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> str | None:
        return self._entries.get(key)

    def put(self, key: CacheKey, content: str) -> None:
        self._entries[key] = content

    async def get_or_fetch(self, key: CacheKey, fetch: Callable[[], Awaitable[str]]) -> str:
        """Return the cached text for *key*, calling *fetch* on a miss.

        A failed fetch is not cached; its exception reaches every waiter.
        """
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            _log.debug("content_cache_hit", path=key[-1])
            return cached

        pending = self._in_flight.get(key)
        if pending is not None:
            self.hits += 1
            _log.debug("content_cache_join_in_flight", path=key[-1])
            return await asyncio.shield(pending)

        self.misses += 1
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            content = await fetch()
        except BaseException as exc:
            if isinstance(exc, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(exc)
                # retrieved here so an unobserved failure is not reported by asyncio
                future.exception()
            raise
        else:
            self._entries[key] = content
            future.set_result(content)
            return content
        finally:
            self._in_flight.pop(key, None)

    def clear(self) -> None:
        """Drop every cached entry and reset the counters."""
        count = len(self._entries)
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        _log.info("content_cache_cleared", entries=count)
