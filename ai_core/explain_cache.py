"""In-memory cache for concept explanations.

Each key maps to a future, so concurrent misses on the same key wait on one
upstream call instead of racing each other. Failed generations are dropped so
the next request retries. Size and age bounds are optional; with neither set,
entries live for the lifetime of the process.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger("ai_core.explain_cache")

DEFAULT_CONTEXT = "general"


def make_cache_key(subject: str, topic: str, subtopic: str, context: Optional[str] = None) -> str:
    """Case-insensitive key for one (subject, topic, subtopic, context) request."""
    ctx = (context or "").strip() or DEFAULT_CONTEXT
    return "-".join([subject.strip(), topic.strip(), subtopic.strip(), ctx]).lower()


@dataclass
class _Entry:
    future: "asyncio.Future[Dict[str, Any]]"
    stored_at: Optional[float] = None


class ExplanationCache:
    def __init__(
        self,
        max_entries: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0 or None")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not None

    def clear(self) -> None:
        self._entries.clear()

    def _expired(self, entry: _Entry) -> bool:
        if self.ttl_seconds is None or entry.stored_at is None:
            return False
        return self._clock() - entry.stored_at > self.ttl_seconds

    def _lookup(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            logger.debug(f"Cache entry expired: {key}")
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    def _discard(self, key: str, entry: _Entry) -> None:
        # a newer entry may have replaced ours after eviction
        if self._entries.get(key) is entry:
            del self._entries[key]

    def _evict(self) -> None:
        if self.max_entries is None:
            return
        while len(self._entries) > self.max_entries:
            old_key, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache entry evicted: {old_key}")

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a finished value for ``key``, or None (in-flight entries count as absent)."""
        entry = self._lookup(key)
        if entry is None or not entry.future.done() or entry.future.cancelled():
            return None
        if entry.future.exception() is not None:
            return None
        return entry.future.result()

    async def get_or_create(
        self,
        key: str,
        factory: Callable[[], Awaitable[Dict[str, Any]]],
    ) -> Tuple[Dict[str, Any], bool]:
        """Return ``(value, hit)``.

        ``hit`` is True when the value came from an existing entry, finished or
        in flight, and ``factory`` was not called by this request.
        """
        while True:
            entry = self._lookup(key)
            if entry is None:
                break
            try:
                return await asyncio.shield(entry.future), True
            except asyncio.CancelledError:
                # the request that owned the call was cancelled, not this one: take over
                if entry.future.cancelled() and not asyncio.current_task().cancelling():
                    logger.debug(f"In-flight generation cancelled, retrying: {key}")
                    continue
                raise

        entry = _Entry(future=asyncio.get_running_loop().create_future())
        self._entries[key] = entry
        self._evict()

        try:
            value = await factory()
        except asyncio.CancelledError:
            self._discard(key, entry)
            entry.future.cancel()
            raise
        except Exception as e:
            self._discard(key, entry)
            entry.future.set_exception(e)
            # waiters re-raise it; mark it retrieved so asyncio does not warn when there are none
            entry.future.exception()
            raise

        entry.stored_at = self._clock()
        entry.future.set_result(value)
        return value, False
