"""Keyed storage with per-key expiry for OTPs and rate-limit windows.

``MemoryTTLStore`` keeps state in the process, so it is lost on restart and
not shared between instances. ``RedisTTLStore`` keeps the same operations in
Redis for deployments with more than one worker. ``get_store`` picks one from
``CACHE_URL``.
"""

from __future__ import annotations

import threading
import time
import uuid
from functools import lru_cache
from typing import Callable, Optional, Protocol

import redis

from survey_api.config import get_settings


class TTLStore(Protocol):
    def set(self, key: str, value: str, ttl_seconds: float) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def delete(self, key: str) -> None: ...

    def pop(self, key: str) -> Optional[str]: ...

    def record_hit(self, key: str, window_seconds: float, limit: int) -> Optional[float]:
        """Count a hit in the sliding window ending now.

        Returns None when the hit was admitted, otherwise the number of
        seconds until the oldest hit in the window expires. Rejected hits are
        not recorded.
        """
        ...


class MemoryTTLStore:
    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0):
        self._clock = clock
        self._lock = threading.Lock()
        self._values: dict[str, tuple[str, float]] = {}
        # key -> (window seconds, hit timestamps)
        self._hits: dict[str, tuple[float, list[float]]] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = 0.0

    def _sweep(self, now: float) -> None:
        """Drop expired values and empty windows, at most once per interval."""
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_interval

        for key in [k for k, (_, expires_at) in self._values.items() if now >= expires_at]:
            del self._values[key]
        for key, (window, stamps) in list(self._hits.items()):
            recent = [t for t in stamps if now - t < window]
            if recent:
                self._hits[key] = (window, recent)
            else:
                del self._hits[key]

    def set(self, key: str, value: str, ttl_seconds: float) -> None:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            self._values[key] = (value, now + ttl_seconds)

    def _live(self, key: str) -> Optional[str]:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._live(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def pop(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._live(key)
            self._values.pop(key, None)
            return value

    def record_hit(self, key: str, window_seconds: float, limit: int) -> Optional[float]:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            _, stamps = self._hits.get(key, (window_seconds, []))
            recent = [t for t in stamps if now - t < window_seconds]
            if len(recent) >= limit:
                self._hits[key] = (window_seconds, recent)
                return window_seconds - (now - recent[0])
            recent.append(now)
            self._hits[key] = (window_seconds, recent)
            return None

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self._hits.clear()


# KEYS[1] = window key; ARGV = now, window, limit, member
_SLIDING_WINDOW_LUA = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', now - window)
if redis.call('ZCARD', KEYS[1]) >= limit then
  local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')
  return tostring(tonumber(oldest[2]) + window - now)
end
redis.call('ZADD', KEYS[1], now, ARGV[4])
redis.call('PEXPIRE', KEYS[1], math.ceil(window * 1000))
return false
"""


class RedisTTLStore:
    def __init__(self, client: redis.Redis, prefix: str = "survey:"):
        self._client = client
        self._prefix = prefix
        self._sliding_window = client.register_script(_SLIDING_WINDOW_LUA)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def set(self, key: str, value: str, ttl_seconds: float) -> None:
        self._client.set(self._key(key), value, px=max(1, int(ttl_seconds * 1000)))

    def get(self, key: str) -> Optional[str]:
        return self._client.get(self._key(key))

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))

    def pop(self, key: str) -> Optional[str]:
        pipe = self._client.pipeline()
        pipe.get(self._key(key))
        pipe.delete(self._key(key))
        value, _ = pipe.execute()
        return value

    def record_hit(self, key: str, window_seconds: float, limit: int) -> Optional[float]:
        wait = self._sliding_window(
            keys=[self._key(f"hits:{key}")],
            args=[time.time(), window_seconds, limit, uuid.uuid4().hex],
        )
        return float(wait) if wait is not None else None


def build_store(url: str) -> TTLStore:
    if url.startswith("memory://"):
        return MemoryTTLStore()
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisTTLStore(redis.from_url(url, decode_responses=True))
    raise ValueError(f"Unsupported CACHE_URL scheme: {url}")


@lru_cache()
def get_store() -> TTLStore:
    return build_store(get_settings().cache_url)
