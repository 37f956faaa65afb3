# backend/command_ops/rate_limit.py
"""
Per-user, per-action sliding-window rate limiting.

With ``REDIS_URL`` set the window lives in a Redis sorted set per
(action, user); otherwise an in-process limiter is used. Limiter failures
never block a request. With ``RATE_LIMIT_ENABLED`` off, hits are still
counted and logged but nothing is refused.
"""
from __future__ import annotations

import logging
import os
import re
import threading
import time
import uuid
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

import redis
from fastapi import Depends, Request

from command_ops.auth import require_user
from command_ops.errors import RateLimitError

log = logging.getLogger(__name__)

HOUR = 3600


@dataclass(frozen=True)
class Limit:
    limit: int
    window: int  # seconds


RATE_LIMITS: Dict[str, Limit] = {
    "mission_create": Limit(10, HOUR),
    "mission_update": Limit(30, HOUR),
    "mission_read": Limit(100, HOUR),
    "mission_archive": Limit(20, HOUR),
    "mission_delete": Limit(10, HOUR),
    "quest_create": Limit(20, HOUR),
    "quest_update": Limit(50, HOUR),
    "quest_complete": Limit(30, HOUR),
    "quest_read": Limit(200, HOUR),
    "quest_delete": Limit(15, HOUR),
    "calculate_analytics": Limit(30, HOUR),
    "archive_read": Limit(100, HOUR),
    "search": Limit(50, HOUR),
    "bulk_operation": Limit(5, HOUR),
    "feedback_submit": Limit(100, HOUR),
    "onboarding": Limit(20, HOUR),
    "profile_read": Limit(100, HOUR),
}

_KEY_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")
# keys idle this long hold no hit inside any window
_IDLE_AFTER = max(l.window for l in RATE_LIMITS.values())
_SWEEP_EVERY = 60


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def rate_limit_key(action: str, user_id: str) -> str:
    return f"rate_limit:{action}:{_KEY_UNSAFE.sub('', user_id)[:64]}"


class RateLimiter:
    """Base limiter. Subclasses implement ``_hit``."""

    def __init__(self, enabled: Optional[bool] = None, clock: Callable[[], float] = time.time):
        self.enabled = _env_flag("RATE_LIMIT_ENABLED") if enabled is None else enabled
        self._clock = clock

    def _hit(self, key: str, limit: Limit, now: float) -> int:
        """Record one hit and return how many fall inside the window, this one included."""
        raise NotImplementedError

    def check(self, action: str, user_id: str) -> None:
        limit = RATE_LIMITS.get(action)
        if limit is None:
            return
        key = rate_limit_key(action, user_id)
        try:
            count = self._hit(key, limit, self._clock())
        except Exception:
            log.exception("rate limiter unavailable, allowing %s for user=%s", action, user_id)
            return

        if count > limit.limit:
            log.warning(
                "rate limit exceeded action=%s user=%s count=%s limit=%s enforced=%s",
                action, user_id, count, limit.limit, self.enabled,
            )
            if self.enabled:
                raise RateLimitError(retry_after=limit.window, context={"action": action})

    def close(self) -> None:
        pass


class MemoryRateLimiter(RateLimiter):
    def __init__(self, enabled: Optional[bool] = None, clock: Callable[[], float] = time.time):
        super().__init__(enabled, clock)
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._next_sweep = 0.0

    def _sweep(self, now: float) -> None:
        idle = [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - _IDLE_AFTER]
        for k in idle:
            del self._hits[k]
        self._next_sweep = now + _SWEEP_EVERY

    def _hit(self, key: str, limit: Limit, now: float) -> int:
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            hits = self._hits[key]
            while hits and hits[0] <= now - limit.window:
                hits.popleft()
            hits.append(now)
            return len(hits)

    def close(self) -> None:
        with self._lock:
            self._hits.clear()


class RedisRateLimiter(RateLimiter):
    def __init__(self, client: "redis.Redis", enabled: Optional[bool] = None, clock: Callable[[], float] = time.time):
        super().__init__(enabled, clock)
        self.client = client

    def _hit(self, key: str, limit: Limit, now: float) -> int:
        member = f"{now}-{uuid.uuid4().hex}"
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(key, 0, now - limit.window)
        pipe.zcard(key)
        pipe.zadd(key, {member: now})
        pipe.expire(key, limit.window)
        _, count, _, _ = pipe.execute()
        return int(count) + 1

    def close(self) -> None:
        self.client.close()


def create_rate_limiter() -> RateLimiter:
    url = os.getenv("REDIS_URL")
    if url:
        log.info("rate limiting backed by redis")
        return RedisRateLimiter(redis.Redis.from_url(url))
    return MemoryRateLimiter()


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def rate_limited(action: str):
    """Dependency factory: authenticates, counts the hit, yields the user id."""

    def _dep(
        user_id: str = Depends(require_user),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> str:
        limiter.check(action, user_id)
        return user_id

    return _dep
