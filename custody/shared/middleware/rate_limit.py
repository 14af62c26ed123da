# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from threading import Lock

from flask import Request, jsonify, request


@dataclass
class Bucket:
    timestamps: deque[float]


class InMemoryRateLimiter:
    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._lock = Lock()
        self._buckets: dict[str, Bucket] = defaultdict(lambda: Bucket(deque(maxlen=self._limit)))

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            bucket = self._buckets[key]
            # Drop old
            while bucket.timestamps and (now - bucket.timestamps[0]) > self._window:
                bucket.timestamps.popleft()
            if len(bucket.timestamps) >= self._limit:
                return False
            bucket.timestamps.append(now)
            return True


def client_ip(req: Request) -> str:
    forwarded = req.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    return forwarded or (req.remote_addr or "unknown")


def rate_limit(limiter: InMemoryRateLimiter | None):
    """Answer 429 ``rate_limited`` once a client exceeds ``limiter`` on a path.

    ``None`` leaves the view untouched, which is how rate limiting is disabled.
    """

    def decorator(f: Callable):
        if limiter is None:
            return f

        @wraps(f)
        def wrapper(*args, **kwargs):
            key = f"{request.path}:{client_ip(request)}"
            if not limiter.allow(key):
                return jsonify({"error": "rate_limited"}), 429
            return f(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["InMemoryRateLimiter", "client_ip", "rate_limit"]
