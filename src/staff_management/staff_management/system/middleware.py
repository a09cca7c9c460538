from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Sequence, Tuple

from flask import Flask, jsonify, request
from flask_cors import CORS

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


class RateLimiter:
    """Fixed-window request counter per client key."""

    def __init__(self, *, window_seconds: int, max_requests: int, clock: Callable[[], float] = time.monotonic):
        self._window = int(window_seconds)
        self._max = int(max_requests)
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_prune = clock()

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self._window:
            return
        self._windows = {k: v for k, v in self._windows.items() if now - v[0] < self._window}
        self._last_prune = now

    def hit(self, key: str) -> Optional[int]:
        """Count one request; return seconds to wait when the budget is spent."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self._window:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            if count > self._max:
                return max(math.ceil(started + self._window - now), 1)
        return None

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def install_cors(app: Flask, *, allow_any: bool, origins: Sequence[str]) -> None:
    # any origin in development; the configured list elsewhere
    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if allow_any else list(origins)}},
        supports_credentials=True,
        methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )


def install_rate_limit(app: Flask, limiter: RateLimiter) -> None:
    @app.before_request
    def rate_limit():
        if not request.path.startswith("/api/") or request.method == "OPTIONS":
            return None
        key = request.remote_addr or "unknown"
        retry_after = limiter.hit(key)
        if retry_after is None:
            return None
        logger.warning("Rate limit exceeded for %s on %s", key, request.path)
        response = jsonify(
            {
                "success": False,
                "message": "Too many requests from this IP, please try again later.",
                "retry_after": retry_after,
            }
        )
        response.status_code = 429
        response.headers["Retry-After"] = str(retry_after)
        return response
