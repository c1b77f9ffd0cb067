import hashlib
import threading
import time
from collections import deque
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request


@dataclass
class RateDecision:
    allowed: bool
    retry_after_seconds: int


class SlidingWindowLimiter:
    """Per-key request timestamps kept for the length of each key's window.

    Keys whose window has fully elapsed are dropped every ``sweep_every``
    checks, so memory tracks active callers only.
    """

    def __init__(self, clock=time.monotonic, sweep_every: int = 500) -> None:
        self._hits: dict[str, deque[float]] = {}
        self._windows: dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_every = sweep_every
        self._checks = 0

    def check(self, key: str, limit: int, window_seconds: int) -> RateDecision:
        now = self._clock()
        with self._lock:
            self._checks += 1
            if self._checks % self._sweep_every == 0:
                self._sweep_locked(now)

            hits = self._hits.setdefault(key, deque())
            self._windows[key] = window_seconds
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                return RateDecision(allowed=False, retry_after_seconds=max(1, int(hits[0] + window_seconds - now)))
            hits.append(now)
            return RateDecision(allowed=True, retry_after_seconds=0)

    def _sweep_locked(self, now: float) -> int:
        idle = [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - self._windows.get(k, 0)]
        for k in idle:
            del self._hits[k]
            self._windows.pop(k, None)
        return len(idle)

    def sweep(self) -> int:
        with self._lock:
            return self._sweep_locked(self._clock())

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._windows.clear()



limiter = SlidingWindowLimiter()


def caller_key(request: Request) -> str:
    auth = request.headers.get("authorization", "").strip()
    if auth.lower().startswith("bearer "):
        # JWT headers are identical across users, so key on the whole token.
        return "token:" + hashlib.sha256(auth[7:].strip().encode()).hexdigest()[:24]
    xff = request.headers.get("x-forwarded-for", "").strip()
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_dependency(route_key: str, limit: int, window_seconds: int):
    def _dep(request: Request) -> None:
        decision = limiter.check(f"{route_key}:{caller_key(request)}", limit=limit, window_seconds=window_seconds)
        if not decision.allowed:
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Retry in {decision.retry_after_seconds}s",
                headers={"Retry-After": str(decision.retry_after_seconds)},
            )

    return Depends(_dep)
