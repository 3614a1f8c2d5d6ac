# backend/utils/ratelimit.py
import os, time, random, threading
from collections import deque
from typing import Any, Optional

import requests

from backend.chains import HOST_QPS, HTTP_TIMEOUT

# Fallback QPS for hosts not listed in HOST_QPS. Override with UPSTREAM_QPS.
DEFAULT_QPS = float(os.getenv("UPSTREAM_QPS", "4"))

RETRY_STATUSES = (429, 500, 502, 503, 504)
MAX_ATTEMPTS = 4

# One limiter per (host key, rate); a max_qps cap gets its own limiter.
_LIMITERS = {}
_LOCK = threading.Lock()


class UpstreamError(RuntimeError):
    """Raised when an upstream provider stays unavailable after retries."""

    def __init__(self, host_key: str, message: str, status: Optional[int] = None):
        super().__init__(f"{host_key}: {message}")
        self.host_key = host_key
        self.status = status


class RateLimiter:
    def __init__(self, max_per_sec: float):
        self.max_per_sec = max(0.1, float(max_per_sec))
        # sub-1 QPS limits widen the window instead of rounding to zero calls
        self.window_seconds = max(1.0, 1.0 / self.max_per_sec)
        self.max_in_window = max(1, int(self.max_per_sec * self.window_seconds))
        self.window = deque()
        self.lock = threading.Lock()

    def wait(self):
        with self.lock:
            now = time.monotonic()
            while self.window and now - self.window[0] > self.window_seconds:
                self.window.popleft()

            if len(self.window) >= self.max_in_window:
                sleep_for = self.window_seconds - (now - self.window[0]) + 0.001
                if sleep_for > 0:
                    time.sleep(sleep_for)
                now = time.monotonic()
                while self.window and now - self.window[0] > self.window_seconds:
                    self.window.popleft()

            self.window.append(time.monotonic())


def effective_qps(host_key: str, max_qps: float | None = None) -> float:
    """The host's configured rate, lowered to max_qps when one is given. Never raised above it."""
    qps = HOST_QPS.get(host_key, DEFAULT_QPS)
    if max_qps is not None:
        qps = min(qps, float(max_qps))
    return max(0.1, qps)


def _get_limiter(host_key: str, max_qps: float | None):
    qps = effective_qps(host_key, max_qps)
    with _LOCK:
        lim = _LIMITERS.get((host_key, qps))
        if lim is None:
            lim = RateLimiter(qps)
            _LIMITERS[(host_key, qps)] = lim
        return lim


def http_get_json(
    host_key: str,
    url: str,
    params: dict | None = None,
    headers: dict | None = None,
    max_qps: float | None = None,
    timeout: float | None = None,
) -> Any:
    """
    GET with per-host rate limiting + retries. Returns response.json() or raises UpstreamError.
    Retries on 429/5xx and network errors with jittered exponential backoff.
    Any other non-200 status, or a body that is not JSON, fails immediately.
    """
    lim = _get_limiter(host_key, max_qps)
    timeout = HTTP_TIMEOUT if timeout is None else timeout
    backoff = 0.5
    last_error = "no attempt made"
    last_status = None

    for attempt in range(MAX_ATTEMPTS):
        lim.wait()
        try:
            resp = requests.get(url, params=params, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            last_error, last_status = f"network error: {e}", None
            print(f"[HTTP] {host_key} attempt={attempt + 1} {last_error}")
        else:
            status = resp.status_code
            if status == 200:
                try:
                    return resp.json()
                except ValueError as e:
                    raise UpstreamError(host_key, f"malformed JSON: {e}", status) from e
            if status not in RETRY_STATUSES:
                raise UpstreamError(host_key, f"HTTP {status}: {resp.text[:200]}", status)
            last_error, last_status = f"HTTP {status}", status
            print(f"[HTTP] {host_key} attempt={attempt + 1} {last_error}, backing off {backoff:.1f}s")

        if attempt < MAX_ATTEMPTS - 1:
            time.sleep(backoff + random.uniform(0, 0.2))
            backoff = min(backoff * 2, 4.0)

    raise UpstreamError(host_key, f"gave up after {MAX_ATTEMPTS} attempts ({last_error})", last_status)

