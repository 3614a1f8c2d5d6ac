# backend/utils/cache.py
import threading
import time
from functools import wraps
from typing import Callable, Any, Tuple


def memoize_ttl(ttl_seconds: float = 60, max_entries: int = 256):
    """
    In-process TTL cache decorator, safe to share between request threads.
    Uses (args, sorted(kwargs)) as the key. Exceptions are never cached, so a
    failed upstream call is retried on the next request.
    """
    def deco(fn: Callable):
        cache: dict[Tuple[Any, ...], Tuple[Any, float]] = {}
        lock = threading.Lock()

        @wraps(fn)
        def wrapped(*args, **kwargs):
            key = (args, tuple(sorted(kwargs.items())))
            now = time.monotonic()
            with lock:
                hit = cache.get(key)
                if hit is not None and now < hit[1]:
                    return hit[0]
            val = fn(*args, **kwargs)
            with lock:
                if len(cache) >= max_entries:
                    # expired first, then oldest
                    for k in [k for k, (_, exp) in cache.items() if exp <= now]:
                        del cache[k]
                    while len(cache) >= max_entries:
                        del cache[next(iter(cache))]
                cache[key] = (val, now + ttl_seconds)
            return val

        def cache_clear():
            with lock:
                cache.clear()

        wrapped.cache_clear = cache_clear  # type: ignore[attr-defined]
        return wrapped
    return deco
