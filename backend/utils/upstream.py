# backend/utils/upstream.py
# Purpose: Result type for collaborator calls. A failed upstream call never reaches
# the scoring engine as an exception; it becomes a documented default value plus
# the error text, so "could not verify" stays distinguishable from "verified".

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from backend.utils.ratelimit import UpstreamError

T = TypeVar("T")


@dataclass(frozen=True)
class Fetched(Generic[T]):
    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def fetch_or_default(tag: str, fn: Callable[[], T], default: T) -> Fetched[T]:
    """Run one collaborator call; on upstream/parse failure return ``default`` with the error."""
    try:
        return Fetched(fn())
    except (UpstreamError, ValueError, KeyError, TypeError) as e:
        print(f"[{tag}] upstream failed, using default -> {e}")
        return Fetched(default, error=str(e))
