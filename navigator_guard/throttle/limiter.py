"""
Request Throttle — per-identifier fixed-window counters.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a short lock guards the mapping, and each entry carries its
  own lock so read-compare-increment is atomic per identifier while
  different identifiers never wait on each other.
- Expired windows are treated as absent on access; ``sweep`` only reclaims
  memory.
"""
import hashlib
import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..conf import LOGGER_NAME
from ..exceptions import ThrottleRejected
from .policy import HOUR, ThrottlePolicy

logger = logging.getLogger(f"{LOGGER_NAME}.throttle")


@dataclass(frozen=True)
class ThrottleDecision:
    """Result of a throttle check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after: Suggested wait in whole seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None


@dataclass(frozen=True)
class RateLimitEntry:
    """Read-only view of an identifier's current window."""

    identifier: str
    count: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float

    def expired(self, now: float) -> bool:
        return now >= self.reset_at


@dataclass
class _Entry:
    window: Optional[_Window] = None
    hourly: Optional[_Window] = None
    evicted: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock)

    def stale(self, now: float) -> bool:
        return all(
            w is None or w.expired(now) for w in (self.window, self.hourly)
        )


def _hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing it."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def _retry_after(reset_at: float, now: float) -> int:
    return max(1, int(math.ceil(reset_at - now)))


class Throttle:
    """Fixed-window rate limiter keyed by caller identifier.

    Example:
        throttle = Throttle(ThrottlePolicy(limit=20, window_seconds=60))
        if not throttle.allow(client_ip):
            raise web.HTTPTooManyRequests()
    """

    def __init__(
        self,
        policy: Optional[ThrottlePolicy] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy or ThrottlePolicy()
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @property
    def policy(self) -> ThrottlePolicy:
        return self._policy

    def _entry_for(self, identifier: str) -> _Entry:
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                entry = _Entry()
                self._entries[identifier] = entry
            return entry

    def _decide(self, entry: _Entry, now: float) -> ThrottleDecision:
        policy = self._policy
        window = entry.window
        fresh = window is None or window.expired(now)
        count = 0 if fresh else window.count
        reset_at = now + policy.window_seconds if fresh else window.reset_at

        if count >= policy.limit:
            return ThrottleDecision(
                allowed=False,
                limit=policy.limit,
                remaining=0,
                reset_at=reset_at,
                retry_after=_retry_after(reset_at, now),
            )

        hourly = entry.hourly
        hourly_fresh = hourly is None or hourly.expired(now)
        if policy.hourly_enforced and not hourly_fresh:
            if hourly.count >= policy.hourly_limit:
                return ThrottleDecision(
                    allowed=False,
                    limit=policy.limit,
                    remaining=0,
                    reset_at=hourly.reset_at,
                    retry_after=_retry_after(hourly.reset_at, now),
                )

        # admitted: commit both tiers
        if fresh:
            entry.window = _Window(count=1, reset_at=reset_at)
        else:
            window.count += 1
        if policy.hourly_enforced:
            if hourly_fresh:
                entry.hourly = _Window(count=1, reset_at=now + HOUR)
            else:
                hourly.count += 1

        return ThrottleDecision(
            allowed=True,
            limit=policy.limit,
            remaining=policy.limit - entry.window.count,
            reset_at=entry.window.reset_at,
        )

    def check(self, identifier: str) -> ThrottleDecision:
        """Count a request for identifier and return the full decision.

        Raises:
            ValueError: If identifier is empty.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")
        while True:
            entry = self._entry_for(identifier)
            with entry.lock:
                if entry.evicted:
                    # swept between lookup and lock, start over
                    continue
                decision = self._decide(entry, self._clock())
            break
        if not decision.allowed:
            logger.warning(
                "Throttled identifier=%s limit=%d retry_after=%ss",
                _hash_identifier(identifier), decision.limit, decision.retry_after,
            )
        return decision

    def allow(self, identifier: str) -> bool:
        """Whether identifier may proceed; counts the request when it may."""
        return self.check(identifier).allowed

    def enforce(self, identifier: str) -> ThrottleDecision:
        """Like ``check`` but raises when the request is rejected.

        Raises:
            ThrottleRejected: If identifier exceeded its ceiling.
        """
        decision = self.check(identifier)
        if not decision.allowed:
            raise ThrottleRejected(identifier, decision.retry_after)
        return decision

    def entry(self, identifier: str) -> Optional[RateLimitEntry]:
        """Return the live window for identifier, or None if absent/expired."""
        with self._lock:
            entry = self._entries.get(identifier)
        if entry is None:
            return None
        with entry.lock:
            window = entry.window
            if entry.evicted or window is None or window.expired(self._clock()):
                return None
            return RateLimitEntry(
                identifier=identifier,
                count=window.count,
                reset_at=window.reset_at,
            )

    def sweep(self) -> int:
        """Remove every entry whose windows have expired.

        Entries locked by an in-flight ``check`` are skipped; they are being
        refreshed and will be looked at on the next sweep.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = 0
        with self._lock:
            for identifier, entry in list(self._entries.items()):
                if not entry.lock.acquire(blocking=False):
                    continue
                try:
                    if entry.stale(now):
                        entry.evicted = True
                        del self._entries[identifier]
                        removed += 1
                finally:
                    entry.lock.release()
        if removed:
            logger.debug(
                "Throttle sweep removed %d entries, %d left",
                removed, len(self._entries),
            )
        return removed

    def reset(self) -> None:
        """Forget every identifier."""
        with self._lock:
            for entry in self._entries.values():
                entry.evicted = True
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries
