"""
core/ratelimit.py -- Fixed-window request counter keyed by (identity, route class).

Counting is delegated to the `limits` library (the same one slowapi is built
on): a FixedWindowRateLimiter over an in-process MemoryStorage. For every
allow() call:
  - no window, or the window has run its full width: a new one starts at
    this request with count=1, and the request is allowed.
  - otherwise the count is incremented, and the request is allowed while
    count <= max_requests.

This is a fixed window, not a sliding log. A client can land up to 2x
max_requests across a window edge (end of one window + start of the next);
that approximation is accepted.

Concurrency: MemoryStorage keeps one lock per key, so the increment for one
(identity, route class) pair never interleaves with another call for the
same pair, and different clients never wait on each other. Expired windows
are dropped by the storage's own expiry timer.

Layer rule: no imports from api/, auth/, storage/, or access/.
"""

from __future__ import annotations

import logging
import math
import time

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter

from core.models import RatePolicy, RouteClass

logger = logging.getLogger("assetgate.ratelimit")


class RateLimiter:
    def __init__(self, policies: dict[RouteClass, RatePolicy], storage: Storage | None = None) -> None:
        missing = set(RouteClass) - set(policies)
        if missing:
            raise ValueError(f"No rate policy for route class(es): {sorted(m.value for m in missing)}")
        self._policies = dict(policies)
        self._items: dict[RouteClass, RateLimitItem] = {
            route_class: RateLimitItemPerSecond(policy.max_requests, policy.window_seconds)
            for route_class, policy in policies.items()
        }
        self._strategy = FixedWindowRateLimiter(storage or MemoryStorage())

    def policy(self, route_class: RouteClass) -> RatePolicy:
        return self._policies[route_class]

    def allow(self, identity: str, route_class: RouteClass) -> bool:
        """Count one request for (identity, route_class). Returns False once over the ceiling.

        A denied request still counts.
        """
        if self._strategy.hit(self._items[route_class], identity, route_class.value):
            return True
        logger.warning(
            "Rate limit exceeded: identity=%s class=%s max=%d",
            identity,
            route_class.value,
            self._policies[route_class].max_requests,
        )
        return False

    def retry_after(self, identity: str, route_class: RouteClass) -> int:
        """Whole seconds until the current window for (identity, route_class) resets."""
        stats = self._strategy.get_window_stats(self._items[route_class], identity, route_class.value)
        return max(1, math.ceil(stats.reset_time - time.time()))
