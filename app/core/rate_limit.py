"""
Per-caller rate limiting for the chat endpoint.

The quota window lives in the `limits` storage (in-memory for development,
Redis in production); this module only asks "may this caller proceed now?".
"""

import logging

from limits import RateLimitItem, parse
from limits.aio.strategies import MovingWindowRateLimiter, RateLimiter
from limits.storage import storage_from_string

from app.core.config import RATE_LIMIT, RATE_LIMIT_NAMESPACE, RATE_LIMIT_STORAGE_URI

logger = logging.getLogger(__name__)


class RateGate:
    """Allow/deny oracle keyed by caller identity (client IP)."""

    def __init__(
        self,
        limiter: RateLimiter,
        item: RateLimitItem,
        namespace: str = RATE_LIMIT_NAMESPACE,
    ) -> None:
        self._limiter = limiter
        self._item = item
        self._namespace = namespace

    @classmethod
    def from_config(
        cls,
        limit: str = RATE_LIMIT,
        storage_uri: str = RATE_LIMIT_STORAGE_URI,
    ) -> "RateGate":
        """Build a moving-window gate, e.g. "1 per 10 seconds" on async+memory://."""
        storage = storage_from_string(storage_uri)
        logger.info("[rate_limit] limit=%r storage=%s", limit, storage_uri.split("://", 1)[0])
        return cls(MovingWindowRateLimiter(storage), parse(limit))

    async def check(self, caller_id: str) -> bool:
        """Consume one unit of the caller's quota. False means the request must be rejected."""
        allowed = await self._limiter.hit(self._item, self._namespace, caller_id)
        if not allowed:
            logger.warning("[rate_limit:check] denied caller=%s limit=%s", caller_id, self._item)
        return allowed
