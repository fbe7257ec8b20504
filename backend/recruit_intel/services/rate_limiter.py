"""
Rate Limiter - single global cooldown between outbound AI calls

Not a token bucket: every call start is separated from the previous one by
at least `min_interval` seconds, even when the calls are logically
independent. The lock is held across the cooldown sleep, so concurrent
waiters queue up behind each other instead of computing the same
remaining delay and firing together.
"""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, min_interval: float):
        self.min_interval = min_interval
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Block until the next call may start, then claim the slot."""
        loop = asyncio.get_running_loop()
        async with self._lock:
            while self._last_call is not None:
                remaining = self.min_interval - (loop.time() - self._last_call)
                if remaining <= 0:
                    break
                logger.debug(f"Rate limit cooldown: sleeping {remaining:.3f}s")
                await asyncio.sleep(remaining)
            self._last_call = loop.time()
