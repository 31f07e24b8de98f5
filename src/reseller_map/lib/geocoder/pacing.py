"""Request pacing for rate-limited geocoding providers.

A gate enforces a fixed minimum spacing between consecutive requests to one
provider.  It is shared by every worker that talks to that provider, so a
worker pool cannot exceed the provider's rate limit.
"""

import asyncio
import time


class RateGate:
    """Fixed-interval async rate gate.

    ``await gate.wait()`` returns immediately for the first request and
    otherwise sleeps until ``min_interval`` seconds have passed since the
    previous request was released.  Waiters are served in arrival order.
    """

    def __init__(self, min_interval: float) -> None:
        if min_interval < 0:
            msg = "min_interval must be >= 0"
            raise ValueError(msg)
        self.min_interval = float(min_interval)
        self._next_time = 0.0
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        """Whether the gate imposes any delay."""
        return self.min_interval > 0

    async def wait(self) -> None:
        """Suspend until it's safe to make another request."""
        if not self.enabled:
            return

        async with self._lock:
            delay = self._next_time - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._next_time = time.monotonic() + self.min_interval
