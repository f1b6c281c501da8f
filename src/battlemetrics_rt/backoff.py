"""
Reconnection delay: starts at zero, grows by a random whole number of
seconds per failed cycle, capped. A successful dial resets it.
"""

import asyncio
import logging
import random
from typing import Optional

logger = logging.getLogger(__name__)


class Backoff:
    def __init__(
        self,
        min_step: int = 5,
        max_step: int = 10,
        max_delay: float = 60.0,
        rng: Optional[random.Random] = None,
    ):
        if min_step > max_step:
            raise ValueError("min_step must not exceed max_step")
        self.min_step = min_step
        self.max_step = max_step
        self.max_delay = max_delay
        self._rng = rng or random.Random()
        self._delay = 0.0

    @property
    def delay(self) -> float:
        return self._delay

    def reset(self) -> None:
        self._delay = 0.0

    def advance(self) -> float:
        self._delay = min(self._delay + self._rng.randint(self.min_step, self.max_step), self.max_delay)
        return self._delay

    async def wait(self) -> None:
        """Sleep the current delay, then grow it for the next cycle."""
        if self._delay > 0:
            logger.info(f"Reconnecting in {self._delay:.0f}s")
        await asyncio.sleep(self._delay)
        self.advance()
