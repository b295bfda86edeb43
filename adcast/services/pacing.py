import asyncio
import logging
from typing import Awaitable, Callable, Optional

from adcast.core.config import settings

logger = logging.getLogger(__name__)


class FixedIntervalPacer:
    """Fixed delay between consecutive calls to a rate-limited provider.

    The orchestrator calls :meth:`wait` *between* records only, so a
    batch of N records incurs exactly N-1 waits.  ``sleep`` is
    injectable so tests never touch the wall clock.
    """

    def __init__(
        self,
        interval_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.PIPELINE_RECORD_DELAY_SECONDS
        )
        self._sleep = sleep

    async def wait(self) -> None:
        if self.interval_seconds <= 0:
            return
        logger.info("Waiting %.1fs before next record", self.interval_seconds)
        await self._sleep(self.interval_seconds)
