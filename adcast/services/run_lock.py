import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from adcast.core.cache import CacheService
from adcast.core.config import settings
from adcast.core.exceptions import PipelineBusyError

logger = logging.getLogger(__name__)

PIPELINE_LOCK_KEY = "adcast:pipeline:lock"

# How often to re-poll the Redis lock while another process holds it
_POLL_INTERVAL_SECONDS = 0.5


class PipelineRunLock:
    """Serialise pipeline drains within and across processes.

    An ``asyncio.Lock`` covers triggers inside this process; when Redis
    is reachable a ``SET NX EX`` key covers other workers too.  Without
    Redis the in-process lock alone applies.
    """

    def __init__(
        self,
        cache: Optional[CacheService] = None,
        wait_seconds: Optional[float] = None,
        ttl_seconds: Optional[int] = None,
        key: str = PIPELINE_LOCK_KEY,
    ) -> None:
        self._local = asyncio.Lock()
        self._cache = cache or CacheService()
        self._wait_seconds = (
            wait_seconds
            if wait_seconds is not None
            else settings.PIPELINE_LOCK_WAIT_SECONDS
        )
        self._ttl_seconds = ttl_seconds or settings.PIPELINE_LOCK_TTL_SECONDS
        self._key = key
        self._token: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._local.locked()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        """Hold the lock for the body; raise ``PipelineBusyError`` on timeout."""
        try:
            await asyncio.wait_for(self._local.acquire(), timeout=self._wait_seconds)
        except asyncio.TimeoutError:
            raise PipelineBusyError(
                "Another pipeline run is in progress in this process"
            )

        token = uuid.uuid4().hex
        try:
            await self._acquire_distributed(token)
            self._token = token
            try:
                yield
            finally:
                self._token = None
                await self._cache.release_lock(self._key, token)
        finally:
            self._local.release()

    async def refresh(self) -> bool:
        """Renew the Redis key's TTL while a run holds the lock.

        Returns ``False`` only when the key expired or was taken by
        another worker; the caller must stop processing then.
        """
        if self._token is None:
            return True
        extended = await self._cache.extend_lock(
            self._key, self._token, self._ttl_seconds
        )
        if extended is False:
            logger.warning("Pipeline lock %s lost before the run finished", self._key)
            return False
        return True

    async def _acquire_distributed(self, token: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait_seconds
        while True:
            acquired = await self._cache.acquire_lock(
                self._key, token, self._ttl_seconds
            )
            if acquired is None or acquired:
                return
            if loop.time() >= deadline:
                raise PipelineBusyError(
                    "Another pipeline run is in progress on a different worker"
                )
            logger.debug("Pipeline lock held elsewhere; retrying")
            await asyncio.sleep(_POLL_INTERVAL_SECONDS)
