import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from redis.asyncio import Redis

from adcast.core.cache import CacheService
from adcast.core.config import settings
from adcast.core.database import get_db
from adcast.services.advertising_pipeline import AdvertisingPipelineService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Get an async Redis client instance using connection pooling."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable, caching and distributed lock disabled")
        return None


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_advertising_repo(
    db: AsyncSession = Depends(get_db),
):
    from adcast.repositories.advertising_repository import AdvertisingRepository

    return AdvertisingRepository(db)


async def get_audio_repo(
    db: AsyncSession = Depends(get_db),
):
    from adcast.repositories.audio_repository import AudioRepository

    return AudioRepository(db)


async def get_government_data_repo(
    db: AsyncSession = Depends(get_db),
):
    from adcast.repositories.government_data_repository import (
        GovernmentDataRepository,
    )

    return GovernmentDataRepository(db)


# ---------------------------------------------------------------------------
# Pipeline wiring
# ---------------------------------------------------------------------------


def build_pipeline_service(
    session_factory: Callable[..., AsyncSession],
    cache: Optional[CacheService] = None,
) -> AdvertisingPipelineService:
    """Construct the orchestrator and every collaborator it needs.

    Called once at application start-up; the instance lives on
    ``app.state.pipeline_service``.
    """
    from adcast.repositories.storage import storage_factory_for
    from adcast.services.advertising_lifecycle import AdvertisingRecordLifecycle
    from adcast.services.gemini_script_service import GeminiScriptService
    from adcast.services.pacing import FixedIntervalPacer
    from adcast.services.rule_matcher import RuleMatcher
    from adcast.services.run_lock import PipelineRunLock
    from adcast.services.script_writer import ScriptWriter
    from adcast.services.voice_profile_selector import VoiceProfileSelector
    from adcast.services.voice_synthesizer import VoiceSynthesizer

    cache = cache or CacheService()
    return AdvertisingPipelineService(
        storage_factory=storage_factory_for(session_factory),
        matcher=RuleMatcher(),
        script_writer=ScriptWriter(GeminiScriptService()),
        voice_selector=VoiceProfileSelector(),
        synthesizer=VoiceSynthesizer(),
        lifecycle=AdvertisingRecordLifecycle(),
        pacer=FixedIntervalPacer(),
        run_lock=PipelineRunLock(cache=cache),
        cache=cache,
    )


async def get_pipeline_service(request: Request) -> AdvertisingPipelineService:
    """Return the process-wide orchestrator built in the lifespan."""
    return request.app.state.pipeline_service


async def get_government_data_service():
    from adcast.services.government_data_service import GovernmentDataService

    return GovernmentDataService()


async def get_storage_factory():
    """Storage factory bound to the application session factory."""
    from adcast.core.database import AsyncSessionLocal
    from adcast.repositories.storage import storage_factory_for

    return storage_factory_for(AsyncSessionLocal)
