import asyncio
import logging
from typing import Optional

from adcast.core.config import settings
from adcast.schemas.common import PipelineResult
from adcast.services.advertising_pipeline import (
    AdvertisingPipelineService,
    StorageFactory,
)
from adcast.services.government_data_service import GovernmentDataService

logger = logging.getLogger(__name__)


async def ingest_once(
    storage_factory: StorageFactory,
    data_service: GovernmentDataService,
    pipeline: AdvertisingPipelineService,
) -> PipelineResult:
    """One-shot: fetch a snapshot, store it, and run the pipeline on it.

    Parameters:
        storage_factory: Callable returning an async context manager
            that yields a ``PipelineStorage``.
        data_service: Source of fresh environmental snapshots.
        pipeline: The orchestrator to hand the snapshot to.
    """
    snapshot = await data_service.fetch_snapshot()
    async with storage_factory() as storage:
        await data_service.record_snapshot(snapshot, storage)
    return await pipeline.run_for_new_snapshot(snapshot)


async def start_ingestion_loop(
    storage_factory: StorageFactory,
    data_service: GovernmentDataService,
    pipeline: AdvertisingPipelineService,
    interval_seconds: Optional[int] = None,
) -> None:
    """Infinite loop that ingests and processes data on a fixed interval."""
    interval = interval_seconds or settings.INGESTION_INTERVAL_SECONDS
    logger.info("Ingestion background task started (interval=%ds)", interval)
    while True:
        try:
            result = await ingest_once(storage_factory, data_service, pipeline)
            if result.processed_records or result.errors:
                logger.info(
                    "Ingestion cycle complete: %d processed, %d failed",
                    result.processed_records,
                    result.failed_generations,
                )
        except Exception:
            logger.error("Ingestion cycle failed", exc_info=True)
        await asyncio.sleep(interval)
