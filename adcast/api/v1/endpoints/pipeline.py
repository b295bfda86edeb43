from fastapi import APIRouter, Depends, Request

from adcast.core.rate_limit import limiter
from adcast.schemas.common import PipelineResult, PipelineStats
from adcast.schemas.environment import EnvironmentalSnapshot
from adcast.services.advertising_pipeline import AdvertisingPipelineService
from adcast.api.deps import get_pipeline_service

router = APIRouter(prefix="/pipeline", tags=["Pipeline"])


@router.post("/snapshots", response_model=PipelineResult)
async def process_snapshot(
    snapshot: EnvironmentalSnapshot,
    service: AdvertisingPipelineService = Depends(get_pipeline_service),
) -> PipelineResult:
    """Match a posted snapshot against active rules and generate audio."""
    return await service.run_for_new_snapshot(snapshot)


@router.post("/process-pending", response_model=PipelineResult)
@limiter.limit("10/minute")
async def process_pending(
    request: Request,
    service: AdvertisingPipelineService = Depends(get_pipeline_service),
) -> PipelineResult:
    """Manually drain every Pending advertising record.

    Rate-limited to 10 requests/minute per IP; overlapping calls are
    serialised by the pipeline run-lock.
    """
    return await service.drain_pending()


@router.post("/retry-failed", response_model=PipelineResult)
@limiter.limit("10/minute")
async def retry_failed(
    request: Request,
    service: AdvertisingPipelineService = Depends(get_pipeline_service),
) -> PipelineResult:
    """Reset Failed records to Pending and process them again."""
    return await service.retry_failed()


@router.get("/stats", response_model=PipelineStats, response_model_exclude_none=True)
async def get_stats(
    service: AdvertisingPipelineService = Depends(get_pipeline_service),
) -> PipelineStats:
    return await service.get_pipeline_stats()
