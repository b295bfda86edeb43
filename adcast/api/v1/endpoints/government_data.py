from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from adcast.repositories.government_data_repository import GovernmentDataRepository
from adcast.schemas.advertising import GovernmentDataOut
from adcast.schemas.common import PipelineResult
from adcast.services.advertising_pipeline import AdvertisingPipelineService
from adcast.services.government_data_service import GovernmentDataService
from adcast.services.ingestion import ingest_once
from adcast.api.deps import (
    get_government_data_repo,
    get_government_data_service,
    get_pipeline_service,
    get_storage_factory,
)

router = APIRouter(prefix="/government-data", tags=["Government Data"])


@router.get("/latest", response_model=GovernmentDataOut)
async def get_latest(
    repo: GovernmentDataRepository = Depends(get_government_data_repo),
) -> GovernmentDataOut:
    row = await repo.get_latest()
    if row is None:
        raise HTTPException(status_code=404, detail="No government data ingested yet")
    return GovernmentDataOut.model_validate(row)


@router.get("/history", response_model=List[GovernmentDataOut])
async def get_history(
    hours: int = Query(24, ge=1, le=24 * 30),
    repo: GovernmentDataRepository = Depends(get_government_data_repo),
) -> List[GovernmentDataOut]:
    rows = await repo.get_history(hours=hours)
    return [GovernmentDataOut.model_validate(r) for r in rows]


@router.post("/refresh", response_model=PipelineResult)
async def refresh(
    data_service: GovernmentDataService = Depends(get_government_data_service),
    pipeline: AdvertisingPipelineService = Depends(get_pipeline_service),
    storage_factory=Depends(get_storage_factory),
) -> PipelineResult:
    """Fetch fresh readings now and run the pipeline on them.

    A feed outage surfaces as 503 via ``GovernmentDataUnavailableError``.
    """
    return await ingest_once(storage_factory, data_service, pipeline)
