from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from adcast.core.exceptions import AdvertisingRecordNotFoundError
from adcast.repositories.advertising_repository import AdvertisingRepository
from adcast.schemas.advertising import AdvertisingOut
from adcast.schemas.common import AdvertisingStatus
from adcast.api.deps import get_advertising_repo

router = APIRouter(prefix="/advertising", tags=["Advertising"])


@router.get("", response_model=List[AdvertisingOut])
async def list_advertising(
    status: Optional[AdvertisingStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    repo: AdvertisingRepository = Depends(get_advertising_repo),
) -> List[AdvertisingOut]:
    records = await repo.list_records(
        status=status.value if status else None, limit=limit
    )
    return [AdvertisingOut.model_validate(r) for r in records]


@router.get("/{record_id}", response_model=AdvertisingOut)
async def get_advertising(
    record_id: int,
    repo: AdvertisingRepository = Depends(get_advertising_repo),
) -> AdvertisingOut:
    record = await repo.get_by_id(record_id)
    if record is None:
        raise AdvertisingRecordNotFoundError(
            f"Advertising record {record_id} not found"
        )
    return AdvertisingOut.model_validate(record)
