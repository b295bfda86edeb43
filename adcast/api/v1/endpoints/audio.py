from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from adcast.core.exceptions import AudioNotFoundError
from adcast.repositories.audio_repository import AudioRepository
from adcast.schemas.advertising import AudioOut
from adcast.schemas.common import AudioStatus
from adcast.api.deps import get_audio_repo

router = APIRouter(prefix="/audio", tags=["Audio"])


@router.get("", response_model=List[AudioOut])
async def list_audio(
    status: Optional[AudioStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    repo: AudioRepository = Depends(get_audio_repo),
) -> List[AudioOut]:
    rows = await repo.list_audio(status=status.value if status else None, limit=limit)
    return [AudioOut.model_validate(r) for r in rows]


@router.get("/{audio_id}", response_model=AudioOut)
async def get_audio(
    audio_id: int,
    repo: AudioRepository = Depends(get_audio_repo),
) -> AudioOut:
    audio = await repo.get_by_id(audio_id)
    if audio is None:
        raise AudioNotFoundError(f"Audio record {audio_id} not found")
    return AudioOut.model_validate(audio)
