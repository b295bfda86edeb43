from typing import Any, List, Optional

from sqlalchemy import select

from adcast.models.audio import Audio
from adcast.repositories.base import BaseRepository


class AudioRepository(BaseRepository):
    """Encapsulates queries against the ``audio`` table."""

    async def get_by_id(self, audio_id: int) -> Optional[Audio]:
        result = await self._db.execute(select(Audio).where(Audio.id == audio_id))
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> Audio:
        """Insert a new audio record and flush so its id is known."""
        audio = Audio(**kwargs)
        self._db.add(audio)
        await self._db.flush()
        return audio

    async def update(self, audio: Audio, **fields: Any) -> None:
        """Apply *fields* to an existing audio instance."""
        for name, value in fields.items():
            setattr(audio, name, value)

    async def list_audio(
        self, status: Optional[str] = None, limit: int = 100
    ) -> List[Audio]:
        query = select(Audio)
        if status:
            query = query.where(Audio.status == status)
        query = query.order_by(Audio.generated_at.desc()).limit(limit)
        result = await self._db.execute(query)
        return list(result.scalars().all())
