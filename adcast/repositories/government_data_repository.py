from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from sqlalchemy import select

from adcast.models.government_data import GovernmentData
from adcast.repositories.base import BaseRepository


class GovernmentDataRepository(BaseRepository):
    """Encapsulates queries against the ``government_data`` history table."""

    async def create(self, **kwargs: Any) -> GovernmentData:
        row = GovernmentData(**kwargs)
        self._db.add(row)
        await self._db.flush()
        return row

    async def get_latest(self) -> Optional[GovernmentData]:
        """Return the most recently ingested row, or ``None``."""
        result = await self._db.execute(
            select(GovernmentData).order_by(GovernmentData.created_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_history(self, hours: int = 24) -> List[GovernmentData]:
        """Return rows ingested in the last *hours*, newest first."""
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        result = await self._db.execute(
            select(GovernmentData)
            .where(GovernmentData.created_at >= since)
            .order_by(GovernmentData.created_at.desc())
        )
        return list(result.scalars().all())
