from typing import Optional

from sqlalchemy import select

from adcast.models.advertiser import Advertiser
from adcast.repositories.base import BaseRepository


class AdvertiserRepository(BaseRepository):
    """Encapsulates queries against the ``advertisers`` table."""

    async def get_by_id(self, advertiser_id: int) -> Optional[Advertiser]:
        """Return a single advertiser by primary key, or ``None``."""
        result = await self._db.execute(
            select(Advertiser).where(Advertiser.id == advertiser_id)
        )
        return result.scalar_one_or_none()
