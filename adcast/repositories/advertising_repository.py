from typing import Any, Dict, List, Optional

from sqlalchemy import select, func

from adcast.models.advertising import AdvertisingRecord
from adcast.repositories.base import BaseRepository


class AdvertisingRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``advertising`` table."""

    async def get_by_id(self, record_id: int) -> Optional[AdvertisingRecord]:
        """Return a single advertising record by primary key, or ``None``."""
        result = await self._db.execute(
            select(AdvertisingRecord).where(AdvertisingRecord.id == record_id)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> AdvertisingRecord:
        """Insert a new advertising record and flush so its id is known."""
        record = AdvertisingRecord(**kwargs)
        self._db.add(record)
        await self._db.flush()
        return record

    async def get_by_status(self, status: str) -> List[AdvertisingRecord]:
        """Return all records in *status*, highest priority first.

        Ties fall back to creation time then id, so a drain always sees
        a stable order regardless of how rows are stored.
        """
        result = await self._db.execute(
            select(AdvertisingRecord)
            .where(AdvertisingRecord.status == status)
            .order_by(
                AdvertisingRecord.priority.desc(),
                AdvertisingRecord.created_at.asc(),
                AdvertisingRecord.id.asc(),
            )
        )
        return list(result.scalars().all())

    async def list_records(
        self, status: Optional[str] = None, limit: int = 100
    ) -> List[AdvertisingRecord]:
        """Return the most recent records, optionally filtered by status."""
        query = select(AdvertisingRecord)
        if status:
            query = query.where(AdvertisingRecord.status == status)
        query = query.order_by(AdvertisingRecord.created_at.desc()).limit(limit)
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def count_by_status(self) -> Dict[str, int]:
        """Return ``{status: count}`` for every status present."""
        result = await self._db.execute(
            select(AdvertisingRecord.status, func.count(AdvertisingRecord.id)).group_by(
                AdvertisingRecord.status
            )
        )
        return {status: count for status, count in result.all()}

    async def update_status(
        self,
        record: AdvertisingRecord,
        status: str,
        audio_file: Optional[str] = None,
        increment_attempts: bool = False,
    ) -> None:
        """Set status (and audio path) on an existing record instance."""
        record.status = status
        if audio_file:
            record.audio_file = audio_file
        if increment_attempts:
            record.attempts = (record.attempts or 0) + 1
