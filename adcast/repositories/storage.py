from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncContextManager, AsyncIterator, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from adcast.repositories.advertiser_repository import AdvertiserRepository
from adcast.repositories.advertising_repository import AdvertisingRepository
from adcast.repositories.audio_repository import AudioRepository
from adcast.repositories.condition_rule_repository import ConditionRuleRepository
from adcast.repositories.government_data_repository import GovernmentDataRepository


@dataclass
class PipelineStorage:
    """Every repository the pipeline needs, sharing one unit-of-work."""

    session: AsyncSession
    advertising: AdvertisingRepository
    audio: AudioRepository
    advertisers: AdvertiserRepository
    rules: ConditionRuleRepository
    government_data: GovernmentDataRepository

    @classmethod
    def for_session(cls, session: AsyncSession) -> "PipelineStorage":
        return cls(
            session=session,
            advertising=AdvertisingRepository(session),
            audio=AudioRepository(session),
            advertisers=AdvertiserRepository(session),
            rules=ConditionRuleRepository(session),
            government_data=GovernmentDataRepository(session),
        )

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def storage_factory_for(
    session_factory: Callable[..., AsyncSession],
) -> Callable[[], AsyncContextManager[PipelineStorage]]:
    """Wrap a session factory into an async context manager of storages.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
    """

    @asynccontextmanager
    async def open_storage() -> AsyncIterator[PipelineStorage]:
        async with session_factory() as session:
            yield PipelineStorage.for_session(session)

    return open_storage
