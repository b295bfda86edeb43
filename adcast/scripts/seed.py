"""Seed advertisers and condition rules for local development."""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from adcast.core.config import settings
from adcast.core.constants import ADVERTISER_ACTIVE_STATUS
from adcast.core.seed_data import DEFAULT_ADVERTISERS, DEFAULT_CONDITION_RULES
from adcast.models import Advertiser, ConditionRule


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        print("Seeding advertisers and condition rules")

        # Re-runnable: wipe everything downstream of advertisers as well
        await session.execute(
            text(
                "TRUNCATE TABLE audio, advertising, condition_rules, advertisers "
                "RESTART IDENTITY CASCADE"
            )
        )
        await session.commit()
        print("Cleared existing data")

        advertisers = {}
        for data in DEFAULT_ADVERTISERS:
            advertiser = Advertiser(status=ADVERTISER_ACTIVE_STATUS, **data)
            session.add(advertiser)
            advertisers[data["name"]] = advertiser
        await session.flush()
        print(f"Created {len(advertisers)} advertisers")

        for data in DEFAULT_CONDITION_RULES:
            session.add(
                ConditionRule(
                    rule_id=data["rule_id"],
                    advertiser_id=advertisers[data["advertiser"]].id,
                    priority=data["priority"],
                    conditions=data["conditions"],
                    is_active=True,
                )
            )
        await session.commit()
        print(f"Created {len(DEFAULT_CONDITION_RULES)} condition rules")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
