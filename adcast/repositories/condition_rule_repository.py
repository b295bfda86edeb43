from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from adcast.models.condition_rule import ConditionRule
from adcast.repositories.base import BaseRepository


class ConditionRuleRepository(BaseRepository):
    """Encapsulates queries against the ``condition_rules`` table."""

    async def get_active_rules(self) -> List[ConditionRule]:
        """Return active rules with their advertiser eagerly loaded."""
        result = await self._db.execute(
            select(ConditionRule)
            .options(selectinload(ConditionRule.advertiser))
            .where(ConditionRule.is_active.is_(True))
            .order_by(ConditionRule.priority.desc(), ConditionRule.id)
        )
        return list(result.scalars().all())

    async def get_by_rule_id(self, rule_id: str) -> Optional[ConditionRule]:
        """Return a rule by its unique string id, or ``None``."""
        result = await self._db.execute(
            select(ConditionRule).where(ConditionRule.rule_id == rule_id)
        )
        return result.scalar_one_or_none()
