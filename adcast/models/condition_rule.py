from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from adcast.models.base import Base
from sqlalchemy.sql import func


class ConditionRule(Base):
    """Advertiser-defined trigger evaluated against each snapshot.

    ``conditions`` is a JSONB object of condition keys (e.g.
    ``temperature_c_greater_than``); every key present must match.
    """

    __tablename__ = "condition_rules"
    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_id = Column(String(100), nullable=False, unique=True)
    advertiser_id = Column(
        Integer, ForeignKey("advertisers.id", ondelete="CASCADE"), nullable=False
    )
    priority = Column(Integer, nullable=False, server_default=text("0"))
    conditions = Column(JSONB, nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    advertiser = relationship("Advertiser", back_populates="condition_rules")
