from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from adcast.models.base import Base
from sqlalchemy.sql import func


class Advertiser(Base):
    """A business whose promotions are voiced when its rules match.

    ``name`` is the internal slug used in generated file names;
    ``display_name`` is what the script generator speaks aloud.
    """

    __tablename__ = "advertisers"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    display_name = Column(String(200), nullable=False)
    business_type = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, server_default="Active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    condition_rules = relationship(
        "ConditionRule", back_populates="advertiser", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('Active', 'Inactive')", name="ck_advertiser_status"
        ),
    )
