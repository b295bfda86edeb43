from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    text,
)
from adcast.models.base import Base
from sqlalchemy.sql import func


class AdvertisingRecord(Base):
    """Unit of work for the pipeline: one rule match on its way to audio.

    Created ``Pending`` by the rule matcher; moved to ``Done`` or
    ``Failed`` by the lifecycle service.  ``priority`` is copied from the
    rule at creation time so drains can order by it.
    """

    __tablename__ = "advertising"
    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_id = Column(String(100), nullable=False)
    advertiser_id = Column(
        Integer, ForeignKey("advertisers.id", ondelete="CASCADE"), nullable=False
    )
    audio_file = Column(String(500))
    status = Column(String(20), nullable=False, server_default="Pending")
    priority = Column(Integer, nullable=False, server_default=text("0"))
    attempts = Column(Integer, nullable=False, server_default=text("0"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('Pending', 'Done', 'Failed')", name="ck_advertising_status"
        ),
        CheckConstraint("attempts >= 0", name="ck_advertising_attempts"),
        Index("idx_advertising_status_priority", "status", "priority", "created_at"),
    )
