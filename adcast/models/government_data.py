from sqlalchemy import Column, String, Integer, Float, DateTime, Index
from sqlalchemy.dialects.postgresql import JSONB
from adcast.models.base import Base
from sqlalchemy.sql import func


class GovernmentData(Base):
    """History row for every ingested environmental snapshot."""

    __tablename__ = "government_data"
    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String(50), nullable=False)
    raw_data = Column(JSONB, nullable=False)
    temperature = Column(Float)
    humidity = Column(Float)
    condition = Column(String(200))
    uv_index = Column(Float)
    aqi = Column(Float)
    location = Column(String(100), nullable=False, server_default="Singapore")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_government_data_created_at", "created_at"),)
