from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy import text as sql_text
from sqlalchemy.dialects.postgresql import JSONB
from adcast.models.base import Base
from sqlalchemy.sql import func


class Audio(Base):
    __tablename__ = "audio"
    id = Column(Integer, primary_key=True, autoincrement=True)
    advertising_id = Column(
        Integer, ForeignKey("advertising.id", ondelete="SET NULL"), nullable=True
    )
    text = Column(Text, nullable=False)
    variables = Column(JSONB, nullable=False, server_default=sql_text("'{}'::jsonb"))
    audio_url = Column(String(500))
    voice_type = Column(String(20), nullable=False)
    duration_seconds = Column(Float)
    status = Column(String(20), nullable=False, server_default="pending")
    generated_at = Column(DateTime(timezone=True), server_default=func.now())
    synthesized_at = Column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed')", name="ck_audio_status"
        ),
        CheckConstraint("voice_type IN ('male', 'female')", name="ck_audio_voice_type"),
    )
