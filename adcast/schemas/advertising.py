"""Response schemas for advertising, audio and government data endpoints."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from adcast.schemas.common import AdvertisingStatus, AudioStatus


class AdvertisingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rule_id: str
    advertiser_id: int
    audio_file: Optional[str] = None
    status: AdvertisingStatus
    priority: int
    attempts: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AudioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    advertising_id: Optional[int] = None
    text: str
    variables: Dict[str, Any]
    audio_url: Optional[str] = None
    voice_type: str
    duration_seconds: Optional[float] = None
    status: AudioStatus
    generated_at: Optional[datetime] = None
    synthesized_at: Optional[datetime] = None


class GovernmentDataOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    source: str
    raw_data: Dict[str, Any]
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    condition: Optional[str] = None
    uv_index: Optional[float] = None
    aqi: Optional[float] = None
    location: str
    created_at: Optional[datetime] = None
