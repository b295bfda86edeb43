from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class AdvertisingStatus(str, Enum):
    PENDING = "Pending"
    DONE = "Done"
    FAILED = "Failed"


class AudioStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class VoiceStyle(str, Enum):
    male = "male"
    female = "female"


class PipelineResult(BaseModel):
    """Outcome of one pipeline run (new snapshot, drain or retry)."""

    processed_records: int = 0
    successful_generations: int = 0
    failed_generations: int = 0
    errors: List[str] = Field(default_factory=list)


class PipelineStats(BaseModel):
    """Advertising record counts by status."""

    pending: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0
    error: str | None = None
