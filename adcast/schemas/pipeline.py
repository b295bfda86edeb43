"""Value objects passed between pipeline stages."""

from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from adcast.schemas.common import VoiceStyle

T = TypeVar("T")


class AdvertiserRef(BaseModel):
    id: int
    name: str
    display_name: str
    business_type: str


class MatchedRule(BaseModel):
    """A condition rule that matched one snapshot, with its advertiser."""

    rule_id: str
    priority: int
    conditions: Dict[str, Any] = Field(default_factory=dict)
    advertiser: AdvertiserRef
    matched_conditions: List[str] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)


class MatchedRuleWithRecordId(MatchedRule):
    advertising_id: int


class VoiceSettings(BaseModel):
    stability: float
    similarity_boost: float
    style: float
    use_speaker_boost: bool = True
    speed: float = 1.0


class ScriptResult(BaseModel):
    script: str
    voice_style: VoiceStyle


class SynthesisResult(BaseModel):
    audio_path: str
    file_name: str
    file_size: int


class ErrorKind(str, Enum):
    configuration = "configuration"
    provider = "provider"
    empty_output = "empty_output"
    unexpected = "unexpected"


class StepOutcome(BaseModel, Generic[T]):
    """Success value or classified failure from one pipeline step.

    Script generation and voice synthesis both report through this so
    the orchestrator has a single failure-detection idiom.
    """

    ok: bool
    value: Optional[T] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "StepOutcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "StepOutcome[T]":
        return cls(ok=False, error_kind=kind, message=message)
