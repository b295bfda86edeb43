"""Pydantic schemas package: re-exports for convenience."""

# Common enums and results
from adcast.schemas.common import (
    AdvertisingStatus as AdvertisingStatus,
    AudioStatus as AudioStatus,
    VoiceStyle as VoiceStyle,
    PipelineResult as PipelineResult,
    PipelineStats as PipelineStats,
)

# Snapshot and evaluation context
from adcast.schemas.environment import (
    EnvironmentalSnapshot as EnvironmentalSnapshot,
    EvaluationContext as EvaluationContext,
)

# Pipeline value objects
from adcast.schemas.pipeline import (
    MatchedRule as MatchedRule,
    MatchedRuleWithRecordId as MatchedRuleWithRecordId,
    VoiceSettings as VoiceSettings,
    ScriptResult as ScriptResult,
    SynthesisResult as SynthesisResult,
    StepOutcome as StepOutcome,
    ErrorKind as ErrorKind,
)

# API responses
from adcast.schemas.advertising import (
    AdvertisingOut as AdvertisingOut,
    AudioOut as AudioOut,
    GovernmentDataOut as GovernmentDataOut,
)
