"""Environmental snapshot and the nested rule-evaluation context."""

from datetime import datetime, timezone
from typing import Any, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adcast.core.config import settings

# Local hour-of-day windows for the derived flags
_BUSINESS_HOURS = range(9, 18)
_PEAK_HOUR_WINDOWS = (range(7, 10), range(17, 20))


def time_category_for_hour(hour: int) -> str:
    """Map a local hour of day to morning/afternoon/evening/night."""
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


def local_now() -> datetime:
    """Current time in the configured ``LOCAL_TIMEZONE``."""
    return datetime.now(ZoneInfo(settings.LOCAL_TIMEZONE))


def localized_timestamp(moment: datetime) -> str:
    """Render *moment* in the configured local timezone, en-SG style."""
    local = moment.astimezone(ZoneInfo(settings.LOCAL_TIMEZONE))
    return local.strftime("%d/%m/%Y, %I:%M:%S %p").lower()


class EnvironmentalSnapshot(BaseModel):
    """One point-in-time reading of environmental/government data.

    Derived time attributes are computed from ``timestamp`` in
    ``LOCAL_TIMEZONE`` unless supplied explicitly; an explicit
    ``hour_of_day`` drives every hour-based flag.
    """

    model_config = ConfigDict(frozen=True)

    temperature: float
    weather_condition: str
    uv_index: float = 0
    humidity_percent: Optional[float] = None
    air_quality_index: Optional[float] = None
    traffic_congestion_level: str = "normal"
    flood_alerts: List[Any] = Field(default_factory=list)
    timestamp: datetime

    hour_of_day: int = Field(..., ge=0, le=23)
    minute_of_hour: int = Field(0, ge=0, le=59)
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Monday
    is_weekend: bool
    is_business_hours: bool
    is_peak_hours: bool
    time_category: str

    @model_validator(mode="before")
    @classmethod
    def derive_time_attributes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        moment = data.get("timestamp") or datetime.now(timezone.utc)
        if isinstance(moment, str):
            moment = datetime.fromisoformat(moment)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        data["timestamp"] = moment
        local = moment.astimezone(ZoneInfo(settings.LOCAL_TIMEZONE))

        if data.get("hour_of_day") is None:
            data["hour_of_day"] = local.hour
            data.setdefault("minute_of_hour", local.minute)
        hour = int(data["hour_of_day"])

        if data.get("day_of_week") is None:
            data["day_of_week"] = local.weekday()
        day = int(data["day_of_week"])

        data.setdefault("is_weekend", day >= 5)
        data.setdefault("is_business_hours", hour in _BUSINESS_HOURS)
        data.setdefault(
            "is_peak_hours", any(hour in window for window in _PEAK_HOUR_WINDOWS)
        )
        data.setdefault("time_category", time_category_for_hour(hour))
        return data


# ---------------------------------------------------------------------------
# Nested evaluation context consumed by the condition engine
# ---------------------------------------------------------------------------


class WeatherContext(BaseModel):
    timestamp: datetime
    temperature_c: float
    humidity_percent: float
    condition: str
    uv_index: float
    aqi: Optional[float] = None
    flood_alerts: List[Any] = Field(default_factory=list)


class TimeContext(BaseModel):
    timestamp: datetime
    local_time: str
    hour_of_day: int
    minute_of_hour: int
    day_of_week: int
    is_weekend: bool
    is_business_hours: bool
    is_peak_hours: bool
    time_category: str


class TrafficContext(BaseModel):
    timestamp: datetime
    congestion_level: str


class EvaluationContext(BaseModel):
    """The nested shape handed to ``ConditionEngine.evaluate_conditions``."""

    weather: WeatherContext
    time_based: TimeContext
    traffic: TrafficContext
