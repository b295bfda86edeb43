from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional
from zoneinfo import ZoneInfo

from adcast.core.config import settings
from adcast.core.voice_profiles import DEFAULT_PROFILE_KEY, VOICE_PROFILES
from adcast.schemas.environment import local_now
from adcast.schemas.pipeline import VoiceSettings


class VoiceProfileSelector:
    """Map a matched rule to text-to-speech voice settings.

    Resolution order, first hit wins:

    1. exact (lower-cased) rule type in the catalog;
    2. partial type: the type's first ``-`` segment is a prefix of a
       catalog key's first segment;
    3. condition heuristics: ``weather_condition`` (or
       ``weather_condition_contains``) keywords, then
       ``time_category``, then ``time_range`` against the current hour;
    4. the default profile.

    Returned settings are always fresh objects; the catalog is never
    handed out by reference.
    """

    def __init__(
        self,
        profiles: Optional[Mapping[str, Mapping[str, Any]]] = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._profiles = profiles if profiles is not None else VOICE_PROFILES
        self._clock = clock

    def select_voice_settings(
        self,
        rule_type: Optional[str],
        conditions: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> VoiceSettings:
        key = self.resolve_profile_key(rule_type, conditions, now)
        return VoiceSettings(**dict(self._profiles[key]))

    def resolve_profile_key(
        self,
        rule_type: Optional[str],
        conditions: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Return the catalog key the fallback chain lands on."""
        normalised = (rule_type or "").strip().lower()

        if normalised in self._profiles:
            return normalised

        prefix = normalised.split("-")[0]
        if prefix:
            for key in self._profiles:
                if key.split("-")[0].startswith(prefix):
                    return key

        from_conditions = self._key_from_conditions(conditions or {}, now)
        if from_conditions is not None:
            return from_conditions

        return DEFAULT_PROFILE_KEY

    def _key_from_conditions(
        self, conditions: Dict[str, Any], now: Optional[datetime]
    ) -> Optional[str]:
        weather = conditions.get("weather_condition") or conditions.get(
            "weather_condition_contains"
        )
        if weather:
            if isinstance(weather, (list, tuple)):
                weather = " ".join(str(w) for w in weather)
            lowered = str(weather).lower()
            if "rain" in lowered or "storm" in lowered:
                return "weather-rainy"
            if "sun" in lowered or "clear" in lowered:
                return "weather-sunny"

        category = conditions.get("time_category")
        if category in ("morning", "evening", "night"):
            return f"time-{category}"

        if conditions.get("time_range"):
            moment = now or self._clock()
            if moment.tzinfo is not None:
                moment = moment.astimezone(ZoneInfo(settings.LOCAL_TIMEZONE))
            hour = moment.hour
            if 6 <= hour < 12:
                return "time-morning"
            if 18 <= hour < 22:
                return "time-evening"
            if hour >= 22 or hour < 6:
                return "time-night"

        return None
