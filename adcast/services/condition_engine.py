import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from adcast.core.constants import ADVERTISER_ACTIVE_STATUS, LOCATION_NAME
from adcast.models.condition_rule import ConditionRule
from adcast.schemas.environment import EvaluationContext
from adcast.schemas.pipeline import AdvertiserRef, MatchedRule

logger = logging.getLogger(__name__)

# A check returns a human-readable description when it matches, else None
_Check = Callable[[Any, EvaluationContext, Dict[str, Any]], Optional[str]]


def _as_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _to_minutes(hhmm: str) -> int:
    hours, minutes = str(hhmm).split(":")
    return int(hours) * 60 + int(minutes)


def _normalise(conditions: Dict[str, Any]) -> Dict[str, Any]:
    """Fold split/alias condition keys into their canonical form."""
    normalised = dict(conditions)

    start = normalised.pop("time_of_day_between_start", None)
    end = normalised.pop("time_of_day_between_end", None)
    if start is not None and end is not None:
        normalised.setdefault("time_of_day_between", [start, end])

    low = normalised.pop("temperature_c_between_min", None)
    high = normalised.pop("temperature_c_between_max", None)
    if low is not None and high is not None:
        normalised.setdefault("temperature_c_between", [low, high])

    if "uv_index_greater_than" in normalised:
        normalised.setdefault("uv_index_above", normalised.pop("uv_index_greater_than"))

    return normalised


class ConditionEngine:
    """Evaluate advertiser condition rules against one evaluation context.

    Every condition key present on a rule must match for the rule to
    match; unknown keys are ignored, and a rule with no recognised keys
    never matches.

    Supported condition keys:
        - ``temperature_c_greater_than`` / ``temperature_c_less_than``
        - ``temperature_c_between``  ``[min, max]`` inclusive
        - ``humidity_percent_above``
        - ``weather_condition_contains`` / ``weather_condition_not_contains``
          string or list, case-insensitive substring match
        - ``uv_index_above``
        - ``aqi_above``
        - ``time_of_day_between``  ``["HH:MM", "HH:MM"]`` inclusive,
          may wrap past midnight
        - ``time_category``  string or list
        - ``is_weekend`` / ``is_peak_hours``  booleans
        - ``traffic_congestion_level``  string or list
        - ``flood_alert_active``  boolean

    Split forms (``time_of_day_between_start``/``_end``,
    ``temperature_c_between_min``/``_max``) and the
    ``uv_index_greater_than`` alias are folded in before evaluation.
    """

    def __init__(self) -> None:
        self._checks: Dict[str, _Check] = {
            "temperature_c_greater_than": self._temperature_greater_than,
            "temperature_c_less_than": self._temperature_less_than,
            "temperature_c_between": self._temperature_between,
            "humidity_percent_above": self._humidity_above,
            "weather_condition_contains": self._condition_contains,
            "weather_condition_not_contains": self._condition_not_contains,
            "uv_index_above": self._uv_above,
            "aqi_above": self._aqi_above,
            "time_of_day_between": self._time_between,
            "time_category": self._time_category,
            "is_weekend": self._is_weekend,
            "is_peak_hours": self._is_peak_hours,
            "traffic_congestion_level": self._traffic_level,
            "flood_alert_active": self._flood_alert_active,
        }

    def evaluate_conditions(
        self, context: EvaluationContext, rules: Sequence[ConditionRule]
    ) -> List[MatchedRule]:
        """Return matching rules, highest priority first.

        ``rules`` must have their ``advertiser`` relationship loaded.
        Rules that are inactive, whose advertiser is missing or not
        active, or that raise while being evaluated are skipped.
        """
        matches: List[MatchedRule] = []

        for rule in rules:
            if not rule.is_active:
                continue
            advertiser = rule.advertiser
            if advertiser is None:
                logger.error(
                    "Advertiser %s not found for rule %s",
                    rule.advertiser_id,
                    rule.rule_id,
                )
                continue
            if advertiser.status != ADVERTISER_ACTIVE_STATUS:
                continue

            try:
                evaluated = self._evaluate_rule(rule.conditions or {}, context)
            except Exception:
                logger.warning(
                    "Error evaluating rule %s", rule.rule_id, exc_info=True
                )
                continue
            if evaluated is None:
                continue

            descriptions, variables = evaluated
            matches.append(
                MatchedRule(
                    rule_id=rule.rule_id,
                    priority=rule.priority,
                    conditions=dict(rule.conditions or {}),
                    advertiser=AdvertiserRef(
                        id=advertiser.id,
                        name=advertiser.name,
                        display_name=advertiser.display_name,
                        business_type=advertiser.business_type,
                    ),
                    matched_conditions=descriptions,
                    variables=variables,
                )
            )

        # Stable sort keeps rule order among equal priorities
        matches.sort(key=lambda m: m.priority, reverse=True)

        logger.info("Evaluated %d rules, found %d matches", len(rules), len(matches))
        if matches:
            logger.info(
                "Top match: %s (priority: %d)", matches[0].rule_id, matches[0].priority
            )
        return matches

    def _evaluate_rule(
        self, conditions: Dict[str, Any], context: EvaluationContext
    ) -> Optional[tuple]:
        descriptions: List[str] = []
        variables: Dict[str, Any] = {}

        for key, expected in _normalise(conditions).items():
            check = self._checks.get(key)
            if check is None:
                continue
            description = check(expected, context, variables)
            if description is None:
                return None
            descriptions.append(description)

        if not descriptions:
            return None

        variables["location"] = LOCATION_NAME
        variables["timestamp"] = context.time_based.local_time
        return descriptions, variables

    # ------------------------------------------------------------------
    # Weather
    # ------------------------------------------------------------------

    @staticmethod
    def _temperature_greater_than(expected, context, variables):
        temp = context.weather.temperature_c
        if temp > expected:
            variables["temperature_c"] = temp
            return f"Temperature {temp}°C > {expected}°C"
        return None

    @staticmethod
    def _temperature_less_than(expected, context, variables):
        temp = context.weather.temperature_c
        if temp < expected:
            variables["temperature_c"] = temp
            return f"Temperature {temp}°C < {expected}°C"
        return None

    @staticmethod
    def _temperature_between(expected, context, variables):
        low, high = expected
        temp = context.weather.temperature_c
        if low <= temp <= high:
            variables["temperature_c"] = temp
            return f"Temperature {temp}°C between {low}°C and {high}°C"
        return None

    @staticmethod
    def _humidity_above(expected, context, variables):
        humidity = context.weather.humidity_percent
        if humidity > expected:
            variables["humidity_percent"] = humidity
            return f"Humidity {humidity}% > {expected}%"
        return None

    @staticmethod
    def _condition_contains(expected, context, variables):
        condition = context.weather.condition
        lowered = condition.lower()
        if any(term.lower() in lowered for term in _as_list(expected)):
            variables["condition"] = condition
            return f"Weather condition '{condition}' matches pattern"
        return None

    @staticmethod
    def _condition_not_contains(expected, context, variables):
        condition = context.weather.condition
        lowered = condition.lower()
        if not any(term.lower() in lowered for term in _as_list(expected)):
            variables["condition"] = condition
            return f"Weather condition '{condition}' does not match excluded patterns"
        return None

    @staticmethod
    def _uv_above(expected, context, variables):
        uv = context.weather.uv_index
        if uv > expected:
            variables["uv_index"] = uv
            return f"UV Index {uv} > {expected}"
        return None

    @staticmethod
    def _aqi_above(expected, context, variables):
        aqi = context.weather.aqi
        if aqi is not None and aqi > expected:
            variables["aqi"] = aqi
            return f"AQI {aqi} > {expected}"
        return None

    @staticmethod
    def _flood_alert_active(expected, context, variables):
        active = bool(context.weather.flood_alerts)
        if active == bool(expected):
            variables["flood_alerts"] = list(context.weather.flood_alerts)
            return f"Flood alert active is {active}"
        return None

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    @staticmethod
    def _time_between(expected, context, variables):
        start, end = expected
        time_ctx = context.time_based
        current = time_ctx.hour_of_day * 60 + time_ctx.minute_of_hour
        start_minutes = _to_minutes(start)
        end_minutes = _to_minutes(end)

        if start_minutes <= end_minutes:
            in_range = start_minutes <= current <= end_minutes
        else:
            # Crosses midnight
            in_range = current >= start_minutes or current <= end_minutes

        if in_range:
            current_time = f"{time_ctx.hour_of_day:02d}:{time_ctx.minute_of_hour:02d}"
            variables["current_time"] = current_time
            return f"Current time {current_time} is within range {start}-{end}"
        return None

    @staticmethod
    def _time_category(expected, context, variables):
        category = context.time_based.time_category
        if category in {c.lower() for c in _as_list(expected)}:
            variables["time_category"] = category
            return f"Time category is {category}"
        return None

    @staticmethod
    def _is_weekend(expected, context, variables):
        if context.time_based.is_weekend == bool(expected):
            return f"Weekend is {context.time_based.is_weekend}"
        return None

    @staticmethod
    def _is_peak_hours(expected, context, variables):
        if context.time_based.is_peak_hours == bool(expected):
            return f"Peak hours is {context.time_based.is_peak_hours}"
        return None

    # ------------------------------------------------------------------
    # Traffic
    # ------------------------------------------------------------------

    @staticmethod
    def _traffic_level(expected, context, variables):
        level = context.traffic.congestion_level
        if level.lower() in {v.lower() for v in _as_list(expected)}:
            variables["traffic_congestion_level"] = level
            return f"Traffic congestion is {level}"
        return None
