from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from adcast.schemas.environment import EnvironmentalSnapshot
from adcast.services.condition_engine import ConditionEngine
from adcast.services.rule_matcher import build_evaluation_context

# 13:00 local (Asia/Singapore) on a Monday
_MONDAY_1PM_SGT = datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc)


def _make_context(**overrides):
    data = {
        "temperature": 36,
        "weather_condition": "Sunny",
        "uv_index": 9,
        "humidity_percent": 82,
        "air_quality_index": 60,
        "timestamp": _MONDAY_1PM_SGT,
    }
    data.update(overrides)
    return build_evaluation_context(EnvironmentalSnapshot(**data))


def _make_mock_rule(rule_id, conditions, priority=0, advertiser_status="Active", **kw):
    advertiser = SimpleNamespace(
        id=1,
        name="joes_coffee",
        display_name="Joe's Coffee",
        business_type="Coffee shop",
        status=advertiser_status,
    )
    return SimpleNamespace(
        rule_id=rule_id,
        advertiser_id=1,
        advertiser=kw.get("advertiser", advertiser),
        priority=priority,
        conditions=conditions,
        is_active=kw.get("is_active", True),
    )


class TestSnapshotDerivation:
    """Verify derived time attributes on EnvironmentalSnapshot."""

    def test_time_attributes_use_local_timezone(self):
        snapshot = EnvironmentalSnapshot(
            temperature=30, weather_condition="Fair", timestamp=_MONDAY_1PM_SGT
        )
        assert snapshot.hour_of_day == 13
        assert snapshot.day_of_week == 0
        assert snapshot.is_weekend is False
        assert snapshot.is_business_hours is True
        assert snapshot.is_peak_hours is False
        assert snapshot.time_category == "afternoon"

    def test_explicit_hour_drives_flags(self):
        snapshot = EnvironmentalSnapshot(
            temperature=30,
            weather_condition="Fair",
            timestamp=_MONDAY_1PM_SGT,
            hour_of_day=8,
        )
        assert snapshot.is_peak_hours is True
        assert snapshot.time_category == "morning"
        assert snapshot.minute_of_hour == 0

    def test_missing_humidity_uses_default(self):
        context = build_evaluation_context(
            EnvironmentalSnapshot(
                temperature=30, weather_condition="Fair", timestamp=_MONDAY_1PM_SGT
            ),
            default_humidity=50.0,
        )
        assert context.weather.humidity_percent == 50.0


class TestConditionEvaluation:
    """Verify individual condition keys and rule-level semantics."""

    def setup_method(self):
        self.engine = ConditionEngine()

    def test_temperature_greater_than_matches(self):
        rule = _make_mock_rule("very_hot", {"temperature_c_greater_than": 35})
        matches = self.engine.evaluate_conditions(_make_context(), [rule])
        assert len(matches) == 1
        assert matches[0].variables["temperature_c"] == 36
        assert matches[0].variables["location"] == "Singapore"

    def test_all_conditions_must_match(self):
        rule = _make_mock_rule(
            "hot_and_rainy",
            {"temperature_c_greater_than": 35, "weather_condition_contains": "rain"},
        )
        assert self.engine.evaluate_conditions(_make_context(), [rule]) == []

    def test_rule_without_known_keys_never_matches(self):
        rule = _make_mock_rule("odd", {"location_type": "mall"})
        assert self.engine.evaluate_conditions(_make_context(), [rule]) == []

    def test_unknown_keys_are_ignored_alongside_known_ones(self):
        rule = _make_mock_rule(
            "mixed", {"location_type": "mall", "temperature_c_greater_than": 30}
        )
        assert len(self.engine.evaluate_conditions(_make_context(), [rule])) == 1

    def test_weather_contains_is_case_insensitive_and_accepts_lists(self):
        rule = _make_mock_rule(
            "sunny", {"weather_condition_contains": ["cloudy", "SUNNY"]}
        )
        assert len(self.engine.evaluate_conditions(_make_context(), [rule])) == 1

    def test_weather_not_contains(self):
        rule = _make_mock_rule("dry", {"weather_condition_not_contains": "rain"})
        assert len(self.engine.evaluate_conditions(_make_context(), [rule])) == 1

    def test_split_temperature_between(self):
        rule = _make_mock_rule(
            "warm",
            {"temperature_c_between_min": 26, "temperature_c_between_max": 30},
        )
        assert self.engine.evaluate_conditions(_make_context(), [rule]) == []
        assert (
            len(
                self.engine.evaluate_conditions(
                    _make_context(temperature=30), [rule]
                )
            )
            == 1
        )

    def test_split_time_range_inclusive(self):
        rule = _make_mock_rule(
            "lunch",
            {"time_of_day_between_start": "12:00", "time_of_day_between_end": "13:00"},
        )
        matches = self.engine.evaluate_conditions(_make_context(), [rule])
        assert len(matches) == 1
        assert matches[0].variables["current_time"] == "13:00"

    def test_time_range_wrapping_midnight(self):
        rule = _make_mock_rule("late", {"time_of_day_between": ["22:00", "02:00"]})
        context = _make_context(hour_of_day=23)
        assert len(self.engine.evaluate_conditions(context, [rule])) == 1
        context = _make_context(hour_of_day=13)
        assert self.engine.evaluate_conditions(context, [rule]) == []

    def test_uv_alias(self):
        rule = _make_mock_rule("uv", {"uv_index_greater_than": 8})
        assert len(self.engine.evaluate_conditions(_make_context(), [rule])) == 1

    def test_aqi_above_requires_reading(self):
        rule = _make_mock_rule("haze", {"aqi_above": 50})
        assert len(self.engine.evaluate_conditions(_make_context(), [rule])) == 1
        no_aqi = _make_context(air_quality_index=None)
        assert self.engine.evaluate_conditions(no_aqi, [rule]) == []

    def test_weekend_and_time_category(self):
        weekday = _make_mock_rule("weekday_afternoon", {
            "is_weekend": False,
            "time_category": "afternoon",
        })
        assert len(self.engine.evaluate_conditions(_make_context(), [weekday])) == 1

    def test_flood_alert_and_traffic(self):
        rule = _make_mock_rule(
            "flood", {"flood_alert_active": True, "traffic_congestion_level": ["heavy"]}
        )
        context = _make_context(
            flood_alerts=["Bedok"], traffic_congestion_level="Heavy"
        )
        assert len(self.engine.evaluate_conditions(context, [rule])) == 1


class TestRuleFiltering:
    """Verify which rules are considered and in what order."""

    def setup_method(self):
        self.engine = ConditionEngine()

    def test_inactive_rules_and_advertisers_are_skipped(self):
        rules = [
            _make_mock_rule("off", {"temperature_c_greater_than": 0}, is_active=False),
            _make_mock_rule(
                "paused", {"temperature_c_greater_than": 0}, advertiser_status="Inactive"
            ),
            _make_mock_rule("orphan", {"temperature_c_greater_than": 0}, advertiser=None),
        ]
        assert self.engine.evaluate_conditions(_make_context(), rules) == []

    def test_matches_sorted_by_priority_descending(self):
        rules = [
            _make_mock_rule("low", {"temperature_c_greater_than": 0}, priority=1),
            _make_mock_rule("high", {"temperature_c_greater_than": 0}, priority=10),
            _make_mock_rule("mid", {"temperature_c_greater_than": 0}, priority=5),
        ]
        matches = self.engine.evaluate_conditions(_make_context(), rules)
        assert [m.rule_id for m in matches] == ["high", "mid", "low"]

    def test_broken_rule_does_not_block_others(self):
        rules = [
            _make_mock_rule("broken", {"time_of_day_between": "not-a-range"}),
            _make_mock_rule("fine", {"temperature_c_greater_than": 0}),
        ]
        matches = self.engine.evaluate_conditions(_make_context(), rules)
        assert [m.rule_id for m in matches] == ["fine"]

    @pytest.mark.parametrize("temperature, expected", [(35, 0), (35.1, 1)])
    def test_greater_than_is_strict(self, temperature, expected):
        rule = _make_mock_rule("hot", {"temperature_c_greater_than": 35})
        matches = self.engine.evaluate_conditions(
            _make_context(temperature=temperature), [rule]
        )
        assert len(matches) == expected
