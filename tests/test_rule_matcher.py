from datetime import datetime, timezone

import pytest

from adcast.schemas.environment import EnvironmentalSnapshot
from adcast.services.rule_matcher import RuleMatcher


def _make_snapshot(**overrides):
    data = {
        "temperature": 36,
        "weather_condition": "Sunny",
        "timestamp": datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return EnvironmentalSnapshot(**data)


class TestRuleMatcher:
    """Verify snapshot processing creates Pending records per match."""

    @pytest.mark.asyncio
    async def test_creates_one_pending_record_per_match(self, fake_storage):
        joe = fake_storage.add_advertiser(1, "joes_coffee", "Joe's Coffee")
        fake_storage.add_rule("very_hot", joe, {"temperature_c_greater_than": 35}, priority=10)
        fake_storage.add_rule("sunny", joe, {"weather_condition_contains": "sun"}, priority=6)
        fake_storage.add_rule("rainy", joe, {"weather_condition_contains": "rain"})

        created = await RuleMatcher().process_snapshot(_make_snapshot(), fake_storage)

        assert [c.rule_id for c in created] == ["very_hot", "sunny"]
        records = list(fake_storage.advertising.records.values())
        assert len(records) == 2
        assert all(r.status == "Pending" for r in records)
        assert all(r.audio_file is None for r in records)
        assert [r.priority for r in records] == [10, 6]
        assert created[0].advertising_id == records[0].id
        assert fake_storage.commits == 2

    @pytest.mark.asyncio
    async def test_no_match_creates_nothing(self, fake_storage):
        joe = fake_storage.add_advertiser(1, "joes_coffee")
        fake_storage.add_rule("freezing", joe, {"temperature_c_less_than": 0})

        created = await RuleMatcher().process_snapshot(_make_snapshot(), fake_storage)

        assert created == []
        assert fake_storage.advertising.records == {}

    @pytest.mark.asyncio
    async def test_failed_insert_does_not_block_other_matches(self, fake_storage):
        joe = fake_storage.add_advertiser(1, "joes_coffee")
        fake_storage.add_rule("first", joe, {"temperature_c_greater_than": 30}, priority=5)
        fake_storage.add_rule("second", joe, {"temperature_c_greater_than": 30}, priority=1)
        fake_storage.advertising.fail_on_create_for.add("first")

        created = await RuleMatcher().process_snapshot(_make_snapshot(), fake_storage)

        assert [c.rule_id for c in created] == ["second"]
        assert fake_storage.rollbacks == 1
