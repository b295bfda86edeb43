import json
import os
import re
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from adcast.core.cache import CacheService
from adcast.core.exceptions import PipelineBusyError
from adcast.schemas.common import VoiceStyle
from adcast.schemas.environment import EnvironmentalSnapshot
from adcast.schemas.pipeline import (
    ErrorKind,
    ScriptResult,
    StepOutcome,
    SynthesisResult,
)
from adcast.services.advertising_lifecycle import AdvertisingRecordLifecycle
from adcast.services.advertising_pipeline import (
    STATS_CACHE_KEY,
    AdvertisingPipelineService,
)
from adcast.services.gemini_script_service import GeminiScriptService
from adcast.services.pacing import FixedIntervalPacer
from adcast.services.rule_matcher import RuleMatcher
from adcast.services.run_lock import PipelineRunLock
from adcast.services.script_writer import ScriptWriter
from adcast.services.voice_profile_selector import VoiceProfileSelector
from adcast.services.voice_synthesizer import VoiceSynthesizer

_NOW = datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc)


def _make_snapshot(**overrides):
    data = {
        "temperature": 36,
        "weather_condition": "Sunny",
        "timestamp": _NOW,
        "hour_of_day": 13,
    }
    data.update(overrides)
    return EnvironmentalSnapshot(**data)


def _make_mock_script_writer(fail_for=()):
    async def try_generate(display_name, business_type, rule_id, current_time=None):
        if display_name in fail_for:
            return StepOutcome.failure(ErrorKind.provider, "Gemini request failed")
        return StepOutcome.success(
            ScriptResult(script=f"Visit {display_name}.", voice_style=VoiceStyle.female)
        )

    writer = MagicMock()
    writer.try_generate = AsyncMock(side_effect=try_generate)
    return writer


def _make_mock_synthesizer(fail_for=()):
    async def try_synthesize(script, voice_type, voice_settings, advertiser_name):
        if advertiser_name in fail_for:
            return StepOutcome.failure(ErrorKind.provider, "401 Unauthorized")
        file_name = f"script_1_{voice_type}_{advertiser_name}.mp3"
        return StepOutcome.success(
            SynthesisResult(
                audio_path=f"/audio/{file_name}", file_name=file_name, file_size=16_000
            )
        )

    synthesizer = MagicMock()
    synthesizer.try_synthesize = AsyncMock(side_effect=try_synthesize)
    return synthesizer


def _make_pipeline(storage, script_writer=None, synthesizer=None, **kwargs):
    sleep = AsyncMock()
    service = AdvertisingPipelineService(
        storage_factory=storage.factory(),
        matcher=RuleMatcher(),
        script_writer=script_writer or _make_mock_script_writer(),
        voice_selector=kwargs.pop("voice_selector", VoiceProfileSelector()),
        synthesizer=synthesizer or _make_mock_synthesizer(),
        lifecycle=AdvertisingRecordLifecycle(),
        pacer=FixedIntervalPacer(5.0, sleep=sleep),
        run_lock=kwargs.pop(
            "run_lock", PipelineRunLock(cache=CacheService(), wait_seconds=0.1, ttl_seconds=5)
        ),
        cache=kwargs.pop("cache", CacheService()),
        clock=lambda: _NOW,
        **kwargs,
    )
    return service, sleep


async def _seed_pending(storage, *names, priority=0):
    records = []
    for index, name in enumerate(names, start=1):
        advertiser = storage.add_advertiser(index, name)
        storage.add_rule(f"rule_{name}", advertiser, {"temperature_c_greater_than": 0})
        records.append(
            await storage.advertising.create(
                rule_id=f"rule_{name}",
                advertiser_id=advertiser.id,
                status="Pending",
                priority=priority,
            )
        )
    return records


class TestEndToEnd:
    """Snapshot in, playable audio path out."""

    @pytest.mark.asyncio
    async def test_hot_sunny_snapshot_produces_audio(self, fake_storage, tmp_path):
        joe = fake_storage.add_advertiser(
            1, "Joe's Coffee", "Joe's Coffee", business_type="Coffee shop"
        )
        fake_storage.add_rule(
            "very_hot_singapore",
            joe,
            {"temperature_c_greater_than": 35, "weather_condition_contains": "sunny"},
            priority=10,
        )

        gemini = MagicMock()
        gemini.models.generate_content.return_value = SimpleNamespace(
            text='{"script": "Cool down at Joe\'s Coffee.", "voiceStyle": "female"}'
        )
        elevenlabs = MagicMock()
        elevenlabs.text_to_speech.convert.side_effect = lambda **kw: iter([b"ID3", b"mp3"])

        service, sleep = _make_pipeline(
            fake_storage,
            script_writer=ScriptWriter(
                GeminiScriptService(api_key="test", client=gemini), fallback_on_error=False
            ),
            synthesizer=VoiceSynthesizer(
                api_key="test",
                output_dir=str(tmp_path),
                url_prefix="/audio",
                client_factory=lambda key: elevenlabs,
            ),
        )

        result = await service.run_for_new_snapshot(_make_snapshot())

        assert result.processed_records == 1
        assert result.successful_generations == 1
        assert result.failed_generations == 0
        assert result.errors == []
        sleep.assert_not_awaited()

        record = fake_storage.advertising.records[1]
        assert record.status == "Done"
        assert re.fullmatch(
            r"/audio/script_\d+_(male|female)_Joe_s_Coffee\.mp3", record.audio_file
        )
        assert os.path.exists(os.path.join(tmp_path, os.path.basename(record.audio_file)))

        audio = fake_storage.audio.rows[1]
        assert audio.status == "completed"
        assert audio.audio_url == record.audio_file
        assert audio.variables["ruleId"] == "very_hot_singapore"
        assert audio.variables["advertiserDisplayName"] == "Joe's Coffee"

        voice_settings = elevenlabs.text_to_speech.convert.call_args.kwargs["voice_settings"]
        assert voice_settings.stability == 0.5
        assert voice_settings.style == 0.6
        assert voice_settings.speed == 0.9

    @pytest.mark.asyncio
    async def test_no_match_returns_zero_counts(self, fake_storage):
        joe = fake_storage.add_advertiser(1, "joe")
        fake_storage.add_rule("freezing", joe, {"temperature_c_less_than": 0})
        service, _ = _make_pipeline(fake_storage)

        result = await service.run_for_new_snapshot(_make_snapshot())

        assert result.model_dump() == {
            "processed_records": 0,
            "successful_generations": 0,
            "failed_generations": 0,
            "errors": [],
        }

    @pytest.mark.asyncio
    async def test_matcher_failure_is_reported_not_raised(self, fake_storage):
        fake_storage.rules.get_active_rules = AsyncMock(side_effect=RuntimeError("db down"))
        service, _ = _make_pipeline(fake_storage)

        result = await service.run_for_new_snapshot(_make_snapshot())

        assert result.processed_records == 0
        assert "db down" in result.errors[0]


class TestDrainPending:
    """Verify per-record isolation, pacing and idempotence."""

    @pytest.mark.asyncio
    async def test_partial_failure_isolated(self, fake_storage):
        records = await _seed_pending(fake_storage, "a", "b", "c")
        service, sleep = _make_pipeline(
            fake_storage, synthesizer=_make_mock_synthesizer(fail_for={"b"})
        )

        result = await service.drain_pending()

        assert result.processed_records == 3
        assert result.successful_generations == 2
        assert result.failed_generations == 1
        assert len(result.errors) == 1
        assert "401 Unauthorized" in result.errors[0]
        assert [r.status for r in records] == ["Done", "Failed", "Done"]
        assert sleep.await_count == 2
        # Audio row exists for the failed synthesis and is marked failed
        assert fake_storage.audio.rows[2].status == "failed"

    @pytest.mark.asyncio
    async def test_script_failure_on_middle_record_isolated(self, fake_storage):
        records = await _seed_pending(fake_storage, "a", "b", "c")
        service, sleep = _make_pipeline(
            fake_storage, script_writer=_make_mock_script_writer(fail_for={"b"})
        )

        result = await service.drain_pending()

        assert result.processed_records == 3
        assert result.failed_generations == 1
        assert "rule_b" in result.errors[0]
        assert [r.status for r in records] == ["Done", "Failed", "Done"]
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_second_drain_is_noop(self, fake_storage):
        await _seed_pending(fake_storage, "a", "b")
        service, _ = _make_pipeline(fake_storage)

        await service.drain_pending()
        second = await service.drain_pending()

        assert second.processed_records == 0
        assert second.errors == []

    @pytest.mark.asyncio
    async def test_script_failure_creates_no_audio(self, fake_storage):
        records = await _seed_pending(fake_storage, "a")
        service, _ = _make_pipeline(
            fake_storage, script_writer=_make_mock_script_writer(fail_for={"a"})
        )

        result = await service.drain_pending()

        assert result.failed_generations == 1
        assert "Script generation failed" in result.errors[0]
        assert records[0].status == "Failed"
        assert fake_storage.audio.rows == {}

    @pytest.mark.asyncio
    async def test_missing_advertiser_fails_record(self, fake_storage):
        record = await fake_storage.advertising.create(
            rule_id="ghost", advertiser_id=77, status="Pending"
        )
        service, _ = _make_pipeline(fake_storage)

        result = await service.drain_pending()

        assert result.failed_generations == 1
        assert record.status == "Failed"

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_failed_and_continues(self, fake_storage):
        records = await _seed_pending(fake_storage, "a", "b")
        selector = MagicMock()
        selector.select_voice_settings.side_effect = [
            RuntimeError("catalog corrupted"),
            VoiceProfileSelector().select_voice_settings("default"),
        ]
        service, _ = _make_pipeline(fake_storage, voice_selector=selector)

        result = await service.drain_pending()

        assert result.processed_records == 2
        assert result.successful_generations == 1
        assert "catalog corrupted" in result.errors[0]
        assert [r.status for r in records] == ["Failed", "Done"]
        assert fake_storage.audio.rows[1].status == "failed"
        assert fake_storage.audio.rows[2].status == "completed"

    @pytest.mark.asyncio
    async def test_higher_priority_processed_first(self, fake_storage):
        low = fake_storage.add_advertiser(1, "low")
        high = fake_storage.add_advertiser(2, "high")
        for advertiser, priority in ((low, 1), (high, 9)):
            fake_storage.add_rule(f"rule_{advertiser.name}", advertiser, {"is_weekend": False})
            await fake_storage.advertising.create(
                rule_id=f"rule_{advertiser.name}",
                advertiser_id=advertiser.id,
                status="Pending",
                priority=priority,
            )
        synthesizer = _make_mock_synthesizer()
        service, _ = _make_pipeline(fake_storage, synthesizer=synthesizer)

        await service.drain_pending()

        names = [c.args[3] for c in synthesizer.try_synthesize.await_args_list]
        assert names == ["high", "low"]

    @pytest.mark.asyncio
    async def test_busy_lock_reported_as_error(self, fake_storage):
        await _seed_pending(fake_storage, "a")
        run_lock = MagicMock()
        run_lock.hold.side_effect = PipelineBusyError("Another pipeline run is in progress")
        service, _ = _make_pipeline(fake_storage, run_lock=run_lock)

        result = await service.drain_pending()

        assert result.processed_records == 0
        assert result.errors == ["Another pipeline run is in progress"]

    @pytest.mark.asyncio
    async def test_lock_renewed_before_each_record(self, fake_storage, mock_cache, mock_redis):
        await _seed_pending(fake_storage, "a", "b")
        run_lock = PipelineRunLock(cache=mock_cache, wait_seconds=0.1, ttl_seconds=5)
        service, _ = _make_pipeline(fake_storage, run_lock=run_lock)

        result = await service.drain_pending()

        assert result.successful_generations == 2
        extends = [c for c in mock_redis.eval.await_args_list if len(c.args) == 5]
        assert len(extends) == 2
        assert all(c.args[4] == 5 for c in extends)

    @pytest.mark.asyncio
    async def test_lost_lock_stops_drain(self, fake_storage, mock_cache, mock_redis):
        records = await _seed_pending(fake_storage, "a", "b")
        mock_redis.eval = AsyncMock(return_value=0)
        run_lock = PipelineRunLock(cache=mock_cache, wait_seconds=0.1, ttl_seconds=5)
        service, _ = _make_pipeline(fake_storage, run_lock=run_lock)

        result = await service.drain_pending()

        assert result.processed_records == 0
        assert "lock lost" in result.errors[0]
        assert [r.status for r in records] == ["Pending", "Pending"]


class TestRetryFailed:
    """Verify Failed records are reset and reprocessed."""

    @pytest.mark.asyncio
    async def test_failed_records_are_retried(self, fake_storage):
        records = await _seed_pending(fake_storage, "a")
        failing, _ = _make_pipeline(
            fake_storage, synthesizer=_make_mock_synthesizer(fail_for={"a"})
        )
        await failing.drain_pending()
        assert records[0].status == "Failed"

        service, _ = _make_pipeline(fake_storage)
        result = await service.retry_failed()

        assert result.processed_records == 1
        assert result.successful_generations == 1
        assert records[0].status == "Done"
        assert records[0].attempts == 2

    @pytest.mark.asyncio
    async def test_nothing_to_retry(self, fake_storage):
        service, _ = _make_pipeline(fake_storage)
        result = await service.retry_failed()
        assert result.processed_records == 0

    @pytest.mark.asyncio
    async def test_exhausted_records_stay_failed(self, fake_storage):
        records = await _seed_pending(fake_storage, "a")
        failing, _ = _make_pipeline(
            fake_storage, synthesizer=_make_mock_synthesizer(fail_for={"a"})
        )
        await failing.drain_pending()

        service, _ = _make_pipeline(fake_storage, max_retry_attempts=1)
        result = await service.retry_failed()

        assert result.processed_records == 0
        assert records[0].status == "Failed"


class TestPipelineStats:
    """Verify status counts and their cache."""

    @pytest.mark.asyncio
    async def test_counts_by_status(self, fake_storage, mock_cache, mock_redis):
        await _seed_pending(fake_storage, "a", "b", "c")
        fake_storage.advertising.records[2].status = "Done"
        fake_storage.advertising.records[3].status = "Failed"
        service, _ = _make_pipeline(fake_storage, cache=mock_cache)

        stats = await service.get_pipeline_stats()

        assert (stats.pending, stats.completed, stats.failed, stats.total) == (1, 1, 1, 3)
        assert stats.error is None
        mock_redis.setex.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_served_from_cache(self, fake_storage, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(
            return_value=json.dumps({"pending": 4, "completed": 0, "failed": 0, "total": 4})
        )
        service, _ = _make_pipeline(fake_storage, cache=mock_cache)

        stats = await service.get_pipeline_stats()

        assert stats.pending == 4
        mock_redis.get.assert_awaited_once_with(STATS_CACHE_KEY)

    @pytest.mark.asyncio
    async def test_storage_error_returns_zeros_with_error(self, fake_storage):
        fake_storage.advertising.count_by_status = AsyncMock(side_effect=RuntimeError("db down"))
        service, _ = _make_pipeline(fake_storage)

        stats = await service.get_pipeline_stats()

        assert stats.total == 0
        assert stats.error == "db down"
