import logging
from datetime import datetime, timezone
from typing import AsyncContextManager, Awaitable, Callable, Optional

from adcast.core.cache import CacheService
from adcast.core.config import settings
from adcast.core.exceptions import PipelineBusyError
from adcast.models.advertiser import Advertiser
from adcast.models.advertising import AdvertisingRecord
from adcast.models.audio import Audio
from adcast.repositories.storage import PipelineStorage
from adcast.schemas.common import (
    AdvertisingStatus,
    AudioStatus,
    PipelineResult,
    PipelineStats,
)
from adcast.schemas.environment import EnvironmentalSnapshot, localized_timestamp
from adcast.schemas.pipeline import ScriptResult
from adcast.services.advertising_lifecycle import AdvertisingRecordLifecycle
from adcast.services.pacing import FixedIntervalPacer
from adcast.services.rule_matcher import RuleMatcher
from adcast.services.run_lock import PipelineRunLock
from adcast.services.script_writer import ScriptWriter
from adcast.services.voice_profile_selector import VoiceProfileSelector
from adcast.services.voice_synthesizer import (
    VoiceSynthesizer,
    estimate_duration_seconds,
)

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = "adcast:pipeline:stats"

StorageFactory = Callable[[], AsyncContextManager[PipelineStorage]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdvertisingPipelineService:
    """Drive snapshots through matching, scripting and synthesis.

    Records are processed strictly one at a time with a pacing delay
    between them; a failure on one record marks it ``Failed`` and the
    batch carries on.  None of the public entry points raise: every
    problem ends up in ``PipelineResult.errors``.

    Drains and retries run under :class:`PipelineRunLock`, so a
    scheduled ingestion and a manual trigger never process the same
    Pending record twice.
    """

    def __init__(
        self,
        storage_factory: StorageFactory,
        matcher: RuleMatcher,
        script_writer: ScriptWriter,
        voice_selector: VoiceProfileSelector,
        synthesizer: VoiceSynthesizer,
        lifecycle: AdvertisingRecordLifecycle,
        pacer: FixedIntervalPacer,
        run_lock: PipelineRunLock,
        cache: Optional[CacheService] = None,
        max_retry_attempts: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage_factory = storage_factory
        self._matcher = matcher
        self._script_writer = script_writer
        self._voice_selector = voice_selector
        self._synthesizer = synthesizer
        self._lifecycle = lifecycle
        self._pacer = pacer
        self._run_lock = run_lock
        self._cache = cache or CacheService()
        self._max_retry_attempts = (
            max_retry_attempts
            if max_retry_attempts is not None
            else settings.PIPELINE_MAX_RETRY_ATTEMPTS
        )
        self._clock = clock

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run_for_new_snapshot(
        self, snapshot: EnvironmentalSnapshot
    ) -> PipelineResult:
        """Match *snapshot* against active rules, then drain the queue."""
        logger.info(
            "Processing snapshot: %s°C, %s",
            snapshot.temperature,
            snapshot.weather_condition,
        )
        try:
            async with self._storage_factory() as storage:
                created = await self._matcher.process_snapshot(snapshot, storage)
        except Exception as exc:
            logger.error("Snapshot processing failed", exc_info=True)
            return PipelineResult(errors=[f"Snapshot processing failed: {exc}"])

        if not created:
            logger.info("No advertising records created for this snapshot")
            return PipelineResult()

        await self._invalidate_stats()
        return await self.drain_pending()

    async def drain_pending(self) -> PipelineResult:
        """Process every Pending record currently in storage."""
        return await self._run_exclusive(self._drain_locked, "drain")

    async def retry_failed(self) -> PipelineResult:
        """Reset Failed records to Pending and drain them.

        With ``PIPELINE_MAX_RETRY_ATTEMPTS`` > 0, records that already
        used up their attempts stay Failed.
        """

        async def work() -> PipelineResult:
            reset = await self._reset_failed()
            if not reset:
                logger.info("No failed advertising records to retry")
                return PipelineResult()
            return await self._drain_locked()

        return await self._run_exclusive(work, "retry")

    async def get_pipeline_stats(self) -> PipelineStats:
        """Count records by status; zeros plus ``error`` on failure."""
        cached = await self._cache.get_json(STATS_CACHE_KEY)
        if cached is not None:
            return PipelineStats(**cached)

        try:
            async with self._storage_factory() as storage:
                counts = await storage.advertising.count_by_status()
        except Exception as exc:
            logger.error("Failed to load pipeline stats", exc_info=True)
            return PipelineStats(error=str(exc))

        stats = PipelineStats(
            pending=counts.get(AdvertisingStatus.PENDING.value, 0),
            completed=counts.get(AdvertisingStatus.DONE.value, 0),
            failed=counts.get(AdvertisingStatus.FAILED.value, 0),
            total=sum(counts.values()),
        )
        await self._cache.set_json(
            STATS_CACHE_KEY,
            stats.model_dump(exclude_none=True),
            ttl=settings.PIPELINE_STATS_CACHE_TTL,
        )
        return stats

    # ------------------------------------------------------------------
    # Batch plumbing
    # ------------------------------------------------------------------

    async def _run_exclusive(
        self, work: Callable[[], Awaitable[PipelineResult]], label: str
    ) -> PipelineResult:
        try:
            async with self._run_lock.hold():
                result = await work()
        except PipelineBusyError as exc:
            logger.warning("Pipeline %s skipped: %s", label, exc.detail)
            return PipelineResult(errors=[exc.detail])
        except Exception as exc:
            logger.error("Pipeline %s failed", label, exc_info=True)
            return PipelineResult(errors=[f"Pipeline {label} failed: {exc}"])

        await self._invalidate_stats()
        logger.info(
            "Pipeline %s complete: %d processed, %d succeeded, %d failed",
            label,
            result.processed_records,
            result.successful_generations,
            result.failed_generations,
        )
        return result

    async def _reset_failed(self) -> int:
        reset = 0
        async with self._storage_factory() as storage:
            failed = await storage.advertising.get_by_status(
                AdvertisingStatus.FAILED.value
            )
            for record in failed:
                exhausted = (
                    self._max_retry_attempts
                    and record.attempts >= self._max_retry_attempts
                )
                if exhausted:
                    logger.info(
                        "Advertising record %s exhausted %d attempts; not retrying",
                        record.id,
                        record.attempts,
                    )
                    continue
                await self._lifecycle.reset_to_pending(record.id, storage)
                reset += 1
            await storage.commit()
        logger.info("Reset %d failed advertising record(s) to Pending", reset)
        return reset

    async def _drain_locked(self) -> PipelineResult:
        result = PipelineResult()
        async with self._storage_factory() as storage:
            pending = await storage.advertising.get_by_status(
                AdvertisingStatus.PENDING.value
            )
            if not pending:
                return result

            record_ids = [record.id for record in pending]
            logger.info("Draining %d pending advertising record(s)", len(record_ids))

            for index, record_id in enumerate(record_ids):
                if not await self._run_lock.refresh():
                    result.errors.append(
                        "Pipeline lock lost; "
                        f"{len(record_ids) - index} record(s) left Pending"
                    )
                    break
                result.processed_records += 1
                try:
                    error = await self._process_record(record_id, storage)
                except Exception as exc:
                    logger.warning(
                        "Unexpected error processing advertising record %s",
                        record_id,
                        exc_info=True,
                    )
                    error = f"Record {record_id}: {exc}"
                    await self._mark_failed_safely(record_id, storage)

                if error is None:
                    result.successful_generations += 1
                else:
                    result.failed_generations += 1
                    result.errors.append(error)

                if index < len(record_ids) - 1:
                    await self._pacer.wait()

        return result

    # ------------------------------------------------------------------
    # Per-record processing
    # ------------------------------------------------------------------

    async def _process_record(
        self, record_id: int, storage: PipelineStorage
    ) -> Optional[str]:
        """Take one record to a terminal status; return an error or ``None``."""
        record = await storage.advertising.get_by_id(record_id)
        if record is None:
            return f"Record {record_id}: no longer exists"

        advertiser = await storage.advertisers.get_by_id(record.advertiser_id)
        if advertiser is None:
            return await self._fail(
                record, storage, f"Advertiser {record.advertiser_id} not found"
            )

        now = self._clock()
        script_outcome = await self._script_writer.try_generate(
            advertiser.display_name, advertiser.business_type, record.rule_id, now
        )
        if not script_outcome.ok:
            return await self._fail(
                record, storage, f"Script generation failed: {script_outcome.message}"
            )
        script = script_outcome.value

        audio = await storage.audio.create(
            advertising_id=record.id,
            text=script.script,
            variables={
                "ruleId": record.rule_id,
                "advertiserId": advertiser.id,
                "advertiserDisplayName": advertiser.display_name,
                "businessType": advertiser.business_type,
                "timestamp": localized_timestamp(now),
            },
            voice_type=script.voice_style.value,
            status=AudioStatus.pending.value,
            generated_at=now,
        )
        await storage.commit()

        try:
            return await self._voice_record(record, advertiser, script, audio, storage)
        except Exception:
            await self._fail_audio_safely(audio, storage)
            raise

    async def _voice_record(
        self,
        record: AdvertisingRecord,
        advertiser: Advertiser,
        script: ScriptResult,
        audio: Audio,
        storage: PipelineStorage,
    ) -> Optional[str]:
        rule = await storage.rules.get_by_rule_id(record.rule_id)
        if rule is None:
            await storage.audio.update(audio, status=AudioStatus.failed.value)
            return await self._fail(record, storage, f"Rule not found: {record.rule_id}")

        voice_settings = self._voice_selector.select_voice_settings(
            record.rule_id, rule.conditions
        )
        synthesis = await self._synthesizer.try_synthesize(
            script.script, script.voice_style.value, voice_settings, advertiser.name
        )
        if not synthesis.ok:
            await storage.audio.update(audio, status=AudioStatus.failed.value)
            return await self._fail(
                record, storage, f"Voice synthesis failed: {synthesis.message}"
            )

        audio_path = synthesis.value.audio_path
        await storage.audio.update(
            audio,
            status=AudioStatus.completed.value,
            audio_url=audio_path,
            duration_seconds=estimate_duration_seconds(synthesis.value.file_size),
            synthesized_at=self._clock(),
        )
        await self._lifecycle.update_status(
            record.id, AdvertisingStatus.DONE.value, storage, audio_path=audio_path
        )
        await storage.commit()
        logger.info("Advertising record %s completed: %s", record.id, audio_path)
        return None

    async def _fail(
        self, record: AdvertisingRecord, storage: PipelineStorage, reason: str
    ) -> str:
        message = f"Record {record.id} ({record.rule_id}): {reason}"
        logger.warning("Advertising record failed - %s", message)
        await self._lifecycle.update_status(
            record.id, AdvertisingStatus.FAILED.value, storage
        )
        await storage.commit()
        return message

    async def _fail_audio_safely(self, audio: Audio, storage: PipelineStorage) -> None:
        try:
            await storage.rollback()
            await storage.audio.update(audio, status=AudioStatus.failed.value)
            await storage.commit()
        except Exception:
            logger.error(
                "Could not mark audio %s as failed", audio.id, exc_info=True
            )
            await storage.rollback()

    async def _mark_failed_safely(self, record_id: int, storage: PipelineStorage) -> None:
        try:
            await storage.rollback()
            await self._lifecycle.update_status(
                record_id, AdvertisingStatus.FAILED.value, storage
            )
            await storage.commit()
        except Exception:
            logger.error(
                "Could not mark advertising record %s as Failed",
                record_id,
                exc_info=True,
            )
            await storage.rollback()

    async def _invalidate_stats(self) -> None:
        await self._cache.delete(STATS_CACHE_KEY)
