import logging
from typing import List, Optional

from adcast.core.config import settings
from adcast.repositories.storage import PipelineStorage
from adcast.schemas.common import AdvertisingStatus
from adcast.schemas.environment import (
    EnvironmentalSnapshot,
    EvaluationContext,
    TimeContext,
    TrafficContext,
    WeatherContext,
    localized_timestamp,
)
from adcast.schemas.pipeline import MatchedRuleWithRecordId
from adcast.services.condition_engine import ConditionEngine

logger = logging.getLogger(__name__)


def build_evaluation_context(
    snapshot: EnvironmentalSnapshot, default_humidity: Optional[float] = None
) -> EvaluationContext:
    """Reshape a flat snapshot into the nested weather/time/traffic context.

    Readings are copied verbatim; only a missing humidity is filled in
    from *default_humidity* (``DEFAULT_HUMIDITY_PERCENT`` by default).
    """
    if default_humidity is None:
        default_humidity = settings.DEFAULT_HUMIDITY_PERCENT
    humidity = (
        snapshot.humidity_percent
        if snapshot.humidity_percent is not None
        else default_humidity
    )

    return EvaluationContext(
        weather=WeatherContext(
            timestamp=snapshot.timestamp,
            temperature_c=snapshot.temperature,
            humidity_percent=humidity,
            condition=snapshot.weather_condition,
            uv_index=snapshot.uv_index,
            aqi=snapshot.air_quality_index,
            flood_alerts=list(snapshot.flood_alerts),
        ),
        time_based=TimeContext(
            timestamp=snapshot.timestamp,
            local_time=localized_timestamp(snapshot.timestamp),
            hour_of_day=snapshot.hour_of_day,
            minute_of_hour=snapshot.minute_of_hour,
            day_of_week=snapshot.day_of_week,
            is_weekend=snapshot.is_weekend,
            is_business_hours=snapshot.is_business_hours,
            is_peak_hours=snapshot.is_peak_hours,
            time_category=snapshot.time_category,
        ),
        traffic=TrafficContext(
            timestamp=snapshot.timestamp,
            congestion_level=snapshot.traffic_congestion_level,
        ),
    )


class RuleMatcher:
    """Turn a snapshot into Pending advertising records, one per match.

    Each record is committed on its own so that a failure creating one
    match never undoes or blocks the others.
    """

    def __init__(
        self,
        engine: Optional[ConditionEngine] = None,
        default_humidity: Optional[float] = None,
    ) -> None:
        self._engine = engine or ConditionEngine()
        self._default_humidity = default_humidity

    async def process_snapshot(
        self, snapshot: EnvironmentalSnapshot, storage: PipelineStorage
    ) -> List[MatchedRuleWithRecordId]:
        """Evaluate *snapshot* and create one Pending record per match.

        Returns the records that were created, paired with their match
        metadata.  The list is informational; the orchestrator re-reads
        Pending records from storage before draining.
        """
        context = build_evaluation_context(snapshot, self._default_humidity)
        rules = await storage.rules.get_active_rules()
        matches = self._engine.evaluate_conditions(context, rules)
        logger.info("Snapshot matched %d rule(s)", len(matches))

        created: List[MatchedRuleWithRecordId] = []
        for match in matches:
            try:
                record = await storage.advertising.create(
                    rule_id=match.rule_id,
                    advertiser_id=match.advertiser.id,
                    audio_file=None,
                    status=AdvertisingStatus.PENDING.value,
                    priority=match.priority,
                    attempts=0,
                )
                await storage.commit()
            except Exception:
                await storage.rollback()
                logger.warning(
                    "Failed to create advertising record for advertiser %s, rule %s",
                    match.advertiser.id,
                    match.rule_id,
                    exc_info=True,
                )
                continue

            created.append(
                MatchedRuleWithRecordId(**match.model_dump(), advertising_id=record.id)
            )
            logger.info(
                "Created advertising record %s for advertiser %s, rule %s",
                record.id,
                match.advertiser.display_name,
                match.rule_id,
            )

        logger.info("Successfully created %d advertising record(s)", len(created))
        return created
