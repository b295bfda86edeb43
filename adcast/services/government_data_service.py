import logging
from datetime import datetime, timezone
from statistics import mean
from typing import Any, Dict, List, Optional

import httpx

from adcast.core.config import settings
from adcast.core.constants import LOCATION_NAME
from adcast.core.exceptions import GovernmentDataUnavailableError
from adcast.models.government_data import GovernmentData
from adcast.repositories.storage import PipelineStorage
from adcast.schemas.environment import EnvironmentalSnapshot

logger = logging.getLogger(__name__)

# Used when the temperature feed is down; the forecast feed is mandatory
_FALLBACK_TEMPERATURE_C = 30.0


def _reading_values(payload: Dict[str, Any]) -> List[float]:
    items = payload.get("items") or []
    if not items:
        return []
    return [float(r["value"]) for r in items[0].get("readings", []) if "value" in r]


class GovernmentDataService:
    """Fetch Singapore environmental readings from data.gov.sg.

    Station readings are averaged island-wide.  Only the 2-hour
    forecast is required; temperature, humidity, UV and PSI fall back
    to defaults when their feed is unavailable.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.GOVERNMENT_DATA_BASE_URL).rstrip("/")
        self._timeout = (
            timeout if timeout is not None else settings.GOVERNMENT_DATA_TIMEOUT_SECONDS
        )
        self._transport = transport

    async def _get(self, client: httpx.AsyncClient, path: str) -> Dict[str, Any]:
        url = f"{self._base_url}/{path}"
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException:
            logger.error("Government data request timed out: %s", url)
            raise GovernmentDataUnavailableError(f"{path} timed out")
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Government data returned %s: %s", exc.response.status_code, url
            )
            raise GovernmentDataUnavailableError(
                f"{path} returned {exc.response.status_code}"
            )
        except httpx.HTTPError as exc:
            logger.error("Government data unreachable: %s: %s", url, exc)
            raise GovernmentDataUnavailableError(f"{path} unavailable")

    async def _get_optional(
        self, client: httpx.AsyncClient, path: str
    ) -> Optional[Dict[str, Any]]:
        try:
            return await self._get(client, path)
        except GovernmentDataUnavailableError:
            logger.warning("Optional feed %s unavailable; using default", path)
            return None

    async def fetch_snapshot(self) -> EnvironmentalSnapshot:
        """Fetch current readings and return them as one snapshot."""
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            forecast = await self._get(client, "2-hour-weather-forecast")
            temperature = await self._get_optional(client, "air-temperature")
            humidity = await self._get_optional(client, "relative-humidity")
            uv = await self._get_optional(client, "uv-index")
            psi = await self._get_optional(client, "psi")

        forecasts = (forecast.get("items") or [{}])[0].get("forecasts") or []
        if not forecasts:
            raise GovernmentDataUnavailableError("No weather forecast available")
        condition = forecasts[0].get("forecast", "")

        temps = _reading_values(temperature or {})
        humidities = _reading_values(humidity or {})

        uv_index = 0.0
        if uv and uv.get("items"):
            index = uv["items"][0].get("index") or []
            if index:
                uv_index = float(index[0].get("value", 0))

        aqi: Optional[float] = None
        if psi and psi.get("items"):
            readings = psi["items"][0].get("readings", {})
            national = readings.get("psi_twenty_four_hourly", {}).get("national")
            if national is not None:
                aqi = float(national)

        snapshot = EnvironmentalSnapshot(
            temperature=round(mean(temps), 1) if temps else _FALLBACK_TEMPERATURE_C,
            weather_condition=condition,
            uv_index=uv_index,
            humidity_percent=round(mean(humidities), 1) if humidities else None,
            air_quality_index=aqi,
            timestamp=datetime.now(timezone.utc),
        )
        logger.info(
            "Fetched government data: %s°C, %s, UV %s, AQI %s",
            snapshot.temperature,
            snapshot.weather_condition,
            snapshot.uv_index,
            snapshot.air_quality_index,
        )
        return snapshot

    async def record_snapshot(
        self, snapshot: EnvironmentalSnapshot, storage: PipelineStorage
    ) -> GovernmentData:
        """Store *snapshot* in the ``government_data`` history table."""
        row = await storage.government_data.create(
            source="data.gov.sg",
            raw_data=snapshot.model_dump(mode="json"),
            temperature=snapshot.temperature,
            humidity=snapshot.humidity_percent,
            condition=snapshot.weather_condition,
            uv_index=snapshot.uv_index,
            aqi=snapshot.air_quality_index,
            location=LOCATION_NAME,
        )
        await storage.commit()
        return row
