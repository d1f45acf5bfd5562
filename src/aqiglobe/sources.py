"""Data source layer — live AQI readings and year predictions over HTTP.

Every call is a single attempt. Failures surface as DataSourceError
subclasses from the per-provider helpers; the adapter turns them into
fallback results (reference data, the next provider, or an empty list) so
nothing escapes to the render loop except the documented fetch_current()
errors.
"""

import asyncio
import logging
from typing import Any, Protocol, Sequence
from urllib.parse import quote

import httpx

from aqiglobe.aqi import clamp_aqi
from aqiglobe.cities import POPULAR_CITIES, ReferenceCity, city_key, lookup_city
from aqiglobe.config import EngineConfig
from aqiglobe.models import GeoCoordinate, HotspotRecord, SourceKind
from aqiglobe.predict import forecast_cities

logger = logging.getLogger(__name__)


class DataSourceError(Exception):
    """Data source call failure."""


class NotFound(DataSourceError):
    """Unknown city, or no station/prediction for it."""


class NetworkError(DataSourceError):
    """Transport failure or non-success HTTP status."""


class MalformedResponse(DataSourceError):
    """Payload missing expected fields."""


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    try:
        resp = await client.get(url, params=params, headers=headers)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        raise NetworkError(f"{url}: {e}") from e
    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponse(f"{url}: body is not JSON") from e


def reference_record(city: ReferenceCity) -> HotspotRecord:
    """Hotspot built from the static reference table."""
    return HotspotRecord(
        key=city_key(city.name),
        coordinate=city.coordinate,
        aqi=city.reference_aqi,
        display_name=city.name,
        info_text=f"Reference AQI: {city.reference_aqi}\nCity: {city.name}",
        source_kind=SourceKind.MOCK,
    )


class LiveFeedProvider:
    """World Air Quality Index city feed (https://aqicn.org/api/)."""

    def __init__(self, token: str, base_url: str) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")

    async def fetch(self, client: httpx.AsyncClient, query: str) -> HotspotRecord:
        """Single feed call for a free-text city query.

        Raises:
            NotFound: Feed status is not "ok" (unknown station).
            NetworkError: Transport or HTTP status failure.
            MalformedResponse: Missing aqi/geo/name fields.
        """
        url = f"{self._base_url}/{quote(query, safe='')}/"
        payload = await _get_json(client, url, params={"token": self._token})
        if not isinstance(payload, dict) or "status" not in payload:
            raise MalformedResponse(f"feed response for {query!r} has no status")
        if payload["status"] != "ok":
            raise NotFound(f"no station for {query!r}: {payload.get('data', payload['status'])}")
        try:
            data = payload["data"]
            aqi = clamp_aqi(float(data["aqi"]))
            lat, lng = data["city"]["geo"][:2]
            station = str(data["city"]["name"])
            coordinate = GeoCoordinate(float(lat), float(lng))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedResponse(f"feed response for {query!r}: {e!r}") from e

        ref = lookup_city(query)
        name = ref.name if ref is not None else station
        return HotspotRecord(
            key=city_key(name),
            coordinate=coordinate,
            aqi=aqi,
            display_name=name,
            info_text=f"AQI: {aqi:.0f}\nCity: {name}\nStation: {station}",
            source_kind=SourceKind.LIVE,
        )


class PredictionProvider(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient, year: int) -> list[HotspotRecord]: ...


class RemotePredictionProvider:
    """Remote predictive service: ``GET {base}/v1/predict?year=YYYY`` with a bearer key.

    Expects a JSON list of ``{lat, lng, aqi | predicted_aqi, city | name}``.
    Entries missing fields are skipped; a non-empty list with no usable entry
    is malformed, an empty list is NotFound.
    """

    name = "remote"

    def __init__(self, base_url: str, api_key: str) -> None:
        self._url = f"{base_url.rstrip('/')}/v1/predict"
        self._api_key = api_key

    async def fetch(self, client: httpx.AsyncClient, year: int) -> list[HotspotRecord]:
        payload = await _get_json(
            client,
            self._url,
            params={"year": year},
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        if not isinstance(payload, list):
            raise MalformedResponse(f"expected a list of predictions, got {type(payload).__name__}")
        if not payload:
            raise NotFound(f"no predictions for {year}")

        records: list[HotspotRecord] = []
        for entry in payload:
            record = _parse_prediction(entry, year)
            if record is not None:
                records.append(record)
        if not records:
            raise MalformedResponse(f"no usable prediction entries for {year}")
        return records


def _parse_prediction(entry: Any, year: int) -> HotspotRecord | None:
    try:
        name = str(entry.get("city") or entry["name"])
        raw_aqi = entry.get("aqi")
        if raw_aqi is None:
            raw_aqi = entry["predicted_aqi"]
        aqi = clamp_aqi(float(raw_aqi))
        coordinate = GeoCoordinate(float(entry["lat"]), float(entry["lng"]))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning("Skipping prediction entry %r: %r", entry, e)
        return None
    return HotspotRecord(
        key=city_key(name),
        coordinate=coordinate,
        aqi=aqi,
        display_name=name,
        info_text=f"Predicted AQI: {aqi:.0f}\nCity: {name}\nYear: {year}",
        source_kind=SourceKind.PREDICTION,
    )


class LocalModelProvider:
    """Deterministic in-process forecast (aqiglobe.predict). Never fails."""

    name = "local"

    def __init__(self, reference_year: int, cities: tuple[str, ...] = POPULAR_CITIES) -> None:
        self._reference_year = reference_year
        self._cities = cities

    async def fetch(self, client: httpx.AsyncClient, year: int) -> list[HotspotRecord]:
        return forecast_cities(year, self._reference_year, self._cities)


class DataSourceAdapter:
    """Entry point for everything the engine fetches.

    Args:
        config: Engine configuration (tokens, URLs, timeouts).
        providers: Ordered prediction providers. Defaults to the remote
            service (when a key is configured) followed by the local model.
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
    """

    def __init__(
        self,
        config: EngineConfig,
        providers: Sequence[PredictionProvider] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._live = (
            LiveFeedProvider(config.waqi_token, config.waqi_base_url)
            if config.waqi_token
            else None
        )
        if providers is None:
            default: list[PredictionProvider] = []
            if config.prediction_enabled:
                default.append(
                    RemotePredictionProvider(config.prediction_base_url, config.prediction_api_key)
                )
            default.append(LocalModelProvider(config.reference_year))
            providers = default
        self.providers: tuple[PredictionProvider, ...] = tuple(providers)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._config.request_timeout, transport=self._transport)

    async def fetch_current(self, city: str) -> HotspotRecord:
        """Current AQI for a free-text city query.

        Known reference cities fall back to their reference reading when the
        live feed is unavailable or fails.

        Raises:
            NotFound: Empty query, or unknown city with no live station.
            NetworkError: Live feed failed and the city is not a known one.
            MalformedResponse: Live feed payload unusable and the city is unknown.
        """
        query = " ".join(city.split())
        if not query:
            raise NotFound("empty city query")
        ref = lookup_city(query)
        if self._live is None:
            if ref is None:
                raise NotFound(f"{query!r} is not a known city and no live feed is configured")
            return reference_record(ref)

        async with self._client() as client:
            try:
                return await self._live.fetch(client, query)
            except DataSourceError as e:
                if ref is None:
                    raise
                logger.info("Live lookup for %r failed (%s); using reference data", query, e)
                return reference_record(ref)

    async def fetch_live(self, cities: Sequence[str] = POPULAR_CITIES) -> list[HotspotRecord]:
        """Current readings for a set of cities, fetched concurrently.

        Cities whose lookup fails are left out. When no live feed is
        configured, or every lookup fails, reference readings are returned.
        Never raises DataSourceError.
        """
        if self._live is not None:
            async with self._client() as client:
                results = await asyncio.gather(
                    *(self._fetch_one(client, name) for name in cities)
                )
            records = [r for r in results if r is not None]
            if records:
                return records
            logger.warning("All %d live lookups failed; using reference data", len(cities))

        refs = (lookup_city(name) for name in cities)
        return [reference_record(r) for r in refs if r is not None]

    async def _fetch_one(self, client: httpx.AsyncClient, name: str) -> HotspotRecord | None:
        assert self._live is not None
        try:
            return await self._live.fetch(client, name)
        except DataSourceError as e:
            logger.warning("Live lookup for %r failed: %s", name, e)
            return None

    async def fetch_year_prediction(self, year: int) -> list[HotspotRecord]:
        """Predicted hotspots for a year from the first provider that succeeds.

        Returns an empty list when every provider fails. Never raises
        DataSourceError.
        """
        async with self._client() as client:
            for provider in self.providers:
                try:
                    records = await provider.fetch(client, year)
                except DataSourceError as e:
                    logger.warning("Prediction provider %r failed for %d: %s", provider.name, year, e)
                    continue
                logger.info("Prediction provider %r returned %d hotspots for %d", provider.name, len(records), year)
                return records
        logger.error("All prediction providers failed for %d", year)
        return []
