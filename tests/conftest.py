"""
Shared fixtures for the aqiglobe tests.

No test touches the network: HTTP goes through httpx.MockTransport and the
context tests use an in-memory adapter whose fetches the test resolves by
hand, in whatever order it wants.
"""

import asyncio
from typing import Any

import matplotlib
import pytest

matplotlib.use("Agg")

from aqiglobe.config import EngineConfig  # noqa: E402
from aqiglobe.models import GeoCoordinate, HotspotRecord, SourceKind  # noqa: E402

REFERENCE_YEAR = 2025


def make_record(
    key: str,
    aqi: float = 42,
    lat: float = 0.0,
    lng: float = 0.0,
    kind: SourceKind = SourceKind.LIVE,
    name: str | None = None,
) -> HotspotRecord:
    return HotspotRecord(
        key=key,
        coordinate=GeoCoordinate(lat, lng),
        aqi=aqi,
        display_name=name or key.title(),
        info_text=f"AQI: {aqi}",
        source_kind=kind,
    )


@pytest.fixture()
def config() -> EngineConfig:
    return EngineConfig(
        waqi_token="test-token",
        waqi_base_url="https://waqi.test/feed",
        prediction_api_key="test-key",
        prediction_base_url="https://predict.test",
        reference_year=REFERENCE_YEAR,
        refresh_interval=0.01,
    )


@pytest.fixture()
def offline_config() -> EngineConfig:
    """No tokens: live feed and remote predictions are both disabled."""
    return EngineConfig(reference_year=REFERENCE_YEAR)


class GatedAdapter:
    """DataSourceAdapter stand-in. Every fetch blocks until the test resolves it."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, asyncio.Future]] = []

    async def _wait(self, kind: str, arg: Any) -> Any:
        fut = asyncio.get_running_loop().create_future()
        self.calls.append((kind, arg, fut))
        return await fut

    async def fetch_live(self) -> list[HotspotRecord]:
        return await self._wait("live", None)

    async def fetch_year_prediction(self, year: int) -> list[HotspotRecord]:
        return await self._wait("year", year)

    async def fetch_current(self, city: str) -> HotspotRecord:
        return await self._wait("current", city)

    async def wait_for_calls(self, n: int) -> None:
        for _ in range(100):
            if len(self.calls) >= n:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {n} fetches, saw {len(self.calls)}")

    def resolve(self, index: int, result: Any) -> None:
        self.calls[index][2].set_result(result)

    def fail(self, index: int, exc: BaseException) -> None:
        self.calls[index][2].set_exception(exc)


@pytest.fixture()
def gated_adapter() -> GatedAdapter:
    return GatedAdapter()
