import asyncio
import math

import pytest

from aqiglobe.context import SimulationContext
from aqiglobe.models import SEARCH_MARKER_KEY, SourceKind
from aqiglobe.narrative import DataKind
from aqiglobe.sources import NotFound
from conftest import REFERENCE_YEAR, make_record


@pytest.fixture()
def ctx(config, gated_adapter):
    return SimulationContext(config, adapter=gated_adapter)


def beijing(kind=SourceKind.MOCK):
    return make_record("beijing", aqi=120, lat=39.9042, lng=116.4074, kind=kind, name="Beijing")


async def test_slow_live_refresh_cannot_overwrite_newer_year(ctx, gated_adapter):
    live = ctx.spawn(ctx.refresh())
    await gated_adapter.wait_for_calls(1)
    year = ctx.spawn(ctx.select_year(2030))
    await gated_adapter.wait_for_calls(2)

    # The year fetch finishes first, then the older live fetch
    gated_adapter.resolve(1, [make_record("delhi", aqi=140, kind=SourceKind.PREDICTION)])
    await year
    gated_adapter.resolve(0, [make_record("london", aqi=30)])
    await ctx.drain()

    assert year.result() is True
    assert live.result() is False
    snap = ctx.store.snapshot()
    assert list(snap.records) == ["delhi"]
    assert snap.applied_sequence == 2
    assert ctx.store.rejected_writes == 1


async def test_in_order_completion_keeps_latest(ctx, gated_adapter):
    ctx.spawn(ctx.refresh())
    await gated_adapter.wait_for_calls(1)
    ctx.spawn(ctx.select_year(2030))
    await gated_adapter.wait_for_calls(2)

    gated_adapter.resolve(0, [make_record("london")])
    await asyncio.sleep(0)
    gated_adapter.resolve(1, [make_record("paris", kind=SourceKind.PREDICTION)])
    await ctx.drain()

    assert list(ctx.store.snapshot().records) == ["paris"]


async def test_year_routes_to_the_right_fetch(ctx, gated_adapter):
    ctx.spawn(ctx.select_year(2031))
    ctx.spawn(ctx.select_year(REFERENCE_YEAR))
    await gated_adapter.wait_for_calls(2)
    assert [(kind, arg) for kind, arg, _ in gated_adapter.calls] == [("year", 2031), ("live", None)]
    gated_adapter.resolve(0, [])
    gated_adapter.resolve(1, [])
    await ctx.drain()


async def test_empty_result_still_replaces(ctx, gated_adapter):
    ctx.store.replace_all([make_record("old")], 0)
    ctx.spawn(ctx.refresh())
    await gated_adapter.wait_for_calls(1)
    gated_adapter.resolve(0, [])
    await ctx.drain()

    assert len(ctx.store.snapshot()) == 0
    assert ctx.store.applied_sequence == 1


async def test_year_is_clamped(ctx, gated_adapter):
    ctx.spawn(ctx.select_year(1990))
    await gated_adapter.wait_for_calls(1)
    assert ctx.selected_year == 2023
    assert gated_adapter.calls[0][1] == 2023
    gated_adapter.resolve(0, [])
    await ctx.drain()


async def test_search_places_marker(ctx, gated_adapter):
    task = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(1)
    assert gated_adapter.calls[0][:2] == ("current", "Beijing")
    gated_adapter.resolve(0, beijing())
    marker = await task

    assert marker.key == SEARCH_MARKER_KEY
    assert marker.display_name == "Beijing"
    assert ctx.store.get(SEARCH_MARKER_KEY) == marker
    assert ctx.search is not None and ctx.search.base_aqi == 120


async def test_marker_survives_refresh_and_follows_year(ctx, gated_adapter):
    task = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(1)
    gated_adapter.resolve(0, beijing())
    await task

    ctx.spawn(ctx.select_year(2030))
    await gated_adapter.wait_for_calls(2)
    gated_adapter.resolve(1, [make_record("paris", kind=SourceKind.PREDICTION)])
    await ctx.drain()

    marker = ctx.store.get(SEARCH_MARKER_KEY)
    assert marker.aqi == 112
    assert marker.source_kind is SourceKind.PREDICTION
    assert "paris" in ctx.store.snapshot()

    ctx.spawn(ctx.select_year(REFERENCE_YEAR))
    await gated_adapter.wait_for_calls(3)
    gated_adapter.resolve(2, [])
    await ctx.drain()

    marker = ctx.store.get(SEARCH_MARKER_KEY)
    assert marker.aqi == 120
    assert marker.source_kind is SourceKind.MOCK
    assert len(ctx.store.snapshot()) == 1


async def test_search_in_future_year_is_projected(ctx, gated_adapter):
    ctx.selected_year = 2030
    task = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(1)
    gated_adapter.resolve(0, beijing(kind=SourceKind.LIVE))
    marker = await task
    assert marker.aqi == 112
    assert "Year: 2030" in marker.info_text


async def test_search_failure_is_reported(ctx, gated_adapter):
    task = ctx.spawn(ctx.search_city("Atlantis"))
    await gated_adapter.wait_for_calls(1)
    gated_adapter.fail(0, NotFound("no station for 'Atlantis'"))

    assert await task is None
    assert ctx.last_search_error == "no station for 'Atlantis'"
    assert ctx.search is None
    assert len(ctx.store.snapshot()) == 0


async def test_search_survives_refresh_that_finishes_first(ctx, gated_adapter):
    search = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(1)
    ctx.spawn(ctx.refresh())
    await gated_adapter.wait_for_calls(2)

    gated_adapter.resolve(1, [make_record("london")])
    await asyncio.sleep(0)
    gated_adapter.resolve(0, beijing())
    await ctx.drain()

    assert search.result() is not None
    assert ctx.search is not None
    assert ctx.last_search_error is None
    assert set(ctx.store.snapshot().records) == {"london", SEARCH_MARKER_KEY}


async def test_year_load_survives_search_that_finishes_first(ctx, gated_adapter):
    ctx.spawn(ctx.select_year(2030))
    await gated_adapter.wait_for_calls(1)
    search = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(2)

    gated_adapter.resolve(1, beijing())
    await search
    gated_adapter.resolve(0, [make_record("delhi", aqi=140, kind=SourceKind.PREDICTION)])
    await ctx.drain()

    snap = ctx.store.snapshot()
    assert set(snap.records) == {"delhi", SEARCH_MARKER_KEY}
    assert snap.get(SEARCH_MARKER_KEY).aqi == 112
    assert ctx.tooltip_for("delhi").year == 2030


async def test_older_search_loses_to_newer_search(ctx, gated_adapter):
    first = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(1)
    second = ctx.spawn(ctx.search_city("Paris"))
    await gated_adapter.wait_for_calls(2)

    gated_adapter.resolve(1, make_record("paris", aqi=60, lat=48.86, lng=2.35, kind=SourceKind.MOCK, name="Paris"))
    await second
    gated_adapter.resolve(0, beijing())
    await ctx.drain()

    assert first.result() is None
    assert ctx.store.get(SEARCH_MARKER_KEY).display_name == "Paris"
    assert ctx.search.base_aqi == 60


def test_frame_advances_rotation(ctx):
    first = ctx.frame(86.164)
    assert first.rotation.angle == pytest.approx(2 * math.pi)
    assert first.snapshot is ctx.store.snapshot()
    ctx.clock.drag(100, 0)
    second = ctx.frame(0)
    assert second.rotation.angle == first.rotation.angle
    assert second.rotation.user_yaw == pytest.approx(0.5)


def test_tooltip_uses_record_kind_for_year(ctx):
    ctx.selected_year = 2030
    ctx.store.replace_all(
        [
            make_record("delhi", aqi=180, kind=SourceKind.PREDICTION, name="Delhi"),
            make_record("oslo", aqi=20, kind=SourceKind.LIVE, name="Oslo"),
        ],
        1,
    )
    predicted = ctx.tooltip_for("delhi")
    assert predicted.data_kind is DataKind.PREDICTION
    assert predicted.year == 2030
    assert predicted.band.level == "Unhealthy"
    assert len(predicted.reasoning) == 3

    live = ctx.tooltip_for("oslo")
    assert live.data_kind is DataKind.LIVE
    assert live.reasoning == ()

    assert ctx.tooltip_for("missing") is None


async def test_reset_keeps_sequence(ctx, gated_adapter):
    task = ctx.spawn(ctx.search_city("Beijing"))
    await gated_adapter.wait_for_calls(1)
    gated_adapter.resolve(0, beijing())
    await task

    ctx.reset()
    assert len(ctx.store.snapshot()) == 0
    assert ctx.search is None
    assert ctx.store.applied_sequence == 1


class CountingAdapter:
    def __init__(self):
        self.live_calls = 0

    async def fetch_live(self):
        self.live_calls += 1
        return [make_record("london")]

    async def fetch_year_prediction(self, year):
        return []

    async def fetch_current(self, city):
        raise NotFound(city)


async def test_refresh_loop_runs_until_stopped(config):
    adapter = CountingAdapter()
    ctx = SimulationContext(config, adapter=adapter)
    stop = asyncio.Event()
    loop = asyncio.create_task(ctx.run_refresh_loop(stop))
    await asyncio.sleep(config.refresh_interval * 5)
    stop.set()
    await loop
    await ctx.drain()

    assert adapter.live_calls >= 2
    assert ctx.pending_tasks == 0
    assert "london" in ctx.store.snapshot()


class ExplodingAdapter(CountingAdapter):
    async def fetch_live(self):
        raise RuntimeError("boom")


async def test_failed_task_is_logged(config, caplog):
    ctx = SimulationContext(config, adapter=ExplodingAdapter())
    ctx.spawn(ctx.refresh())
    await ctx.drain()
    assert "Refresh task failed" in caplog.text
    assert ctx.pending_tasks == 0
