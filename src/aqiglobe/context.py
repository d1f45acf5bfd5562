"""Simulation context — owns the engine state and wires triggers to the store.

One SimulationContext is created per session and handed to the renderer,
the input handlers and the refresh tasks. There is no module-level state.

Refresh triggers (timer, year selector, city search) each run as their own
task. Each draws its sequence number *before* awaiting the fetch, and the
store drops any result older than one of the same kind it has already
applied. Searches and bulk loads compose by key, so neither discards the other.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Coroutine, Iterable

from aqiglobe.config import EngineConfig
from aqiglobe.models import (
    SEARCH_MARKER_KEY,
    HotspotRecord,
    RotationState,
    SourceKind,
    StoreSnapshot,
)
from aqiglobe.narrative import AQIExplanation, explain
from aqiglobe.predict import project_year
from aqiglobe.rotation import RotationClock
from aqiglobe.sources import DataSourceAdapter, DataSourceError
from aqiglobe.store import HotspotStore, SequenceCounter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """Everything a renderer needs for one frame."""

    snapshot: StoreSnapshot
    rotation: RotationState


@dataclass(frozen=True)
class SearchSelection:
    """Last city the user searched for, as fetched in the reference year."""

    record: HotspotRecord  # Keyed SEARCH_MARKER_KEY
    base_aqi: float


class SimulationContext:
    def __init__(
        self,
        config: EngineConfig,
        adapter: DataSourceAdapter | None = None,
        store: HotspotStore | None = None,
        clock: RotationClock | None = None,
    ) -> None:
        self.config = config
        self.adapter = adapter if adapter is not None else DataSourceAdapter(config)
        self.store = store if store is not None else HotspotStore()
        self.clock = (
            clock
            if clock is not None
            else RotationClock(
                speed=config.default_speed,
                real_time=config.start_real_time,
                min_speed=config.min_speed,
                max_speed=config.max_speed,
            )
        )
        self.sequence = SequenceCounter()
        self.selected_year = config.clamp_year(config.reference_year)
        self.search: SearchSelection | None = None
        self.last_search_error: str | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # --- Per-frame ---

    def frame(self, delta_seconds: float) -> Frame:
        """Advance the rotation and return the state to draw. Never blocks."""
        rotation = self.clock.advance(delta_seconds)
        return Frame(snapshot=self.store.snapshot(), rotation=rotation)

    # --- Refresh triggers ---

    async def refresh(self) -> bool:
        """Periodic refresh: reload whatever the selected year shows."""
        return await self._load_year(self.selected_year)

    async def select_year(self, year: int) -> bool:
        """Year selector input. Out-of-range years are clamped to the configured bounds."""
        self.selected_year = self.config.clamp_year(year)
        return await self._load_year(self.selected_year)

    async def _load_year(self, year: int) -> bool:
        sequence = self.sequence.next()
        if year == self.config.reference_year:
            records = await self.adapter.fetch_live()
        else:
            records = await self.adapter.fetch_year_prediction(year)
        return self._apply_bulk(records, sequence, year)

    async def search_city(self, query: str) -> HotspotRecord | None:
        """City search input. Places the search marker on success.

        Returns:
            The marker record if it was applied, otherwise None (lookup
            failed, see ``last_search_error``, or a newer search already placed
            the marker).
        """
        sequence = self.sequence.next()
        try:
            record = await self.adapter.fetch_current(query)
        except DataSourceError as e:
            logger.info("Search for %r failed: %s", query, e)
            self.last_search_error = str(e)
            return None
        self.last_search_error = None

        selection = SearchSelection(
            record=HotspotRecord(
                key=SEARCH_MARKER_KEY,
                coordinate=record.coordinate,
                aqi=record.aqi,
                display_name=record.display_name,
                info_text=record.info_text,
                source_kind=record.source_kind,
            ),
            base_aqi=record.aqi,
        )
        marker = self._marker_for(selection, self.selected_year)
        if not self.store.upsert_single(marker, sequence):
            return None
        self.search = selection
        return marker

    def _apply_bulk(self, records: Iterable[HotspotRecord], sequence: int, year: int) -> bool:
        batch = list(records)
        if self.search is not None:
            # replace_all drops keys it is not given; carry the marker over
            batch.append(self._marker_for(self.search, year))
        applied = self.store.replace_all(batch, sequence)
        if applied:
            logger.info("Applied %d hotspots for %d (sequence %d)", len(batch), year, sequence)
        return applied

    def _marker_for(self, selection: SearchSelection, year: int) -> HotspotRecord:
        if year == self.config.reference_year:
            return selection.record
        base = selection.record
        projection = project_year(selection.base_aqi, base.display_name, year, self.config.reference_year)
        return HotspotRecord(
            key=SEARCH_MARKER_KEY,
            coordinate=base.coordinate,
            aqi=projection.aqi,
            display_name=base.display_name,
            info_text=f"Predicted AQI: {projection.aqi}\nCity: {base.display_name}\nYear: {year}",
            source_kind=SourceKind.PREDICTION,
        )

    def reset(self) -> None:
        """Empty the store and forget the search marker."""
        self.store.clear()
        self.search = None
        self.last_search_error = None

    # --- Hit-test lookups ---

    def tooltip_for(self, key: str) -> AQIExplanation | None:
        record = self.store.get(key)
        if record is None:
            return None
        year = (
            self.selected_year
            if record.source_kind is SourceKind.PREDICTION
            else self.config.reference_year
        )
        return explain(record.display_name, record.aqi, year, self.config.reference_year)

    # --- Task management ---

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a trigger as an independent task. Must be called inside a running loop."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Refresh task failed", exc_info=task.exception())

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every spawned task to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def run_refresh_loop(self, stop: asyncio.Event | None = None) -> None:
        """Spawn refresh() every ``config.refresh_interval`` seconds until ``stop`` is set."""
        while stop is None or not stop.is_set():
            self.spawn(self.refresh())
            if stop is None:
                await asyncio.sleep(self.config.refresh_interval)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.config.refresh_interval)
            except asyncio.TimeoutError:
                pass
