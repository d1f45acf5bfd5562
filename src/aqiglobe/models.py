"""Data model definitions — explicit boundaries between data sources, engine state, and renderers."""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from aqiglobe.aqi import AQI_MAX, AQI_MIN, AQICategory, classify

SEARCH_MARKER_KEY = "search-marker"


class SourceKind(str, Enum):
    LIVE = "Live"  # Measured by a monitoring station
    MOCK = "Mock"  # Static reference data
    PREDICTION = "Prediction"  # Output of a predictive provider


class Baseline(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class RotationMode(str, Enum):
    REAL_TIME = "real_time"  # Multiplier fixed at 1.0
    SCALED = "scaled"  # User-selected multiplier


@dataclass(frozen=True)
class GeoCoordinate:
    """A point on the globe in decimal degrees. Rejects out-of-range values."""

    lat: float  # Latitude, -90 (south) to 90 (north)
    lng: float  # Longitude, -180 (west) to 180 (east)

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and -90.0 <= self.lat <= 90.0):
            raise ValueError(f"latitude out of range: {self.lat}")
        if not (math.isfinite(self.lng) and -180.0 <= self.lng <= 180.0):
            raise ValueError(f"longitude out of range: {self.lng}")

    def __str__(self) -> str:
        return f"{self.lat:.2f}°, {self.lng:.2f}°"


@dataclass(frozen=True)
class HotspotRecord:
    """A located, classified AQI observation or prediction.

    category, color and size_weight are not constructor arguments: they are
    always derived from ``aqi`` so the three can never disagree.
    """

    key: str  # City identity, or SEARCH_MARKER_KEY for the interactive marker
    coordinate: GeoCoordinate
    aqi: float  # 0–500
    display_name: str
    info_text: str
    source_kind: SourceKind
    category: AQICategory = field(init=False)
    color_weight: tuple[float, float, float] = field(init=False)
    size_weight: float = field(init=False)

    def __post_init__(self) -> None:
        if not (math.isfinite(self.aqi) and AQI_MIN <= self.aqi <= AQI_MAX):
            raise ValueError(f"AQI out of range: {self.aqi}")
        c = classify(self.aqi)
        object.__setattr__(self, "category", c.category)
        object.__setattr__(self, "color_weight", c.color)
        object.__setattr__(self, "size_weight", c.size_weight)


@dataclass(frozen=True)
class CityTrendProfile:
    """Long-term drift parameters for one city. Static reference data."""

    trend_per_year: float  # AQI points per year (negative = improving)
    volatility: float  # Amplitude factor of the oscillation term, >= 0
    baseline: Baseline

    def __post_init__(self) -> None:
        if self.volatility < 0:
            raise ValueError(f"volatility must be >= 0: {self.volatility}")


@dataclass(frozen=True)
class RotationState:
    """Globe orientation. Written only by RotationClock; renderers read it."""

    angle: float = 0.0  # Absolute simulated spin (radians)
    user_yaw: float = 0.0  # Camera yaw offset from drag (radians, unbounded)
    user_pitch: float = 0.0  # Camera pitch offset from drag (radians, ±60°)
    mode: RotationMode = RotationMode.SCALED
    speed_multiplier: float = 1000.0  # Used only in SCALED mode

    @property
    def effective_multiplier(self) -> float:
        if self.mode is RotationMode.REAL_TIME:
            return 1.0
        return self.speed_multiplier

    @property
    def view_yaw(self) -> float:
        """Total yaw applied by the renderer: spin plus drag offset."""
        return self.angle + self.user_yaw


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view of HotspotStore at one applied sequence."""

    records: Mapping[str, HotspotRecord]
    applied_sequence: int

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, key: object) -> bool:
        return key in self.records

    def get(self, key: str) -> HotspotRecord | None:
        return self.records.get(key)

    def values(self) -> tuple[HotspotRecord, ...]:
        return tuple(self.records.values())


EMPTY_SNAPSHOT = StoreSnapshot(records=MappingProxyType({}), applied_sequence=0)
