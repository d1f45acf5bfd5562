"""Year projection model — per-city AQI drift from a base reading to a target year.

The model is deliberately simple and fully deterministic:

    year_diff = target_year - reference_year
    raw = base + year_diff * trend_per_year
              + sin(year_diff * 0.5) * volatility * base * 0.1

clamped to [5, 500] and rounded to an integer. The sine term is a fixed
shaping function of year_diff, not noise, and makes no claim about real
atmospheric variance.
"""

import math
from dataclasses import dataclass

from aqiglobe.cities import POPULAR_CITIES, city_key, lookup_city
from aqiglobe.models import Baseline, CityTrendProfile, HotspotRecord, SourceKind

PREDICTION_MIN = 5
PREDICTION_MAX = 500

# Used for any city without an entry in CITY_TREND_PROFILES
DEFAULT_TREND_PROFILE = CityTrendProfile(
    trend_per_year=-0.8, volatility=0.3, baseline=Baseline.MODERATE
)


def _p(trend: float, volatility: float, baseline: Baseline) -> CityTrendProfile:
    return CityTrendProfile(trend_per_year=trend, volatility=volatility, baseline=baseline)


CITY_TREND_PROFILES: dict[str, CityTrendProfile] = {
    "beijing": _p(-2, 0.3, Baseline.HIGH),
    "delhi": _p(-1.5, 0.4, Baseline.VERY_HIGH),
    "mumbai": _p(-1, 0.3, Baseline.HIGH),
    "lahore": _p(-0.5, 0.5, Baseline.VERY_HIGH),
    "dhaka": _p(-0.8, 0.4, Baseline.VERY_HIGH),
    "cairo": _p(-1.2, 0.3, Baseline.HIGH),
    "jakarta": _p(-0.7, 0.3, Baseline.MODERATE),
    "mexico city": _p(-1.8, 0.2, Baseline.MODERATE),
    "bangkok": _p(-1, 0.3, Baseline.MODERATE),
    "seoul": _p(-2.5, 0.2, Baseline.MODERATE),
    "london": _p(-0.5, 0.1, Baseline.LOW),
    "paris": _p(-0.8, 0.15, Baseline.LOW),
    "new york": _p(-1, 0.2, Baseline.MODERATE),
    "tokyo": _p(-1.5, 0.15, Baseline.MODERATE),
    "sydney": _p(-0.3, 0.1, Baseline.LOW),
    "singapore": _p(-0.5, 0.2, Baseline.LOW),
    "stockholm": _p(-0.2, 0.1, Baseline.VERY_LOW),
    "vancouver": _p(-0.3, 0.15, Baseline.LOW),
    "moscow": _p(-1.2, 0.25, Baseline.MODERATE),
    "milan": _p(-1.5, 0.2, Baseline.MODERATE),
    "los angeles": _p(-2, 0.25, Baseline.MODERATE),
}


@dataclass(frozen=True)
class YearProjection:
    """Predicted AQI for one city and year, with the inputs that produced it."""

    aqi: int
    profile: CityTrendProfile
    year_diff: int

    @property
    def is_current_year(self) -> bool:
        return self.year_diff == 0


def profile_for(city: str) -> CityTrendProfile:
    """Return the trend profile for a city name, or DEFAULT_TREND_PROFILE."""
    return CITY_TREND_PROFILES.get(city_key(city), DEFAULT_TREND_PROFILE)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def predict(
    base_aqi: float,
    profile: CityTrendProfile,
    target_year: int,
    reference_year: int,
) -> int:
    """Project a base AQI reading to a target year.

    Args:
        base_aqi: AQI measured (or assumed) in the reference year.
        profile: City trend profile.
        target_year: Year to project to. May be before reference_year.
        reference_year: Year the base reading belongs to.

    Returns:
        Integer AQI in [5, 500].
    """
    year_diff = target_year - reference_year
    raw = (
        base_aqi
        + year_diff * profile.trend_per_year
        + math.sin(year_diff * 0.5) * profile.volatility * base_aqi * 0.1
    )
    clamped = max(PREDICTION_MIN, min(PREDICTION_MAX, raw))
    return _round_half_up(clamped)


def project_year(
    base_aqi: float, city: str, target_year: int, reference_year: int
) -> YearProjection:
    """predict() with the profile looked up by city name."""
    profile = profile_for(city)
    return YearProjection(
        aqi=predict(base_aqi, profile, target_year, reference_year),
        profile=profile,
        year_diff=target_year - reference_year,
    )


def forecast_cities(
    year: int,
    reference_year: int,
    cities: tuple[str, ...] = POPULAR_CITIES,
) -> list[HotspotRecord]:
    """Local deterministic forecast for a set of reference cities.

    Each city's reference AQI is projected with its trend profile. Cities not
    in the reference table are skipped. In the reference year the records are
    marked MOCK (reference readings) rather than PREDICTION.
    """
    kind = SourceKind.MOCK if year == reference_year else SourceKind.PREDICTION
    records: list[HotspotRecord] = []
    for name in cities:
        ref = lookup_city(name)
        if ref is None:
            continue
        projection = project_year(ref.reference_aqi, ref.name, year, reference_year)
        records.append(
            HotspotRecord(
                key=city_key(ref.name),
                coordinate=ref.coordinate,
                aqi=projection.aqi,
                display_name=ref.name,
                info_text=f"Predicted AQI: {projection.aqi}\nCity: {ref.name}\nYear: {year}",
                source_kind=kind,
            )
        )
    return records

