"""Plain-language AQI explanations for the tooltip / side panel.

Template-based and deterministic. Uses the five US EPA health bands, which
are finer than the three display categories in aqiglobe.aqi.
"""

from dataclasses import dataclass
from enum import Enum

from aqiglobe.aqi import clamp_aqi
from aqiglobe.cities import city_key


class DataKind(str, Enum):
    LIVE = "Live Data"
    PREDICTION = "Prediction"
    HISTORICAL = "Historical Estimate"


@dataclass(frozen=True)
class HealthBand:
    upper: float  # Inclusive upper AQI bound
    level: str
    description: str
    health_effects: str
    recommendations: str
    causes: str


_BANDS: tuple[HealthBand, ...] = (
    HealthBand(
        50,
        "Good",
        "Air quality is considered satisfactory, and air pollution poses little or no risk.",
        "Air quality is acceptable for most people.",
        "Outdoor exercise and recreation are fine.",
        "Favorable weather, effective emission controls and natural air circulation.",
    ),
    HealthBand(
        100,
        "Moderate",
        "Air quality is acceptable; some pollutants may concern a small number of sensitive people.",
        "Unusually sensitive people may experience minor breathing discomfort.",
        "Sensitive individuals should consider reducing prolonged outdoor exertion.",
        "Vehicle emissions, industrial activity, seasonal weather or construction dust.",
    ),
    HealthBand(
        150,
        "Unhealthy for Sensitive Groups",
        "Members of sensitive groups may experience health effects.",
        "People with heart or lung disease, older adults and children may experience symptoms.",
        "Sensitive groups should avoid outdoor activity; others should limit prolonged exertion.",
        "Traffic congestion, industrial and power plant emissions, wildfires or stagnant air.",
    ),
    HealthBand(
        200,
        "Unhealthy",
        "Everyone may begin to experience health effects.",
        "Increased likelihood of respiratory symptoms for everyone.",
        "Everyone should avoid outdoor activity and use air purifiers where available.",
        "Heavy industry, fossil fuel burning, agricultural fires or weather inversions.",
    ),
    HealthBand(
        500,
        "Very Unhealthy to Hazardous",
        "Health alert: everyone may experience serious health effects.",
        "Serious risk of respiratory effects for the whole population.",
        "Stay indoors with windows closed; avoid all outdoor activity.",
        "Large-scale fires, extreme industrial emissions or persistent pollution domes.",
    ),
)

_FAST_IMPROVERS = ("beijing", "delhi", "mumbai")
_EU_CITIES = ("london", "paris", "stockholm")


@dataclass(frozen=True)
class AQIExplanation:
    city: str
    aqi: int
    year: int
    data_kind: DataKind
    band: HealthBand
    reasoning: tuple[str, ...]  # Bullet points; empty for live data

    @property
    def headline(self) -> str:
        if self.data_kind is DataKind.LIVE:
            verb = "currently has"
        elif self.data_kind is DataKind.PREDICTION:
            verb = f"is projected to have in {self.year}"
        else:
            verb = f"had in {self.year}"
        return f"{self.city} {verb} {self.band.level.lower()} air quality (AQI {self.aqi})."


def health_band(aqi: float) -> HealthBand:
    value = clamp_aqi(aqi)
    for band in _BANDS:
        if value <= band.upper:
            return band
    return _BANDS[-1]


def data_kind_for(year: int, reference_year: int) -> DataKind:
    if year == reference_year:
        return DataKind.LIVE
    return DataKind.PREDICTION if year > reference_year else DataKind.HISTORICAL


def year_reasoning(city: str, year: int, reference_year: int) -> tuple[str, ...]:
    """Drivers behind a projection away from the reference year."""
    kind = data_kind_for(year, reference_year)
    if kind is DataKind.LIVE:
        return ()
    if kind is DataKind.HISTORICAL:
        return (
            "Industrial period: historical emission patterns and industrial activity",
            "Regulation: air quality standards and enforcement of that era",
            "Technology: transport and energy infrastructure available at the time",
            f"Urban development: planning and population density in {year}",
        )
    key = city_key(city)
    if any(name in key for name in _FAST_IMPROVERS):
        return (
            "Policy impact: air quality initiatives and industrial regulation reduce emissions",
            "Technology: wider adoption of electric vehicles and renewable energy",
            "Urban planning: smart city development and green infrastructure",
        )
    if any(name in key for name in _EU_CITIES):
        return (
            "Climate goals: EU carbon neutrality targets drive cleaner air policy",
            "Transport: expanding public transit and EV infrastructure",
            "Energy: continued shift from fossil fuels to renewables",
        )
    return (
        "Global trends: shift toward cleaner energy and stricter emission standards",
        "Technology adoption: electric vehicles and renewables becoming widespread",
        "Policy evolution: stronger environmental regulation and monitoring",
    )


def explain(city: str, aqi: float, year: int, reference_year: int) -> AQIExplanation:
    """Build the explanation shown for a selected hotspot.

    Args:
        city: Display name of the city.
        aqi: AQI shown for that year (live reading or projection).
        year: Year the value applies to.
        reference_year: Current year; equal years are treated as live data.
    """
    return AQIExplanation(
        city=city,
        aqi=round(clamp_aqi(aqi)),
        year=year,
        data_kind=data_kind_for(year, reference_year),
        band=health_band(aqi),
        reasoning=year_reasoning(city, year, reference_year),
    )
