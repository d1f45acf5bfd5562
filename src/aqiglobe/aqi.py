"""AQI classification — raw index → category, marker color and marker size.

Three discrete severity bands, not a continuous gradient. Upper bounds are
inclusive: 50 is still Good, 100 is still Moderate.
"""

from dataclasses import dataclass
from enum import Enum

AQI_MIN = 0.0
AQI_MAX = 500.0


class AQICategory(str, Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    UNHEALTHY = "Unhealthy"


@dataclass(frozen=True)
class Classification:
    """Display attributes derived from a single AQI value."""

    category: AQICategory
    color: tuple[float, float, float]  # Linear RGB, each channel 0–1
    color_hex: str  # Same color for HTML/tooltips
    size_weight: float  # Marker scale, (0, 1]


_GOOD = Classification(AQICategory.GOOD, (0.2, 0.8, 0.2), "#33cc33", 0.3)
_MODERATE = Classification(AQICategory.MODERATE, (1.0, 0.6, 0.1), "#ff9933", 0.6)
_UNHEALTHY = Classification(
    AQICategory.UNHEALTHY, (0.6, 0.05, 0.05), "#b71c1c", 1.0
)


def clamp_aqi(aqi: float) -> float:
    """Clamp to the [0, 500] index domain."""
    return max(AQI_MIN, min(AQI_MAX, float(aqi)))


def classify(aqi: float) -> Classification:
    """Return the severity band for an AQI value.

    Total over all real inputs: the value is clamped to [0, 500] first.

    Args:
        aqi: Raw AQI scalar.

    Returns:
        The fixed Classification for the band the value falls in.
    """
    value = clamp_aqi(aqi)
    if value <= 50:
        return _GOOD
    if value <= 100:
        return _MODERATE
    return _UNHEALTHY
