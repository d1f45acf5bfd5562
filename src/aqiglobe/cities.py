"""Static city reference data — coordinates, reference AQI, and the set refreshed by the timer."""

from dataclasses import dataclass

from aqiglobe.models import GeoCoordinate


@dataclass(frozen=True)
class ReferenceCity:
    name: str  # Display name ("New York")
    coordinate: GeoCoordinate
    reference_aqi: int  # Typical AQI, used when no live reading is available


def _city(name: str, lat: float, lng: float, aqi: int) -> ReferenceCity:
    return ReferenceCity(name=name, coordinate=GeoCoordinate(lat, lng), reference_aqi=aqi)


# Lookup key is the lower-cased name (see city_key)
KNOWN_CITIES: dict[str, ReferenceCity] = {
    c.name.lower(): c
    for c in (
        _city("London", 51.5074, -0.1278, 45),
        _city("Beijing", 39.9042, 116.4074, 120),
        _city("New York", 40.7128, -74.0060, 75),
        _city("Paris", 48.8566, 2.3522, 60),
        _city("Tokyo", 35.6762, 139.6503, 50),
        _city("Delhi", 28.7041, 77.1025, 150),
        _city("Los Angeles", 34.0522, -118.2437, 85),
        _city("Mumbai", 19.0760, 72.8777, 135),
        _city("Sydney", -33.8688, 151.2093, 25),
        _city("Cairo", 30.0444, 31.2357, 165),
        _city("Moscow", 55.7558, 37.6176, 95),
        _city("Mexico City", 19.4326, -99.1332, 110),
        _city("Singapore", 1.3521, 103.8198, 35),
        _city("Lahore", 31.5204, 74.3587, 180),
        _city("Stockholm", 59.3293, 18.0686, 20),
        _city("Bangkok", 13.7563, 100.5018, 105),
        _city("Dhaka", 23.8103, 90.4125, 190),
        _city("Vancouver", 49.2827, -123.1207, 30),
        _city("Milan", 45.4642, 9.1900, 70),
        _city("Seoul", 37.5665, 126.9780, 80),
        _city("Jakarta", -6.2088, 106.8456, 125),
        _city("Kathmandu", 27.7172, 85.3240, 170),
        _city("Shanghai", 31.2304, 121.4737, 110),
    )
}

# Cities shown on the globe by the periodic refresh and the year selector
POPULAR_CITIES: tuple[str, ...] = (
    "Beijing",
    "New York",
    "London",
    "Paris",
    "Tokyo",
    "Delhi",
    "Los Angeles",
    "Shanghai",
    "Moscow",
    "Sydney",
)


def city_key(name: str) -> str:
    """Normalize free-text city input to a lookup key."""
    return " ".join(name.split()).lower()


def lookup_city(name: str) -> ReferenceCity | None:
    return KNOWN_CITIES.get(city_key(name))
