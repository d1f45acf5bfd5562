import pytest

from aqiglobe.aqi import AQICategory, classify
from aqiglobe.models import GeoCoordinate, HotspotRecord, SourceKind
from conftest import make_record


@pytest.mark.parametrize(
    "aqi,expected",
    [
        (0, AQICategory.GOOD),
        (50, AQICategory.GOOD),
        (50.5, AQICategory.MODERATE),
        (51, AQICategory.MODERATE),
        (100, AQICategory.MODERATE),
        (100.01, AQICategory.UNHEALTHY),
        (101, AQICategory.UNHEALTHY),
        (500, AQICategory.UNHEALTHY),
    ],
)
def test_category_boundaries(aqi, expected):
    assert classify(aqi).category is expected


def test_out_of_domain_values_are_clamped():
    assert classify(-20).category is AQICategory.GOOD
    assert classify(9999).category is AQICategory.UNHEALTHY


def test_three_fixed_tiers():
    good, moderate, unhealthy = classify(10), classify(75), classify(300)
    assert good.size_weight < moderate.size_weight < unhealthy.size_weight == 1.0
    assert classify(1) == classify(49) == good
    assert classify(260) == classify(499) == unhealthy
    assert good.color == (0.2, 0.8, 0.2)
    assert unhealthy.color_hex == "#b71c1c"


def test_classification_is_idempotent():
    assert classify(77) is classify(77)


def test_record_derives_display_fields_from_aqi():
    record = make_record("delhi", aqi=150)
    assert record.category is AQICategory.UNHEALTHY
    assert record.color_weight == classify(150).color
    assert record.size_weight == 1.0


def test_record_display_fields_cannot_be_passed_in():
    with pytest.raises(TypeError):
        HotspotRecord(
            key="x",
            coordinate=GeoCoordinate(0, 0),
            aqi=10,
            display_name="X",
            info_text="",
            source_kind=SourceKind.MOCK,
            category=AQICategory.UNHEALTHY,
        )


@pytest.mark.parametrize("aqi", [-1, 500.5, float("nan")])
def test_record_rejects_aqi_outside_domain(aqi):
    with pytest.raises(ValueError):
        make_record("x", aqi=aqi)
