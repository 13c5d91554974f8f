"""
Tests for Vertex AI region resolution.
"""

from unittest.mock import patch

import pytest

from schemas.body_shape import ResolutionMethod
from services.errors import ConfigurationError
from services.location_mappings import (
    COLO_TO_REGION,
    CONTINENT_TO_REGION,
    COUNTRY_TO_REGION,
    DEFAULT_LOCATION,
    SUPPORTED_LOCATIONS,
)
from services.location_resolver import (
    GeoInfo,
    LocationResolver,
    default_location,
    location_for_colo,
    location_for_country,
    resolve_location,
    supported_locations,
    validate_location,
)


@pytest.fixture
def resolver():
    return LocationResolver()


class TestResolvePriority:
    def test_explicit_location_wins_over_geo(self, resolver):
        result = resolver.resolve("europe-west1", GeoInfo(country="JP", colo="NRT"))

        assert result.location == "europe-west1"
        assert result.resolution_method is ResolutionMethod.EXPLICIT
        assert result.geographic_info is None

    def test_colo_beats_country(self, resolver):
        result = resolver.resolve(None, GeoInfo(country="US", colo="FRA", continent="NA"))

        assert result.location == "europe-west3"
        assert result.resolution_method is ResolutionMethod.COLO
        assert result.geographic_info.colo == "FRA"

    def test_country_when_colo_unknown(self, resolver):
        result = resolver.resolve(None, GeoInfo(country="JP", colo="XYZ", continent="AS"))

        assert result.location == "asia-northeast1"
        assert result.resolution_method is ResolutionMethod.COUNTRY

    def test_continent_when_country_unknown(self, resolver):
        result = resolver.resolve(None, GeoInfo(country="BR", continent="SA"))

        assert result.location == "us-central1"
        assert result.resolution_method is ResolutionMethod.CONTINENT

    def test_default_when_nothing_matches(self, resolver):
        result = resolver.resolve(None, GeoInfo(country="ZZ", colo="QQQ", continent="AN"))

        assert result.location == DEFAULT_LOCATION
        assert result.resolution_method is ResolutionMethod.DEFAULT

    def test_default_without_geo(self, resolver):
        result = resolver.resolve()

        assert result.location == "us-central1"
        assert result.resolution_method is ResolutionMethod.DEFAULT

    def test_blank_explicit_location_falls_through(self, resolver):
        result = resolver.resolve("   ", GeoInfo(country="GB"))

        assert result.location == "europe-west2"
        assert result.resolution_method is ResolutionMethod.COUNTRY

    def test_codes_are_case_insensitive(self, resolver):
        result = resolver.resolve(None, GeoInfo(colo="nrt"))

        assert result.location == "asia-northeast1"
        assert result.resolution_method is ResolutionMethod.COLO

    def test_module_level_helper(self):
        result = resolve_location(geo=GeoInfo(continent="EU"))

        assert result.location == "europe-west4"


class TestValidation:
    def test_invalid_explicit_location_names_value(self, resolver):
        with pytest.raises(ConfigurationError) as exc_info:
            resolver.resolve("mars-north1")

        assert "Invalid Google Cloud location: mars-north1" in exc_info.value.message
        assert "us-central1" in exc_info.value.message
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_validate_location_accepts_supported(self):
        assert validate_location("asia-southeast1") == "asia-southeast1"

    def test_tables_only_point_at_supported_locations(self):
        for table in (COLO_TO_REGION, COUNTRY_TO_REGION, CONTINENT_TO_REGION):
            assert set(table.values()) <= set(SUPPORTED_LOCATIONS)
        assert DEFAULT_LOCATION in SUPPORTED_LOCATIONS

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            COUNTRY_TO_REGION["XX"] = "us-central1"


class TestHelpers:
    def test_lookup_helpers(self):
        assert location_for_country(" de ") == "europe-west3"
        assert location_for_colo("SJC") == "us-west1"
        assert location_for_country("ZZ") is None

    def test_default_and_supported_helpers(self):
        assert default_location() == "us-central1"
        assert supported_locations() == SUPPORTED_LOCATIONS
        assert len(supported_locations()) == 14

    def test_unmapped_geo_uses_default_helper(self, resolver):
        with patch("services.location_resolver.default_location", return_value="europe-west4"):
            result = resolver.resolve(None, GeoInfo(country="ZZ"))

        assert result.location == "europe-west4"
        assert result.resolution_method is ResolutionMethod.DEFAULT

    def test_geo_from_mapping(self):
        geo = GeoInfo.from_mapping({"country": "jp", "colo": " kix ", "city": "Osaka"})

        assert geo.country == "JP"
        assert geo.colo == "KIX"
        assert geo.continent is None
        assert geo.city == "Osaka"

    def test_geo_from_empty_mapping(self):
        assert GeoInfo.from_mapping(None) is None
        assert GeoInfo.from_mapping({}) is None
