"""
Region resolution for the Vertex AI image backend.

Picks the compute region closest to the caller from request geography.
Priority, first match wins:

1. explicit location (validated against SUPPORTED_LOCATIONS)
2. edge data-center code
3. country code
4. continent code
5. DEFAULT_LOCATION
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from schemas.body_shape import GeographicInfo, LocationResolutionResult, ResolutionMethod
from services.errors import ConfigurationError
from services.location_mappings import (
    COLO_TO_REGION,
    CONTINENT_TO_REGION,
    COUNTRY_TO_REGION,
    DEFAULT_LOCATION,
    SUPPORTED_LOCATIONS,
)
from services.structured_logging import StructuredLogger, get_structured_logger


def _normalize_code(value: Optional[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    code = value.strip().upper()
    return code or None


@dataclass(frozen=True)
class GeoInfo:
    """Request geography as reported by the edge network."""

    country: Optional[str] = None
    colo: Optional[str] = None
    continent: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["GeoInfo"]:
        """Build from an edge geo object such as ``{"country": "JP", "colo": "NRT"}``."""
        if not data:
            return None
        return cls(
            country=_normalize_code(data.get("country")),
            colo=_normalize_code(data.get("colo")),
            continent=_normalize_code(data.get("continent")),
            region=data.get("region") or None,
            city=data.get("city") or None,
        )

    def snapshot(self) -> GeographicInfo:
        return GeographicInfo(country=self.country, colo=self.colo, continent=self.continent)


def supported_locations() -> tuple[str, ...]:
    return SUPPORTED_LOCATIONS


def default_location() -> str:
    return DEFAULT_LOCATION


def validate_location(location: str) -> str:
    """Return ``location`` if supported, else raise ConfigurationError."""
    candidate = (location or "").strip()
    supported = supported_locations()
    if candidate not in supported:
        raise ConfigurationError(
            f"Invalid Google Cloud location: {location}. "
            f"Supported locations: {', '.join(supported)}"
        )
    return candidate


def location_for_country(country_code: str) -> Optional[str]:
    return COUNTRY_TO_REGION.get(_normalize_code(country_code) or "")


def location_for_colo(colo_code: str) -> Optional[str]:
    return COLO_TO_REGION.get(_normalize_code(colo_code) or "")


class LocationResolver:
    """Pure resolver over the static region tables."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self._log = logger or get_structured_logger("location")

    def resolve(
        self,
        explicit_location: Optional[str] = None,
        geo: Optional[GeoInfo] = None,
    ) -> LocationResolutionResult:
        if explicit_location and explicit_location.strip():
            location = validate_location(explicit_location)
            self._log.info("resolved", method="explicit", location=location)
            return LocationResolutionResult(
                location=location, resolution_method=ResolutionMethod.EXPLICIT
            )

        if geo is not None:
            result = self._resolve_from_geo(geo)
            if result is not None:
                self._log.info(
                    "resolved",
                    method=result.resolution_method.value,
                    location=result.location,
                    country=geo.country,
                    colo=geo.colo,
                    continent=geo.continent,
                )
                return result
            self._log.debug(
                "geo_unmapped", country=geo.country, colo=geo.colo, continent=geo.continent
            )

        location = default_location()
        self._log.info("resolved", method="default", location=location)
        return LocationResolutionResult(
            location=location, resolution_method=ResolutionMethod.DEFAULT
        )

    @staticmethod
    def _resolve_from_geo(geo: GeoInfo) -> Optional[LocationResolutionResult]:
        lookups = (
            (ResolutionMethod.COLO, COLO_TO_REGION, geo.colo),
            (ResolutionMethod.COUNTRY, COUNTRY_TO_REGION, geo.country),
            (ResolutionMethod.CONTINENT, CONTINENT_TO_REGION, geo.continent),
        )
        for method, table, raw_code in lookups:
            code = _normalize_code(raw_code)
            if code and code in table:
                return LocationResolutionResult(
                    location=table[code],
                    resolution_method=method,
                    geographic_info=geo.snapshot(),
                )
        return None


def resolve_location(
    explicit_location: Optional[str] = None,
    geo: Optional[GeoInfo] = None,
    logger: Optional[StructuredLogger] = None,
) -> LocationResolutionResult:
    return LocationResolver(logger).resolve(explicit_location, geo)
