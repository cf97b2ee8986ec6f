"""Reverse geocoding through OpenStreetMap Nominatim (geopy).

Turns a coordinate into a display name plus the country/region labels used
by the region browser. Any failure yields None; callers leave their fields
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim
from loguru import logger

from core.geo import is_valid_coordinate
from core.services.hierarchy_service import OTHER_REGION

_REGION_CODES: dict[str, str] = {
    "Asia": "CN JP KR IN TH VN MY SG ID PH",
    "Europe": "FR IT DE GB ES NL CH BE SE NO FI DK GR PT AT",
    "North America": "US CA MX",
    "South America": "BR AR CL CO PE",
    "Oceania": "AU NZ",
    "Africa": "ZA EG NG KE MA",
}

REGION_BY_COUNTRY_CODE: dict[str, str] = {
    code: region for region, codes in _REGION_CODES.items() for code in codes.split()
}

_CITY_KEYS = ("city", "town", "village", "suburb")


@dataclass(frozen=True)
class GeocodeResult:
    name: str
    country: str
    region: str


def region_for_country_code(code: str | None) -> str:
    """Continent-level region for an ISO 3166 alpha-2 code."""
    return REGION_BY_COUNTRY_CODE.get((code or "").upper(), OTHER_REGION)


def parse_nominatim(raw: dict[str, Any]) -> GeocodeResult | None:
    """Build a result from a Nominatim JSON payload."""
    address = raw.get("address")
    if not isinstance(address, dict):
        return None
    city = next((address[k] for k in _CITY_KEYS if address.get(k)), "")
    country = address.get("country") or ""
    if city and country:
        name = f"{city}, {country}"
    else:
        display = str(raw.get("display_name") or "")
        name = ",".join(display.split(",")[:3]).strip()
    if not name:
        return None
    return GeocodeResult(
        name=name, country=country, region=region_for_country_code(address.get("country_code"))
    )


class GeocodingService:
    """Thin wrapper around a geopy geocoder with soft failure."""

    def __init__(
        self,
        *,
        user_agent: str = "geosnap-journal",
        timeout: float = 5.0,
        geolocator: Any | None = None,
    ) -> None:
        self._timeout = timeout
        self._geolocator = geolocator or Nominatim(user_agent=user_agent)

    def reverse(self, lat: float, lng: float, language: str = "en") -> GeocodeResult | None:
        """Resolve `(lat, lng)` to a place, or None on any failure."""
        if not is_valid_coordinate(lat, lng):
            logger.debug("Skipping reverse geocode for invalid coordinate {}, {}", lat, lng)
            return None
        try:
            location = self._geolocator.reverse(
                (lat, lng), language=language, addressdetails=True, timeout=self._timeout
            )
        except GeopyError as ex:
            logger.warning("Reverse geocoding failed for {}, {}: {}", lat, lng, ex)
            return None
        if location is None:
            logger.info("No reverse geocoding result for {}, {}", lat, lng)
            return None
        raw = getattr(location, "raw", None)
        if not isinstance(raw, dict):
            return None
        return parse_nominatim(raw)
