"""Lightweight view model wrapper around `PhotoRecord`."""

from __future__ import annotations

from dataclasses import dataclass

from core.geo import has_valid_location
from core.models import PhotoRecord, ShootingParameters
from core.services.filter_service import parse_calendar_date

PLACEHOLDER = "--"

_MONTHS_EN = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass
class PhotoVM:
    """Expose display-ready properties for gallery and preview templates."""

    record: PhotoRecord
    language: str = "en"

    @property
    def _params(self) -> ShootingParameters:
        return self.record.parameters or ShootingParameters()

    @property
    def camera(self) -> str:
        """Camera body, or "Unknown" when not recorded."""
        return self._params.camera or "Unknown"

    @property
    def aperture(self) -> str:
        return self._params.aperture or PLACEHOLDER

    @property
    def shutter_speed(self) -> str:
        return self._params.shutter_speed or PLACEHOLDER

    @property
    def iso(self) -> str:
        return self._params.iso or PLACEHOLDER

    @property
    def focal_length(self) -> str:
        return self._params.focal_length or PLACEHOLDER

    @property
    def hashtags(self) -> list[str]:
        return [f"#{tag}" for tag in self.record.tags]

    @property
    def display_date(self) -> str:
        """Long-form date ("March 15, 2024" / "2024年3月15日"); raw text if unparseable."""
        parsed = parse_calendar_date(self.record.captured_date)
        if parsed is None:
            return self.record.captured_date
        if self.language == "zh":
            return f"{parsed.year}年{parsed.month}月{parsed.day}日"
        return f"{_MONTHS_EN[parsed.month - 1]} {parsed.day}, {parsed.year}"

    @property
    def location_label(self) -> str:
        return self.record.location.name

    @property
    def is_mappable(self) -> bool:
        """False when the record cannot be placed on the map."""
        return has_valid_location(self.record)
