"""Dataclasses for lookup results, history entries, and controller state."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field


class LookupState(enum.Enum):
    """Where the controller is in the lookup cycle."""

    IDLE = "idle"
    LOADING = "loading"
    PRESENTED = "presented"
    FAILED = "failed"


@dataclass(frozen=True)
class LookupResult:
    """One successful resolution of an address to geolocation metadata."""

    ip: str
    version: str | None = None  # "IPv4" or "IPv6"
    city: str | None = None
    region: str | None = None
    country: str | None = None
    continent_code: str | None = None
    postal: str | None = None
    timezone: str | None = None
    org: str | None = None  # ISP / organisation
    asn: str | None = None
    currency: str | None = None
    calling_code: str | None = None  # without the leading "+"
    population: int | None = None
    languages: tuple[str, ...] = field(default_factory=tuple)
    tld: str | None = None
    area_km2: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    in_eu: bool = False

    @property
    def primary_language(self) -> str | None:
        return self.languages[0] if self.languages else None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    @property
    def location_label(self) -> str:
        """Short "City, Country" label used for history entries."""
        parts = [p for p in (self.city, self.country) if p]
        return ", ".join(parts) if parts else "Unknown location"

    @property
    def badges(self) -> list[str]:
        badges = []
        if self.version:
            badges.append(self.version)
        if self.in_eu:
            badges.append("EU")
        return badges

    def to_dict(self) -> dict:
        data = asdict(self)
        data["languages"] = list(self.languages)
        return data


@dataclass(frozen=True)
class HistoryEntry:
    """A past successful lookup."""

    ip: str
    location: str  # display label, e.g. "Mountain View, United States"
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> dict:
        return asdict(self)
