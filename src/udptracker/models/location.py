"""Canonical location record model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from udptracker.ingestion.normalize import format_timestamp, is_finite, parse_float, parse_int


class LocationRecord(BaseModel):
    """A single normalized location reading.

    Coordinates are ``NaN`` and ``timestamp`` is ``None`` when the
    service sent something unparseable; the record is still built so
    that consumers can render it as invalid.

    Parameters
    ----------
    id : Any
        Server-assigned identifier, passed through unmodified.
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    timestamp : int or None
        Reading time in epoch milliseconds (wire field ``timestamp_value``).
    created_at : Any
        Server-supplied creation string, passed through unmodified.
    formatted_date : str
        ``timestamp`` rendered with the host locale at normalization time.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Any = None
    latitude: float
    longitude: float
    timestamp: int | None = None
    created_at: Any = None
    formatted_date: str = Field(serialization_alias="formattedDate")

    @model_validator(mode="before")
    @classmethod
    def _normalize_wire_fields(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            values = {}
        if "timestamp_value" in values:
            raw_ts = values.get("timestamp_value")
        else:
            raw_ts = values.get("timestamp")
        timestamp = parse_int(raw_ts)
        return {
            "id": values.get("id"),
            "latitude": parse_float(values.get("latitude")),
            "longitude": parse_float(values.get("longitude")),
            "timestamp": timestamp,
            "created_at": values.get("created_at"),
            "formatted_date": format_timestamp(timestamp),
        }

    @property
    def has_valid_coordinates(self) -> bool:
        """Whether both coordinates are finite and within geographic bounds."""
        if not (is_finite(self.latitude) and is_finite(self.longitude)):
            return False
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0
