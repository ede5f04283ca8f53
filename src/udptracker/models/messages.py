"""Wire message models for the tracking service.

The service contract is treated as a black box, so every model parses
permissively: unknown keys are ignored and wrongly typed payload fields
fall back to their empty default instead of failing validation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from udptracker.ingestion.normalize import parse_int


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class LatestLocationResponse(_WireModel):
    """Body of ``GET /api/locations/latest``."""

    success: bool = False
    data: dict[str, Any] | None = None

    @field_validator("success", mode="before")
    @classmethod
    def _coerce_success(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_data(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None


class InitialDataMessage(_WireModel):
    """``initial-data`` event: the live channel's bootstrap snapshot."""

    success: bool = False
    data: list[Any] = Field(default_factory=list)
    error: str | None = None

    @field_validator("success", mode="before")
    @classmethod
    def _coerce_success(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_data(cls, value: Any) -> list[Any]:
        return list(value) if isinstance(value, (list, tuple)) else []

    @field_validator("error", mode="before")
    @classmethod
    def _coerce_error(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)


class LocationUpdateMessage(_WireModel):
    """``location-update`` event: one new reading."""

    data: dict[str, Any] | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_data(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None


class ClientCountMessage(_WireModel):
    """``client-count`` event: number of dashboards connected to the service."""

    count: int = 0

    @field_validator("count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        parsed = parse_int(value)
        return parsed if parsed is not None and parsed >= 0 else 0


def parse_message(model: type[_WireModel], payload: Any) -> Any:
    """Validate *payload* into *model*, treating non-objects as empty."""
    if isinstance(payload, _WireModel):
        return payload
    return model.model_validate(payload if isinstance(payload, dict) else {})
