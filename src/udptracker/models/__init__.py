"""Data models for tracking service payloads."""

from udptracker.models.location import LocationRecord
from udptracker.models.messages import (
    ClientCountMessage,
    InitialDataMessage,
    LatestLocationResponse,
    LocationUpdateMessage,
)

__all__ = [
    "ClientCountMessage",
    "InitialDataMessage",
    "LatestLocationResponse",
    "LocationRecord",
    "LocationUpdateMessage",
]
