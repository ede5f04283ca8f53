"""udptracker - Async Python client for the UDP location tracking service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("udptracker")
except PackageNotFoundError:
    __version__ = "0+local"
from udptracker._live import ConnectionStatus, LiveConnection
from udptracker.client import TrackerClient
from udptracker.config import TrackerConfig
from udptracker.exceptions import TrackerConfigError, TrackerError, TrackerTransportError
from udptracker.ingestion.locations import normalize_location
from udptracker.models import (
    InitialDataMessage,
    LatestLocationResponse,
    LocationRecord,
    LocationUpdateMessage,
)
from udptracker.state.store import LocationStore, StorePhase, TrackerState, TrackerStats

__all__ = [
    "__version__",
    "ConnectionStatus",
    "InitialDataMessage",
    "LatestLocationResponse",
    "LiveConnection",
    "LocationRecord",
    "LocationStore",
    "LocationUpdateMessage",
    "StorePhase",
    "TrackerClient",
    "TrackerConfig",
    "TrackerConfigError",
    "TrackerError",
    "TrackerState",
    "TrackerStats",
    "TrackerTransportError",
    "normalize_location",
]
