"""Plain-text rendering of the tracker state.

Mirrors the dashboard layout: a header, then exactly one of the loading,
error, location or empty panels.
"""

from __future__ import annotations

from enum import StrEnum

from udptracker._constants import DEFAULT_APP_NAME
from udptracker._live import ConnectionStatus
from udptracker.ingestion.normalize import is_finite
from udptracker.models.location import LocationRecord
from udptracker.state.store import TrackerState

MAP_ZOOM = 13


class ViewKind(StrEnum):
    LOADING = "loading"
    ERROR = "error"
    HAS_DATA = "has-data"
    NO_DATA = "no-data"


def select_view(state: TrackerState) -> ViewKind:
    """Loading wins over error, error over data."""
    if state.loading:
        return ViewKind.LOADING
    if state.error is not None:
        return ViewKind.ERROR
    if state.latest_location is not None:
        return ViewKind.HAS_DATA
    return ViewKind.NO_DATA


def format_coordinate(value: float) -> str:
    return f"{value:.6f}" if is_finite(value) else "NaN"


def map_url(location: LocationRecord) -> str | None:
    """OpenStreetMap link centred on the reading, ``None`` for invalid coordinates."""
    if not location.has_valid_coordinates:
        return None
    lat = format_coordinate(location.latitude)
    lon = format_coordinate(location.longitude)
    return f"https://www.openstreetmap.org/?mlat={lat}&mlon={lon}#map={MAP_ZOOM}/{lat}/{lon}"


def _location_panel(location: LocationRecord) -> list[str]:
    timestamp = str(location.timestamp) if location.timestamp is not None else "NaN"
    lines = [
        "Latest Location Received",
        f"  Latitude:  {format_coordinate(location.latitude)}",
        f"  Longitude: {format_coordinate(location.longitude)}",
        f"  Timestamp: {timestamp}",
        f"  Date:      {location.formatted_date}",
    ]
    url = map_url(location)
    lines.append(f"  Map:       {url}" if url else "  Map:       unavailable (invalid coordinates)")
    return lines


def render(
    state: TrackerState,
    *,
    app_name: str = DEFAULT_APP_NAME,
    connection_status: ConnectionStatus | None = None,
    client_count: int | None = None,
) -> str:
    """Render *state* as a multi-line string."""
    header = app_name
    if connection_status is not None:
        header += f" [{connection_status}]"
        if client_count:
            header += f" clients={client_count}"
    lines = [header, "=" * len(header)]

    kind = select_view(state)
    if kind is ViewKind.LOADING:
        lines.append("Loading...")
    elif kind is ViewKind.ERROR:
        lines += ["Connection Error", f"  {state.error}", "  (refresh to retry)"]
    elif kind is ViewKind.HAS_DATA and state.latest_location is not None:
        lines += _location_panel(state.latest_location)
        stats = state.stats
        lines.append(f"  Received:  {stats.total_received}")
    else:
        lines += ["No location data available", "  (refresh to retry)"]
    return "\n".join(lines)
