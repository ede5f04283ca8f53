"""Location endpoints.

Endpoints:
  - /api/locations/latest
"""

from __future__ import annotations

import logging

from udptracker._constants import LATEST_LOCATION_ENDPOINT
from udptracker._transport import Transport
from udptracker.ingestion.locations import normalize_location
from udptracker.models.location import LocationRecord
from udptracker.models.messages import LatestLocationResponse, parse_message

_logger = logging.getLogger(__name__)


async def fetch_latest_location(transport: Transport) -> LocationRecord | None:
    """Fetch the most recent reading.

    Returns ``None`` when the service holds no data; a body with
    ``success: false`` is read the same way.
    """
    body = await transport.get_json(LATEST_LOCATION_ENDPOINT)
    response: LatestLocationResponse = parse_message(LatestLocationResponse, body)

    if not response.success or response.data is None:
        _logger.debug("No location data available (success=%s)", response.success)
        return None

    record = normalize_location(response.data)
    _logger.debug("Latest location id=%s timestamp=%s", record.id, record.timestamp)
    return record
