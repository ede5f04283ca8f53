"""Internal constants shared across the library."""

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_APP_NAME = "Just UDP Location Service Tracker"
DEFAULT_APP_VERSION = "1.0.0"
DEFAULT_SOCKETIO_PATH = "socket.io"
USER_AGENT = "udptracker/1.0"

LATEST_LOCATION_ENDPOINT = "/api/locations/latest"

# ------------------------------------------------------------------
# Live (Socket.IO) event names
# ------------------------------------------------------------------

EVENT_INITIAL_DATA = "initial-data"
EVENT_LOCATION_UPDATE = "location-update"
EVENT_CLIENT_COUNT = "client-count"

INVALID_DATE = "Invalid Date"
