"""Custom exception hierarchy for udptracker."""

from __future__ import annotations


class TrackerError(Exception):
    """Base exception for all udptracker errors."""


class TrackerConfigError(TrackerError):
    """Invalid or missing configuration."""


class TrackerTransportError(TrackerError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
