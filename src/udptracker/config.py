"""Client configuration for udptracker."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from udptracker._constants import DEFAULT_APP_NAME, DEFAULT_APP_VERSION, DEFAULT_BASE_URL, DEFAULT_SOCKETIO_PATH
from udptracker.exceptions import TrackerConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _first_env(env: Mapping[str, str], *keys: str) -> str | None:
    for key in keys:
        val = env.get(key)
        if val is not None and val.strip():
            return val.strip()
    return None


def _normalize_url(name: str, value: str) -> str:
    url = value.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise TrackerConfigError(f"{name} must be an http(s) URL, got {value!r}")
    return url


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Client configuration.

    Parameters
    ----------
    api_base_url : str
        Base URL of the tracking service REST API.
    socket_url : str
        Base URL of the Socket.IO endpoint broadcasting live updates.
    app_name : str
        Display title used by the terminal view.
    app_version : str
        Informational only.
    socketio_path : str
        Socket.IO endpoint path on the server.
    live_enabled : bool
        Connect the live channel. When disabled only the HTTP fetch and
        ``refresh()`` populate state.
    reconnection : bool
        Let the Socket.IO client reconnect on its own after a drop.
    """

    api_base_url: str = DEFAULT_BASE_URL
    socket_url: str = DEFAULT_BASE_URL
    app_name: str = DEFAULT_APP_NAME
    app_version: str = DEFAULT_APP_VERSION
    socketio_path: str = DEFAULT_SOCKETIO_PATH
    live_enabled: bool = True
    reconnection: bool = True

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "api_base_url", _normalize_url("api_base_url", self.api_base_url))
        object.__setattr__(self, "socket_url", _normalize_url("socket_url", self.socket_url))

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from environment variables.

        Reads ``API_BASE_URL``, ``SOCKET_URL``, ``APP_NAME`` and
        ``APP_VERSION`` (each also accepted with a ``TRACKER_`` prefix),
        plus the ``TRACKER_*`` client options. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "api_base_url": ("TRACKER_API_BASE_URL", "API_BASE_URL"),
            "socket_url": ("TRACKER_SOCKET_URL", "SOCKET_URL"),
            "app_name": ("TRACKER_APP_NAME", "APP_NAME"),
            "app_version": ("TRACKER_APP_VERSION", "APP_VERSION"),
            "socketio_path": ("TRACKER_SOCKETIO_PATH",),
        }
        config_kwargs: dict[str, Any] = {}
        for field_name, env_keys in _ENV_CONFIG_MAP.items():
            val = _first_env(env, *env_keys)
            if val is not None:
                config_kwargs[field_name] = val

        if "live_enabled" not in overrides:
            config_kwargs["live_enabled"] = _env_bool(env.get("TRACKER_LIVE_ENABLED"), True)

        if "reconnection" not in overrides:
            config_kwargs["reconnection"] = _env_bool(env.get("TRACKER_RECONNECTION"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
