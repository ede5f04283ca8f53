"""Live (Socket.IO) connection adapter.

Wraps :class:`socketio.AsyncClient` and exposes the small surface the
store consumes: connection flags, an error string, a connected-client
count and per-event subscription with explicit unsubscribe.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

import aiohttp
import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from udptracker._constants import EVENT_CLIENT_COUNT
from udptracker.config import TrackerConfig
from udptracker.ingestion.normalize import parse_int
from udptracker.models.messages import ClientCountMessage, parse_message

_logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class ConnectionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


class LiveChannel(Protocol):
    """Structural interface of the live channel as seen by the store."""

    @property
    def is_connected(self) -> bool: ...

    @property
    def connection_status(self) -> ConnectionStatus: ...

    @property
    def client_count(self) -> int: ...

    @property
    def error(self) -> str | None: ...

    def subscribe(self, event: str, handler: EventHandler) -> Unsubscribe: ...

    def add_state_listener(self, listener: Callable[[], None]) -> Unsubscribe: ...


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return str(message)
    if data:
        return str(data)
    return "Connection failed"


class LiveConnection:
    """Socket.IO client adapter driving connection state for the store."""

    def __init__(
        self,
        config: TrackerConfig,
        *,
        sio: socketio.AsyncClient | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        if sio is None:
            sio = socketio.AsyncClient(
                reconnection=config.reconnection,
                logger=False,
                http_session=http_session,
            )
        self._sio = sio
        self._connected = False
        self._closing = False
        self._status = ConnectionStatus.DISCONNECTED
        self._retry_task: asyncio.Task[None] | None = None
        self._error: str | None = None
        self._client_count = 0
        self._handlers: dict[str, list[EventHandler]] = {}
        self._state_listeners: list[Callable[[], None]] = []

        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)
        self._sio.on(EVENT_CLIENT_COUNT, self._on_client_count)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._status

    @property
    def client_count(self) -> int:
        return self._client_count

    @property
    def error(self) -> str | None:
        return self._error

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the live channel.

        Failures are logged and surfaced through :attr:`error`; they are
        never raised to the caller. When reconnection is enabled a failed
        first attempt keeps retrying in the background.
        """
        if self._connected:
            return
        self._closing = False
        self._set_status(ConnectionStatus.CONNECTING)
        url = self._config.socket_url
        _logger.debug("Live connect requested url=%s path=%s", url, self._config.socketio_path)
        try:
            await self._sio.connect(url, socketio_path=self._config.socketio_path, retry=False)
        except SocketIOConnectionError as exc:
            _logger.warning("Live connection to %s failed: %s", url, exc)
            self._error = str(exc) or "Connection failed"
            self._set_status(ConnectionStatus.ERROR)
            if self._config.reconnection and self._retry_task is None:
                self._retry_task = asyncio.get_running_loop().create_task(self._keep_connecting(url))

    async def disconnect(self) -> None:
        """Close the live channel; no reconnection follows."""
        self._closing = True
        task = self._retry_task
        self._retry_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        try:
            await self._sio.disconnect()
        finally:
            if self._connected or self._status != ConnectionStatus.DISCONNECTED:
                self._connected = False
                self._set_status(ConnectionStatus.DISCONNECTED)

    async def _keep_connecting(self, url: str) -> None:
        try:
            await self._sio.connect(url, socketio_path=self._config.socketio_path, retry=True)
        except SocketIOConnectionError as exc:
            if self._closing:
                return
            _logger.warning("Giving up on live connection to %s: %s", url, exc)
            self._error = str(exc) or "Connection failed"
            self._set_status(ConnectionStatus.ERROR)
        finally:
            if self._retry_task is asyncio.current_task():
                self._retry_task = None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, event: str, handler: EventHandler) -> Unsubscribe:
        """Register *handler* for *event*; returns an idempotent unsubscribe."""
        handlers = self._handlers.get(event)
        if handlers is None:
            handlers = []
            self._handlers[event] = handlers
            self._sio.on(event, self._make_dispatcher(event))
        handlers.append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                handlers.remove(handler)

        return _unsubscribe

    def add_state_listener(self, listener: Callable[[], None]) -> Unsubscribe:
        """Call *listener* after every connection state change."""
        self._state_listeners.append(listener)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._state_listeners.remove(listener)

        return _remove

    def _make_dispatcher(self, event: str) -> Callable[..., None]:
        def _dispatch(*args: Any) -> None:
            payload = args[0] if args else None
            _logger.debug("Live event %s received", event)
            for handler in list(self._handlers.get(event, ())):
                try:
                    handler(payload)
                except Exception:
                    _logger.warning("Live handler for %s failed", event, exc_info=True)

        return _dispatch

    # ------------------------------------------------------------------
    # Socket.IO callbacks
    # ------------------------------------------------------------------

    def _on_connect(self, *_args: Any) -> None:
        _logger.debug("Live connection established")
        self._connected = True
        self._error = None
        self._set_status(ConnectionStatus.CONNECTED)

    def _on_disconnect(self, *args: Any) -> None:
        reason = args[0] if args else None
        _logger.debug("Live connection dropped reason=%s", reason)
        self._connected = False
        if self._config.reconnection and not self._closing:
            self._set_status(ConnectionStatus.RECONNECTING)
        else:
            self._set_status(ConnectionStatus.DISCONNECTED)

    def _on_connect_error(self, *args: Any) -> None:
        message = _error_message(args[0] if args else None)
        _logger.warning("Live connection error: %s", message)
        self._connected = False
        self._error = message
        self._set_status(ConnectionStatus.ERROR)

    def _on_client_count(self, *args: Any) -> None:
        payload = args[0] if args else None
        if isinstance(payload, dict):
            count = parse_message(ClientCountMessage, payload).count
        else:
            count = parse_int(payload) or 0
        if count != self._client_count:
            self._client_count = max(count, 0)
            self._notify()

    def _set_status(self, status: ConnectionStatus) -> None:
        self._status = status
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._state_listeners):
            try:
                listener()
            except Exception:
                _logger.warning("Live state listener failed", exc_info=True)
