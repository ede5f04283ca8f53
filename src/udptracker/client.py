"""High-level async client for the location tracking service."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
import socketio

from udptracker._api.locations import fetch_latest_location
from udptracker._live import ConnectionStatus, LiveConnection, Unsubscribe
from udptracker._transport import HttpTransport
from udptracker.config import TrackerConfig
from udptracker.exceptions import TrackerError
from udptracker.models.location import LocationRecord
from udptracker.state.store import LocationStore, StateListener, StorePhase, TrackerState, TrackerStats

_logger = logging.getLogger(__name__)


class TrackerClient:
    """Async client following the latest location of the tracking service.

    Usage::

        async with TrackerClient(config) as tracker:
            await tracker.wait_until_loaded()
            print(tracker.latest_location)
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        sio: socketio.AsyncClient | None = None,
    ) -> None:
        self._config = config or TrackerConfig.from_env()
        self._external_session = session is not None
        self._http_session = session
        self._sio = sio
        self._transport: HttpTransport | None = None
        self._live: LiveConnection | None = None
        self._store: LocationStore | None = None
        self._pending_listeners: list[StateListener] = []
        self._store_unsubscribers: dict[int, Unsubscribe] = {}

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackerClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        if self._config.live_enabled:
            self._live = LiveConnection(self._config, sio=self._sio, http_session=self._http_session)
        self._store = LocationStore(fetch_latest=self._fetch_latest, live=self._live)
        for listener in self._pending_listeners:
            self._store_unsubscribers[id(listener)] = self._store.subscribe(listener)
        self._pending_listeners.clear()

        _logger.debug(
            "Tracker client starting api=%s live=%s",
            self._config.api_base_url,
            self._config.socket_url if self._live is not None else None,
        )
        try:
            await self._store.open()
            if self._live is not None:
                await self._live.connect()
        except BaseException:
            await self.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._store is not None:
            await self._store.close()
        if self._live is not None:
            await self._live.disconnect()
            self._live = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_store(self) -> LocationStore:
        if self._store is None:
            raise TrackerError("Client not initialized. Use 'async with TrackerClient(...) as client:'")
        return self._store

    async def _fetch_latest(self) -> LocationRecord | None:
        if self._transport is None:
            raise TrackerError("Client not initialized. Use 'async with TrackerClient(...) as client:'")
        return await fetch_latest_location(self._transport)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def state(self) -> TrackerState:
        return self._require_store().state

    @property
    def latest_location(self) -> LocationRecord | None:
        return self._require_store().latest_location

    @property
    def all_locations(self) -> list[LocationRecord]:
        return self._require_store().all_locations

    @property
    def loading(self) -> bool:
        return self._require_store().loading

    @property
    def error(self) -> str | None:
        return self._require_store().error

    @property
    def stats(self) -> TrackerStats:
        return self._require_store().stats

    @property
    def phase(self) -> StorePhase:
        return self._require_store().phase

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._require_store().connection_status

    @property
    def is_connected(self) -> bool:
        return self._require_store().is_connected

    @property
    def client_count(self) -> int:
        return self._require_store().client_count

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Call *listener* with a state snapshot after every change.

        May be called before entering the context; the listener then also
        sees the very first transition.
        """
        if self._store is not None:
            return self._store.subscribe(listener)
        self._pending_listeners.append(listener)

        def _unsubscribe() -> None:
            store_unsubscribe = self._store_unsubscribers.pop(id(listener), None)
            if store_unsubscribe is not None:
                store_unsubscribe()
            elif listener in self._pending_listeners:
                self._pending_listeners.remove(listener)

        return _unsubscribe

    async def refresh(self) -> None:
        """Re-fetch the latest record over HTTP."""
        await self._require_store().refresh()

    async def wait_until_loaded(self) -> None:
        await self._require_store().wait_until_loaded()
