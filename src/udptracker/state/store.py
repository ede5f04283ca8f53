"""Location reconciliation store.

This is the only component allowed to mutate tracker state. It merges the
initial HTTP fetch, the live ``initial-data`` snapshot and live
``location-update`` events into one view state.

All mutations happen on the event loop thread that opened the store; the
loop runs one callback at a time, so no lock is needed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from udptracker._constants import EVENT_INITIAL_DATA, EVENT_LOCATION_UPDATE
from udptracker._live import ConnectionStatus, LiveChannel, Unsubscribe
from udptracker.ingestion.locations import normalize_location, normalize_locations
from udptracker.models.location import LocationRecord
from udptracker.models.messages import InitialDataMessage, LocationUpdateMessage, parse_message

_logger = logging.getLogger(__name__)

FetchLatest = Callable[[], Awaitable[LocationRecord | None]]
StateListener = Callable[["TrackerState"], None]


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class StorePhase(StrEnum):
    INIT = "init"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class TrackerStats(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    total_received: int = Field(default=0, serialization_alias="totalReceived")
    last_update_time: int | None = Field(default=None, serialization_alias="lastUpdateTime")


class TrackerState(BaseModel):
    """Snapshot of the tracker view state."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    latest_location: LocationRecord | None = Field(default=None, serialization_alias="latestLocation")
    all_locations: list[LocationRecord] = Field(default_factory=list, serialization_alias="allLocations")
    loading: bool = True
    error: str | None = None
    stats: TrackerStats = Field(default_factory=TrackerStats)
    phase: StorePhase = StorePhase.INIT


class LocationStore:
    """Reconciles fetch, snapshot and incremental updates into :class:`TrackerState`.

    Usage::

        store = LocationStore(fetch_latest=fetch, live=live)
        await store.open()
        ...
        await store.close()

    Errors from any source are flattened into :attr:`error`; nothing is
    raised past the store.
    """

    def __init__(
        self,
        *,
        fetch_latest: FetchLatest,
        live: LiveChannel | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._fetch_latest = fetch_latest
        self._live = live
        self._clock = clock
        self._state = TrackerState()
        self._listeners: list[StateListener] = []
        self._opened = False
        self._owner_thread: int | None = None
        self._fetch_task: asyncio.Task[None] | None = None
        self._live_unsubscribers: list[Unsubscribe] = []
        self._remove_live_listener: Unsubscribe | None = None

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        """Deep copy of the current state."""
        return self._state.model_copy(deep=True)

    @property
    def latest_location(self) -> LocationRecord | None:
        return self._state.latest_location

    @property
    def all_locations(self) -> list[LocationRecord]:
        return list(self._state.all_locations)

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def stats(self) -> TrackerStats:
        return self._state.stats.model_copy()

    @property
    def phase(self) -> StorePhase:
        return self._state.phase

    @property
    def connection_status(self) -> ConnectionStatus:
        if self._live is None:
            return ConnectionStatus.DISCONNECTED
        return self._live.connection_status

    @property
    def is_connected(self) -> bool:
        return self._live is not None and self._live.is_connected

    @property
    def client_count(self) -> int:
        return self._live.client_count if self._live is not None else 0

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Call *listener* with a state snapshot after every change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Start the initial fetch and follow the live channel. Idempotent."""
        if self._opened:
            return
        loop = asyncio.get_running_loop()
        self._opened = True
        self._owner_thread = threading.get_ident()
        if self._state.loading:
            self._state.phase = StorePhase.LOADING

        if self._live is not None:
            self._remove_live_listener = self._live.add_state_listener(self._on_connection_change)
            self._on_connection_change()

        self._fetch_task = loop.create_task(self._fetch())
        self._notify()

    async def close(self) -> None:
        """Tear down live subscriptions and cancel the in-flight fetch. Idempotent."""
        if not self._opened:
            return
        self._opened = False
        self._teardown_live_subscriptions()
        if self._remove_live_listener is not None:
            self._remove_live_listener()
            self._remove_live_listener = None

        task = self._fetch_task
        self._fetch_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def refresh(self) -> None:
        """Fetch the latest single record again; success supplants current state."""
        await self._fetch()

    async def wait_until_loaded(self) -> None:
        """Wait until the first terminal outcome of the initial-data race."""
        if not self._state.loading:
            return
        done = asyncio.get_running_loop().create_future()

        def _listener(state: TrackerState) -> None:
            if not state.loading and not done.done():
                done.set_result(None)

        unsubscribe = self.subscribe(_listener)
        try:
            await done
        finally:
            unsubscribe()

    # ------------------------------------------------------------------
    # Mutation entry points
    # ------------------------------------------------------------------

    def apply_fetch_result(self, record: LocationRecord | None) -> None:
        """Apply a successful HTTP fetch of the latest record."""
        self._check_owner()
        state = self._state
        if record is not None:
            state.latest_location = record
            state.all_locations = [record]
            state.stats = TrackerStats(total_received=1, last_update_time=self._clock())
            _logger.debug("Initial data loaded id=%s", record.id)
        else:
            _logger.debug("No location data available")
        state.error = None
        self._end_loading()
        self._surface_live_error()
        self._notify()

    def apply_fetch_failure(self, reason: str) -> None:
        """Record a failed HTTP fetch."""
        self._check_owner()
        self._state.error = f"Connection error: {reason}"
        self._end_loading()
        self._notify()

    def apply_initial_data(self, payload: Any) -> None:
        """Apply the live channel's ``initial-data`` snapshot."""
        self._check_owner()
        message: InitialDataMessage = parse_message(InitialDataMessage, payload)
        state = self._state

        if message.success and message.data:
            locations = normalize_locations(message.data)
            # Server order is authoritative: the first entry is the most recent.
            state.latest_location = locations[0]
            state.all_locations = locations
            state.stats = TrackerStats(total_received=len(locations), last_update_time=self._clock())
            state.error = None
            _logger.debug("Initial data processed via live channel count=%d", len(locations))
        elif message.success:
            _logger.debug("No location data available via live channel")
        else:
            _logger.warning("Error in initial data via live channel: %s", message.error)
            state.error = message.error or "Error getting initial data"

        self._end_loading()
        self._surface_live_error()
        self._notify()

    def apply_location_update(self, payload: Any) -> None:
        """Apply a live ``location-update`` event; the last event wins."""
        self._check_owner()
        message: LocationUpdateMessage = parse_message(LocationUpdateMessage, payload)
        if message.data is None:
            _logger.debug("Ignoring location update without data")
            return

        record = normalize_location(message.data)
        state = self._state
        state.latest_location = record
        state.stats = TrackerStats(
            total_received=state.stats.total_received + 1,
            last_update_time=self._clock(),
        )
        state.error = None
        self._refresh_phase()
        self._surface_live_error()
        _logger.debug("Location updated id=%s", record.id)
        self._notify()

    def apply_connection_error(self, reason: str) -> None:
        """Surface a live connection error unless a more specific error is set."""
        self._check_owner()
        if self._state.error is not None:
            _logger.debug("Live connection error not surfaced, error already set: %s", reason)
            return
        self._state.error = f"WebSocket error: {reason}"
        self._refresh_phase()
        self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch(self) -> None:
        _logger.debug("Getting initial data")
        try:
            record = await self._fetch_latest()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.warning("Error getting initial data: %s", exc)
            _logger.debug("Fetch failure details", exc_info=True)
            self.apply_fetch_failure(str(exc) or type(exc).__name__)
            return
        self.apply_fetch_result(record)

    def _on_connection_change(self) -> None:
        live = self._live
        if live is None or not self._opened:
            return

        if live.is_connected and not self._live_unsubscribers:
            _logger.debug("Setting up live listeners")
            self._live_unsubscribers = [
                live.subscribe(EVENT_LOCATION_UPDATE, self.apply_location_update),
                live.subscribe(EVENT_INITIAL_DATA, self.apply_initial_data),
            ]
        elif not live.is_connected and self._live_unsubscribers:
            self._teardown_live_subscriptions()

        live_error = live.error
        if live_error and self._state.error is None:
            self.apply_connection_error(live_error)
            return
        # Pass-through connection fields changed.
        self._notify()

    def _surface_live_error(self) -> None:
        # A live error outlives any application error it was hidden behind.
        live = self._live
        if live is None or not self._opened or self._state.error is not None:
            return
        live_error = live.error
        if live_error:
            self._state.error = f"WebSocket error: {live_error}"
            self._refresh_phase()

    def _teardown_live_subscriptions(self) -> None:
        if not self._live_unsubscribers:
            return
        _logger.debug("Cleaning up live listeners")
        for unsubscribe in self._live_unsubscribers:
            unsubscribe()
        self._live_unsubscribers = []

    def _end_loading(self) -> None:
        self._state.loading = False
        self._refresh_phase()

    def _refresh_phase(self) -> None:
        state = self._state
        if state.error is not None:
            state.phase = StorePhase.ERROR
        elif state.loading:
            state.phase = StorePhase.LOADING if self._opened else StorePhase.INIT
        else:
            state.phase = StorePhase.READY

    def _check_owner(self) -> None:
        owner = self._owner_thread
        if owner is not None and owner != threading.get_ident():
            raise RuntimeError("LocationStore must be mutated from the thread running its event loop")

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.warning("State listener failed", exc_info=True)
