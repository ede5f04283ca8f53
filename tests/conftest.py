from __future__ import annotations

import contextlib
from collections.abc import Callable
from typing import Any

import pytest

from udptracker._live import ConnectionStatus


class FakeLiveChannel:
    """In-memory stand-in for the live channel, driven by the test."""

    def __init__(self) -> None:
        self.is_connected = False
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.client_count = 0
        self.error: str | None = None
        self.handlers: dict[str, list[Callable[[Any], None]]] = {}
        self.state_listeners: list[Callable[[], None]] = []

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> Callable[[], None]:
        self.handlers.setdefault(event, []).append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self.handlers[event].remove(handler)

        return _unsubscribe

    def add_state_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        self.state_listeners.append(listener)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self.state_listeners.remove(listener)

        return _remove

    def handler_count(self, event: str) -> int:
        return len(self.handlers.get(event, []))

    def set_connected(self, connected: bool) -> None:
        self.is_connected = connected
        self.connection_status = ConnectionStatus.CONNECTED if connected else ConnectionStatus.RECONNECTING
        if connected:
            self.error = None
        self._notify()

    def fail(self, message: str) -> None:
        self.is_connected = False
        self.connection_status = ConnectionStatus.ERROR
        self.error = message
        self._notify()

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self.handlers.get(event, [])):
            handler(payload)

    def _notify(self) -> None:
        for listener in list(self.state_listeners):
            listener()


class FakeSocketIO:
    """Minimal ``socketio.AsyncClient`` double recording handlers."""

    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.fail_with = fail_with
        self.connect_calls: list[tuple[str, dict[str, Any]]] = []
        self.connected = False

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self.handlers[event] = handler

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.connect_calls.append((url, kwargs))
        if self.fail_with is not None:
            raise self.fail_with
        self.connected = True
        self.trigger("connect")

    async def disconnect(self) -> None:
        if self.connected:
            self.connected = False
            self.trigger("disconnect", "client disconnect")

    def trigger(self, event: str, *args: Any) -> None:
        handler = self.handlers.get(event)
        if handler is not None:
            handler(*args)


def _raw_location(**overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "id": "a1",
        "latitude": "40.7128",
        "longitude": "-74.0060",
        "timestamp_value": "1700000000000",
        "created_at": "2023-11-14T00:00:00Z",
    }
    item.update(overrides)
    return item


@pytest.fixture
def fake_live() -> FakeLiveChannel:
    return FakeLiveChannel()


@pytest.fixture
def fake_sio() -> FakeSocketIO:
    return FakeSocketIO()


@pytest.fixture
def make_raw() -> Callable[..., dict[str, Any]]:
    return _raw_location


@pytest.fixture
def make_sio() -> Callable[..., FakeSocketIO]:
    return FakeSocketIO
