"""Typed publish/subscribe emitter for framework-level events."""
from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypedDict

from core.exceptions import InvalidEventPayload, UnknownEvent

Listener = Callable[[Mapping[str, Any]], Any]


class AppBooting(TypedDict):
    """Emitted when the application starts booting."""


class AppBooted(TypedDict):
    """Emitted when the application has finished booting."""


class AppTerminating(TypedDict):
    """Emitted when the application is shutting down."""


class ContainerResolving(TypedDict):
    abstract: Any
    instance: Any


class ContainerResolved(TypedDict):
    abstract: Any
    instance: Any


class ProviderRegistering(TypedDict):
    provider: str


class ProviderBooting(TypedDict):
    provider: str


class RouteMatched(TypedDict):
    route: str
    parameters: Dict[str, Any]


class RequestReceived(TypedDict):
    method: str
    url: str


class RequestHandled(TypedDict):
    # Milliseconds
    responseTime: float


class ExceptionThrown(TypedDict):
    error: BaseException


EVENTS: Dict[str, Type[Any]] = {
    "app.booting": AppBooting,
    "app.booted": AppBooted,
    "app.terminating": AppTerminating,
    "container.resolving": ContainerResolving,
    "container.resolved": ContainerResolved,
    "provider.registering": ProviderRegistering,
    "provider.booting": ProviderBooting,
    "route.matched": RouteMatched,
    "request.received": RequestReceived,
    "request.handled": RequestHandled,
    "exception.thrown": ExceptionThrown,
}


class Emitter:
    """Event emitter restricted to the ``EVENTS`` catalog.

    Listeners run synchronously in registration order; an exception raised by
    a listener propagates to the caller of ``emit``.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()

    def on(self, event: str, listener: Listener) -> "Emitter":
        """Register a listener for ``event``."""
        self._check_event(event)
        with self._lock:
            self._listeners.setdefault(event, []).append(listener)
        return self

    def once(self, event: str, listener: Listener) -> "Emitter":
        """Register a listener removed after its first call."""
        def _wrapper(payload: Mapping[str, Any]) -> Any:
            self.off(event, _wrapper)
            return listener(payload)

        _wrapper.listener = listener  # type: ignore[attr-defined]
        return self.on(event, _wrapper)

    def off(self, event: str, listener: Listener) -> "Emitter":
        """Remove a listener; unknown listeners are ignored."""
        with self._lock:
            listeners = self._listeners.get(event, [])
            for registered in listeners:
                if registered is listener or getattr(registered, "listener", None) is listener:
                    listeners.remove(registered)
                    break
        return self

    def emit(self, event: str, payload: Mapping[str, Any]) -> bool:
        """Emit ``event`` with ``payload``.

        Returns:
            True if the event had listeners, otherwise False

        Raises:
            UnknownEvent: If ``event`` is not in the catalog
            InvalidEventPayload: If ``payload`` lacks required keys
        """
        self._check_event(event)
        self._check_payload(event, payload)
        with self._lock:
            listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            listener(payload)
        return bool(listeners)

    def dispatch(self, event: str, payload: Mapping[str, Any]) -> None:
        """Alias for ``emit`` that discards the return value."""
        self.emit(event, payload)

    def listeners(self, event: str) -> List[Listener]:
        with self._lock:
            return list(self._listeners.get(event, []))

    def listener_count(self, event: str) -> int:
        return len(self.listeners(event))

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        with self._lock:
            if event is None:
                self._listeners.clear()
            else:
                self._listeners.pop(event, None)

    @staticmethod
    def _check_event(event: str) -> None:
        if event not in EVENTS:
            raise UnknownEvent(f"Unknown event '{event}'. Known events: {', '.join(EVENTS)}")

    @staticmethod
    def _check_payload(event: str, payload: Mapping[str, Any]) -> None:
        if not isinstance(payload, Mapping):
            raise InvalidEventPayload(f"Payload for '{event}' must be a mapping")
        missing = EVENTS[event].__required_keys__ - set(payload)
        if missing:
            raise InvalidEventPayload(
                f"Payload for '{event}' is missing: {', '.join(sorted(missing))}"
            )
