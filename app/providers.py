"""Built-in service providers."""
from __future__ import annotations

from typing import Callable, Dict, List

from loguru import logger

from app.provider import ServiceProvider
from core.pipeline import Pipeline
from events.emitter import Emitter


class EventServiceProvider(ServiceProvider):
    """Exposes the emitter as ``"events"`` and attaches declared listeners.

    Subclasses declare listeners per event::

        class AppEvents(EventServiceProvider):
            listen = {"app.booted": [warm_cache]}
    """

    name = "events"
    listen: Dict[str, List[Callable]] = {}

    def register(self) -> None:
        self.app.singleton("events", lambda: self.app.make(Emitter))

    def boot(self) -> None:
        emitter = self.app.make("events")
        for event, listeners in self.listen.items():
            for listener in listeners:
                emitter.on(event, listener)
                logger.debug("Listener {} attached to {}", getattr(listener, "__name__", listener), event)


class PipelineServiceProvider(ServiceProvider):
    """Binds a fresh, container-aware ``Pipeline`` per resolution.

    Pipelines hold per-run payload state, so the binding is transient; the
    ``container`` constructor parameter resolves to the application itself.
    """

    name = "pipeline"

    def register(self) -> None:
        self.app.bind(Pipeline, Pipeline)
        self.app.bind("pipeline", Pipeline)
