"""Base class for service providers."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.application import Application


class ServiceProvider:
    """Registers and boots a group of services on the application.

    ``register`` runs when the provider is added and should only bind things
    into the container. ``boot`` runs once every provider is registered, so
    it may resolve services bound by other providers.
    """

    #: Name used in the application's provider table (defaults to the class name)
    name: Optional[str] = None

    def __init__(self, app: "Application"):
        self.app = app

    def register(self) -> None:  # pragma: no cover - default no-op
        pass

    def boot(self) -> None:  # pragma: no cover - default no-op
        pass
