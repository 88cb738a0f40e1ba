"""Custom exception hierarchy for the foundation runtime."""
from __future__ import annotations

from typing import Any, Optional, Sequence


class FoundationException(Exception):
    """Base exception for all foundation errors."""
    pass


class ContainerError(FoundationException):
    """Raised when the container cannot produce an instance."""
    pass


class MissingDependency(ContainerError):
    """Raised when a constructor parameter cannot be resolved.

    Attributes:
        parameter: Name of the unresolved parameter (or the identifier itself)
        index: Position of the parameter in the constructor, if any
        owner: Name of the class being built, if any
    """

    def __init__(self, parameter: str, index: Optional[int] = None, owner: Optional[str] = None):
        self.parameter = parameter
        self.index = index
        self.owner = owner
        if owner is None:
            message = f'Cannot resolve dependency: "{parameter}"'
        else:
            message = f'Cannot resolve dependency: "{parameter}" at index {index} in {owner}'
        super().__init__(message)


class CircularDependency(ContainerError):
    """Raised when an identifier is requested while it is still being built."""

    def __init__(self, chain: Sequence[Any]):
        self.chain = list(chain)
        path = " -> ".join(describe_identifier(item) for item in self.chain)
        super().__init__(f"Circular dependency detected: {path}")


class PipelineError(FoundationException):
    """Base class for pipeline execution errors."""
    pass


class DoubleInvocation(PipelineError):
    """Raised when a pipe calls its continuation more than once."""

    def __init__(self, index: int, highest: int):
        self.index = index
        self.highest = highest
        super().__init__("Pipeline: next() called multiple times")


class InvalidPipe(PipelineError, TypeError):
    """Raised when a pipe is neither callable nor exposes handle()."""
    pass


class UnregisteredProvider(FoundationException):
    """Raised when activating a service provider with no registration."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Service provider [{provider}] is not registered.")


class ConfigurationError(FoundationException):
    """Raised when configuration is invalid or missing."""
    pass


class LoggingError(FoundationException):
    """Raised when logging operations fail."""
    pass


class EventError(FoundationException):
    """Base class for event emitter errors."""
    pass


class UnknownEvent(EventError):
    """Raised for event names outside the event catalog."""
    pass


class InvalidEventPayload(EventError):
    """Raised when a payload is missing keys required by its event."""
    pass


def describe_identifier(identifier: Any) -> str:
    """Human readable name for an abstract identifier."""
    if isinstance(identifier, str):
        return identifier
    return getattr(identifier, "__qualname__", None) or repr(identifier)
