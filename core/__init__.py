"""Core runtime components: dependency container, async pipeline and errors."""
from __future__ import annotations

from .container import Binding, Container
from .pipeline import Pipeline, PipeKind, Stage
from .exceptions import (
    FoundationException,
    ContainerError,
    MissingDependency,
    CircularDependency,
    PipelineError,
    DoubleInvocation,
    InvalidPipe,
    UnregisteredProvider,
    ConfigurationError,
    LoggingError,
)

__all__ = [
    "Binding",
    "Container",
    "Pipeline",
    "PipeKind",
    "Stage",
    "FoundationException",
    "ContainerError",
    "MissingDependency",
    "CircularDependency",
    "PipelineError",
    "DoubleInvocation",
    "InvalidPipe",
    "UnregisteredProvider",
    "ConfigurationError",
    "LoggingError",
]
