"""Application layer: lifecycle, service providers and startup."""
from __future__ import annotations

from .application import Application
from .provider import ServiceProvider
from .providers import EventServiceProvider, PipelineServiceProvider

__all__ = [
    "Application",
    "ServiceProvider",
    "EventServiceProvider",
    "PipelineServiceProvider",
]
