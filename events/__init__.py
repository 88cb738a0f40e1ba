"""Framework event catalog and emitter."""
from __future__ import annotations

from .emitter import EVENTS, Emitter

__all__ = ["EVENTS", "Emitter"]
