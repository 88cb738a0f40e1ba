"""Application file logging."""
from __future__ import annotations

from .file_logger import LEVELS, Logger, LogPayload

__all__ = ["LEVELS", "Logger", "LogPayload"]
