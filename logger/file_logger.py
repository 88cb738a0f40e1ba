"""Application file logger with pipe-based record transformation.

Each call builds a ``LogPayload``, sends it through the configured pipes with
the core ``Pipeline`` and appends the surviving record to a daily file named
``app-YYYY-MM-DD.log`` (UTC date)::

    [2025-06-28T10:15:00.123Z] INFO: Hello | {"user":"sulman"}

A pipe may rewrite the payload before forwarding it, or drop the record by
not calling ``next``.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger as loguru_logger

from core.exceptions import LoggingError
from core.pipeline import Pipeline

LEVELS = ("info", "warning", "error", "debug", "notice")


@dataclass
class LogPayload:
    """Structure of a log entry travelling through the pipes."""
    level: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Logger:
    """Framework-level logger writing to a daily log file."""

    def __init__(self, log_dir: str = "./storage/logs"):
        """Initialize the logger.

        Args:
            log_dir: Directory where log files are written (created if missing)
        """
        self.log_dir = log_dir
        os.makedirs(self.log_dir, exist_ok=True)
        self.log_path = os.path.join(self.log_dir, self.get_date_filename())
        self._pipes: List[Any] = []

        # One private stdlib logger per instance so handlers never leak between instances
        self._py_logger = logging.getLogger(f"foundation.file_logger.{id(self)}")
        self._py_logger.setLevel(logging.DEBUG)
        self._py_logger.propagate = False
        self._handler = logging.FileHandler(self.log_path, encoding="utf-8")
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._py_logger.handlers = [self._handler]

        self._sink_id: Optional[int] = None

    @staticmethod
    def get_date_filename(moment: Optional[datetime] = None) -> str:
        """Log file name for the given (or current) UTC date."""
        moment = moment or datetime.now(timezone.utc)
        return f"app-{moment.astimezone(timezone.utc).strftime('%Y-%m-%d')}.log"

    # ---------- Wiring ----------
    def pipe_through(self, pipes: Iterable[Any]) -> "Logger":
        """Register the pipes that transform or filter log records."""
        self._pipes = list(pipes)
        return self

    def attach_loguru_sink(self, level: str = "INFO") -> None:
        """Mirror framework loguru output into the log file."""
        if self._sink_id is None:
            self._sink_id = loguru_logger.add(
                self.log_path,
                format="[{time:YYYY-MM-DDTHH:mm:ss.SSS!UTC}Z] {level}: {message}",
                level=level,
            )

    def detach_loguru_sink(self) -> None:
        if self._sink_id is not None:
            try:
                loguru_logger.remove(self._sink_id)
            except ValueError:
                pass
            finally:
                self._sink_id = None

    def close(self) -> None:
        """Release the file handle and any loguru sink."""
        self.detach_loguru_sink()
        self._py_logger.removeHandler(self._handler)
        self._handler.close()

    # ---------- Public API ----------
    async def log(self, level: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Send a record through the pipes and write it.

        Raises:
            LoggingError: If ``level`` is not a known log level
        """
        level = level.lower()
        if level not in LEVELS:
            raise LoggingError(f"Unknown log level: {level}")

        payload = LogPayload(
            level=level,
            message=message,
            context=dict(context or {}),
            timestamp=utc_timestamp(),
        )
        await Pipeline().send(payload).through(self._pipes).then(self.write)

    async def info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log("info", message, context)

    async def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log("error", message, context)

    async def warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log("warning", message, context)

    async def debug(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log("debug", message, context)

    async def notice(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log("notice", message, context)

    # ---------- Output ----------
    @staticmethod
    def format(payload: LogPayload) -> str:
        line = f"[{payload.timestamp}] {payload.level.upper()}: {payload.message}"
        if payload.context:
            line += f" | {json.dumps(payload.context, separators=(',', ':'), default=str)}"
        return line

    def write(self, payload: LogPayload) -> None:
        """Append the final record to the log file."""
        self._py_logger.info(self.format(payload))
