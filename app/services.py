"""Services for application infrastructure management.

Keeps infrastructure concerns (uncaught exception reporting, shutdown
callbacks) out of the ``Application`` class itself.
"""
from __future__ import annotations

import sys
import threading
import traceback
from typing import Callable, List, Optional, Tuple

from loguru import logger

from core.error_handler import handle_exceptions


class ExceptionHandlerService:
    """Reports uncaught exceptions as ``exception.thrown`` events.

    Captures uncaught exceptions from the main thread and worker threads,
    logs them and dispatches them on the emitter before deferring to the
    original hooks.

    Attributes:
        emitter: Emitter receiving ``exception.thrown`` events
    """

    def __init__(self, emitter=None):
        self.emitter = emitter
        self._original_excepthook = sys.excepthook
        self._original_thread_excepthook = threading.excepthook
        self._installed = False

    def report(self, error: BaseException) -> None:
        """Log ``error`` and dispatch it to ``exception.thrown`` listeners."""
        tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        logger.error("Uncaught exception:\n{}", tb)
        if self.emitter is not None:
            self.emitter.dispatch("exception.thrown", {"error": error})

    def install(self) -> None:
        """Install global exception hooks for main and worker threads."""
        if self._installed:
            return

        def excepthook(exc_type, exc_value, exc_traceback):
            try:
                self.report(exc_value)
            finally:
                # Always call the original handler so the interpreter still reports it
                self._original_excepthook(exc_type, exc_value, exc_traceback)

        def thread_excepthook(args: threading.ExceptHookArgs) -> None:
            try:
                self.report(args.exc_value)
            finally:
                self._original_thread_excepthook(args)

        sys.excepthook = excepthook
        threading.excepthook = thread_excepthook
        self._installed = True

    def uninstall(self) -> None:
        """Restore original exception hooks."""
        sys.excepthook = self._original_excepthook
        threading.excepthook = self._original_thread_excepthook
        self._installed = False


class TerminationService:
    """Registry of callbacks run once when the application terminates.

    Callbacks run in registration order. A failing callback is logged and the
    remaining ones still run.
    """

    def __init__(self):
        self._callbacks: List[Tuple[Callable[[], None], str]] = []
        self._terminated = False

    @property
    def terminated(self) -> bool:
        return self._terminated

    def register(self, callback: Callable[[], None], name: Optional[str] = None) -> None:
        """Register a termination callback.

        Args:
            callback: Function to call during termination
            name: Optional name for the callback (for logging)
        """
        self._callbacks.append((callback, name or getattr(callback, "__name__", "callback")))

    @handle_exceptions(message="Termination failed")
    def run(self) -> None:
        """Execute all registered callbacks (idempotent)."""
        if self._terminated:
            return

        self._terminated = True
        logger.info("Terminating application...")

        for callback, name in self._callbacks:
            try:
                logger.debug(f"Running terminating callback: {name}")
                callback()
            except Exception as e:
                logger.warning(f"Terminating callback {name} failed: {e}")

        logger.info("Termination completed")
