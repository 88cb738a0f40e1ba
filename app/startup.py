"""Application startup.

Orchestrates configuration loading, logging setup, provider registration
and booting.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from app.application import Application
from config.service import ConfigurationServiceFactory


def configure_logging(level: str = "INFO") -> int:
    """Reset loguru to a single stderr sink at ``level``.

    Returns:
        The id of the new sink
    """
    logger.remove()
    return logger.add(sys.stderr, level=level)


def run_application(argv: Optional[List[str]] = None, config_dir: Optional[Path] = None) -> Application:
    """Build and boot the application.

    Startup sequence:
    1. Parse configuration from all sources (defaults, file, env, CLI)
    2. Configure framework logging
    3. Create the application and load its environment file
    4. Register configured providers, then boot them

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``)
        config_dir: Directory holding ``app.json``

    Returns:
        The booted application
    """
    args = sys.argv[1:] if argv is None else argv
    config_service, unknown_args = ConfigurationServiceFactory.create_from_args(args, config_dir)
    if unknown_args:
        logger.warning("Ignoring unknown arguments: {}", " ".join(unknown_args))

    configure_logging("DEBUG" if config_service.debug else config_service.log_level)

    app = Application(config=config_service.raw_config)
    app.load_environment()
    app.install_exception_handler()

    app.register_configured_providers()
    app.boot()
    return app
