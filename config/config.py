"""Hierarchical configuration for the foundation runtime.

Precedence, lowest first:
1. Default values
2. ``app.json`` in the configuration directory
3. Environment variables
4. Command-line arguments

Sources are deep-merged, so any source may override a single nested key.
"""
from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from core.exceptions import ConfigurationError

ENVIRONMENTS = ("local", "development", "testing", "staging", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class PathsConfig:
    """Filesystem layout relative to the base path.

    Attributes:
        base_path: Application root; everything else is resolved against it
        bootstrap: Bootstrap files directory
        app: Application source directory
        config: Configuration directory (holds ``app.json``)
        database: Database files directory
        lang: Language files directory
        public: Public / web directory
        storage: Writable storage directory
        cache: Framework cache directory
        environment: Directory holding the environment file
        environment_file: Name of the dotenv file
    """
    base_path: str = "."
    bootstrap: str = "bootstrap"
    app: str = "app"
    config: str = "config"
    database: str = "database"
    lang: str = "public/lang"
    public: str = "public"
    storage: str = "storage"
    cache: str = "storage/cache/framework"
    environment: str = "."
    environment_file: str = ".env"


@dataclass(frozen=True)
class LoggingConfig:
    """Application log settings.

    Attributes:
        directory: Log directory, relative to the storage path
        level: Minimum level for framework (loguru) output
        capture_framework_logs: Mirror framework output into the log file
    """
    directory: str = "logs"
    level: str = "INFO"
    capture_framework_logs: bool = False

    def __post_init__(self):
        if self.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid logging level: {self.level}")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration.

    Attributes:
        name: Application name
        env: Deployment environment
        debug: Debug mode flag
        log_level: Framework logging verbosity
        providers: Names of service providers registered at startup
        paths: Filesystem layout
        logging: Application log settings
    """
    name: str = "Nova"
    env: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    providers: Tuple[str, ...] = ("events", "pipeline")
    paths: PathsConfig = field(default_factory=PathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        if self.env not in ENVIRONMENTS:
            raise ConfigurationError(f"Invalid environment: {self.env}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")


class ConfigLoader:
    """Configuration loader applying the precedence described above."""

    def __init__(self, config_dir: Path = Path("config")):
        self.config_dir = Path(config_dir)

    def load(self, argv: List[str]) -> Tuple[AppConfig, List[str]]:
        """Load configuration: defaults → file → env → CLI.

        Args:
            argv: Command-line arguments to parse

        Returns:
            Tuple of (AppConfig instance, unknown CLI arguments)
        """
        config_dict = self._get_defaults()

        self._deep_update(config_dict, self._load_json_config())
        self._deep_update(config_dict, self._load_env_overrides())

        cli_overrides, unknown_args = self._parse_cli_args(argv)
        self._deep_update(config_dict, cli_overrides)

        return self._build_config(config_dict), unknown_args

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "name": "Nova",
            "env": "production",
            "debug": False,
            "log_level": "INFO",
            "providers": ["events", "pipeline"],
            "paths": {},
            "logging": {},
        }

    def _load_json_config(self) -> Dict[str, Any]:
        """Load ``app.json``; a missing or unreadable file yields no overrides."""
        file_path = self.config_dir / "app.json"
        if not file_path.exists():
            return {}
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load {}: {}", file_path, e)
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{file_path} must contain a JSON object")
        return data

    def _load_env_overrides(self) -> Dict[str, Any]:
        """Load configuration overrides from environment variables.

        Supported environment variables:
        - APP_NAME: Application name
        - APP_ENV: Deployment environment
        - APP_DEBUG: Enable debug mode
        - APP_BASE_PATH: Application base path
        - APP_PROVIDERS: Comma separated provider names
        - LOG_LEVEL: Framework logging level
        """
        overrides: Dict[str, Any] = {}

        name = os.getenv("APP_NAME")
        if name:
            overrides["name"] = name

        env = os.getenv("APP_ENV")
        if env:
            overrides["env"] = env.lower()

        if os.getenv("APP_DEBUG") is not None:
            overrides["debug"] = self._env_bool("APP_DEBUG")

        base_path = os.getenv("APP_BASE_PATH")
        if base_path:
            overrides.setdefault("paths", {})["base_path"] = base_path

        providers = os.getenv("APP_PROVIDERS")
        if providers is not None:
            overrides["providers"] = [p.strip() for p in providers.split(",") if p.strip()]

        log_level = os.getenv("LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level.upper()

        return overrides

    def _parse_cli_args(self, argv: List[str]) -> Tuple[Dict[str, Any], List[str]]:
        """Parse CLI arguments.

        Returns:
            Tuple of (overrides dictionary, unknown arguments)
        """
        parser = argparse.ArgumentParser(description="Nova application runtime")
        parser.add_argument("--env", choices=ENVIRONMENTS, help="Deployment environment")
        parser.add_argument("--debug", action="store_true", help="Enable debug mode")
        parser.add_argument("--log-level", choices=LOG_LEVELS, help="Set logging level")
        parser.add_argument("--base-path", help="Application base path")
        parser.add_argument(
            "--provider",
            action="append",
            dest="providers",
            help="Service provider to register (repeatable, replaces configured list)",
        )

        known, unknown = parser.parse_known_args(argv)

        overrides: Dict[str, Any] = {}
        if known.env:
            overrides["env"] = known.env
        if known.debug:
            overrides["debug"] = True
        if known.log_level:
            overrides["log_level"] = known.log_level
        if known.base_path:
            overrides.setdefault("paths", {})["base_path"] = known.base_path
        if known.providers:
            overrides["providers"] = known.providers

        return overrides, unknown

    def _build_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Build and validate the final configuration object.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            paths = PathsConfig(**config_dict.get("paths", {}))
            logging_config = LoggingConfig(**config_dict.get("logging", {}))
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

        return AppConfig(
            name=config_dict.get("name", "Nova"),
            env=config_dict.get("env", "production"),
            debug=bool(config_dict.get("debug", False)),
            log_level=str(config_dict.get("log_level", "INFO")).upper(),
            providers=tuple(config_dict.get("providers", ())),
            paths=paths,
            logging=logging_config,
        )

    @staticmethod
    def _env_bool(name: str, default: bool = False) -> bool:
        """Parse boolean from environment variable.

        Returns:
            Boolean value (True for "1", "true", "yes", "y", "on")
        """
        val = os.getenv(name)
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "y", "on"}

    @staticmethod
    def _deep_update(target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Recursively merge ``source`` into ``target`` in place."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigLoader._deep_update(target[key], value)
            else:
                target[key] = value
