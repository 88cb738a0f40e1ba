"""Configuration service facade for simplified configuration access.

Provides flat accessors over the nested ``AppConfig`` so callers do not
reach through ``config.paths.storage`` style chains.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from config.config import AppConfig, ConfigLoader


class ConfigurationService:
    """Facade for application configuration.

    Example:
        config_service = ConfigurationService(config)
        base = config_service.base_path  # Instead of config.paths.base_path

    Attributes:
        _config: Underlying AppConfig instance
    """

    def __init__(self, config: AppConfig):
        self._config = config

    # Application
    @property
    def name(self) -> str:
        return self._config.name

    @property
    def env(self) -> str:
        return self._config.env

    @property
    def debug(self) -> bool:
        return self._config.debug

    @property
    def log_level(self) -> str:
        return self._config.log_level

    @property
    def providers(self) -> tuple[str, ...]:
        """Get names of providers registered at startup."""
        return self._config.providers

    # Paths
    @property
    def base_path(self) -> str:
        return self._config.paths.base_path

    @property
    def storage_path(self) -> str:
        return self._config.paths.storage

    @property
    def environment_file(self) -> str:
        return self._config.paths.environment_file

    # Logging
    @property
    def log_directory(self) -> str:
        return self._config.logging.directory

    @property
    def capture_framework_logs(self) -> bool:
        return self._config.logging.capture_framework_logs

    @property
    def raw_config(self) -> AppConfig:
        """Get raw configuration object.

        Returns:
            Underlying AppConfig instance for direct access
        """
        return self._config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "name": self.name,
            "env": self.env,
            "debug": self.debug,
            "log_level": self.log_level,
            "providers": list(self.providers),
            "paths": {
                "base_path": self.base_path,
                "storage": self.storage_path,
                "environment_file": self.environment_file,
            },
            "logging": {
                "directory": self.log_directory,
                "capture_framework_logs": self.capture_framework_logs,
            },
        }


class ConfigurationServiceFactory:
    """Factory for creating ConfigurationService instances."""

    @staticmethod
    def create_from_args(
        args: list[str], config_dir: Optional[Path] = None
    ) -> tuple[ConfigurationService, list[str]]:
        """Create configuration service from command-line arguments.

        Returns:
            Tuple of (ConfigurationService, unknown_args)
        """
        loader = ConfigLoader(config_dir) if config_dir is not None else ConfigLoader()
        config, unknown_args = loader.load(args)
        return ConfigurationService(config), unknown_args

    @staticmethod
    def create_from_config(config: AppConfig) -> ConfigurationService:
        return ConfigurationService(config)

    @staticmethod
    def create_default() -> ConfigurationService:
        """Create configuration service with defaults, files and environment."""
        loader = ConfigLoader()
        config, _ = loader.load([])
        return ConfigurationService(config)
