"""Application bootstrap and lifecycle management."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Type, Union

from dotenv import load_dotenv
from loguru import logger

from app.provider import ServiceProvider
from app.providers import EventServiceProvider, PipelineServiceProvider
from app.services import ExceptionHandlerService, TerminationService
from config.config import AppConfig
from core.container import Container
from core.error_handler import log_execution_time
from core.exceptions import UnregisteredProvider
from events.emitter import Emitter
from logger.file_logger import Logger

ProviderLike = Union[str, Type[ServiceProvider], ServiceProvider]


class Application(Container):
    """The application container.

    Extends the container with path configuration, service provider
    lifecycle (register, then boot) and framework events. The application
    registers itself under ``"app"``, ``"container"``, ``Container`` and
    ``Application`` so services receive it by naming a constructor parameter
    ``app`` or ``container``.

    Attributes:
        config: Application configuration
        termination: Callbacks run by ``terminate()``
    """

    VERSION = "1.0.0"

    def __init__(self, base_path: Optional[Union[str, Path]] = None, config: Optional[AppConfig] = None):
        """Create the application and register its base bindings.

        Args:
            base_path: Application root (defaults to ``config.paths.base_path``)
            config: Configuration (defaults to ``AppConfig()``)
        """
        super().__init__()
        self.config = config or AppConfig()
        paths = self.config.paths
        self._base_path = Path(base_path if base_path is not None else paths.base_path)
        self._paths: Dict[str, str] = {
            "bootstrap": paths.bootstrap,
            "app": paths.app,
            "config": paths.config,
            "database": paths.database,
            "lang": paths.lang,
            "public": paths.public,
            "storage": paths.storage,
            "cache": paths.cache,
            "environment": paths.environment,
        }
        self._environment_file = paths.environment_file

        self._booted = False
        self._service_providers: Dict[str, ServiceProvider] = {}
        self._loaded_providers: Dict[str, bool] = {}
        self._booted_providers: Set[str] = set()
        self._provider_table: Dict[str, Type[ServiceProvider]] = {
            EventServiceProvider.name: EventServiceProvider,
            PipelineServiceProvider.name: PipelineServiceProvider,
        }

        self.termination = TerminationService()
        self.exception_handler: Optional[ExceptionHandlerService] = None

        self._register_base_bindings()

    @property
    def version(self) -> str:
        return self.VERSION

    def _register_base_bindings(self) -> None:
        self.instance("app", self)
        self.instance("container", self)
        self.instance(Container, self)
        self.instance(Application, self)
        self.instance(AppConfig, self.config)
        self.instance("config", self.config)

        emitter = Emitter()
        self.instance(Emitter, emitter)
        self.instance("emitter", emitter)

        app_logger = Logger(str(self.storage_path(self.config.logging.directory)))
        if self.config.logging.capture_framework_logs:
            app_logger.attach_loguru_sink(self.config.logging.level)
        self.instance(Logger, app_logger)
        self.instance("logger", app_logger)
        self.terminating(app_logger.close, "logger")

        self._bind_paths()

    def _bind_paths(self) -> None:
        self.instance("path.base", self.base_path())
        for key in self._paths:
            self.instance(f"path.{key}", self._path(key))

    def _resolving_callback(self, abstract: Any, instance: Any) -> None:
        """Dispatch ``container.resolving`` for a freshly built object.

        Both container events fire after construction, since their payload
        carries the instance. ``container.resolving`` fires before the object
        is cached or returned, ``container.resolved`` right after it is
        cached. A listener error fails the ``make`` call and leaves no cache
        entry behind.
        """
        self._dispatch_container_event("container.resolving", abstract, instance)

    def _resolved_callback(self, abstract: Any, instance: Any) -> None:
        self._dispatch_container_event("container.resolved", abstract, instance)

    def _dispatch_container_event(self, event: str, abstract: Any, instance: Any) -> None:
        emitter = self._instances.get(Emitter)
        if emitter is not None:
            emitter.dispatch(event, {"abstract": abstract, "instance": instance})

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def _path(self, key: str, *parts: str) -> Path:
        return self._base_path.joinpath(self._paths[key], *parts)

    def base_path(self, *parts: str) -> Path:
        return self._base_path.joinpath(*parts)

    def bootstrap_path(self, *parts: str) -> Path:
        return self._path("bootstrap", *parts)

    def app_path(self, *parts: str) -> Path:
        return self._path("app", *parts)

    def config_path(self, *parts: str) -> Path:
        return self._path("config", *parts)

    def database_path(self, *parts: str) -> Path:
        return self._path("database", *parts)

    def lang_path(self, *parts: str) -> Path:
        return self._path("lang", *parts)

    def public_path(self, *parts: str) -> Path:
        return self._path("public", *parts)

    def storage_path(self, *parts: str) -> Path:
        return self._path("storage", *parts)

    def cache_path(self, *parts: str) -> Path:
        return self._path("cache", *parts)

    def environment_path(self, *parts: str) -> Path:
        return self._path("environment", *parts)

    def environment_file_path(self) -> Path:
        return self.environment_path(self._environment_file)

    def use_storage_path(self, path: Union[str, Path]) -> "Application":
        """Point the storage path elsewhere (absolute paths ignore the base path)."""
        self._paths["storage"] = str(path)
        self._bind_paths()
        return self

    def use_config_path(self, path: Union[str, Path]) -> "Application":
        self._paths["config"] = str(path)
        self._bind_paths()
        return self

    def use_environment_path(self, path: Union[str, Path]) -> "Application":
        self._paths["environment"] = str(path)
        self._bind_paths()
        return self

    def load_environment_from(self, file: str) -> "Application":
        self._environment_file = file
        return self

    def load_environment(self) -> bool:
        """Load the dotenv file; existing environment variables win.

        Returns:
            True if the file existed and at least one variable was set
        """
        path = self.environment_file_path()
        if not path.exists():
            logger.debug("No environment file at {}", path)
            return False
        return load_dotenv(path, override=False)

    def environment(self, *environments: str) -> Union[str, bool]:
        """Current environment name, or whether it matches one of ``environments``."""
        if environments:
            return self.config.env in environments
        return self.config.env

    # ------------------------------------------------------------------
    # Service providers
    # ------------------------------------------------------------------
    def add_provider(self, name: str, provider: Type[ServiceProvider]) -> None:
        """Add a provider class to the registration table under ``name``."""
        self._provider_table[name] = provider

    def register(self, provider: ProviderLike, force: bool = False) -> ServiceProvider:
        """Register a service provider.

        Args:
            provider: Registered name, provider class or provider instance
            force: Re-register even if a provider with that name is loaded

        Returns:
            The registered provider instance

        Raises:
            UnregisteredProvider: If ``provider`` is a name with no table entry
        """
        name = self._provider_name(provider)
        existing = self.get_provider(name)
        if existing is not None and not force:
            return existing

        instance = self._resolve_provider(provider, name)
        self.make(Emitter).dispatch("provider.registering", {"provider": name})
        logger.info("Registering service provider {}", name)
        instance.register()
        self._mark_as_registered(name, instance)

        if self._booted:
            self._boot_provider(name, instance)
        return instance

    def register_configured_providers(self) -> None:
        """Register every provider named in the configuration, in order."""
        for name in self.config.providers:
            self.register(name)

    def _provider_name(self, provider: ProviderLike) -> str:
        if isinstance(provider, str):
            return provider
        cls = provider if isinstance(provider, type) else type(provider)
        return cls.name or cls.__qualname__

    def _resolve_provider(self, provider: ProviderLike, name: str) -> ServiceProvider:
        if isinstance(provider, ServiceProvider):
            return provider
        if isinstance(provider, str):
            provider_class = self._provider_table.get(name)
            if provider_class is None:
                raise UnregisteredProvider(name)
        else:
            provider_class = provider
        return self.make(provider_class, {"app": self})

    def _mark_as_registered(self, name: str, instance: ServiceProvider) -> None:
        self._service_providers[name] = instance
        self._loaded_providers[name] = True
        self._booted_providers.discard(name)

    def get_provider(self, name: str) -> Optional[ServiceProvider]:
        """Get the registered provider instance if it exists."""
        return self._service_providers.get(name)

    def get_providers(self) -> List[ServiceProvider]:
        return list(self._service_providers.values())

    def loaded_providers(self) -> Dict[str, bool]:
        return dict(self._loaded_providers)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def is_booted(self) -> bool:
        return self._booted

    @log_execution_time(level="DEBUG")
    def boot(self) -> None:
        """Boot every registered provider once, in registration order."""
        if self._booted:
            return

        emitter = self.make(Emitter)
        emitter.dispatch("app.booting", {})

        # Providers registered while booting are booted in the same pass
        pending = self._pending_providers()
        while pending:
            for name in pending:
                self._boot_provider(name, self._service_providers[name])
            pending = self._pending_providers()

        self._booted = True
        emitter.dispatch("app.booted", {})
        logger.info("Application booted with providers: {}", ", ".join(self._service_providers) or "none")

    def _pending_providers(self) -> List[str]:
        return [name for name in self._service_providers if name not in self._booted_providers]

    def _boot_provider(self, name: str, provider: ServiceProvider) -> None:
        self.make(Emitter).dispatch("provider.booting", {"provider": name})
        provider.boot()
        self._booted_providers.add(name)

    def terminating(self, callback: Callable[[], None], name: Optional[str] = None) -> "Application":
        """Register a callback run by ``terminate()``."""
        self.termination.register(callback, name)
        return self

    def terminate(self) -> None:
        """Emit ``app.terminating`` and run termination callbacks once."""
        if self.termination.terminated:
            return
        emitter = self._instances.get(Emitter)
        if emitter is not None:
            emitter.dispatch("app.terminating", {})
        self.termination.run()

    def install_exception_handler(self) -> ExceptionHandlerService:
        """Route uncaught exceptions to ``exception.thrown`` listeners."""
        if self.exception_handler is None:
            self.exception_handler = ExceptionHandlerService(self.make(Emitter))
            self.exception_handler.install()
            self.terminating(self.exception_handler.uninstall, "exception_handler")
        return self.exception_handler

    def flush(self) -> None:
        """Flush bindings, instances and loaded providers."""
        super().flush()
        self._service_providers.clear()
        self._loaded_providers.clear()
        self._booted_providers.clear()
        self._booted = False
