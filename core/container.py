"""Dependency Injection Container for resolving object graphs on demand.

Abstract identifiers (strings, classes or zero-argument factories) are mapped
to producers. Classes are built by reading their constructor signature: every
parameter name is looked up as an identifier of its own, so binding ``"mailer"``
makes each constructor parameter literally named ``mailer`` resolvable.
"""
from __future__ import annotations

import inspect
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from loguru import logger

from core.exceptions import CircularDependency, MissingDependency, describe_identifier

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True)
class Binding:
    """Registered association between an identifier and its producer.

    Attributes:
        producer: Class, zero-argument factory, or another identifier (alias)
        shared: Whether the built object is cached for the container's lifetime
    """
    producer: Any
    shared: bool = False


class Container:
    """IoC container with singleton caching and constructor injection."""

    def __init__(self):
        self._bindings: Dict[Any, Binding] = {}
        self._instances: Dict[Any, Any] = {}
        self._resolved: Set[Any] = set()
        # Guards the binding, instance and resolved tables only
        self._lock = threading.RLock()
        # One lock per shared identifier, held while its single instance is built
        self._shared_locks: Dict[Any, threading.RLock] = {}
        # Build stacks are per thread; cycles are detected within one resolution
        self._local = threading.local()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def bind(self, abstract: Any, concrete: Any = None, shared: bool = False) -> None:
        """Register a binding, replacing any previous one for the identifier.

        Args:
            abstract: Identifier to bind
            concrete: Class, factory or aliased identifier (defaults to ``abstract``)
            shared: Cache the first resolved object when True
        """
        producer = abstract if concrete is None else concrete
        with self._lock:
            self._bindings[abstract] = Binding(producer=producer, shared=bool(shared))

    def singleton(self, abstract: Any, concrete: Any = None) -> None:
        """Register a shared binding."""
        self.bind(abstract, concrete, shared=True)

    def instance(self, abstract: Any, instance: Any) -> Any:
        """Register an existing object as the resolved value for ``abstract``."""
        with self._lock:
            self._instances[abstract] = instance
            self._resolved.add(abstract)
        return instance

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def make(self, abstract: Any, overrides: Optional[Mapping[str, Any]] = None) -> Any:
        """Resolve ``abstract`` to a concrete object.

        The table lock is held only while bindings and the cache are read or
        written; producers, constructors and callbacks run outside it. Shared
        identifiers are built under a per-identifier lock so concurrent
        callers still get a single instance.

        Args:
            abstract: Identifier to resolve
            overrides: Constructor arguments by parameter name, used verbatim

        Returns:
            The cached instance, or a freshly built object

        Raises:
            MissingDependency: If a constructor parameter cannot be resolved
            CircularDependency: If ``abstract`` is already being built
        """
        with self._lock:
            if abstract in self._instances:
                return self._instances[abstract]
            concrete = self._get_concrete(abstract)
            shared = self.is_shared(abstract)

        stack = self._stack()
        if abstract in stack:
            raise CircularDependency([*stack, abstract])

        if not shared:
            return self._resolve(abstract, concrete, overrides, shared=False)

        with self._shared_lock(abstract):
            with self._lock:
                if abstract in self._instances:
                    return self._instances[abstract]
            return self._resolve(abstract, concrete, overrides, shared=True)

    def _resolve(self, abstract: Any, concrete: Any, overrides: Optional[Mapping[str, Any]], shared: bool) -> Any:
        stack = self._stack()
        stack.append(abstract)
        try:
            if self.is_buildable(concrete, abstract):
                obj = self.build(concrete, overrides, abstract=abstract)
            else:
                obj = self.make(concrete)
        finally:
            stack.pop()

        self._resolving_callback(abstract, obj)

        with self._lock:
            if shared:
                self._instances[abstract] = obj
            self._resolved.add(abstract)

        try:
            self._resolved_callback(abstract, obj)
        except Exception:
            # A failed make leaves no cache entry
            with self._lock:
                if self._instances.get(abstract) is obj:
                    del self._instances[abstract]
            raise

        logger.debug("Resolved {} (shared={})", describe_identifier(abstract), shared)
        return obj

    def build(self, concrete: Any, overrides: Optional[Mapping[str, Any]] = None, abstract: Any = None) -> Any:
        """Build ``concrete`` without consulting the instance cache.

        Factories are called with no arguments. Classes get their constructor
        parameters from ``overrides`` first, then from the container by name,
        then from their declared defaults.
        """
        if inspect.isclass(concrete):
            return self._build_class(concrete, overrides or {})
        if callable(concrete):
            return concrete()
        raise MissingDependency(describe_identifier(concrete if abstract is None else abstract))

    def _build_class(self, concrete: type, overrides: Mapping[str, Any]) -> Any:
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}

        for index, param in enumerate(self.get_parameters(concrete)):
            name = param.name
            if name in overrides:
                value = overrides[name]
            elif self.has(name):
                value = self.make(name)
            elif param.default is not inspect.Parameter.empty:
                if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                    args.append(param.default)
                continue
            else:
                raise MissingDependency(name, index, concrete.__name__)

            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[name] = value

        return concrete(*args, **kwargs)

    @staticmethod
    def get_parameters(concrete: Any) -> List[inspect.Parameter]:
        """Return the named constructor parameters of ``concrete`` in order."""
        try:
            signature = inspect.signature(concrete)
        except (TypeError, ValueError):
            # Builtins without introspectable signatures are built bare
            return []
        return [p for p in signature.parameters.values() if p.kind not in _SKIPPED_KINDS]

    def _get_concrete(self, abstract: Any) -> Any:
        binding = self._bindings.get(abstract)
        if binding is not None:
            return binding.producer
        return abstract

    def _stack(self) -> List[Any]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def _shared_lock(self, abstract: Any) -> threading.RLock:
        with self._lock:
            return self._shared_locks.setdefault(abstract, threading.RLock())

    def _resolving_callback(self, abstract: Any, instance: Any) -> None:
        """Called once a fresh object is built, before it is cached or returned."""
        return

    def _resolved_callback(self, abstract: Any, instance: Any) -> None:
        """Called after a fresh object is cached; an error here undoes the caching."""
        return

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @staticmethod
    def is_buildable(concrete: Any, abstract: Any) -> bool:
        """Whether ``concrete`` is built directly rather than resolved as an alias."""
        return concrete is abstract or callable(concrete) or concrete == abstract

    def is_shared(self, abstract: Any) -> bool:
        """Check if the binding for ``abstract`` is a singleton."""
        binding = self._bindings.get(abstract)
        return binding.shared if binding is not None else False

    def has(self, abstract: Any) -> bool:
        """Check if a binding or a cached instance exists."""
        return abstract in self._bindings or abstract in self._instances

    def __contains__(self, abstract: Any) -> bool:
        return self.has(abstract)

    def resolved(self, abstract: Any) -> bool:
        """Check if ``abstract`` has ever been resolved."""
        return abstract in self._resolved

    def get_bindings(self) -> Dict[Any, Binding]:
        return dict(self._bindings)

    @property
    def build_stack(self) -> Tuple[Any, ...]:
        """Identifiers currently being built by the calling thread."""
        return tuple(self._stack())

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------
    def forget_instance(self, abstract: Any) -> None:
        """Drop the cached instance so the next make() rebuilds it."""
        with self._lock:
            self._instances.pop(abstract, None)

    def forget_instances(self) -> None:
        with self._lock:
            self._instances.clear()

    def flush(self) -> None:
        """Clear bindings, cached instances and the calling thread's build stack.

        The resolved set is kept: it records every identifier resolved
        during the container's lifetime.
        """
        with self._lock:
            self._bindings.clear()
            self._instances.clear()
            self._shared_locks.clear()
        self._stack().clear()
