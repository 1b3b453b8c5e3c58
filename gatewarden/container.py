"""
Reference service container for Gatewarden.

`ServiceContainer` is a small dependency-injection container that
satisfies the `Container` protocol. It resolves explicit bindings first,
then builds classes (given directly or as import strings) by injecting
constructor parameters from their type hints.

Example:
    >>> container = ServiceContainer()
    >>> container.instance(ConfigProvider, DictConfig({"auth": {}}))
    >>> container.bind(Mailer, lambda c: Mailer(host="localhost"))
    >>> policy = container.get("app.policies.PostPolicy")
"""

from __future__ import annotations

import importlib
import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any, get_type_hints

from gatewarden.contracts import Container
from gatewarden.exceptions import ContainerResolutionError

logger = logging.getLogger(__name__)


def import_string(path: str) -> Any:
    """
    Import an object from a dotted path.

    Accepts both ``"package.module.Name"`` and ``"package.module:Name"``.

    Raises:
        ContainerResolutionError: If the module or attribute does not exist.
    """
    if ":" in path:
        module_path, _, attr = path.partition(":")
    else:
        module_path, _, attr = path.rpartition(".")

    if not module_path or not attr:
        raise ContainerResolutionError(path, "not an import path")

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ContainerResolutionError(path, f"cannot import module '{module_path}': {e}") from e

    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ContainerResolutionError(path, f"module has no attribute '{attr}'") from e
    return target


class ServiceContainer:
    """
    Minimal dependency-injection container.

    Resolution order for `get(identifier)`:
        1. A bound instance (`instance`).
        2. A bound factory (`bind` / `singleton`).
        3. A class, or an import string naming a class, built with its
           constructor dependencies resolved recursively.

    Auto-built classes are not cached; bind them with `singleton` to share
    one instance.

    Thread Safety:
        Bindings and singleton creation are guarded by an internal lock.
    """

    def __init__(self) -> None:
        self._instances: dict[Any, Any] = {}
        self._factories: dict[Any, Callable[[ServiceContainer], Any]] = {}
        self._shared: set[Any] = set()
        self._lock = threading.RLock()

    def instance(self, identifier: Any, value: Any) -> ServiceContainer:
        """Bind an existing object to an identifier."""
        with self._lock:
            self._instances[identifier] = value
        return self

    def bind(
        self,
        identifier: Any,
        factory: Callable[[ServiceContainer], Any],
    ) -> ServiceContainer:
        """Bind a factory; it is called with the container on every `get`."""
        with self._lock:
            self._factories[identifier] = factory
            self._shared.discard(identifier)
        return self

    def singleton(
        self,
        identifier: Any,
        factory: Callable[[ServiceContainer], Any] | None = None,
    ) -> ServiceContainer:
        """
        Bind a factory whose result is cached after the first `get`.

        If no factory is given, the identifier itself is built by
        constructor injection.
        """
        if factory is None:
            target = import_string(identifier) if isinstance(identifier, str) else identifier
            factory = lambda c: c.make(target)  # noqa: E731

        with self._lock:
            self._factories[identifier] = factory
            self._shared.add(identifier)
        return self

    def has(self, identifier: Any) -> bool:
        with self._lock:
            if identifier in self._instances or identifier in self._factories:
                return True
        if isinstance(identifier, type):
            return not getattr(identifier, "_is_protocol", False)
        if isinstance(identifier, str):
            try:
                return isinstance(import_string(identifier), type)
            except ContainerResolutionError:
                return False
        return False

    def get(self, identifier: Any) -> Any:
        """
        Resolve an entry.

        Raises:
            ContainerResolutionError: If nothing is bound and the identifier
                is not a buildable class.
        """
        found, value = self._resolve_bound(identifier)
        if found:
            return value

        target = import_string(identifier) if isinstance(identifier, str) else identifier
        if target is not identifier:
            found, value = self._resolve_bound(target)
            if found:
                return value

        if not isinstance(target, type):
            raise ContainerResolutionError(identifier, "no binding and not a class")
        if getattr(target, "_is_protocol", False):
            raise ContainerResolutionError(identifier, "no binding for protocol")
        return self.make(target)

    def make(self, cls: type, **parameters: Any) -> Any:
        """
        Build a class, injecting constructor dependencies.

        Explicit `parameters` win. Parameters annotated with a class are
        resolved from the container; parameters with defaults are left to
        their defaults.

        Raises:
            ContainerResolutionError: If a required parameter cannot be resolved.
        """
        try:
            signature = inspect.signature(cls)
        except (TypeError, ValueError):
            return cls(**parameters)

        try:
            hints = get_type_hints(cls.__init__)
        except Exception:
            hints = {}

        kwargs: dict[str, Any] = {}
        for name, param in signature.parameters.items():
            if param.kind in (
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD,
            ):
                continue
            if name in parameters:
                kwargs[name] = parameters[name]
                continue

            hint = hints.get(name)
            if hint in (Container, ServiceContainer):
                kwargs[name] = self
            elif self._is_bound(hint):
                kwargs[name] = self.get(hint)
            elif param.default is not inspect.Parameter.empty:
                continue
            elif isinstance(hint, type) and hint.__module__ != "builtins":
                kwargs[name] = self.get(hint)
            else:
                raise ContainerResolutionError(
                    cls, f"cannot resolve constructor parameter '{name}'"
                )

        logger.debug(f"Building {cls.__qualname__} with {sorted(kwargs)}")
        return cls(**kwargs)

    def _is_bound(self, identifier: Any) -> bool:
        if identifier is None:
            return False
        with self._lock:
            try:
                return identifier in self._instances or identifier in self._factories
            except TypeError:
                return False

    def _resolve_bound(self, identifier: Any) -> tuple[bool, Any]:
        with self._lock:
            try:
                if identifier in self._instances:
                    return True, self._instances[identifier]
                factory = self._factories.get(identifier)
            except TypeError:
                return False, None
            if factory is None:
                return False, None
            value = factory(self)
            if identifier in self._shared:
                self._instances[identifier] = value
            return True, value
