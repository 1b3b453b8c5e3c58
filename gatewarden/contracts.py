"""
Collaborator protocols for Gatewarden.

The gate itself only needs a handful of narrow interfaces from the host
application: a container to build policies and handlers, a configuration
source, an annotation index, an event dispatcher and an auth manager.
Reference implementations live in `gatewarden.container`,
`gatewarden.config`, `gatewarden.annotations`, `gatewarden.events` and
`gatewarden.auth`; any object satisfying these protocols can be used
instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Container(Protocol):
    """
    Resolves policy classes, gate handler classes and services.

    Example:
        >>> class MyContainer:
        ...     def get(self, identifier):
        ...         return registry[identifier]
        ...
        ...     def has(self, identifier):
        ...         return identifier in registry
    """

    def get(self, identifier: Any) -> Any:
        """
        Resolve an entry.

        Args:
            identifier: A class, an import string, or any bound key.

        Returns:
            The resolved instance.
        """
        ...

    def has(self, identifier: Any) -> bool:
        """Check whether the container can resolve an entry."""
        ...


@runtime_checkable
class ConfigProvider(Protocol):
    """Read-only configuration lookup (e.g. the `auth.policies` mapping)."""

    def get(self, key: str, default: Any = None) -> Any:
        ...


@runtime_checkable
class AnnotationIndex(Protocol):
    """
    Index of classes and methods carrying registration annotations.

    `classes_by_annotation` maps each annotated class to its annotation
    object; `methods_by_annotation` yields one record per annotated method
    with the keys ``class``, ``method`` and ``annotation``.
    """

    def classes_by_annotation(self, marker: type) -> Mapping[type, Any]:
        ...

    def methods_by_annotation(self, marker: type) -> Iterable[Mapping[str, Any]]:
        ...


@runtime_checkable
class EventDispatcher(Protocol):
    """Fire-and-forget event dispatch."""

    def dispatch(self, event: object) -> object:
        ...


@runtime_checkable
class AuthManager(Protocol):
    """Supplies resolution of the currently authenticated user."""

    def user_resolver(self) -> Callable[[], Any]:
        """Return a callable that yields the current user or None."""
        ...


@runtime_checkable
class GateContract(Protocol):
    """
    The public authorization surface.

    Implemented by `Gate` and, by delegation, by `GateManager`.
    """

    def define(self, ability: str, callback: Any = None) -> Any: ...

    def resource(
        self,
        name: str,
        subject: type | str,
        abilities: Iterable[str] | Mapping[str, str] | None = None,
    ) -> Any: ...

    def policy(self, subject: type | str, policy: Any) -> Any: ...

    def before(self, callback: Callable[..., Any]) -> Any: ...

    def after(self, callback: Callable[..., Any]) -> Any: ...

    def for_user(self, user: Any) -> Any: ...

    def authorize(self, ability: str, arguments: Any = None) -> Any: ...

    def inspect(self, ability: str, arguments: Any = None) -> Any: ...

    def raw(self, ability: str, arguments: Any = None) -> Any: ...

    def get_policy_for(self, argument: Any) -> Any: ...

    def has(self, abilities: str | Iterable[str]) -> bool: ...

    def allows(self, ability: str, arguments: Any = None) -> bool: ...

    def denies(self, ability: str, arguments: Any = None) -> bool: ...

    def check(self, abilities: str | Iterable[str], arguments: Any = None) -> bool: ...

    def any(self, abilities: str | Iterable[str], arguments: Any = None) -> bool: ...

    def none(self, abilities: str | Iterable[str], arguments: Any = None) -> bool: ...

    def abilities(self) -> dict[str, Any]: ...
