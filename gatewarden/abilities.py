"""
Ability registry for Gatewarden.

An ability is a named permission check. Its definition is one of:

- a callable invoked as ``callback(user, *arguments)``
- a `HandlerMethod`: a method on a handler object, class or import path,
  resolved at call time (``(handler, "method")`` tuples and
  ``"package.module.Class@method"`` strings are converted to this)
- a `PolicyMethod`: a method on the policy registered for a subject
  type, resolved at call time (used by `resource`)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from gatewarden.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Conventional resource abilities and the policy methods serving them
RESOURCE_ABILITIES: dict[str, str] = {
    "viewAny": "view_any",
    "view": "view",
    "create": "create",
    "update": "update",
    "delete": "delete",
    "restore": "restore",
    "forceDelete": "force_delete",
}


@dataclass(frozen=True)
class HandlerMethod:
    """
    A method on a handler, resolved at call time.

    Attributes:
        handler: A handler instance, or a class / import path the container
            resolves (a subject type with a registered policy resolves to
            that policy).
        method: Name of the method to call.
    """
    handler: Any
    method: str


@dataclass(frozen=True)
class PolicyMethod:
    """
    A method on the policy registered for a subject type.

    Resolution fails with `PolicyNotFoundError` when the subject has no
    policy.
    """
    subject: type | str
    method: str


AbilityCallback = Union[Callable[..., Any], HandlerMethod, PolicyMethod]


class AbilityRegistry:
    """
    Registry of ability definitions.

    Redefining an ability replaces the previous definition.

    Example:
        >>> registry = AbilityRegistry()
        >>> registry.define("publish-post", lambda user, post: user.user_id == post.author_id)
        >>> registry.resource("posts", Post)
        >>> registry.has(["publish-post", "posts.view"])
        True
    """

    def __init__(self) -> None:
        self._abilities: dict[str, AbilityCallback] = {}
        self._lock = threading.RLock()

    def define(self, name: str, callback: Any) -> AbilityRegistry:
        """
        Define an ability.

        Args:
            name: Non-empty ability name.
            callback: A callable, a ``(handler, method)`` pair, a
                ``"module.Class@method"`` string, or a `HandlerMethod` /
                `PolicyMethod`.

        Raises:
            ConfigurationError: If the name is empty or the callback has an
                unsupported shape.
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError("ability", "a non-empty string", name)

        definition = self._normalize(name, callback)

        with self._lock:
            if name in self._abilities:
                logger.warning(f"Overwriting definition for ability '{name}'")
            self._abilities[name] = definition

        logger.debug(f"Defined ability '{name}' -> {_describe(definition)}")
        return self

    def resource(
        self,
        name: str,
        subject: type | str,
        abilities: Iterable[str] | Mapping[str, str] | None = None,
    ) -> AbilityRegistry:
        """
        Define the conventional resource abilities for a subject type.

        Registers ``<name>.viewAny``, ``<name>.view``, ``<name>.create``,
        ``<name>.update``, ``<name>.delete``, ``<name>.restore`` and
        ``<name>.forceDelete``, each dispatching to the matching method of
        the subject's policy.

        Args:
            name: Resource name used as the ability prefix.
            subject: The model class (or import path) whose policy serves
                the abilities.
            abilities: Restrict to a subset of the conventional abilities,
                or pass a mapping of ability suffix to policy method name.

        Raises:
            ConfigurationError: For an unknown ability in the subset.
        """
        if abilities is None:
            selected = dict(RESOURCE_ABILITIES)
        elif isinstance(abilities, Mapping):
            selected = dict(abilities)
        else:
            selected = {}
            for ability in abilities:
                if ability not in RESOURCE_ABILITIES:
                    raise ConfigurationError(
                        "abilities",
                        f"a subset of {sorted(RESOURCE_ABILITIES)}",
                        ability,
                    )
                selected[ability] = RESOURCE_ABILITIES[ability]

        for ability, method in selected.items():
            self.define(f"{name}.{ability}", PolicyMethod(subject, method))
        return self

    def get(self, name: str) -> AbilityCallback | None:
        with self._lock:
            return self._abilities.get(name)

    def has(self, names: str | Iterable[str]) -> bool:
        """Check that every given ability is defined."""
        if isinstance(names, str):
            names = [names]
        with self._lock:
            return all(name in self._abilities for name in names)

    def abilities(self) -> dict[str, AbilityCallback]:
        """Return all definitions keyed by ability name."""
        with self._lock:
            return dict(self._abilities)

    def _normalize(self, name: str, callback: Any) -> AbilityCallback:
        if isinstance(callback, (HandlerMethod, PolicyMethod)):
            return callback
        if isinstance(callback, str):
            handler, sep, method = callback.partition("@")
            if not sep or not handler or not method:
                raise ConfigurationError(name, "a 'module.Class@method' string", callback)
            return HandlerMethod(handler, method)
        if isinstance(callback, (tuple, list)):
            if len(callback) != 2 or not isinstance(callback[1], str):
                raise ConfigurationError(name, "a (handler, method_name) pair", callback)
            return HandlerMethod(callback[0], callback[1])
        if callable(callback):
            return callback
        raise ConfigurationError(name, "a callable", callback)

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._abilities)


def _describe(definition: AbilityCallback) -> str:
    if isinstance(definition, HandlerMethod):
        handler = definition.handler
        if not isinstance(handler, (str, type)):
            handler = type(handler)
        return f"{getattr(handler, '__name__', handler)}.{definition.method}"
    if isinstance(definition, PolicyMethod):
        subject = getattr(definition.subject, "__name__", definition.subject)
        return f"policy({subject}).{definition.method}"
    return getattr(definition, "__qualname__", repr(definition))
