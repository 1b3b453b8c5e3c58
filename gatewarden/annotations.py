"""
Registration decorators for Gatewarden.

Classes and methods can declare their gate registrations where they are
defined instead of in bootstrap code:

    >>> @policy_for(Post, Draft)
    ... class PostPolicy(Policy):
    ...     def update(self, user, post):
    ...         return post.author_id == user.user_id
    >>>
    >>> class ReportController:
    ...     @gate_ability("export-reports")
    ...     def can_export(self, user):
    ...         return "analyst" in user.roles

The decorators record into an `AnnotationCollector` (the global one by
default) at import time. `GateManager` reads the collector at bootstrap
and performs the matching `policy` and `define` calls.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from gatewarden.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)


@dataclass(frozen=True)
class PolicyAnnotation:
    """Marks a class as the policy for one or more subject types."""
    models: tuple[type | str, ...]


@dataclass(frozen=True)
class GateAnnotation:
    """Marks a method as the definition of an ability."""
    ability: str


class AnnotationCollector:
    """
    In-memory annotation index.

    Satisfies the `AnnotationIndex` protocol consumed by `GateManager`.
    """

    def __init__(self) -> None:
        self._classes: dict[type, dict[type, Any]] = defaultdict(dict)
        self._methods: dict[type, list[dict[str, Any]]] = defaultdict(list)
        self._lock = threading.Lock()

    def collect_class(self, cls: type, annotation: Any) -> None:
        with self._lock:
            self._classes[type(annotation)][cls] = annotation
        logger.debug(f"Collected {type(annotation).__name__} on {cls.__qualname__}")

    def collect_method(self, cls: type, method: str, annotation: Any) -> None:
        with self._lock:
            self._methods[type(annotation)].append(
                {"class": cls, "method": method, "annotation": annotation}
            )
        logger.debug(
            f"Collected {type(annotation).__name__} on {cls.__qualname__}.{method}"
        )

    def classes_by_annotation(self, marker: type) -> dict[type, Any]:
        with self._lock:
            return dict(self._classes.get(marker, {}))

    def methods_by_annotation(self, marker: type) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._methods.get(marker, []))

    def clear(self) -> None:
        with self._lock:
            self._classes.clear()
            self._methods.clear()


def policy_for(
    *models: type | str,
    collector: AnnotationCollector | None = None,
) -> Callable[[C], C]:
    """
    Class decorator declaring a policy for the given subject types.

    Raises:
        ConfigurationError: If no subject type is given.
    """
    if not models:
        raise ConfigurationError("models", "at least one subject type")

    def decorator(cls: C) -> C:
        (collector or get_annotation_index()).collect_class(cls, PolicyAnnotation(models))
        return cls
    return decorator


class _GateMethod:
    """Records the owning class once the method is bound to it, then steps aside."""

    def __init__(
        self,
        func: Callable[..., Any],
        annotation: GateAnnotation,
        collector: AnnotationCollector,
    ) -> None:
        self._func = func
        self._annotation = annotation
        self._collector = collector

    def __set_name__(self, owner: type, name: str) -> None:
        self._collector.collect_method(owner, name, self._annotation)
        setattr(owner, name, self._func)


def gate_ability(
    ability: str,
    collector: AnnotationCollector | None = None,
) -> Callable[[Callable[..., Any]], Any]:
    """
    Method decorator defining an ability served by the decorated method.

    At bootstrap the declaring class is resolved from the container and
    the method is called as ``method(user, *arguments)``.

    Raises:
        ConfigurationError: If the ability name is empty.
    """
    if not isinstance(ability, str) or not ability:
        raise ConfigurationError("ability", "a non-empty string", ability)

    def decorator(func: Callable[..., Any]) -> Any:
        return _GateMethod(
            func,
            GateAnnotation(ability),
            collector or get_annotation_index(),
        )
    return decorator


# Global collector instance for convenience
_global_collector: AnnotationCollector | None = None
_global_collector_lock = threading.Lock()


def get_annotation_index() -> AnnotationCollector:
    """
    Get the global annotation collector.

    Creates one if it doesn't exist.
    """
    global _global_collector
    if _global_collector is not None:
        return _global_collector
    with _global_collector_lock:
        if _global_collector is None:
            _global_collector = AnnotationCollector()
        return _global_collector


def reset_annotation_index() -> None:
    """Clear and drop the global collector. Primarily useful for testing."""
    global _global_collector
    with _global_collector_lock:
        if _global_collector is not None:
            _global_collector.clear()
        _global_collector = None
