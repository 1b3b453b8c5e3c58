"""
Policy registry for Gatewarden.

This module maps subject types (model classes, or their import paths) to
policy classes and builds policy instances on demand through the
container. Instances are memoized per subject type for the life of the
registry.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from gatewarden.contracts import Container
from gatewarden.exceptions import PolicyNotFoundError

logger = logging.getLogger(__name__)


def subject_key(subject: type | str) -> str:
    """
    Build the lookup key for a subject type.

    Classes and their import paths produce the same key, so a mapping
    loaded from configuration as strings matches runtime instances.

    Example:
        >>> subject_key(Post)
        'app.models.Post'
        >>> subject_key("app.models:Post")
        'app.models.Post'
    """
    if isinstance(subject, str):
        return subject.replace(":", ".")
    return f"{subject.__module__}.{subject.__qualname__}"


def resolve_subject_type(argument: Any) -> type | str | None:
    """
    Determine the subject type of a call argument.

    - an ordered sequence uses its first element (lists of models)
    - a string is taken as a class name
    - a class is used as is
    - any other object uses its runtime class

    Returns None for None and for empty sequences.
    """
    if isinstance(argument, (list, tuple)):
        if not argument:
            return None
        argument = argument[0]

    if argument is None:
        return None
    if isinstance(argument, (str, type)):
        return argument
    return type(argument)


class PolicyRegistry:
    """
    Registry of subject type to policy mappings.

    Features:
        - Last registration wins for a subject type
        - Subclass-aware lookup: a policy registered for a base class
          covers its subclasses
        - Self-describing subjects: a class declaring ``__policy__`` needs
          no explicit mapping
        - Memoized policy instances, built through the container

    Example:
        >>> registry = PolicyRegistry(container)
        >>> registry.policy(Post, PostPolicy)
        >>> registry.get_policy_for(post).update(user, post)
        True

    Thread Safety:
        Registration and instance caching are guarded by an internal lock.
        Policy instances are built by the container outside the lock, so two
        concurrent first lookups may both build an instance; the first one
        cached wins. An instance built while the mappings changed is
        returned but not cached.
    """

    def __init__(self, container: Container) -> None:
        self._container = container
        self._policies: dict[str, Any] = {}
        self._instances: dict[str, Any] = {}
        self._generation = 0
        self._lock = threading.RLock()

    def policy(self, subject: type | str, policy: Any) -> PolicyRegistry:
        """
        Register a policy for a subject type.

        Args:
            subject: The model class or its import path.
            policy: The policy class or its import path.
        """
        key = subject_key(subject)
        with self._lock:
            if key in self._policies:
                logger.warning(
                    f"Overwriting policy for '{key}': "
                    f"{_name(self._policies[key])} -> {_name(policy)}"
                )
            self._policies[key] = policy
            self._instances.clear()
            self._generation += 1

        logger.debug(f"Registered policy '{_name(policy)}' for subject '{key}'")
        return self

    def policies(self) -> dict[str, Any]:
        """Return the subject key to policy mapping."""
        with self._lock:
            return dict(self._policies)

    def has_policy(self, subject: type | str) -> bool:
        """Check if a policy is registered directly for a subject type."""
        with self._lock:
            return subject_key(subject) in self._policies

    def find_policy_for(self, argument: Any) -> Any | None:
        """
        Get the policy instance for an argument, or None when unmapped.

        Args:
            argument: A model instance, a model class, a class import path,
                or a sequence of model instances.
        """
        subject = resolve_subject_type(argument)
        if subject is None:
            return None

        key = subject_key(subject)
        with self._lock:
            if key in self._instances:
                return self._instances[key]
            policy = self._policy_ref_for(subject)
            generation = self._generation
        if policy is None:
            return None

        # Built outside the lock; the container runs arbitrary constructors
        instance = self._container.get(policy)
        with self._lock:
            if generation != self._generation:
                return instance
            instance = self._instances.setdefault(key, instance)

        logger.debug(f"Resolved policy '{_name(policy)}' for subject '{key}'")
        return instance

    def get_policy_for(self, argument: Any) -> Any:
        """
        Get the policy instance for an argument.

        Raises:
            PolicyNotFoundError: If no policy applies to the argument's
                subject type.
        """
        instance = self.find_policy_for(argument)
        if instance is None:
            subject = resolve_subject_type(argument)
            key = subject_key(subject) if subject is not None else repr(argument)
            raise PolicyNotFoundError(key, list(self._policies))
        return instance

    def clear(self) -> None:
        """Clear all mappings and cached instances."""
        with self._lock:
            self._policies.clear()
            self._instances.clear()
            self._generation += 1
            logger.debug("Cleared all registered policies")

    def _policy_ref_for(self, subject: type | str) -> Any | None:
        key = subject_key(subject)
        if key in self._policies:
            return self._policies[key]

        if not isinstance(subject, type):
            return None

        for base in subject.__mro__[1:]:
            base_key = subject_key(base)
            if base_key in self._policies:
                return self._policies[base_key]

        return getattr(subject, "__policy__", None)

    def __contains__(self, subject: type | str) -> bool:
        return self.has_policy(subject)

    def __len__(self) -> int:
        with self._lock:
            return len(self._policies)


def _name(ref: Any) -> str:
    return getattr(ref, "__name__", None) or str(ref)
