"""
Policy system for Gatewarden.

Policies group the ability checks for one subject type. The registry
maps subject types to policy classes and builds policy instances through
the container.

Quick Start:
    >>> from gatewarden.policies import Policy, PolicyRegistry
    >>>
    >>> class PostPolicy(Policy):
    ...     def update(self, user, post):
    ...         return post.author_id == user.user_id
    >>>
    >>> registry = PolicyRegistry(container)
    >>> registry.policy(Post, PostPolicy)
    >>> registry.get_policy_for(post).update(user, post)
"""

from gatewarden.policies.base import (
    Policy,
    ability_to_method,
    policy_method,
)
from gatewarden.policies.registry import (
    PolicyRegistry,
    resolve_subject_type,
    subject_key,
)

__all__ = [
    # Base class
    "Policy",
    "ability_to_method",
    "policy_method",
    # Registry
    "PolicyRegistry",
    "resolve_subject_type",
    "subject_key",
]
