"""
Policy base class for Gatewarden.

A policy groups the ability checks for one subject type. Each ability is
a method named after it, called with the user followed by the ability
arguments:

    >>> class PostPolicy(Policy):
    ...     def update(self, user, post):
    ...         return post.author_id == user.user_id
    ...
    ...     def delete(self, user, post):
    ...         if post.locked:
    ...             return self.deny("Locked posts cannot be deleted", 423)
    ...         return "admin" in user.roles

Methods may return True, False, None or a `Response`, or raise
`AuthorizationError` to deny with a message and code.
"""

from __future__ import annotations

import re
from typing import Any

from gatewarden.types import Response

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?<!_)(?=[A-Z])")


def ability_to_method(ability: str) -> str:
    """
    Convert an ability name into a policy method name.

    Example:
        >>> ability_to_method("viewAny")
        'view_any'
        >>> ability_to_method("force-delete")
        'force_delete'
    """
    name = ability.replace("-", "_").replace(".", "_")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class Policy:
    """
    Base class for policies.

    Subclassing is optional; any class whose methods follow the
    ``method(user, *arguments)`` convention can be registered as a policy.
    The base class adds the `allow`/`deny` response helpers.

    A policy may define ``before(user, ability, *arguments)``. When it
    returns anything other than None, that value is used as the outcome
    and the ability method is not called:

        >>> class DocumentPolicy(Policy):
        ...     def before(self, user, ability, *arguments):
        ...         if "admin" in user.roles:
        ...             return True
        ...         return None
    """

    def allow(self, message: str | None = None, code: int | str | None = None) -> Response:
        """Build an allowing response."""
        return Response.allow(message, code)

    def deny(self, message: str | None = None, code: int | str | None = None) -> Response:
        """Build a denying response."""
        return Response.deny(message, code)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


# Helper names that never serve as ability methods
_RESERVED_METHODS = frozenset({"before", "allow", "deny"})


def policy_method(handler: Any, ability: str) -> Any:
    """Return the bound method on `handler` serving `ability`, or None."""
    name = ability_to_method(ability)
    if name.startswith("_") or name in _RESERVED_METHODS:
        return None
    method = getattr(handler, name, None)
    return method if callable(method) else None
