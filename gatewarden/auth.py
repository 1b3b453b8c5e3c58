"""
Current-user resolution for Gatewarden.

`ContextAuthManager` satisfies the `AuthManager` protocol by keeping the
authenticated user in a context variable, so each request (thread or
asyncio task) sees its own user.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)

# Context variable for the authenticated user
_current_user: contextvars.ContextVar[Any] = contextvars.ContextVar(
    "gatewarden_user", default=None
)


def get_current_user() -> Any:
    """Get the current user from context."""
    return _current_user.get()


class ContextAuthManager:
    """
    Auth manager backed by a context variable.

    Example:
        >>> auth = ContextAuthManager()
        >>> with auth.acting_as(user):
        ...     gate.allows("update", post)
        True

    A custom resolver can replace the context lookup entirely, e.g. to
    read the user from a framework request object.
    """

    def __init__(self, resolver: Callable[[], Any] | None = None) -> None:
        self._resolver = resolver or get_current_user

    def user_resolver(self) -> Callable[[], Any]:
        """Get the callable that resolves the current user."""
        return self._resolver

    def set_user_resolver(self, resolver: Callable[[], Any]) -> None:
        self._resolver = resolver

    def user(self) -> Any:
        """Get the currently authenticated user, or None."""
        return self._resolver()

    @contextmanager
    def acting_as(self, user: Any) -> Iterator[Any]:
        """
        Set the current user for the enclosed block.

        Yields:
            The user.
        """
        token = _current_user.set(user)
        logger.debug(f"Acting as {user!r}")
        try:
            yield user
        finally:
            _current_user.reset(token)
