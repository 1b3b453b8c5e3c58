"""
Core type definitions for Gatewarden.

This module defines the value objects that flow through the gate: the
normalized authorization `Response` and a ready-made `UserContext` that
applications may use as their user object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gatewarden.exceptions import DEFAULT_DENY_MESSAGE, AuthorizationError


@dataclass(frozen=True)
class UserContext:
    """
    Represents an authenticated user.

    The gate accepts any object as a user; this class is a convenient
    default for applications that have no user model of their own.

    Attributes:
        user_id: Unique identifier for the user.
        roles: List of role names assigned to the user.
        attributes: Additional custom attributes for policy decisions.

    Example:
        >>> user = UserContext(
        ...     user_id="user_123",
        ...     roles=["editor"],
        ...     attributes={"department": "news"}
        ... )
    """
    user_id: str
    roles: list[str] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    def has_role(self, role: str) -> bool:
        """Check if user has a specific role."""
        return role in self.roles

    def has_any_role(self, roles: list[str]) -> bool:
        """Check if user has any of the specified roles."""
        return any(role in self.roles for role in roles)

    def get_attribute(self, key: str, default: Any = None) -> Any:
        """Get a user attribute with optional default."""
        return self.attributes.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "roles": self.roles,
            "attributes": self.attributes,
        }


@dataclass(frozen=True)
class Response:
    """
    Outcome of a single authorization check.

    Every decision the gate makes is normalized to a Response, whether the
    underlying callback returned a bool, None, a Response, or raised
    `AuthorizationError`.

    Attributes:
        allowed: Whether the ability is granted.
        message: Optional human-readable explanation.
        code: Optional machine-readable status code.

    Example:
        >>> response = Response.deny("Not yours", 403)
        >>> response.denied
        True
        >>> response.message
        'Not yours'
    """
    allowed: bool
    message: str | None = None
    code: int | str | None = None

    @classmethod
    def allow(cls, message: str | None = None, code: int | str | None = None) -> Response:
        """Create an allowed response."""
        return cls(allowed=True, message=message, code=code)

    @classmethod
    def deny(cls, message: str | None = None, code: int | str | None = None) -> Response:
        """Create a denied response. Falls back to the default deny message."""
        if message is None:
            message = DEFAULT_DENY_MESSAGE
        return cls(allowed=False, message=message, code=code)

    @property
    def denied(self) -> bool:
        return not self.allowed

    def authorize(self, ability: str | None = None) -> Response:
        """
        Raise if this response is a denial.

        Args:
            ability: Ability name to attach to the raised error.

        Returns:
            This response, when allowed.

        Raises:
            AuthorizationError: Carrying this response's message and code.
        """
        if self.denied:
            raise AuthorizationError(
                self.message, self.code, ability=ability, response=self
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "message": self.message,
            "code": self.code,
        }
