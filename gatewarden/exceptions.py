"""
Custom exceptions for Gatewarden.

This module defines the exception hierarchy for the library. Only
`AuthorizationError` is part of normal decision flow: it is the signal
policies may raise to deny, and the error `authorize` raises on denial.
Everything else indicates a wiring or configuration mistake.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gatewarden.types import Response

DEFAULT_DENY_MESSAGE = "This action is unauthorized."


class GatewardenError(Exception):
    """
    Base exception for all Gatewarden errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     gate.authorize("update", post)
        ... except GatewardenError as e:
        ...     logger.error(f"Gatewarden error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class AuthorizationError(GatewardenError):
    """
    Raised when an ability is denied.

    `Gate.authorize` raises this for a denied decision. Policy methods and
    ability callbacks may raise it themselves to deny with a message and
    code; the gate catches it and turns it into a deny `Response`.

    Attributes:
        code: Optional machine-readable status code.
        ability: The ability that was checked, when known.
        response: The deny `Response` this error was built from, if any.
            A non-denying response is never reused as the outcome.

    Example:
        >>> class CommentPolicy(Policy):
        ...     def delete(self, user, comment):
        ...         if comment.author_id != user.user_id:
        ...             raise AuthorizationError("Not yours", 403)
        ...         return True
    """

    def __init__(
        self,
        message: str | None = None,
        code: int | str | None = None,
        *,
        ability: str | None = None,
        response: Response | None = None,
    ) -> None:
        self.code = code
        self.ability = ability
        self.response = response

        details: dict[str, Any] = {}
        if code is not None:
            details["code"] = code
        if ability is not None:
            details["ability"] = ability
        if message is None:
            message = DEFAULT_DENY_MESSAGE
        super().__init__(message, details)

    def __str__(self) -> str:
        return self.message

    def to_response(self) -> Response:
        """Convert this denial into a deny Response with the same message and code."""
        from gatewarden.types import Response

        if self.response is not None and self.response.denied:
            return self.response
        return Response.deny(self.message, self.code)


class AbilityNotDefinedError(AuthorizationError):
    """
    Raised by `authorize` for an ability that has no definition.

    The boolean checks (`allows`, `check`, ...) treat an undefined ability
    as a plain deny and never raise this.
    """

    def __init__(self, ability: str) -> None:
        super().__init__(
            f"Ability '{ability}' is not defined.",
            ability=ability,
        )


class PolicyNotFoundError(GatewardenError):
    """
    Raised when no policy is registered for a subject type.

    Attributes:
        subject: The subject key for which no policy was found.
        available_policies: Registered subject keys (for debugging).

    Example:
        >>> raise PolicyNotFoundError(
        ...     subject="app.models.Invoice",
        ...     available_policies=["app.models.Post"]
        ... )
    """

    def __init__(
        self,
        subject: str,
        available_policies: list[str] | None = None,
    ) -> None:
        self.subject = subject
        self.available_policies = available_policies or []

        message = f"No policy found for subject '{subject}'"
        if available_policies:
            message += f". Available policies: {', '.join(available_policies)}"

        details = {
            "subject": subject,
            "available_policies": self.available_policies,
        }
        super().__init__(message, details)


class ConfigurationError(GatewardenError):
    """
    Raised when the gate is wired or configured incorrectly.

    Attributes:
        config_key: The configuration key or argument that has an issue.
        expected: What was expected.
        received: What was actually provided.

    Example:
        >>> raise ConfigurationError(
        ...     config_key="auth.policies",
        ...     expected="a mapping of subject to policy",
        ...     received=["PostPolicy"]
        ... )
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
        if received is not None:
            message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": str(received) if received is not None else None,
        }
        super().__init__(message, details)


class ContainerResolutionError(GatewardenError):
    """Raised when the container cannot build or locate an entry."""

    def __init__(self, identifier: Any, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        name = getattr(identifier, "__qualname__", None) or str(identifier)
        super().__init__(
            f"Cannot resolve '{name}': {reason}",
            {"identifier": name, "reason": reason},
        )
