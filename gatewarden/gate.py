"""
Gate decision engine for Gatewarden.

The gate answers "may the current user perform this ability, optionally
on these arguments?". A decision runs in this order:

1. Global before-callbacks, in registration order. The first one that
   returns something other than None decides, and nothing else in this
   step runs.
2. Otherwise the ability itself: a policy method when the first argument
   maps to a policy that has a method for the ability, else the ability
   definition. Handlers and policies may define ``before`` to
   short-circuit their own methods. When a policy method is called, a
   leading class argument (``allows("create", Post)``) is dropped.
3. Global after-callbacks, all of them, in registration order. Each
   non-None return replaces the result, so the last one wins.

The raw result (True, False, None or a `Response`) is normalized to a
`Response`: True allows, False and None deny with the default message,
and a raised `AuthorizationError` becomes a deny carrying its message
and code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from gatewarden.abilities import AbilityRegistry, HandlerMethod, PolicyMethod
from gatewarden.contracts import Container
from gatewarden.exceptions import (
    AbilityNotDefinedError,
    AuthorizationError,
    ConfigurationError,
)
from gatewarden.policies.base import policy_method
from gatewarden.policies.registry import PolicyRegistry
from gatewarden.types import Response

logger = logging.getLogger(__name__)

BeforeCallback = Callable[[Any, str, list[Any]], Any]
AfterCallback = Callable[[Any, str, list[Any], Any], Any]


def wrap_arguments(arguments: Any) -> list[Any]:
    """
    Normalize ability arguments to a list.

    None means no arguments; lists and tuples are the argument list;
    anything else is a single argument.
    """
    if arguments is None:
        return []
    if isinstance(arguments, (list, tuple)):
        return list(arguments)
    return [arguments]


def _wrap_abilities(abilities: str | Iterable[str]) -> list[str]:
    if isinstance(abilities, str):
        return [abilities]
    return list(abilities)


class Gate:
    """
    Authorization decision engine.

    Example:
        >>> gate = Gate(container, user_resolver=lambda: current_user)
        >>> gate.policy(Post, PostPolicy)
        >>> gate.define("publish-post", lambda user, post: post.author_id == user.user_id)
        >>> gate.before(lambda user, ability, args: True if "admin" in user.roles else None)
        >>>
        >>> gate.allows("update", post)
        True
        >>> gate.inspect("publish-post", post)
        Response(allowed=False, message='This action is unauthorized.', code=None)
        >>> gate.authorize("publish-post", post)
        Traceback (most recent call last):
        gatewarden.exceptions.AuthorizationError: This action is unauthorized.

    Registrations are expected to happen during bootstrap. A gate and its
    registries are request-scoped and not meant to be shared between
    concurrently running requests; use `for_user` or one gate per request.
    """

    def __init__(
        self,
        container: Container,
        user_resolver: Callable[[], Any],
        abilities: AbilityRegistry | None = None,
        policies: PolicyRegistry | None = None,
        before_callbacks: list[BeforeCallback] | None = None,
        after_callbacks: list[AfterCallback] | None = None,
    ) -> None:
        self._container = container
        self._user_resolver = user_resolver
        self._abilities = abilities if abilities is not None else AbilityRegistry()
        self._policies = policies if policies is not None else PolicyRegistry(container)
        self._before_callbacks = before_callbacks if before_callbacks is not None else []
        self._after_callbacks = after_callbacks if after_callbacks is not None else []

    @property
    def ability_registry(self) -> AbilityRegistry:
        return self._abilities

    @property
    def policy_registry(self) -> PolicyRegistry:
        return self._policies

    # ==================== Registration ====================

    def define(self, ability: str, callback: Any = None) -> Any:
        """
        Define an ability.

        Without a callback, returns a decorator:

            >>> @gate.define("publish-post")
            ... def can_publish(user, post):
            ...     return post.author_id == user.user_id

        Returns:
            The gate, or the decorator when `callback` is omitted.
        """
        if callback is None:
            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                self._abilities.define(ability, func)
                return func
            return decorator

        self._abilities.define(ability, callback)
        return self

    def resource(
        self,
        name: str,
        subject: type | str,
        abilities: Iterable[str] | dict[str, str] | None = None,
    ) -> Gate:
        """Define the conventional resource abilities (see `AbilityRegistry.resource`)."""
        self._abilities.resource(name, subject, abilities)
        return self

    def policy(self, subject: type | str, policy: Any) -> Gate:
        """Register a policy class for a subject type."""
        self._policies.policy(subject, policy)
        return self

    def before(self, callback: BeforeCallback) -> Gate:
        """Register a callback run before every check as ``callback(user, ability, arguments)``."""
        if not callable(callback):
            raise ConfigurationError("before", "a callable", callback)
        self._before_callbacks.append(callback)
        logger.debug(f"Registered before callback #{len(self._before_callbacks)}")
        return self

    def after(self, callback: AfterCallback) -> Gate:
        """Register a callback run after every check as ``callback(user, ability, arguments, result)``."""
        if not callable(callback):
            raise ConfigurationError("after", "a callable", callback)
        self._after_callbacks.append(callback)
        logger.debug(f"Registered after callback #{len(self._after_callbacks)}")
        return self

    def for_user(self, user: Any) -> Gate:
        """
        Get a gate for the given user.

        The new gate shares this gate's ability and policy registries. It
        starts with copies of the before and after callbacks, so callbacks
        registered on either gate afterwards stay local to it.
        """
        return Gate(
            self._container,
            lambda: user,
            self._abilities,
            self._policies,
            list(self._before_callbacks),
            list(self._after_callbacks),
        )

    # ==================== Lookups ====================

    def has(self, abilities: str | Iterable[str]) -> bool:
        """Check that every given ability has been defined."""
        return self._abilities.has(abilities)

    def abilities(self) -> dict[str, Any]:
        """Get all defined abilities."""
        return self._abilities.abilities()

    def policies(self) -> dict[str, Any]:
        """Get the subject to policy mapping."""
        return self._policies.policies()

    def get_policy_for(self, argument: Any) -> Any:
        """Get the policy instance for a model, model class or list of models."""
        return self._policies.get_policy_for(argument)

    def resolve_user(self) -> Any:
        return self._user_resolver()

    # ==================== Decisions ====================

    def allows(self, ability: str, arguments: Any = None) -> bool:
        """Determine if the ability is granted for the current user."""
        return self.inspect(ability, arguments).allowed

    def denies(self, ability: str, arguments: Any = None) -> bool:
        """Determine if the ability is denied for the current user."""
        return not self.allows(ability, arguments)

    def check(self, abilities: str | Iterable[str], arguments: Any = None) -> bool:
        """Determine if all of the abilities are granted. True for no abilities."""
        return all(self.allows(ability, arguments) for ability in _wrap_abilities(abilities))

    def any(self, abilities: str | Iterable[str], arguments: Any = None) -> bool:
        """Determine if at least one of the abilities is granted."""
        return any(self.allows(ability, arguments) for ability in _wrap_abilities(abilities))

    def none(self, abilities: str | Iterable[str], arguments: Any = None) -> bool:
        """Determine if all of the abilities are denied."""
        return not self.any(abilities, arguments)

    def authorize(self, ability: str, arguments: Any = None) -> Response:
        """
        Determine if the ability is granted, raising when it is not.

        Returns:
            The allowing Response.

        Raises:
            AbilityNotDefinedError: If nothing decided and the ability has no
                definition.
            AuthorizationError: If the ability is denied.
        """
        try:
            result, decided = self._evaluate(ability, wrap_arguments(arguments))
        except AuthorizationError as e:
            result, decided = e.to_response(), True

        response = self._to_response(result)
        if response.denied and not decided:
            raise AbilityNotDefinedError(ability)
        return response.authorize(ability)

    def inspect(self, ability: str, arguments: Any = None) -> Response:
        """Inspect the current user for the ability, without raising on denial."""
        try:
            result = self.raw(ability, arguments)
        except AuthorizationError as e:
            return e.to_response()
        return self._to_response(result)

    def raw(self, ability: str, arguments: Any = None) -> Any:
        """Get the raw result (bool, None or Response) of the authorization check."""
        result, _ = self._evaluate(ability, wrap_arguments(arguments))
        return result

    # ==================== Internals ====================

    def _evaluate(self, ability: str, arguments: list[Any]) -> tuple[Any, bool]:
        """Run the full check; the flag tells whether anything decided."""
        user = self.resolve_user()

        result = self._call_before_callbacks(user, ability, arguments)
        decided = result is not None

        if result is None:
            callback = self._resolve_auth_callback(user, ability, arguments)
            if callback is not None:
                decided = True
                try:
                    result = callback()
                except AuthorizationError as e:
                    result = e.to_response()
            else:
                logger.debug(f"Ability '{ability}' is not defined")

        result, overridden = self._call_after_callbacks(user, ability, arguments, result)
        decided = decided or overridden

        logger.debug(f"Ability '{ability}' resolved to {result!r}")
        return result, decided

    def _call_before_callbacks(self, user: Any, ability: str, arguments: list[Any]) -> Any:
        for callback in self._before_callbacks:
            result = callback(user, ability, arguments)
            if result is not None:
                logger.debug(f"Before callback decided ability '{ability}'")
                return result
        return None

    def _call_after_callbacks(
        self,
        user: Any,
        ability: str,
        arguments: list[Any],
        result: Any,
    ) -> tuple[Any, bool]:
        overridden = False
        for callback in self._after_callbacks:
            after_result = callback(user, ability, arguments, result)
            if after_result is not None:
                result = after_result
                overridden = True
        return result, overridden

    def _resolve_auth_callback(
        self,
        user: Any,
        ability: str,
        arguments: list[Any],
    ) -> Callable[[], Any] | None:
        if arguments:
            policy = self._policies.find_policy_for(arguments[0])
            if policy is not None:
                method = policy_method(policy, ability)
                if method is not None:
                    return lambda: self._call_handler(
                        policy, method, user, ability, arguments, is_policy=True
                    )

        definition = self._abilities.get(ability)
        if definition is None:
            return None

        if isinstance(definition, PolicyMethod):
            handler = self._policies.get_policy_for(definition.subject)
            return self._handler_callback(
                handler, definition.method, user, ability, arguments, is_policy=True
            )

        if isinstance(definition, HandlerMethod):
            handler, is_policy = self._resolve_handler(definition.handler)
            return self._handler_callback(
                handler, definition.method, user, ability, arguments, is_policy=is_policy
            )

        return lambda: definition(user, *arguments)

    def _handler_callback(
        self,
        handler: Any,
        method_name: str,
        user: Any,
        ability: str,
        arguments: list[Any],
        is_policy: bool,
    ) -> Callable[[], Any]:
        method = getattr(handler, method_name, None)
        if not callable(method):
            logger.debug(
                f"{type(handler).__name__} has no method '{method_name}' "
                f"for ability '{ability}', denying"
            )
            return lambda: None
        return lambda: self._call_handler(
            handler, method, user, ability, arguments, is_policy=is_policy
        )

    def _resolve_handler(self, handler: Any) -> tuple[Any, bool]:
        if isinstance(handler, (str, type)):
            policy = self._policies.find_policy_for(handler)
            if policy is not None:
                return policy, True
            return self._container.get(handler), False
        return handler, False

    def _call_handler(
        self,
        handler: Any,
        method: Callable[..., Any],
        user: Any,
        ability: str,
        arguments: list[Any],
        is_policy: bool,
    ) -> Any:
        before = getattr(handler, "before", None)
        if callable(before) and getattr(method, "__name__", None) != "before":
            result = before(user, ability, *arguments)
            if result is not None:
                logger.debug(f"{type(handler).__name__}.before decided ability '{ability}'")
                return result

        # A leading class argument only selects the policy
        if is_policy and arguments and isinstance(arguments[0], (str, type)):
            arguments = arguments[1:]
        return method(user, *arguments)

    @staticmethod
    def _to_response(result: Any) -> Response:
        if isinstance(result, Response):
            return result
        return Response.allow() if result else Response.deny()
