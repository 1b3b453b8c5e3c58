"""
Gate manager for Gatewarden.

`GateManager` is the bootstrap facade: it builds a `Gate` wired to the
auth manager's current user, registers policies from configuration and
from `@policy_for` annotations, defines abilities from `@gate_ability` method
annotations, announces itself with a `GateManagerResolved` event, and
then forwards every authorization call to the gate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from gatewarden.annotations import GateAnnotation, PolicyAnnotation, get_annotation_index
from gatewarden.contracts import (
    AnnotationIndex,
    AuthManager,
    ConfigProvider,
    Container,
    EventDispatcher,
)
from gatewarden.events import GateManagerResolved
from gatewarden.exceptions import ConfigurationError
from gatewarden.gate import AfterCallback, BeforeCallback, Gate
from gatewarden.types import Response

logger = logging.getLogger(__name__)

POLICIES_CONFIG_KEY = "auth.policies"


class GateManager:
    """
    Bootstraps and fronts the authorization gate.

    Collaborators not passed explicitly are resolved from the container by
    their protocol class (`ConfigProvider`, `EventDispatcher`,
    `AuthManager`); the annotation index defaults to the global collector.

    Example:
        >>> container = ServiceContainer()
        >>> manager = GateManager(
        ...     container,
        ...     config=DictConfig({"auth": {"policies": {Post: PostPolicy}}}),
        ...     events=SimpleEventDispatcher(),
        ...     auth=ContextAuthManager(),
        ... )
        >>> with auth.acting_as(user):
        ...     manager.authorize("update", post)

    Raises:
        ConfigurationError: If `auth.policies` is not a mapping.
        ContainerResolutionError: If a collaborator or annotated class
            cannot be resolved.
    """

    def __init__(
        self,
        container: Container,
        config: ConfigProvider | None = None,
        events: EventDispatcher | None = None,
        auth: AuthManager | None = None,
        annotations: AnnotationIndex | None = None,
    ) -> None:
        self._container = container
        self._config = config if config is not None else container.get(ConfigProvider)
        self._events = events if events is not None else container.get(EventDispatcher)
        self._auth = auth if auth is not None else container.get(AuthManager)
        self._annotations = annotations if annotations is not None else get_annotation_index()

        self._gate = Gate(container, lambda: self._auth.user_resolver()())

        config_count = self._register_policies_by_config()
        annotated_count = self._register_policies_by_annotation()
        ability_count = self._register_gates_by_annotation()
        logger.info(
            f"GateManager ready: {config_count} configured policies, "
            f"{annotated_count} annotated policies, {ability_count} annotated abilities"
        )

        self._events.dispatch(GateManagerResolved(self))

    @property
    def gate(self) -> Gate:
        return self._gate

    # ==================== Bootstrap ====================

    def _register_policies_by_config(self) -> int:
        policies = self._config.get(POLICIES_CONFIG_KEY, {}) or {}
        if not isinstance(policies, Mapping):
            raise ConfigurationError(
                POLICIES_CONFIG_KEY, "a mapping of subject to policy", policies
            )
        for subject, policy in policies.items():
            self._gate.policy(subject, policy)
        return len(policies)

    def _register_policies_by_annotation(self) -> int:
        count = 0
        annotated = self._annotations.classes_by_annotation(PolicyAnnotation)
        for policy, annotation in annotated.items():
            for subject in annotation.models:
                self._gate.policy(subject, policy)
                count += 1
        return count

    def _register_gates_by_annotation(self) -> int:
        count = 0
        for metadata in self._annotations.methods_by_annotation(GateAnnotation):
            annotation = metadata["annotation"]
            handler = self._container.get(metadata["class"])
            self._gate.define(annotation.ability, (handler, metadata["method"]))
            count += 1
        return count

    # ==================== Forwarded surface ====================

    def define(self, ability: str, callback: Any = None) -> Any:
        """Define an ability; without a callback, returns a decorator."""
        if callback is None:
            return self._gate.define(ability)
        self._gate.define(ability, callback)
        return self

    def resource(
        self,
        name: str,
        subject: type | str,
        abilities: Iterable[str] | dict[str, str] | None = None,
    ) -> GateManager:
        self._gate.resource(name, subject, abilities)
        return self

    def policy(self, subject: type | str, policy: Any) -> GateManager:
        self._gate.policy(subject, policy)
        return self

    def before(self, callback: BeforeCallback) -> GateManager:
        self._gate.before(callback)
        return self

    def after(self, callback: AfterCallback) -> GateManager:
        self._gate.after(callback)
        return self

    def for_user(self, user: Any) -> Gate:
        return self._gate.for_user(user)

    def authorize(self, ability: str, arguments: Any = None) -> Response:
        return self._gate.authorize(ability, arguments)

    def inspect(self, ability: str, arguments: Any = None) -> Response:
        return self._gate.inspect(ability, arguments)

    def raw(self, ability: str, arguments: Any = None) -> Any:
        return self._gate.raw(ability, arguments)

    def get_policy_for(self, argument: Any) -> Any:
        return self._gate.get_policy_for(argument)

    def has(self, abilities: str | Iterable[str]) -> bool:
        return self._gate.has(abilities)

    def allows(self, ability: str, arguments: Any = None) -> bool:
        return self._gate.allows(ability, arguments)

    def denies(self, ability: str, arguments: Any = None) -> bool:
        return self._gate.denies(ability, arguments)

    def check(self, abilities: str | Iterable[str], arguments: Any = None) -> bool:
        return self._gate.check(abilities, arguments)

    def any(self, abilities: str | Iterable[str], arguments: Any = None) -> bool:
        return self._gate.any(abilities, arguments)

    def none(self, abilities: str | Iterable[str], arguments: Any = None) -> bool:
        return self._gate.none(abilities, arguments)

    def abilities(self) -> dict[str, Any]:
        return self._gate.abilities()

    def policies(self) -> dict[str, Any]:
        return self._gate.policies()

    def resolve_user(self) -> Any:
        return self._gate.resolve_user()
