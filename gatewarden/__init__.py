"""
Gatewarden: in-process authorization gate with policies and abilities.

Gatewarden decides whether a user may perform an ability, optionally on a
resource. Decisions come from policy classes registered per model type,
from ability callbacks, and from global before/after callbacks.

Basic Usage:
    >>> from gatewarden import Gate, Policy, ServiceContainer, UserContext
    >>>
    >>> class PostPolicy(Policy):
    ...     def update(self, user, post):
    ...         return post.author_id == user.user_id
    >>>
    >>> user = UserContext(user_id="alice", roles=["editor"])
    >>> gate = Gate(ServiceContainer(), user_resolver=lambda: user)
    >>> gate.policy(Post, PostPolicy)
    >>> gate.define("publish", lambda user: "editor" in user.roles)
    >>>
    >>> gate.allows("update", post)
    True
    >>> gate.authorize("publish")
    Response(allowed=True, message=None, code=None)

Application bootstrap goes through `GateManager`, which loads policies
from the `auth.policies` configuration key and from the `@policy_for` /
`@gate_ability` decorators.
"""

__version__ = "0.1.0"

from gatewarden.abilities import (
    RESOURCE_ABILITIES,
    AbilityRegistry,
    HandlerMethod,
    PolicyMethod,
)
from gatewarden.annotations import (
    AnnotationCollector,
    GateAnnotation,
    PolicyAnnotation,
    gate_ability,
    get_annotation_index,
    policy_for,
    reset_annotation_index,
)
from gatewarden.auth import ContextAuthManager, get_current_user
from gatewarden.config import DictConfig
from gatewarden.container import ServiceContainer, import_string
from gatewarden.contracts import (
    AnnotationIndex,
    AuthManager,
    ConfigProvider,
    Container,
    EventDispatcher,
    GateContract,
)
from gatewarden.events import GateManagerResolved, SimpleEventDispatcher

# Exceptions - always available
from gatewarden.exceptions import (
    DEFAULT_DENY_MESSAGE,
    AbilityNotDefinedError,
    AuthorizationError,
    ConfigurationError,
    ContainerResolutionError,
    GatewardenError,
    PolicyNotFoundError,
)
from gatewarden.gate import Gate
from gatewarden.manager import GateManager
from gatewarden.policies import Policy, PolicyRegistry
from gatewarden.types import Response, UserContext

__all__ = [
    # Version
    "__version__",
    # Engine
    "Gate",
    "GateManager",
    "GateContract",
    # Registries
    "AbilityRegistry",
    "PolicyRegistry",
    "HandlerMethod",
    "PolicyMethod",
    "RESOURCE_ABILITIES",
    # Policy
    "Policy",
    # Core types
    "Response",
    "UserContext",
    # Exceptions
    "DEFAULT_DENY_MESSAGE",
    "GatewardenError",
    "AuthorizationError",
    "AbilityNotDefinedError",
    "PolicyNotFoundError",
    "ConfigurationError",
    "ContainerResolutionError",
    # Decorators
    "policy_for",
    "gate_ability",
    "AnnotationCollector",
    "PolicyAnnotation",
    "GateAnnotation",
    "get_annotation_index",
    "reset_annotation_index",
    # Collaborators
    "Container",
    "ConfigProvider",
    "AnnotationIndex",
    "EventDispatcher",
    "AuthManager",
    "ServiceContainer",
    "import_string",
    "DictConfig",
    "SimpleEventDispatcher",
    "GateManagerResolved",
    "ContextAuthManager",
    "get_current_user",
]
