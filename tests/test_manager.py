"""
Tests for GateManager bootstrap and delegation.

Tests cover:
- Policies from configuration
- Policies and abilities from annotations
- Collaborator resolution from the container
- The resolved event
- Forwarding of the authorization surface
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import pytest

from gatewarden import (
    AnnotationCollector,
    AuthManager,
    AuthorizationError,
    ConfigProvider,
    ConfigurationError,
    ContainerResolutionError,
    ContextAuthManager,
    DictConfig,
    EventDispatcher,
    Gate,
    GateAnnotation,
    GateContract,
    GateManager,
    GateManagerResolved,
    Policy,
    Response,
    ServiceContainer,
    SimpleEventDispatcher,
    UserContext,
    gate_ability,
    policy_for,
)
from tests.support import AuditLog, Comment, CommentPolicy, Post, PostPolicy


class ExportGate:
    """Annotated gate handler with a container-injected dependency."""

    def __init__(self, audit: AuditLog) -> None:
        self.audit = audit

    def can_export(self, user, fmt="csv"):
        self.audit.record(f"{user.user_id} exported {fmt}")
        return "analyst" in user.roles


@pytest.fixture
def events() -> SimpleEventDispatcher:
    return SimpleEventDispatcher()


@pytest.fixture
def make_manager(
    container: ServiceContainer,
    events: SimpleEventDispatcher,
    auth: ContextAuthManager,
    collector: AnnotationCollector,
) -> Callable[..., GateManager]:
    """Build a manager over the shared collaborators."""

    def _make(config: dict[str, Any] | None = None) -> GateManager:
        return GateManager(
            container,
            config=DictConfig(config or {}),
            events=events,
            auth=auth,
            annotations=collector,
        )

    return _make


class TestConfiguredPolicies:
    """Tests for policies loaded from configuration."""

    def test_registers_class_mapping(self, make_manager, auth, editor_user, post):
        manager = make_manager({"auth": {"policies": {Post: PostPolicy}}})

        with auth.acting_as(editor_user):
            assert manager.allows("update", post) is True

    def test_registers_import_paths(self, make_manager, auth, editor_user, comment):
        manager = make_manager({
            "auth": {
                "policies": {
                    "tests.support.Post": "tests.support.PostPolicy",
                    "tests.support:Comment": "tests.support:CommentPolicy",
                },
            },
        })

        assert set(manager.policies()) == {"tests.support.Post", "tests.support.Comment"}
        with auth.acting_as(editor_user):
            assert manager.inspect("delete", comment) == Response.deny("Not yours", 403)

    @pytest.mark.parametrize("config", [{}, {"auth": {}}, {"auth": {"policies": None}}])
    def test_missing_policies_are_fine(self, make_manager, config):
        manager = make_manager(config)
        assert manager.policies() == {}

    @pytest.mark.parametrize("policies", [["tests.support.PostPolicy"], "tests.support.PostPolicy"])
    def test_non_mapping_is_rejected(self, make_manager, policies):
        with pytest.raises(ConfigurationError) as exc_info:
            make_manager({"auth": {"policies": policies}})

        assert exc_info.value.config_key == "auth.policies"


class TestAnnotatedRegistrations:
    """Tests for policies and abilities declared with decorators."""

    def test_policy_for_registers_each_model(self, make_manager, collector):
        @policy_for(Post, Comment, collector=collector)
        class ModerationPolicy(Policy):
            def delete(self, user, target):
                return "admin" in user.roles

        manager = make_manager()

        assert manager.policies() == {
            "tests.support.Post": ModerationPolicy,
            "tests.support.Comment": ModerationPolicy,
        }

    def test_annotation_overrides_configured_policy(self, make_manager, collector, post):
        @policy_for(Post, collector=collector)
        class StrictPostPolicy(Policy):
            def update(self, user, post):
                return False

        manager = make_manager({"auth": {"policies": {Post: PostPolicy}}})

        assert isinstance(manager.get_policy_for(post), StrictPostPolicy)

    def test_gate_ability_defines_handler_ability(
        self, make_manager, container, collector, auth, analyst_user, guest_user
    ):
        audit = AuditLog()
        container.instance(AuditLog, audit)
        collector.collect_method(ExportGate, "can_export", GateAnnotation("export-reports"))

        manager = make_manager()

        assert manager.has("export-reports") is True
        with auth.acting_as(analyst_user):
            assert manager.allows("export-reports", "pdf") is True
        with auth.acting_as(guest_user):
            assert manager.allows("export-reports") is False
        assert audit.entries == ["carol exported pdf", "bob exported csv"]

    def test_gate_ability_on_class_body(self, make_manager, collector, auth, analyst_user):
        class ShareGate:
            @gate_ability("share-reports", collector=collector)
            def can_share(self, user):
                return user.has_role("analyst")

        manager = make_manager()

        with auth.acting_as(analyst_user):
            assert manager.allows("share-reports") is True

    def test_bootstrap_log(self, make_manager, collector, caplog):
        @policy_for(Post, collector=collector)
        class AnnotatedPolicy(Policy):
            pass

        with caplog.at_level(logging.INFO, logger="gatewarden.manager"):
            make_manager({"auth": {"policies": {Comment: CommentPolicy}}})

        assert (
            "GateManager ready: 1 configured policies, 1 annotated policies, "
            "0 annotated abilities"
        ) in caplog.text


class TestCollaborators:
    """Tests for collaborator resolution."""

    def test_resolved_from_container(self, container, collector, editor_user):
        events = SimpleEventDispatcher()
        auth = ContextAuthManager(lambda: editor_user)
        container.instance(ConfigProvider, DictConfig({"auth": {"policies": {Post: PostPolicy}}}))
        container.instance(EventDispatcher, events)
        container.instance(AuthManager, auth)

        manager = GateManager(container, annotations=collector)

        assert manager.resolve_user() is editor_user
        assert "tests.support.Post" in manager.policies()

    def test_missing_collaborator_fails(self, container, collector):
        with pytest.raises(ContainerResolutionError):
            GateManager(container, annotations=collector)

    def test_uses_global_annotation_index(self, container, auth, events):
        @policy_for(Post)
        class GlobalPostPolicy(Policy):
            pass

        manager = GateManager(container, config=DictConfig(), events=events, auth=auth)

        assert manager.policies() == {"tests.support.Post": GlobalPostPolicy}

    def test_user_follows_auth_manager(self, make_manager, auth, editor_user, guest_user):
        manager = make_manager()
        manager.define("is-editor", lambda user: user is not None and user.has_role("editor"))

        assert manager.allows("is-editor") is False
        with auth.acting_as(editor_user):
            assert manager.allows("is-editor") is True
        with auth.acting_as(guest_user):
            assert manager.allows("is-editor") is False


class TestResolvedEvent:
    """Tests for the GateManagerResolved event."""

    def test_dispatched_after_bootstrap(self, make_manager, events, collector):
        @policy_for(Post, collector=collector)
        class AnnotatedPolicy(Policy):
            pass

        seen = []
        events.listen(GateManagerResolved, lambda event: seen.append(event.gate.policies()))

        manager = make_manager()

        assert seen == [{"tests.support.Post": AnnotatedPolicy}]
        assert manager.policies() == seen[0]

    def test_listener_can_register_abilities(self, make_manager, events, auth, editor_user):
        events.listen(
            GateManagerResolved,
            lambda event: event.gate.define("publish", lambda user: True),
        )

        manager = make_manager()

        with auth.acting_as(editor_user):
            assert manager.authorize("publish").allowed is True

    def test_listener_receives_the_manager(self, make_manager, events):
        seen = []
        events.listen(GateManagerResolved, lambda event: seen.append(event.gate))

        manager = make_manager()

        assert seen == [manager]


class TestForwarding:
    """Tests for the forwarded authorization surface."""

    @pytest.fixture
    def manager(self, make_manager) -> GateManager:
        return make_manager({"auth": {"policies": {Post: PostPolicy}}})

    def test_implements_gate_contract(self, manager: GateManager):
        assert isinstance(manager, GateContract)
        assert isinstance(manager.gate, Gate)
        assert isinstance(manager.gate, GateContract)

    def test_registration_is_chainable(self, manager: GateManager):
        result = (
            manager.define("a", lambda user: True)
            .resource("comments", Comment, ["delete"])
            .policy(Comment, CommentPolicy)
            .before(lambda user, ability, arguments: None)
            .after(lambda user, ability, arguments, result: None)
        )

        assert result is manager
        assert manager.has(["a", "comments.delete"]) is True
        assert set(manager.abilities()) == {"a", "comments.delete"}

    def test_define_as_decorator(self, manager: GateManager, auth, editor_user):
        @manager.define("moderate")
        def can_moderate(user):
            return user.has_role("editor")

        with auth.acting_as(editor_user):
            assert manager.allows("moderate") is True

    def test_decisions(self, manager: GateManager, auth, editor_user, post, locked_post):
        manager.define("publish", lambda user, *arguments: Response.deny("Embargoed", 451))

        with auth.acting_as(editor_user):
            assert manager.allows("update", post) is True
            assert manager.denies("delete", post) is True
            assert manager.check(["view", "update"], post) is True
            assert manager.any(["delete", "update"], post) is True
            assert manager.none(["delete", "publish"], post) is True
            assert manager.raw("update", post) is True
            assert manager.inspect("delete", locked_post).code == 423

            with pytest.raises(AuthorizationError) as exc_info:
                manager.authorize("publish")
            assert exc_info.value.code == 451

    def test_for_user_returns_gate(self, manager: GateManager, admin_user, post):
        gate = manager.for_user(admin_user)

        assert isinstance(gate, Gate)
        assert gate.allows("delete", post) is True
        assert gate.resolve_user() is admin_user
        assert manager.resolve_user() is None

    def test_get_policy_for(self, manager: GateManager, post):
        assert isinstance(manager.get_policy_for(post), PostPolicy)

    def test_callbacks_apply_to_manager_decisions(
        self, manager: GateManager, auth, guest_user, post
    ):
        manager.before(lambda user, ability, arguments: True if ability == "update" else None)

        with auth.acting_as(guest_user):
            assert manager.allows("update", post) is True
            assert manager.allows("delete", post) is False


def test_standalone_manager_with_user(container: ServiceContainer, collector):
    user = UserContext(user_id="dana", roles=["editor"])
    manager = GateManager(
        container,
        config=DictConfig(),
        events=SimpleEventDispatcher(),
        auth=ContextAuthManager(lambda: user),
        annotations=collector,
    )
    manager.policy(Post, PostPolicy)

    assert manager.allows("create", Post) is True
    assert manager.allows("update", Post(id=7, author_id="dana")) is True
