"""
Pytest fixtures for Gatewarden tests.

Provides common fixtures used across all test modules.
"""

from __future__ import annotations

from typing import Generator

import pytest

from gatewarden import (
    AnnotationCollector,
    ContextAuthManager,
    Gate,
    ServiceContainer,
    UserContext,
    reset_annotation_index,
)
from gatewarden.policies.registry import PolicyRegistry
from tests.support import Comment, Post


# ============================================================================
# User Fixtures
# ============================================================================


@pytest.fixture
def editor_user() -> UserContext:
    """Create an editor who authors posts."""
    return UserContext(
        user_id="alice",
        roles=["editor"],
        attributes={"department": "news"},
    )


@pytest.fixture
def admin_user() -> UserContext:
    """Create an admin user."""
    return UserContext(
        user_id="root",
        roles=["admin", "editor"],
    )


@pytest.fixture
def analyst_user() -> UserContext:
    """Create an analyst user."""
    return UserContext(user_id="carol", roles=["analyst"])


@pytest.fixture
def guest_user() -> UserContext:
    """Create a user with no roles."""
    return UserContext(user_id="bob", roles=[])


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def post() -> Post:
    """A post written by alice."""
    return Post(id=1, author_id="alice")


@pytest.fixture
def locked_post() -> Post:
    """A locked post written by alice."""
    return Post(id=2, author_id="alice", locked=True)


@pytest.fixture
def comment() -> Comment:
    """A comment written by bob."""
    return Comment(id=10, author_id="bob")


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def container() -> ServiceContainer:
    """Create a fresh service container."""
    return ServiceContainer()


@pytest.fixture
def policy_registry(container: ServiceContainer) -> PolicyRegistry:
    """Create a fresh policy registry."""
    return PolicyRegistry(container)


@pytest.fixture
def gate(container: ServiceContainer, editor_user: UserContext) -> Gate:
    """Create a gate whose current user is the editor."""
    return Gate(container, lambda: editor_user)


@pytest.fixture
def auth() -> ContextAuthManager:
    """Create a context-backed auth manager."""
    return ContextAuthManager()


@pytest.fixture
def collector() -> AnnotationCollector:
    """Create an isolated annotation collector."""
    return AnnotationCollector()


@pytest.fixture(autouse=True)
def _reset_global_annotations() -> Generator[None, None, None]:
    """Keep the global annotation index clean between tests."""
    reset_annotation_index()
    yield
    reset_annotation_index()
