"""
Models, policies and handlers shared by the test modules.

Kept at module level so the container can build them by import path and
resolve their constructor type hints.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gatewarden import AuthorizationError, Policy, Response


@dataclass
class Post:
    id: int
    author_id: str
    locked: bool = False


class FeaturedPost(Post):
    pass


@dataclass
class Comment:
    id: int
    author_id: str


class PostPolicy(Policy):
    """Authors edit their own posts; admins delete unlocked posts."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []

    def view_any(self, user):
        self.calls.append(("view_any", ()))
        return True

    def view(self, user, post):
        self.calls.append(("view", (post,)))
        return True

    def create(self, user):
        self.calls.append(("create", ()))
        return "editor" in user.roles

    def update(self, user, post):
        self.calls.append(("update", (post,)))
        return post.author_id == user.user_id

    def delete(self, user, post):
        self.calls.append(("delete", (post,)))
        if post.locked:
            return self.deny("Locked posts cannot be deleted", 423)
        return "admin" in user.roles


class CommentPolicy(Policy):
    def delete(self, user, comment):
        if comment.author_id != user.user_id:
            return Response.deny("Not yours", 403)
        return True

    def update(self, user, comment):
        if comment.author_id != user.user_id:
            raise AuthorizationError("Only the author can edit", "comment.not_author")
        return True


class AdminBypassPolicy(Policy):
    """Admins may do anything; everyone else is denied updates."""

    def before(self, user, ability, *arguments):
        if user is not None and "admin" in user.roles:
            return True
        return None

    def update(self, user, post):
        return False


class DraftPolicy(Policy):
    def view(self, user, draft):
        return draft.author_id == user.user_id


@dataclass
class Draft:
    author_id: str

    __policy__ = DraftPolicy


class AuditLog:
    def __init__(self) -> None:
        self.entries: list[str] = []

    def record(self, entry: str) -> None:
        self.entries.append(entry)


class AuditedPostPolicy(Policy):
    """Needs an AuditLog injected by the container."""

    def __init__(self, audit: AuditLog) -> None:
        self.audit = audit

    def view(self, user, post):
        self.audit.record(f"{user.user_id} viewed post {post.id}")
        return True


@dataclass
class ReportController:
    exports: list[str] = field(default_factory=list)

    def can_export(self, user, fmt: str = "csv"):
        self.exports.append(fmt)
        return "analyst" in user.roles
