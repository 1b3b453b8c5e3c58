"""
Read-only configuration source for Gatewarden.

`DictConfig` satisfies the `ConfigProvider` protocol over a plain nested
dict, resolving dotted keys such as ``"auth.policies"``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING = object()


class DictConfig:
    """
    Dotted-key lookup over a nested mapping.

    Example:
        >>> config = DictConfig({
        ...     "auth": {
        ...         "policies": {"app.models.Post": "app.policies.PostPolicy"},
        ...     },
        ... })
        >>> config.get("auth.policies")
        {'app.models.Post': 'app.policies.PostPolicy'}
        >>> config.get("auth.guards", {})
        {}
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: Mapping[str, Any] = values or {}

    def get(self, key: str, default: Any = None) -> Any:
        # Exact top-level keys win over dotted traversal
        if key in self._values:
            return self._values[key]

        node: Any = self._values
        for part in key.split("."):
            if not isinstance(node, Mapping):
                return default
            node = node.get(part, _MISSING)
            if node is _MISSING:
                return default
        return node

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the underlying values."""
        return dict(self._values)
