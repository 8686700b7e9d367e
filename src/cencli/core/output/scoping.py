"""Hierarchical flag-default scoping for the command tree.

Every command node owns a :class:`FlagScope`. A binding made on a node is seen
by that node and its descendants only; lookups fall through to the parent's
scope when the node holds no binding of its own. Siblings never observe each
other's bindings, whatever order they were attached in.
"""

from __future__ import annotations

from typing import Any


class FlagScope:
    """Per-node overlay of flag defaults.

    Parameters
    ----------
    owner : str
        Name of the owning command, for diagnostics
    parent : FlagScope | None
        Scope of the parent node; ``None`` for the root
    """

    def __init__(self, owner: str = "", parent: FlagScope | None = None) -> None:
        self.owner = owner
        self.parent = parent
        self._bindings: dict[str, Any] = {}

    def attach(self, parent: FlagScope | None) -> None:
        """Re-parent this scope; local bindings are kept."""
        self.parent = parent

    def bind(self, name: str, default: Any) -> None:
        """Bind ``name`` to ``default`` for this node and its descendants."""
        self._bindings[name] = default

    def has_local(self, name: str) -> bool:
        """Whether ``name`` is bound directly on this node."""
        return name in self._bindings

    def lookup(self, name: str) -> Any | None:
        """Return the nearest binding of ``name`` walking towards the root.

        Returns ``None`` when no scope on the path binds ``name``.
        """
        scope: FlagScope | None = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope.parent
        return None

    def path(self) -> list[str]:
        """Owner names from the root down to this scope."""
        names: list[str] = []
        scope: FlagScope | None = self
        while scope is not None:
            names.append(scope.owner)
            scope = scope.parent
        return list(reversed(names))

    def __repr__(self) -> str:
        return f"FlagScope({'/'.join(self.path())!r}, {self._bindings!r})"
