"""Central registry for action discovery and execution.

The registry provides:
- Action registration and exact-match lookup by key or (kind, name)
- Kind-based filtering
- Embedder providers resolved by name
- Convenience entry points for indexing and retrieval

It is populated once at startup (see ``MongoPlugin.initialize``) and only
read afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from ..core import ActionKind, ActionMetadata, BaseAction, Document, Embedder, action_key
from ..foundation.errors import ErrorCode, ToolException

if TYPE_CHECKING:
    from collections.abc import Mapping


class ActionRegistry:
    """Mapping from action key to a bound, configured action.

    Example:
        >>> registry = ActionRegistry()
        >>> registry.provide_embedder("hash", HashEmbedder())
        >>> registry.register(indexer)
        >>> await registry.index("mongodb/menu", docs, {"db_name": "app", ...})
        >>> await registry.execute("/tool/mongodb/menu/read", {"id": "..."})
    """

    __slots__ = ("_actions", "_embedders")

    def __init__(self) -> None:
        self._actions: dict[str, BaseAction[Any, Any]] = {}
        self._embedders: dict[str, Embedder] = {}

    def register(self, action: BaseAction[Any, Any]) -> None:
        """Register an action instance. Keys must be unique."""
        key = action.key
        if key in self._actions:
            raise ValueError(f"Action '{key}' already registered. Use unregister() first.")
        self._actions[key] = action

    def register_all(self, *actions: BaseAction[Any, Any]) -> None:
        for action in actions:
            self.register(action)

    def unregister(self, key: str) -> bool:
        """Remove an action by key. Returns True if found."""
        return self._actions.pop(key, None) is not None

    def get(self, key: str) -> BaseAction[Any, Any] | None:
        """Get action by key."""
        return self._actions.get(key)

    def lookup(self, kind: ActionKind | str, name: str) -> BaseAction[Any, Any]:
        """Get action by kind and name.

        Raises:
            ToolException: NOT_FOUND if nothing is registered under that key
        """
        key = action_key(kind, name)
        action = self._actions.get(key)
        if action is None:
            raise ToolException.create(
                name, f"Action '{key}' not found in registry", ErrorCode.NOT_FOUND, recoverable=False
            )
        return action

    def __getitem__(self, key: str) -> BaseAction[Any, Any]:
        """Get action by key, raises KeyError if not found."""
        return self._actions[key]

    def __contains__(self, key: str) -> bool:
        return key in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[BaseAction[Any, Any]]:
        return iter(self._actions.values())

    def list_actions(self, kind: ActionKind | str | None = None) -> list[ActionMetadata]:
        """Metadata of registered actions, optionally filtered by kind."""
        wanted = ActionKind(kind) if kind is not None else None
        return [a.metadata for a in self._actions.values() if wanted is None or a.metadata.kind is wanted]

    # ─────────────────────────────────────────────────────────────────
    # Embedders
    # ─────────────────────────────────────────────────────────────────

    def provide_embedder(self, name: str, embedder: Embedder) -> None:
        """Make an embedder resolvable by name from indexer/retriever options."""
        if not isinstance(embedder, Embedder):
            raise TypeError(f"Embedder '{name}' must define an async embed(documents, options) method")
        self._embedders[name] = embedder

    def resolve_embedder(self, ref: str | Embedder) -> Embedder:
        """Resolve an embedder name (or pass an instance through)."""
        if not isinstance(ref, str):
            return ref
        try:
            return self._embedders[ref]
        except KeyError:
            raise ToolException.create(
                ref, f"Embedder '{ref}' not provided", ErrorCode.NOT_FOUND, recoverable=False
            ) from None

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def execute(self, key: str, params: dict[str, Any] | BaseModel) -> Any:
        """Validate params and execute the action registered under ``key``.

        Errors raised by the action itself propagate unchanged.

        Raises:
            ToolException: NOT_FOUND for unknown keys, INVALID_PARAMS for bad params
        """
        action = self._actions.get(key)
        if action is None:
            raise ToolException.create(
                key, f"Action '{key}' not found in registry", ErrorCode.NOT_FOUND, recoverable=False
            )
        return await action.run(params)

    async def index(
        self,
        name: str,
        documents: Sequence[Document],
        options: Mapping[str, Any] | BaseModel,
    ) -> Any:
        """Index documents through the indexer registered as ``name``."""
        action = self.lookup(ActionKind.INDEXER, name)
        return await action.run({"documents": list(documents), "options": options})

    async def retrieve(
        self,
        name: str,
        query: Document | str,
        options: Mapping[str, Any] | BaseModel,
    ) -> list[Document]:
        """Query through the retriever registered as ``name``."""
        if isinstance(query, str):
            query = Document.from_text(query)
        action = self.lookup(ActionKind.RETRIEVER, name)
        return await action.run({"query": query, "options": options})

    def clear(self) -> None:
        """Remove all registered actions and embedders."""
        self._actions.clear()
        self._embedders.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Global Registry
# ─────────────────────────────────────────────────────────────────────────────

_registry: ActionRegistry | None = None


def get_registry() -> ActionRegistry:
    """Get the global action registry instance."""
    global _registry
    if _registry is None:
        _registry = ActionRegistry()
    return _registry


def set_registry(registry: ActionRegistry) -> None:
    """Replace the global registry."""
    global _registry
    _registry = registry


def reset_registry() -> None:
    """Reset the global registry (useful for testing)."""
    global _registry
    if _registry is not None:
        _registry.clear()
    _registry = None
