"""Plugin assembly: connection configs in, registered actions out.

Each connection config names the components to expose. ``initialize()``
resolves defaults, builds every action and registers it once; afterwards
callers only look actions up.

Action names:
    indexer             mongodb/{id}
    retriever           mongodb/{id}
    CRUD tools          mongodb/{id}/create|read|update|delete
    search index tools  mongodb/{id}/create-search-index|list-search-indexes|drop-search-index
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from ..core import ActionKind, BaseAction, action_key
from ..foundation.config import get_settings
from ..foundation.errors import ErrorCode, ToolException
from ..registry import ActionRegistry, get_registry
from ..runtime.retry import RetryPolicy
from .client import ClientFactory, MongoClientPool
from .crud import CRUD_TOOLS, crud_tools
from .indexer import MongoIndexer
from .retriever import MongoRetriever
from .search_index import SEARCH_INDEX_TOOLS, search_index_tools

logger = logging.getLogger("mongosearch.plugin")

PLUGIN_NAME = "mongodb"


def _default_retry() -> RetryPolicy:
    return get_settings().retry.to_policy()


class ComponentConfig(BaseModel):
    """Id and retry policy of one exposed component."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., pattern=r"^[a-z0-9][a-z0-9_\-]*$")
    retry: RetryPolicy = Field(default_factory=_default_retry)


class IndexerConfig(ComponentConfig):
    pass


class RetrieverConfig(ComponentConfig):
    pass


class CrudToolsConfig(ComponentConfig):
    pass


class SearchIndexToolsConfig(ComponentConfig):
    pass


class MongoConnectionConfig(BaseModel):
    """One MongoDB deployment and the components exposed over it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    url: str = Field(..., min_length=1)
    client_options: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("client_options", "clientOptions")
    )
    indexer: IndexerConfig | None = None
    retriever: RetrieverConfig | None = None
    crud_tools: CrudToolsConfig | None = Field(default=None, validation_alias=AliasChoices("crud_tools", "crudTools"))
    search_index_tools: SearchIndexToolsConfig | None = Field(
        default=None, validation_alias=AliasChoices("search_index_tools", "searchIndexTools")
    )

    @model_validator(mode="after")
    def _needs_component(self) -> MongoConnectionConfig:
        if not any((self.indexer, self.retriever, self.crud_tools, self.search_index_tools)):
            raise ValueError("connection must enable at least one of indexer, retriever, crud_tools, search_index_tools")
        return self

    def action_keys(self) -> list[str]:
        """Registry keys of every action this connection exposes."""
        keys: list[str] = []
        if self.indexer:
            keys.append(action_key(ActionKind.INDEXER, indexer_ref(self.indexer.id)))
        if self.retriever:
            keys.append(action_key(ActionKind.RETRIEVER, retriever_ref(self.retriever.id)))
        if self.crud_tools:
            base = tools_ref(self.crud_tools.id)
            keys.extend(action_key(ActionKind.TOOL, f"{base}/{t.verb}") for t in CRUD_TOOLS)
        if self.search_index_tools:
            base = tools_ref(self.search_index_tools.id)
            keys.extend(action_key(ActionKind.TOOL, f"{base}/{t.verb}") for t in SEARCH_INDEX_TOOLS)
        return keys


def indexer_ref(component_id: str) -> str:
    """Registered name of the indexer with this id."""
    return f"{PLUGIN_NAME}/{component_id}"


def retriever_ref(component_id: str) -> str:
    """Registered name of the retriever with this id."""
    return f"{PLUGIN_NAME}/{component_id}"


def tools_ref(component_id: str) -> str:
    """Name prefix of the CRUD / search index tools with this id."""
    return f"{PLUGIN_NAME}/{component_id}"


def connection_from_settings(**components: Any) -> MongoConnectionConfig:
    """Connection config using ``MONGODB_URL`` from the environment.

    Raises:
        ToolException: INVALID_CONFIG when MONGODB_URL is not set
    """
    mongo = get_settings().mongo
    if not mongo.configured:
        raise ToolException.create(
            PLUGIN_NAME, "MONGODB_URL is not set", ErrorCode.INVALID_CONFIG, recoverable=False
        )
    return MongoConnectionConfig(url=mongo.url.get_secret_value(), **components)


class MongoPlugin:
    """Registers MongoDB indexers, retrievers and tools.

    Args:
        connections: Connection configs (models or dicts)
        client_factory: Client constructor (default: ``pymongo.AsyncMongoClient``)
        registry: Target registry (default: the global registry)

    Example:
        >>> plugin = MongoPlugin([
        ...     {"url": MONGODB_URL,
        ...      "indexer": {"id": "menu"},
        ...      "retriever": {"id": "menu", "retry": {"retryAttempts": 2}}},
        ... ])
        >>> registry = plugin.initialize()
        >>> registry.provide_embedder("text-embedding", embedder)
        >>> await registry.retrieve(retriever_ref("menu"), "vegan", options)
    """

    __slots__ = ("connections", "_pool", "_registry", "_initialized")

    def __init__(
        self,
        connections: Sequence[MongoConnectionConfig | dict[str, Any]],
        *,
        client_factory: ClientFactory | None = None,
        registry: ActionRegistry | None = None,
    ) -> None:
        if not connections:
            raise ValueError("at least one MongoDB connection is required")
        self.connections = [MongoConnectionConfig.model_validate(c) for c in connections]
        keys = [k for conn in self.connections for k in conn.action_keys()]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate component ids across connections: {', '.join(duplicates)}")
        self._pool = MongoClientPool(client_factory)
        self._registry = registry
        self._initialized = False

    @property
    def registry(self) -> ActionRegistry:
        if self._registry is None:
            self._registry = get_registry()
        return self._registry

    def actions(self) -> list[BaseAction[Any, Any]]:
        """Build every configured action (clients are created lazily here)."""
        built: list[BaseAction[Any, Any]] = []
        resolve = self.registry.resolve_embedder
        for conn in self.connections:
            client = self._pool.get(conn.url, **conn.client_options)
            if conn.indexer:
                built.append(MongoIndexer.create(indexer_ref(conn.indexer.id), client, resolve, conn.indexer.retry))
            if conn.retriever:
                built.append(
                    MongoRetriever.create(retriever_ref(conn.retriever.id), client, resolve, conn.retriever.retry)
                )
            if conn.crud_tools:
                built.extend(crud_tools(tools_ref(conn.crud_tools.id), client, conn.crud_tools.retry))
            if conn.search_index_tools:
                built.extend(
                    search_index_tools(tools_ref(conn.search_index_tools.id), client, conn.search_index_tools.retry)
                )
        return built

    def initialize(self) -> ActionRegistry:
        """Register all actions once and return the registry."""
        if not self._initialized:
            taken = sorted(k for conn in self.connections for k in conn.action_keys() if k in self.registry)
            if taken:
                raise ValueError(f"Actions already registered: {', '.join(taken)}")
            actions = self.actions()
            self.registry.register_all(*actions)
            self._initialized = True
            logger.info("Registered %d MongoDB actions over %d connections", len(actions), len(self.connections))
        return self.registry

    async def close(self) -> None:
        """Close every MongoDB client opened by this plugin."""
        await self._pool.close()


def mongodb(
    connections: Sequence[MongoConnectionConfig | dict[str, Any]],
    *,
    client_factory: ClientFactory | None = None,
    registry: ActionRegistry | None = None,
) -> MongoPlugin:
    """Create and initialize the MongoDB plugin."""
    plugin = MongoPlugin(connections, client_factory=client_factory, registry=registry)
    plugin.initialize()
    return plugin
