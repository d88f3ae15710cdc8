"""mongosearch - MongoDB vector, text and hybrid search for AI agents.

Exposes MongoDB's search primitives as named actions: an indexer that
embeds and stores documents, a retriever for $vectorSearch / $search /
$rankFusion queries, CRUD-by-id tools and search index administration
tools. Driver calls on the indexing and retrieval paths run under a
bounded retry policy with exponential backoff and jitter.

Quick Start:
    >>> from mongosearch import Document, mongodb, retriever_ref
    >>>
    >>> plugin = mongodb([{
    ...     "url": "mongodb+srv://...",
    ...     "indexer": {"id": "menu"},
    ...     "retriever": {"id": "menu", "retry": {"retryAttempts": 3}},
    ...     "crudTools": {"id": "menu"},
    ... }])
    >>> registry = plugin.initialize()
    >>> registry.provide_embedder("my-embedder", embedder)
    >>>
    >>> await registry.index("mongodb/menu", [Document.from_text("Tofu curry")], {
    ...     "dbName": "restaurant", "collectionName": "menu", "embedder": "my-embedder",
    ... })
    >>> docs = await registry.retrieve(retriever_ref("menu"), "vegan dishes", {
    ...     "dbName": "restaurant", "collectionName": "menu", "embedder": "my-embedder",
    ...     "vectorSearch": {"index": "menu_vectors", "limit": 5},
    ... })

LangChain Integration:
    >>> from mongosearch.integrations import to_langchain_tools
    >>> lc_tools = to_langchain_tools(registry)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Core
from .core import ActionKind, ActionMetadata, BaseAction, Document, Embedder, action_key

# Errors
from .foundation.errors import ErrorCode, ToolError, ToolException, classify_exception

# Settings
from .foundation.config import MongoSearchSettings, clear_settings_cache, get_settings

# Registry
from .registry import ActionRegistry, get_registry, reset_registry, set_registry

# Retry
from .runtime.retry import NO_RETRY, ExponentialBackoff, RetryPolicy, execute_with_retry

# Logging
from .runtime.observability import configure_logging

# MongoDB components
from .mongodb import (
    HybridSearchOptions,
    IndexerOptions,
    IndexResult,
    MongoConnectionConfig,
    MongoIndexer,
    MongoPlugin,
    MongoRetriever,
    RetrieverOptions,
    TextSearchOptions,
    VectorSearchOptions,
    connection_from_settings,
    indexer_ref,
    mongodb,
    retriever_ref,
    tools_ref,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "ActionKind",
    "ActionMetadata",
    "BaseAction",
    "Document",
    "Embedder",
    "action_key",
    # Errors
    "ErrorCode",
    "ToolError",
    "ToolException",
    "classify_exception",
    # Settings
    "MongoSearchSettings",
    "get_settings",
    "clear_settings_cache",
    # Registry
    "ActionRegistry",
    "get_registry",
    "set_registry",
    "reset_registry",
    # Retry
    "RetryPolicy",
    "ExponentialBackoff",
    "NO_RETRY",
    "execute_with_retry",
    # Logging
    "configure_logging",
    # MongoDB
    "MongoPlugin",
    "MongoConnectionConfig",
    "MongoIndexer",
    "MongoRetriever",
    "IndexerOptions",
    "IndexResult",
    "RetrieverOptions",
    "VectorSearchOptions",
    "TextSearchOptions",
    "HybridSearchOptions",
    "connection_from_settings",
    "indexer_ref",
    "retriever_ref",
    "tools_ref",
    "mongodb",
]
