"""MongoDB components: indexer, retriever, CRUD and search index tools."""

from .client import MongoClientPool, collection
from .crud import (
    CreateDocumentTool,
    DeleteDocumentTool,
    ReadDocumentTool,
    UpdateDocumentTool,
    crud_tools,
)
from .indexer import IndexerOptions, IndexResult, MongoIndexer
from .pipelines import HybridSearchOptions, TextSearchOptions, VectorSearchOptions
from .plugin import (
    CrudToolsConfig,
    IndexerConfig,
    MongoConnectionConfig,
    MongoPlugin,
    RetrieverConfig,
    SearchIndexToolsConfig,
    connection_from_settings,
    indexer_ref,
    mongodb,
    retriever_ref,
    tools_ref,
)
from .retriever import MongoRetriever, RetrieverOptions
from .search_index import (
    CreateSearchIndexTool,
    DropSearchIndexTool,
    ListSearchIndexesTool,
    search_index_tools,
)

__all__ = [
    "MongoClientPool",
    "collection",
    "CreateDocumentTool",
    "ReadDocumentTool",
    "UpdateDocumentTool",
    "DeleteDocumentTool",
    "crud_tools",
    "IndexerOptions",
    "IndexResult",
    "MongoIndexer",
    "VectorSearchOptions",
    "TextSearchOptions",
    "HybridSearchOptions",
    "MongoRetriever",
    "RetrieverOptions",
    "CreateSearchIndexTool",
    "ListSearchIndexesTool",
    "DropSearchIndexTool",
    "search_index_tools",
    "IndexerConfig",
    "RetrieverConfig",
    "CrudToolsConfig",
    "SearchIndexToolsConfig",
    "MongoConnectionConfig",
    "MongoPlugin",
    "connection_from_settings",
    "indexer_ref",
    "retriever_ref",
    "tools_ref",
    "mongodb",
]
