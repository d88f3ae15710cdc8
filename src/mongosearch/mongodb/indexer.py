"""Indexer: embed documents and write them to a collection in batches.

Each batch is embedded, turned into records and written with a single
``insert_many`` wrapped in the component's retry policy. Batches run in
order; the first batch that exhausts its retries stops the call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PositiveInt

from ..core import ActionKind, ActionMetadata, BaseAction, Document, Embedder
from ..foundation.config import get_settings
from ..runtime.retry import RetryPolicy
from .client import collection

logger = logging.getLogger("mongosearch.indexer")


def _default_batch_size() -> int:
    return get_settings().indexing.batch_size


class FieldNames(BaseModel):
    """Record field names shared by indexer and retriever options."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="forbid")

    data_field: str = Field(default="data", min_length=1, validation_alias=AliasChoices("data_field", "dataField"))
    data_type_field: str = Field(
        default="dataType", min_length=1, validation_alias=AliasChoices("data_type_field", "dataTypeField")
    )
    metadata_field: str = Field(
        default="metadata", min_length=1, validation_alias=AliasChoices("metadata_field", "metadataField")
    )
    embedding_field: str = Field(
        default="embedding", min_length=1, validation_alias=AliasChoices("embedding_field", "embeddingField")
    )


class IndexerOptions(FieldNames):
    """Per-call indexing options.

    Attributes:
        db_name: Target database
        collection_name: Target collection
        embedder: Embedder instance or the name it was provided under
        embedder_options: Passed through to the embedder unchanged
        batch_size: Documents per ``insert_many`` (default from settings)
    """

    db_name: str = Field(..., min_length=1, validation_alias=AliasChoices("db_name", "dbName"))
    collection_name: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("collection_name", "collectionName")
    )
    embedder: str | Embedder
    embedder_options: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("embedder_options", "embedderOptions")
    )
    batch_size: PositiveInt = Field(
        default_factory=_default_batch_size, validation_alias=AliasChoices("batch_size", "batchSize")
    )


class IndexParams(BaseModel):
    """Input to an indexer action."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    documents: list[Document]
    options: IndexerOptions


class IndexResult(BaseModel):
    """Outcome of an indexing call."""

    inserted: int = 0
    batches: int = 0
    ids: list[str] = Field(default_factory=list)


def to_record(doc: Document, vector: list[float], names: FieldNames) -> dict[str, Any]:
    return {
        names.data_field: doc.data,
        names.data_type_field: doc.data_type,
        names.metadata_field: dict(doc.metadata),
        names.embedding_field: list(vector),
    }


def batched(items: Sequence[Document], size: int) -> list[Sequence[Document]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class MongoIndexer(BaseAction[IndexParams, IndexResult]):
    """Indexer action bound to one MongoDB client."""

    params_schema = IndexParams

    def __init__(
        self,
        metadata: ActionMetadata,
        client: Any,
        resolve_embedder: Callable[[str | Embedder], Embedder],
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        super().__init__(metadata, retry_policy)
        self._client = client
        self._resolve_embedder = resolve_embedder

    @classmethod
    def create(
        cls,
        name: str,
        client: Any,
        resolve_embedder: Callable[[str | Embedder], Embedder],
        retry_policy: RetryPolicy | None = None,
    ) -> MongoIndexer:
        meta = ActionMetadata(
            name=name,
            kind=ActionKind.INDEXER,
            description=f"Embed documents and store them in MongoDB ({name})",
        )
        return cls(meta, client, resolve_embedder, retry_policy)

    async def index(self, documents: Sequence[Document], options: IndexerOptions | dict[str, Any]) -> IndexResult:
        return await self.run({"documents": list(documents), "options": options})

    async def _run(self, params: IndexParams) -> IndexResult:
        docs, opts = params.documents, params.options
        result = IndexResult()
        if not docs:
            return result

        embedder = self._resolve_embedder(opts.embedder)
        coll = collection(self._client, opts.db_name, opts.collection_name)

        for batch in batched(docs, opts.batch_size):
            vectors = await embedder.embed(batch, opts.embedder_options)
            if len(vectors) != len(batch):
                raise ValueError(f"Embedder returned {len(vectors)} vectors for {len(batch)} documents")

            records = [to_record(doc, vec, opts) for doc, vec in zip(batch, vectors)]
            res = await self._retry(lambda: coll.insert_many(records), "insert_many")

            result.inserted += len(res.inserted_ids)
            result.batches += 1
            result.ids.extend(str(i) for i in res.inserted_ids)
            logger.debug(
                "Indexed batch %d (%d docs) into %s.%s",
                result.batches, len(batch), opts.db_name, opts.collection_name,
            )

        return result
