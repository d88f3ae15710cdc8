"""Retriever: vector, full-text and hybrid (rank fusion) search.

Builds one aggregation pipeline per call, runs it under the component's
retry policy and maps result rows back to Documents ranked by score.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core import ActionKind, ActionMetadata, BaseAction, Document, Embedder
from ..runtime.retry import RetryPolicy
from .client import collection
from .indexer import FieldNames
from .pipelines import (
    SCORE_DETAILS_FIELD,
    SCORE_FIELD,
    HybridSearchOptions,
    SearchKind,
    TextSearchOptions,
    VectorSearchOptions,
    exclude_stage,
    limit_stage,
    rank_fusion_stage,
    score_stage,
    text_search_stage,
    validate_stages,
    vector_search_stage,
)

logger = logging.getLogger("mongosearch.retriever")


class RetrieverOptions(FieldNames):
    """Per-call retrieval options.

    Exactly one of ``vector_search``, ``search`` or ``hybrid_search`` must be
    set. Vector and hybrid search need an embedder for the query.

    Attributes:
        pipelines: Extra aggregation stages appended after the search stages
    """

    db_name: str = Field(..., min_length=1, validation_alias=AliasChoices("db_name", "dbName"))
    collection_name: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("collection_name", "collectionName")
    )
    embedder: str | Embedder | None = None
    embedder_options: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("embedder_options", "embedderOptions")
    )
    vector_search: VectorSearchOptions | None = Field(
        default=None, validation_alias=AliasChoices("vector_search", "vectorSearch")
    )
    search: TextSearchOptions | None = None
    hybrid_search: HybridSearchOptions | None = Field(
        default=None, validation_alias=AliasChoices("hybrid_search", "hybridSearch")
    )
    pipelines: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("pipelines", mode="after")
    @classmethod
    def _check_pipelines(cls, v: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return validate_stages(v)

    @model_validator(mode="after")
    def _check_mode(self) -> RetrieverOptions:
        chosen = [m for m in (self.vector_search, self.search, self.hybrid_search) if m is not None]
        if len(chosen) != 1:
            raise ValueError("exactly one of vector_search, search or hybrid_search is required")
        if self.search is None and self.embedder is None:
            raise ValueError("an embedder is required for vector and hybrid search")
        return self

    @property
    def kind(self) -> SearchKind:
        if self.vector_search is not None:
            return "vector"
        if self.search is not None:
            return "text"
        return "hybrid"


class RetrieveParams(BaseModel):
    """Input to a retriever action."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    query: Document
    options: RetrieverOptions


def build_pipeline(
    opts: RetrieverOptions,
    query: Document,
    query_vector: list[float] | None = None,
) -> list[dict[str, Any]]:
    """Assemble the aggregation pipeline for one retrieval."""
    score_details = False
    stages: list[dict[str, Any]]

    if opts.search is not None:
        stages = [text_search_stage(opts.search, query.text), limit_stage(opts.search.limit)]
    elif query_vector is None:
        raise ValueError(f"{opts.kind} search needs a query vector")
    elif opts.vector_search is not None:
        stages = [vector_search_stage(opts.vector_search, query_vector)]
    elif opts.hybrid_search is not None:
        hybrid = opts.hybrid_search
        score_details = hybrid.score_details
        stages = [rank_fusion_stage(hybrid, query_vector, query.text), limit_stage(hybrid.result_limit)]
    else:
        raise ValueError("no search mode configured")

    stages.append(score_stage(opts.kind, score_details=score_details))
    stages.append(exclude_stage(opts.embedding_field))
    stages.extend(opts.pipelines)
    return stages


def to_document(row: dict[str, Any], names: FieldNames) -> Document | None:
    """Map a result row to a Document, or None if it has no data field."""
    data = row.get(names.data_field)
    if data is None:
        return None
    metadata = dict(row.get(names.metadata_field) or {})
    if "_id" in row:
        metadata["_id"] = str(row["_id"])
    if SCORE_FIELD in row:
        metadata["score"] = row[SCORE_FIELD]
    if SCORE_DETAILS_FIELD in row:
        metadata["score_details"] = row[SCORE_DETAILS_FIELD]
    return Document(
        data=data if isinstance(data, str) else str(data),
        data_type=row.get(names.data_type_field) or "text",
        metadata=metadata,
    )


class MongoRetriever(BaseAction[RetrieveParams, list[Document]]):
    """Retriever action bound to one MongoDB client."""

    params_schema = RetrieveParams

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
    ) -> MongoRetriever:
        meta = ActionMetadata(
            name=name,
            kind=ActionKind.RETRIEVER,
            description=f"Vector, text or hybrid search over MongoDB ({name})",
        )
        return cls(meta, client, resolve_embedder, retry_policy)

    async def retrieve(self, query: Document | str, options: RetrieverOptions | dict[str, Any]) -> list[Document]:
        if isinstance(query, str):
            query = Document.from_text(query)
        return await self.run({"query": query, "options": options})

    async def _embed_query(self, query: Document, opts: RetrieverOptions) -> list[float] | None:
        if opts.search is not None:
            return None
        if opts.embedder is None:
            raise ValueError(f"{opts.kind} search needs an embedder")
        embedder = self._resolve_embedder(opts.embedder)
        vectors = await embedder.embed([query], opts.embedder_options)
        if len(vectors) != 1:
            raise ValueError(f"Embedder returned {len(vectors)} vectors for 1 query")
        return vectors[0]

    async def _run(self, params: RetrieveParams) -> list[Document]:
        query, opts = params.query, params.options
        if opts.kind != "vector" and not query.text:
            raise ValueError(f"{opts.kind} search needs a text query")
        query_vector = await self._embed_query(query, opts)
        pipeline = build_pipeline(opts, query, query_vector)
        coll = collection(self._client, opts.db_name, opts.collection_name)

        async def aggregate() -> list[dict[str, Any]]:
            cursor = await coll.aggregate(pipeline)
            return await cursor.to_list()

        rows = await self._retry(aggregate, "aggregate")
        docs = [d for d in (to_document(row, opts) for row in rows) if d is not None]
        logger.debug("%s search on %s.%s returned %d documents", opts.kind, opts.db_name, opts.collection_name, len(docs))
        return docs
