"""Aggregation stage construction for vector, text and hybrid search.

Builders return plain stage dicts. Option models validate only the keys
this package needs to assemble a stage; anything else the server accepts
(filters, fuzzy settings, score modifiers, extra stages) is passed through
untouched.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeFloat, PositiveInt, model_validator

VECTOR_PIPELINE = "vectorPipeline"
FULL_TEXT_PIPELINE = "fullTextPipeline"

SCORE_FIELD = "_score"
SCORE_DETAILS_FIELD = "_scoreDetails"

SearchKind = Literal["vector", "text", "hybrid"]

_SCORE_META: dict[str, str] = {
    "vector": "vectorSearchScore",
    "text": "searchScore",
    "hybrid": "score",
}


def _alias(name: str, camel: str) -> AliasChoices:
    return AliasChoices(name, camel)


class VectorSearchOptions(BaseModel):
    """Options for a ``$vectorSearch`` stage.

    ``num_candidates`` defaults to ten times ``limit`` for approximate
    search and is omitted for exact search.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    index: str = Field(..., min_length=1)
    path: str = Field(default="embedding", min_length=1)
    exact: bool = False
    num_candidates: PositiveInt | None = Field(default=None, validation_alias=_alias("num_candidates", "numCandidates"))
    limit: PositiveInt = 10
    filter: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_candidates(self) -> VectorSearchOptions:
        if not self.exact and self.num_candidates is not None and self.num_candidates < self.limit:
            raise ValueError("num_candidates must be >= limit")
        return self

    @property
    def candidates(self) -> int:
        return self.num_candidates if self.num_candidates is not None else self.limit * 10


class TextSearchOptions(BaseModel):
    """Options for a ``$search`` stage using the ``text`` operator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    index: str = Field(default="default", min_length=1)
    path: str | list[str] | dict[str, Any]
    match_criteria: Literal["any", "all"] | None = Field(
        default=None, validation_alias=_alias("match_criteria", "matchCriteria")
    )
    fuzzy: dict[str, Any] | None = None
    score: dict[str, Any] | None = None
    synonyms: str | None = None
    limit: PositiveInt = 10

    @model_validator(mode="after")
    def _check_exclusive(self) -> TextSearchOptions:
        if self.fuzzy is not None and self.synonyms is not None:
            raise ValueError("fuzzy and synonyms cannot be combined in one text search")
        return self


class HybridSearchOptions(BaseModel):
    """Options for a ``$rankFusion`` stage over one vector and one text pipeline."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    vector_search: VectorSearchOptions = Field(validation_alias=_alias("vector_search", "vectorSearch"))
    search: TextSearchOptions
    weights: dict[Literal["vectorPipeline", "fullTextPipeline"], NonNegativeFloat] | None = None
    score_details: bool = Field(default=False, validation_alias=_alias("score_details", "scoreDetails"))
    limit: PositiveInt | None = None

    @property
    def result_limit(self) -> int:
        return self.limit if self.limit is not None else self.vector_search.limit


def vector_search_stage(opts: VectorSearchOptions, query_vector: list[float]) -> dict[str, Any]:
    stage: dict[str, Any] = {
        "index": opts.index,
        "path": opts.path,
        "queryVector": list(query_vector),
        "limit": opts.limit,
    }
    if opts.exact:
        stage["exact"] = True
    else:
        stage["numCandidates"] = opts.candidates
    if opts.filter:
        stage["filter"] = opts.filter
    return {"$vectorSearch": stage}


def text_search_stage(opts: TextSearchOptions, query: str) -> dict[str, Any]:
    text: dict[str, Any] = {"query": query, "path": opts.path}
    if opts.match_criteria is not None:
        text["matchCriteria"] = opts.match_criteria
    if opts.fuzzy is not None:
        text["fuzzy"] = opts.fuzzy
    if opts.score is not None:
        text["score"] = opts.score
    if opts.synonyms is not None:
        text["synonyms"] = opts.synonyms
    return {"$search": {"index": opts.index, "text": text}}


def limit_stage(limit: int) -> dict[str, Any]:
    return {"$limit": limit}


def rank_fusion_stage(opts: HybridSearchOptions, query_vector: list[float], query: str) -> dict[str, Any]:
    fusion: dict[str, Any] = {
        "input": {
            "pipelines": {
                VECTOR_PIPELINE: [vector_search_stage(opts.vector_search, query_vector)],
                FULL_TEXT_PIPELINE: [text_search_stage(opts.search, query), limit_stage(opts.search.limit)],
            }
        }
    }
    if opts.weights:
        fusion["combination"] = {"weights": dict(opts.weights)}
    fusion["scoreDetails"] = opts.score_details
    return {"$rankFusion": fusion}


def score_stage(kind: SearchKind, *, score_details: bool = False) -> dict[str, Any]:
    """``$addFields`` copying the search score into ``_score``."""
    fields: dict[str, Any] = {SCORE_FIELD: {"$meta": _SCORE_META[kind]}}
    if score_details:
        fields[SCORE_DETAILS_FIELD] = {"$meta": "scoreDetails"}
    return {"$addFields": fields}


def exclude_stage(*fields: str) -> dict[str, Any]:
    return {"$project": {f: 0 for f in fields}}


def validate_stages(stages: list[Any]) -> list[dict[str, Any]]:
    """Check that every stage is a single-operator dict like ``{"$match": {...}}``."""
    for i, stage in enumerate(stages):
        if not isinstance(stage, dict) or len(stage) != 1:
            raise ValueError(f"pipeline stage {i} must be a dict with exactly one operator")
        (op,) = stage
        if not isinstance(op, str) or not op.startswith("$"):
            raise ValueError(f"pipeline stage {i} operator must start with '$', got {op!r}")
    return stages
