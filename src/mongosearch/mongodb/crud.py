"""CRUD-by-id tools: create, read, update and delete single documents."""

from __future__ import annotations

from typing import Any, ClassVar

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..core import ActionKind, ActionMetadata, BaseAction
from ..runtime.retry import RetryPolicy
from .client import collection


class CollectionParams(BaseModel):
    """Target namespace shared by every tool."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    db_name: str = Field(..., min_length=1, validation_alias=AliasChoices("db_name", "dbName"))
    collection_name: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("collection_name", "collectionName")
    )


class CreateParams(CollectionParams):
    document: dict[str, Any]


class IdParams(CollectionParams):
    id: str = Field(..., min_length=1)


class UpdateParams(IdParams):
    update: dict[str, Any] = Field(..., min_length=1)
    upsert: bool = False

    @field_validator("update")
    @classmethod
    def _no_mixed_operators(cls, v: dict[str, Any]) -> dict[str, Any]:
        ops = [k.startswith("$") for k in v]
        if any(ops) and not all(ops):
            raise ValueError("update cannot mix operators ($set, ...) with plain fields")
        return v


def to_object_id(value: str) -> ObjectId | str:
    """24-hex strings become ObjectIds; anything else is used verbatim."""
    return ObjectId(value) if ObjectId.is_valid(value) else value


def to_update(update: dict[str, Any]) -> dict[str, Any]:
    """Wrap plain field dicts in ``$set``; operator dicts pass through."""
    return update if next(iter(update)).startswith("$") else {"$set": update}


def _stringify_id(doc: dict[str, Any]) -> dict[str, Any]:
    if "_id" in doc:
        doc = {**doc, "_id": str(doc["_id"])}
    return doc


class _CrudTool(BaseAction[Any, Any]):
    verb: ClassVar[str]
    summary: ClassVar[str]

    def __init__(self, metadata: ActionMetadata, client: Any, retry_policy: RetryPolicy | None = None) -> None:
        super().__init__(metadata, retry_policy)
        self._client = client

    @classmethod
    def create(cls, base_name: str, client: Any, retry_policy: RetryPolicy | None = None) -> _CrudTool:
        meta = ActionMetadata(
            name=f"{base_name}/{cls.verb}",
            kind=ActionKind.TOOL,
            description=cls.summary,
        )
        return cls(meta, client, retry_policy)

    def _collection(self, params: CollectionParams) -> Any:
        return collection(self._client, params.db_name, params.collection_name)


class CreateDocumentTool(_CrudTool):
    params_schema = CreateParams
    verb = "create"
    summary = "Insert one document into a MongoDB collection and return its id"

    async def _run(self, params: CreateParams) -> dict[str, Any]:
        coll = self._collection(params)
        doc = dict(params.document)
        res = await self._retry(lambda: coll.insert_one(doc), "insert_one")
        return {"id": str(res.inserted_id)}


class ReadDocumentTool(_CrudTool):
    params_schema = IdParams
    verb = "read"
    summary = "Fetch one document from a MongoDB collection by its id"

    async def _run(self, params: IdParams) -> dict[str, Any] | None:
        coll = self._collection(params)
        doc = await self._retry(lambda: coll.find_one({"_id": to_object_id(params.id)}), "find_one")
        return _stringify_id(doc) if doc is not None else None


class UpdateDocumentTool(_CrudTool):
    params_schema = UpdateParams
    verb = "update"
    summary = "Update one document in a MongoDB collection by its id"

    async def _run(self, params: UpdateParams) -> dict[str, Any]:
        coll = self._collection(params)
        res = await self._retry(
            lambda: coll.update_one({"_id": to_object_id(params.id)}, to_update(params.update), upsert=params.upsert),
            "update_one",
        )
        return {
            "matched": res.matched_count,
            "modified": res.modified_count,
            "upserted_id": str(res.upserted_id) if res.upserted_id is not None else None,
        }


class DeleteDocumentTool(_CrudTool):
    params_schema = IdParams
    verb = "delete"
    summary = "Delete one document from a MongoDB collection by its id"

    async def _run(self, params: IdParams) -> dict[str, Any]:
        coll = self._collection(params)
        res = await self._retry(lambda: coll.delete_one({"_id": to_object_id(params.id)}), "delete_one")
        return {"deleted": res.deleted_count}


CRUD_TOOLS: tuple[type[_CrudTool], ...] = (
    CreateDocumentTool,
    ReadDocumentTool,
    UpdateDocumentTool,
    DeleteDocumentTool,
)


def crud_tools(base_name: str, client: Any, retry_policy: RetryPolicy | None = None) -> list[_CrudTool]:
    """Create, read, update and delete tools named ``{base_name}/{verb}``."""
    return [tool.create(base_name, client, retry_policy) for tool in CRUD_TOOLS]
