"""Search index administration tools: create, list and drop Atlas Search indexes.

Index definitions are passed to the server as given; only their presence
is checked here.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import AliasChoices, Field
from pymongo.operations import SearchIndexModel

from ..core import ActionKind, ActionMetadata, BaseAction
from ..runtime.retry import RetryPolicy
from .client import collection
from .crud import CollectionParams

_index_name = AliasChoices("index_name", "indexName")


class CreateIndexParams(CollectionParams):
    index_name: str = Field(..., min_length=1, validation_alias=_index_name)
    definition: dict[str, Any] = Field(..., min_length=1)
    type: Literal["search", "vectorSearch"] = "search"


class ListIndexParams(CollectionParams):
    index_name: str | None = Field(default=None, validation_alias=_index_name)


class DropIndexParams(CollectionParams):
    index_name: str = Field(..., min_length=1, validation_alias=_index_name)


class _SearchIndexTool(BaseAction[Any, Any]):
    verb: ClassVar[str]
    summary: ClassVar[str]

    def __init__(self, metadata: ActionMetadata, client: Any, retry_policy: RetryPolicy | None = None) -> None:
        super().__init__(metadata, retry_policy)
        self._client = client

    @classmethod
    def create(cls, base_name: str, client: Any, retry_policy: RetryPolicy | None = None) -> _SearchIndexTool:
        meta = ActionMetadata(name=f"{base_name}/{cls.verb}", kind=ActionKind.TOOL, description=cls.summary)
        return cls(meta, client, retry_policy)

    def _collection(self, params: CollectionParams) -> Any:
        return collection(self._client, params.db_name, params.collection_name)


class CreateSearchIndexTool(_SearchIndexTool):
    params_schema = CreateIndexParams
    verb = "create-search-index"
    summary = "Create an Atlas Search or Vector Search index on a MongoDB collection"

    async def _run(self, params: CreateIndexParams) -> dict[str, Any]:
        coll = self._collection(params)
        model = SearchIndexModel(definition=params.definition, name=params.index_name, type=params.type)
        name = await self._retry(lambda: coll.create_search_index(model), "create_search_index")
        return {"name": name}


class ListSearchIndexesTool(_SearchIndexTool):
    params_schema = ListIndexParams
    verb = "list-search-indexes"
    summary = "List the Atlas Search and Vector Search indexes of a MongoDB collection"

    async def _run(self, params: ListIndexParams) -> list[dict[str, Any]]:
        coll = self._collection(params)

        async def list_indexes() -> list[dict[str, Any]]:
            cursor = await coll.list_search_indexes(params.index_name)
            return await cursor.to_list()

        return [dict(ix) for ix in await self._retry(list_indexes, "list_search_indexes")]


class DropSearchIndexTool(_SearchIndexTool):
    params_schema = DropIndexParams
    verb = "drop-search-index"
    summary = "Drop an Atlas Search or Vector Search index from a MongoDB collection"

    async def _run(self, params: DropIndexParams) -> dict[str, Any]:
        coll = self._collection(params)
        await self._retry(lambda: coll.drop_search_index(params.index_name), "drop_search_index")
        return {"dropped": params.index_name}


SEARCH_INDEX_TOOLS: tuple[type[_SearchIndexTool], ...] = (
    CreateSearchIndexTool,
    ListSearchIndexesTool,
    DropSearchIndexTool,
)


def search_index_tools(base_name: str, client: Any, retry_policy: RetryPolicy | None = None) -> list[_SearchIndexTool]:
    """Search index tools named ``{base_name}/{verb}``."""
    return [tool.create(base_name, client, retry_policy) for tool in SEARCH_INDEX_TOOLS]
