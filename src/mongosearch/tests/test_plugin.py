"""Tests for plugin assembly and end-to-end use through the registry."""

import pytest
from pydantic import ValidationError
from pymongo.errors import AutoReconnect

from mongosearch import (
    ActionKind,
    Document,
    ErrorCode,
    MongoPlugin,
    ToolException,
    get_registry,
    indexer_ref,
    mongodb,
    retriever_ref,
    tools_ref,
)
from mongosearch.foundation.testing import FakeMongoClient

FULL = {
    "url": "mongodb://cluster",
    "indexer": {"id": "menu"},
    "retriever": {"id": "menu", "retry": {"retryAttempts": 2, "baseDelay": 0}},
    "crudTools": {"id": "menu"},
    "searchIndexTools": {"id": "menu"},
}


def test_registers_all_components(registry) -> None:
    plugin = MongoPlugin([FULL], client_factory=FakeMongoClient, registry=registry)
    plugin.initialize()

    assert sorted(a.key for a in registry) == [
        "/indexer/mongodb/menu",
        "/retriever/mongodb/menu",
        "/tool/mongodb/menu/create",
        "/tool/mongodb/menu/create-search-index",
        "/tool/mongodb/menu/delete",
        "/tool/mongodb/menu/drop-search-index",
        "/tool/mongodb/menu/list-search-indexes",
        "/tool/mongodb/menu/read",
        "/tool/mongodb/menu/update",
    ]
    assert len(registry.list_actions(ActionKind.TOOL)) == 7


def test_initialize_is_idempotent(registry) -> None:
    plugin = MongoPlugin([FULL], client_factory=FakeMongoClient, registry=registry)
    assert plugin.initialize() is plugin.initialize()
    assert len(registry) == 9


def test_component_retry_policies(registry) -> None:
    MongoPlugin([FULL], client_factory=FakeMongoClient, registry=registry).initialize()

    assert registry.lookup("retriever", "mongodb/menu").retry_policy.retry_attempts == 2
    assert registry.lookup("indexer", "mongodb/menu").retry_policy.retry_attempts == 0


def test_refs() -> None:
    assert indexer_ref("menu") == retriever_ref("menu") == tools_ref("menu") == "mongodb/menu"


def test_components_are_optional(registry) -> None:
    MongoPlugin([{"url": "mongodb://x", "retriever": {"id": "docs"}}], client_factory=FakeMongoClient, registry=registry).initialize()
    assert [a.key for a in registry] == ["/retriever/mongodb/docs"]


@pytest.mark.parametrize(
    "connection",
    [
        {"url": "mongodb://x"},
        {"url": "", "indexer": {"id": "a"}},
        {"url": "mongodb://x", "indexer": {"id": "Menu"}},
        {"url": "mongodb://x", "indexer": {"id": "a", "retry": {"retryAttempts": -1}}},
        {"url": "mongodb://x", "indexer": {"id": "a"}, "unknown": True},
    ],
    ids=["no-components", "empty-url", "uppercase-id", "negative-retry", "unknown-key"],
)
def test_invalid_connection(connection: dict) -> None:
    with pytest.raises(ValidationError):
        MongoPlugin([connection], client_factory=FakeMongoClient)


def test_empty_connections_rejected() -> None:
    with pytest.raises(ValueError, match="at least one"):
        MongoPlugin([])


def test_duplicate_ids_rejected_before_registration(registry) -> None:
    created: list[FakeMongoClient] = []

    def factory(url: str, **options) -> FakeMongoClient:
        created.append(FakeMongoClient(url, **options))
        return created[-1]

    with pytest.raises(ValueError, match="/indexer/mongodb/menu"):
        MongoPlugin(
            [
                {"url": "mongodb://a", "indexer": {"id": "menu"}, "crudTools": {"id": "menu"}},
                {"url": "mongodb://b", "indexer": {"id": "menu"}},
            ],
            client_factory=factory,
            registry=registry,
        )

    assert len(registry) == 0
    assert created == []


def test_same_id_across_kinds_is_allowed(registry) -> None:
    plugin = MongoPlugin(
        [{"url": "mongodb://a", "indexer": {"id": "menu"}}, {"url": "mongodb://b", "retriever": {"id": "menu"}}],
        client_factory=FakeMongoClient,
        registry=registry,
    )
    plugin.initialize()
    assert len(registry) == 2


def test_collision_with_registered_action_leaves_registry_untouched(registry) -> None:
    MongoPlugin([{"url": "mongodb://a", "retriever": {"id": "menu"}}], client_factory=FakeMongoClient, registry=registry).initialize()
    later = MongoPlugin(
        [{"url": "mongodb://b", "indexer": {"id": "menu"}, "retriever": {"id": "menu"}}],
        client_factory=FakeMongoClient,
        registry=registry,
    )

    with pytest.raises(ValueError, match="already registered: /retriever/mongodb/menu"):
        later.initialize()
    with pytest.raises(ValueError, match="already registered"):
        later.initialize()

    assert [a.key for a in registry] == ["/retriever/mongodb/menu"]


@pytest.mark.asyncio
async def test_clients_shared_per_url_and_closed(registry) -> None:
    created: list[FakeMongoClient] = []

    def factory(url: str, **options) -> FakeMongoClient:
        created.append(FakeMongoClient(url, **options))
        return created[-1]

    plugin = MongoPlugin(
        [
            {"url": "mongodb://a", "indexer": {"id": "one"}},
            {"url": "mongodb://a", "retriever": {"id": "two"}},
            {"url": "mongodb://a", "clientOptions": {"appname": "x"}, "crudTools": {"id": "three"}},
        ],
        client_factory=factory,
        registry=registry,
    )
    plugin.initialize()

    assert [(c.url, c.options) for c in created] == [("mongodb://a", {}), ("mongodb://a", {"appname": "x"})]

    await plugin.close()
    assert all(c.closed for c in created)


def test_mongodb_factory_uses_global_registry() -> None:
    plugin = mongodb([{"url": "mongodb://x", "crudTools": {"id": "menu"}}], client_factory=FakeMongoClient)
    assert plugin.registry is get_registry()
    assert "/tool/mongodb/menu/read" in get_registry()


# ═════════════════════════════════════════════════════════════════════════════
# End to end
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_index_then_retrieve_through_registry(registry, client: FakeMongoClient) -> None:
    MongoPlugin([FULL], client_factory=lambda url, **options: client, registry=registry).initialize()
    options = {"dbName": "restaurant", "collectionName": "menu", "embedder": "hash"}

    result = await registry.index(indexer_ref("menu"), [Document.from_text("Tofu curry")], options)
    assert result.inserted == 1

    coll = client["restaurant"]["menu"]
    coll.aggregate_results = [{**stored, "_score": 0.8} for stored in coll.docs.values()]
    coll.fail("aggregate", AutoReconnect("election"), times=2)

    docs = await registry.retrieve(retriever_ref("menu"), "curry", {**options, "vectorSearch": {"index": "vec"}})

    assert [d.data for d in docs] == ["Tofu curry"]
    assert docs[0].metadata["score"] == 0.8
    assert len(coll.calls_to("aggregate")) == 3


@pytest.mark.asyncio
async def test_execute_tool_by_key(registry, client: FakeMongoClient) -> None:
    MongoPlugin([FULL], client_factory=lambda url, **options: client, registry=registry).initialize()

    created = await registry.execute(
        "/tool/mongodb/menu/create", {"dbName": "restaurant", "collectionName": "menu", "document": {"n": 1}}
    )
    read = await registry.execute(
        "/tool/mongodb/menu/read", {"dbName": "restaurant", "collectionName": "menu", "id": created["id"]}
    )
    assert read["n"] == 1


@pytest.mark.asyncio
async def test_unknown_names(registry) -> None:
    MongoPlugin([FULL], client_factory=FakeMongoClient, registry=registry).initialize()

    with pytest.raises(ToolException) as info:
        await registry.execute("/tool/mongodb/other/read", {})
    assert info.value.code == ErrorCode.NOT_FOUND

    with pytest.raises(ToolException) as info:
        await registry.retrieve("mongodb/other", "q", {})
    assert info.value.code == ErrorCode.NOT_FOUND
