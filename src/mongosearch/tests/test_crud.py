"""Tests for CRUD-by-id tools."""

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, DuplicateKeyError

from mongosearch import ActionKind, ErrorCode, RetryPolicy, ToolException
from mongosearch.mongodb.crud import crud_tools, to_object_id, to_update

NS = {"dbName": "restaurant", "collectionName": "menu"}


@pytest.fixture
def tools(client) -> dict:
    return {t.name.rsplit("/", 1)[1]: t for t in crud_tools("mongodb/menu", client)}


def test_tool_names_and_kind(client) -> None:
    built = crud_tools("mongodb/menu", client)
    assert [t.name for t in built] == [
        "mongodb/menu/create",
        "mongodb/menu/read",
        "mongodb/menu/update",
        "mongodb/menu/delete",
    ]
    assert all(t.metadata.kind is ActionKind.TOOL for t in built)
    assert built[1].key == "/tool/mongodb/menu/read"


@pytest.mark.asyncio
async def test_create_read_update_delete(tools: dict, client) -> None:
    created = await tools["create"].run({**NS, "document": {"name": "Tofu curry", "price": 12}})
    doc_id = created["id"]
    assert ObjectId.is_valid(doc_id)

    read = await tools["read"].run({**NS, "id": doc_id})
    assert read == {"_id": doc_id, "name": "Tofu curry", "price": 12}

    updated = await tools["update"].run({**NS, "id": doc_id, "update": {"price": 13}})
    assert updated == {"matched": 1, "modified": 1, "upserted_id": None}
    assert (await tools["read"].run({**NS, "id": doc_id}))["price"] == 13

    deleted = await tools["delete"].run({**NS, "id": doc_id})
    assert deleted == {"deleted": 1}
    assert await tools["read"].run({**NS, "id": doc_id}) is None


@pytest.mark.asyncio
async def test_create_does_not_mutate_input(tools: dict) -> None:
    document = {"name": "Pho"}
    await tools["create"].run({**NS, "document": document})
    assert "_id" not in document


@pytest.mark.asyncio
async def test_plain_update_wrapped_in_set(tools: dict, client) -> None:
    oid = ObjectId()
    client["restaurant"]["menu"].docs[oid] = {"_id": oid, "name": "Laksa"}

    await tools["update"].run({**NS, "id": str(oid), "update": {"spicy": True}})

    (call,) = client["restaurant"]["menu"].calls_to("update_one")
    assert call.args == ({"_id": oid}, {"$set": {"spicy": True}})
    assert call.kwargs == {"upsert": False}


@pytest.mark.asyncio
async def test_upsert_reports_new_id(tools: dict) -> None:
    result = await tools["update"].run({**NS, "id": "special-1", "update": {"$set": {"name": "Soup"}}, "upsert": True})
    assert result == {"matched": 0, "modified": 0, "upserted_id": "special-1"}


@pytest.mark.asyncio
async def test_missing_documents(tools: dict) -> None:
    missing = str(ObjectId())
    assert await tools["read"].run({**NS, "id": missing}) is None
    assert await tools["delete"].run({**NS, "id": missing}) == {"deleted": 0}
    assert await tools["update"].run({**NS, "id": missing, "update": {"a": 1}}) == {
        "matched": 0,
        "modified": 0,
        "upserted_id": None,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("verb", "params"),
    [
        ("create", {"dbName": "restaurant", "document": {}}),
        ("read", {**NS}),
        ("read", {**NS, "id": ""}),
        ("update", {**NS, "id": "x", "update": {}}),
        ("update", {**NS, "id": "x", "update": {"$set": {"a": 1}, "b": 2}}),
        ("delete", {**NS, "id": "x", "extra": 1}),
    ],
)
async def test_invalid_params(tools: dict, verb: str, params: dict) -> None:
    with pytest.raises(ToolException) as info:
        await tools[verb].run(params)
    assert info.value.code == ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
async def test_driver_call_retried(client) -> None:
    coll = client["restaurant"]["menu"]
    coll.fail("find_one", AutoReconnect("reset"))
    read = crud_tools("mongodb/menu", client, RetryPolicy(retry_attempts=1, base_delay=0))[1]

    assert await read.run({**NS, "id": str(ObjectId())}) is None
    assert len(coll.calls_to("find_one")) == 2


@pytest.mark.asyncio
async def test_create_retry_resends_same_document(client) -> None:
    coll = client["restaurant"]["menu"]
    coll.fail("insert_one", AutoReconnect("reply lost"))
    create = crud_tools("mongodb/menu", client, RetryPolicy(retry_attempts=1, base_delay=0))[0]

    result = await create.run({**NS, "document": {"name": "Pho"}})

    first, second = (c.args[0] for c in coll.calls_to("insert_one"))
    assert first is second
    assert result["id"] == str(first["_id"])
    assert len(coll.docs) == 1


@pytest.mark.asyncio
async def test_driver_error_propagates(tools: dict, client) -> None:
    err = DuplicateKeyError("E11000", code=11000)
    client["restaurant"]["menu"].fail("insert_one", err)

    with pytest.raises(DuplicateKeyError) as info:
        await tools["create"].run({**NS, "document": {"_id": "dup"}})
    assert info.value is err


def test_to_object_id() -> None:
    oid = ObjectId()
    assert to_object_id(str(oid)) == oid
    assert to_object_id("menu-42") == "menu-42"


def test_to_update() -> None:
    assert to_update({"a": 1}) == {"$set": {"a": 1}}
    assert to_update({"$inc": {"n": 1}}) == {"$inc": {"n": 1}}
