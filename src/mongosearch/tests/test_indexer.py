"""Tests for MongoIndexer: batching, record layout, retry behavior."""

import pytest
from pymongo.errors import AutoReconnect

from mongosearch import Document, ErrorCode, MongoIndexer, RetryPolicy, ToolException
from mongosearch.foundation.testing import FakeMongoClient, HashEmbedder


def make_indexer(client: FakeMongoClient, registry, retry: RetryPolicy | None = None) -> MongoIndexer:
    return MongoIndexer.create("mongodb/menu", client, registry.resolve_embedder, retry)


def docs(n: int) -> list[Document]:
    return [Document.from_text(f"dish {i}", {"n": i}) for i in range(n)]


OPTIONS = {"dbName": "restaurant", "collectionName": "menu", "embedder": "hash"}


@pytest.mark.asyncio
async def test_batches_and_record_layout(client, registry, embedder: HashEmbedder) -> None:
    indexer = make_indexer(client, registry)

    result = await indexer.index(docs(5), {**OPTIONS, "batchSize": 2})

    coll = client["restaurant"]["menu"]
    inserts = coll.calls_to("insert_many")
    assert [len(c.args[0]) for c in inserts] == [2, 2, 1]
    assert result.inserted == 5
    assert result.batches == 3
    assert len(result.ids) == 5
    assert embedder.calls == [["dish 0", "dish 1"], ["dish 2", "dish 3"], ["dish 4"]]

    record = inserts[0].args[0][0]
    assert record["data"] == "dish 0"
    assert record["dataType"] == "text"
    assert record["metadata"] == {"n": 0}
    assert record["embedding"] == embedder.vector("dish 0")


@pytest.mark.asyncio
async def test_custom_field_names(client, registry) -> None:
    indexer = make_indexer(client, registry)
    options = {
        **OPTIONS,
        "dataField": "content",
        "dataTypeField": "kind",
        "metadataField": "meta",
        "embeddingField": "vec",
    }

    await indexer.index([Document.from_media("https://cdn/x.png", "image/png", {"alt": "x"})], options)

    (stored,) = client["restaurant"]["menu"].docs.values()
    assert stored["content"] == "https://cdn/x.png"
    assert stored["kind"] == "image/png"
    assert stored["meta"] == {"alt": "x"}
    assert len(stored["vec"]) == 4
    assert "embedding" not in stored


@pytest.mark.asyncio
async def test_empty_input_writes_nothing(client, registry, embedder: HashEmbedder) -> None:
    result = await make_indexer(client, registry).index([], OPTIONS)

    assert result.inserted == 0 and result.batches == 0
    assert embedder.calls == []
    assert client["restaurant"]["menu"].calls == []


@pytest.mark.asyncio
async def test_embedder_instance_accepted(client, registry) -> None:
    other = HashEmbedder(dimensions=2)
    await make_indexer(client, registry).index(docs(1), {**OPTIONS, "embedder": other})
    assert other.calls == [["dish 0"]]


@pytest.mark.asyncio
async def test_transient_insert_failure_is_retried(client, registry) -> None:
    coll = client["restaurant"]["menu"]
    coll.fail("insert_many", AutoReconnect("primary stepped down"), times=2)
    indexer = make_indexer(client, registry, RetryPolicy(retry_attempts=2, base_delay=0))

    result = await indexer.index(docs(3), {**OPTIONS, "batchSize": 3})

    assert result.inserted == 3
    assert len(coll.calls_to("insert_many")) == 3
    assert len(coll.docs) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_stop_remaining_batches(client, registry) -> None:
    coll = client["restaurant"]["menu"]
    err = AutoReconnect("down")
    coll.fail("insert_many", err, times=5)
    indexer = make_indexer(client, registry, RetryPolicy(retry_attempts=1, base_delay=0))

    with pytest.raises(AutoReconnect) as info:
        await indexer.index(docs(4), {**OPTIONS, "batchSize": 2})

    assert info.value is err
    assert len(coll.calls_to("insert_many")) == 2
    assert coll.docs == {}


@pytest.mark.asyncio
async def test_no_retry_by_default(client, registry) -> None:
    coll = client["restaurant"]["menu"]
    coll.fail("insert_many", AutoReconnect("down"))

    with pytest.raises(AutoReconnect):
        await make_indexer(client, registry).index(docs(1), OPTIONS)
    assert len(coll.calls_to("insert_many")) == 1


@pytest.mark.asyncio
async def test_unknown_embedder_name(client, registry) -> None:
    with pytest.raises(ToolException) as info:
        await make_indexer(client, registry).index(docs(1), {**OPTIONS, "embedder": "missing"})
    assert info.value.code == ErrorCode.NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "bad",
    [
        {"collectionName": "menu", "embedder": "hash"},
        {**OPTIONS, "batchSize": 0},
        {**OPTIONS, "unexpected": True},
    ],
)
async def test_invalid_options(client, registry, bad: dict) -> None:
    with pytest.raises(ToolException) as info:
        await make_indexer(client, registry).index(docs(1), bad)
    assert info.value.code == ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
async def test_vector_count_mismatch(client, registry) -> None:
    class Short:
        async def embed(self, documents, options=None):
            return [[0.0]]

    with pytest.raises(ValueError, match="1 vectors for 2 documents"):
        await make_indexer(client, registry).index(docs(2), {**OPTIONS, "embedder": Short()})
    assert client["restaurant"]["menu"].calls_to("insert_many") == []


@pytest.mark.asyncio
async def test_embedder_options_passed_through(client, registry) -> None:
    seen = []

    class Recording:
        async def embed(self, documents, options=None):
            seen.append(options)
            return [[1.0] for _ in documents]

    await make_indexer(client, registry).index(
        docs(1), {**OPTIONS, "embedder": Recording(), "embedderOptions": {"taskType": "RETRIEVAL_DOCUMENT"}}
    )
    assert seen == [{"taskType": "RETRIEVAL_DOCUMENT"}]


@pytest.mark.asyncio
async def test_batch_size_from_settings(client, registry, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGOSEARCH_INDEX_BATCH_SIZE", "3")

    result = await make_indexer(client, registry).index(docs(7), OPTIONS)

    assert result.batches == 3
