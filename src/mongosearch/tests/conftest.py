"""Shared fixtures: clean settings/registry, fake driver, embedder."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from mongosearch import ActionRegistry, clear_settings_cache, reset_registry
from mongosearch.foundation.testing import FakeMongoClient, HashEmbedder


class RecordingSleep:
    """Async sleep replacement that records requested delays (seconds)."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from the host environment and global registry."""
    for var in list(os.environ):
        if var.startswith(("MONGOSEARCH_", "MONGODB_")):
            monkeypatch.delenv(var)
    clear_settings_cache()
    reset_registry()
    yield
    clear_settings_cache()
    reset_registry()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def embedder() -> HashEmbedder:
    return HashEmbedder(dimensions=4)


@pytest.fixture
def registry(embedder: HashEmbedder) -> ActionRegistry:
    reg = ActionRegistry()
    reg.provide_embedder("hash", embedder)
    return reg
