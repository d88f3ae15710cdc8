"""Test doubles for the MongoDB driver and embedders."""

from .embedder import HashEmbedder
from .fake import FakeCollection, FakeCursor, FakeMongoClient

__all__ = ["FakeCollection", "FakeCursor", "FakeMongoClient", "HashEmbedder"]
