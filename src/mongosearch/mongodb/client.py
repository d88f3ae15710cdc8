"""Connection management for MongoDB deployments.

One ``AsyncMongoClient`` is shared by every component configured against
the same connection string and options.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import orjson
from pymongo import AsyncMongoClient

logger = logging.getLogger("mongosearch.client")

ClientFactory = Callable[..., Any]


def _pool_key(url: str, options: dict[str, Any]) -> str:
    return f"{url}|{orjson.dumps(options, option=orjson.OPT_SORT_KEYS, default=str).decode()}"


class MongoClientPool:
    """Lazily created clients keyed by connection string and options.

    Args:
        client_factory: Callable ``(url, **options) -> client``
            (default: ``pymongo.AsyncMongoClient``)
    """

    __slots__ = ("_factory", "_clients")

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._factory: ClientFactory = client_factory or AsyncMongoClient
        self._clients: dict[str, Any] = {}

    def get(self, url: str, **options: Any) -> Any:
        """Return the client for ``url``, creating it on first use."""
        key = _pool_key(url, options)
        client = self._clients.get(key)
        if client is None:
            logger.debug("Creating MongoDB client (%d open)", len(self._clients))
            client = self._factory(url, **options)
            self._clients[key] = client
        return client

    def __len__(self) -> int:
        return len(self._clients)

    async def close(self) -> None:
        """Close and forget every client."""
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.close()


def collection(client: Any, db_name: str, collection_name: str) -> Any:
    """Resolve ``db_name.collection_name`` on a client."""
    return client[db_name][collection_name]
