"""
infrastructure.persistence.mongo_store - MongoDB document store.

Read-only access through pymongo's native asyncio client. Collection names
are validated by the tools before any call reaches this adapter.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from pymongo import AsyncMongoClient

logger = logging.getLogger(__name__)


class MongoDocumentStore:
    """pymongo implementation of DocumentStore."""

    def __init__(self, client: AsyncMongoClient, database: str):
        self._client = client
        self._db = client[database]

    @classmethod
    def from_uri(cls, uri: str, database: str) -> MongoDocumentStore:
        logger.info("Connecting to MongoDB database %s", database)
        return cls(AsyncMongoClient(uri), database)

    async def find(
        self,
        collection: str,
        filter: Mapping[str, Any],
        projection: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, int]] = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        cursor = self._db[collection].find(
            dict(filter), projection=dict(projection) if projection else None,
        )
        if sort:
            cursor = cursor.sort(list(sort.items()))
        cursor = cursor.limit(limit)
        return await cursor.to_list(length=limit)

    async def count(self, collection: str, filter: Mapping[str, Any]) -> int:
        return await self._db[collection].count_documents(dict(filter))

    async def aggregate(
        self, collection: str, pipeline: Sequence[Mapping[str, Any]],
    ) -> list[dict[str, Any]]:
        cursor = await self._db[collection].aggregate([dict(s) for s in pipeline])
        return await cursor.to_list()

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
        except Exception:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    async def close(self) -> None:
        await self._client.close()
