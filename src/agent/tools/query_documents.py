"""
agent.tools.query_documents - Filtered document lookup.

Runs a find() against one registered collection with an optional
projection and sort. At most 50 documents come back per call.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from application.context import SessionContext
from application.services.model_registry import ModelRegistry
from agent.tools.base import BaseTool, ToolResult
from domain.exceptions import QueryError
from domain.ports import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50

_SORT_DIRECTIONS = {
    1: 1,
    -1: -1,
    "1": 1,
    "-1": -1,
    "asc": 1,
    "ascending": 1,
    "desc": -1,
    "descending": -1,
}


def clamp_limit(value: Any) -> int:
    """Coerce a requested limit into 1..MAX_LIMIT (DEFAULT_LIMIT when unusable)."""
    if value is None or isinstance(value, bool):
        return DEFAULT_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


class QueryInput(BaseModel):
    """Input schema for the query tool."""
    collection: str = Field(description="Collection to search, e.g. 'orders'.")
    filter: dict[str, Any] = Field(
        default_factory=dict,
        description="MongoDB filter document, e.g. {\"status\": \"delivered\"}.",
    )
    projection: Optional[dict[str, Any]] = Field(
        default=None,
        description="Fields to include (1) or exclude (0).",
    )
    sort: Optional[dict[str, int]] = Field(
        default=None,
        description="Sort order: field → 1/-1 (or 'asc'/'desc').",
    )
    limit: int = Field(
        default=DEFAULT_LIMIT,
        description=f"Maximum documents to return (1-{MAX_LIMIT}).",
    )

    @field_validator("filter", mode="before")
    @classmethod
    def _none_filter(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("sort", mode="before")
    @classmethod
    def _normalize_sort(cls, v: Any) -> Any:
        if not v:
            return None
        if not isinstance(v, dict):
            raise ValueError("sort must be an object of field → direction")
        normalized = {}
        for name, direction in v.items():
            key = direction.lower() if isinstance(direction, str) else direction
            if key not in _SORT_DIRECTIONS:
                raise ValueError(f"invalid sort direction for '{name}': {direction!r}")
            normalized[name] = _SORT_DIRECTIONS[key]
        return normalized

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, v: Any) -> int:
        return clamp_limit(v)


class QueryDocumentsTool(BaseTool):
    """Search documents in one collection."""

    name = "query"
    description = (
        "Query documents in a collection with a MongoDB filter. "
        "Supports projection, sort and a limit (default 10, max 50). "
        "Call describe_schema first when unsure about field names or types."
    )

    def __init__(self, models: ModelRegistry, store: DocumentStore):
        self._models = models
        self._store = store

    def get_schema(self) -> type[BaseModel]:
        return QueryInput

    async def execute(
        self,
        ctx: SessionContext,
        collection: str = "",
        filter: Optional[dict[str, Any]] = None,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[dict[str, int]] = None,
        limit: int = DEFAULT_LIMIT,
        **kwargs,
    ) -> ToolResult:
        self._models.lookup(collection)
        filter = filter or {}
        limit = clamp_limit(limit)

        try:
            documents = await self._store.find(
                collection, filter, projection=projection, sort=sort, limit=limit,
            )
        except Exception as exc:
            raise QueryError(str(exc)) from exc

        documents = documents[:limit]
        logger.info(
            "[%s] query %s returned %d document(s)",
            ctx.request_id, collection, len(documents),
        )
        return ToolResult.ok(
            ctx.session_id,
            collection=collection,
            found=len(documents),
            limit=limit,
            documents=documents,
            queryInfo={"filter": filter, "projection": projection, "sort": sort},
        )
