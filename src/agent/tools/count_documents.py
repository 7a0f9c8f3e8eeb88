"""
agent.tools.count_documents - Document counting tool.
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


class CountInput(BaseModel):
    """Input schema for the count tool."""
    collection: str = Field(description="Collection to count in.")
    filter: dict[str, Any] = Field(
        default_factory=dict,
        description="MongoDB filter document; empty counts everything.",
    )

    @field_validator("filter", mode="before")
    @classmethod
    def _none_filter(cls, v: Any) -> Any:
        return {} if v is None else v


class CountDocumentsTool(BaseTool):
    """Count documents matching a filter."""

    name = "count"
    description = (
        "Count documents in a collection that match a MongoDB filter. "
        "Use for 'how many' questions instead of fetching documents."
    )

    def __init__(self, models: ModelRegistry, store: DocumentStore):
        self._models = models
        self._store = store

    def get_schema(self) -> type[BaseModel]:
        return CountInput

    async def execute(
        self,
        ctx: SessionContext,
        collection: str = "",
        filter: Optional[dict[str, Any]] = None,
        **kwargs,
    ) -> ToolResult:
        self._models.lookup(collection)
        filter = filter or {}

        try:
            count = await self._store.count(collection, filter)
        except Exception as exc:
            raise QueryError(str(exc)) from exc

        logger.info("[%s] count %s = %d", ctx.request_id, collection, count)
        return ToolResult.ok(
            ctx.session_id, collection=collection, count=count, filter=filter,
        )
