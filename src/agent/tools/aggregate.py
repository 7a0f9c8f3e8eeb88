"""
agent.tools.aggregate - Aggregation pipeline tool.

Every pipeline passes through the PipelineSanitizer before it reaches the
store, so collections joined in via $lookup, $facet or $unionWith are
filtered by their access rules.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from application.context import SessionContext
from application.services.model_registry import ModelRegistry
from application.services.pipeline_sanitizer import PipelineSanitizer
from agent.tools.base import BaseTool, ToolResult
from domain.exceptions import AggregationError
from domain.ports import DocumentStore

logger = logging.getLogger(__name__)


class AggregateInput(BaseModel):
    """Input schema for the aggregate tool."""
    collection: str = Field(description="Collection the pipeline starts from.")
    pipeline: list[dict[str, Any]] = Field(
        description="MongoDB aggregation pipeline: a list of stage objects.",
    )

    @field_validator("pipeline", mode="before")
    @classmethod
    def _parse_pipeline(cls, v: Any) -> Any:
        # Some models send the pipeline as a JSON string
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError as exc:
                raise ValueError(f"pipeline is not valid JSON: {exc}") from exc
        return v


class AggregateTool(BaseTool):
    """Run an aggregation pipeline against one collection."""

    name = "aggregate"
    description = (
        "Run a MongoDB aggregation pipeline on a collection. Use for grouping, "
        "totals, averages, joins ($lookup) and other analytics. Add a $limit "
        "stage when the result could be large."
    )

    def __init__(
        self,
        models: ModelRegistry,
        store: DocumentStore,
        sanitizer: PipelineSanitizer,
    ):
        self._models = models
        self._store = store
        self._sanitizer = sanitizer

    def get_schema(self) -> type[BaseModel]:
        return AggregateInput

    async def execute(
        self,
        ctx: SessionContext,
        collection: str = "",
        pipeline: Optional[list[dict[str, Any]]] = None,
        **kwargs,
    ) -> ToolResult:
        self._models.lookup(collection)
        pipeline = list(pipeline or [])

        if self._sanitizer.enabled:
            pipeline = self._sanitizer.sanitize(pipeline)
            logger.debug("[%s] Sanitized pipeline: %s", ctx.request_id, pipeline)

        try:
            results = await self._store.aggregate(collection, pipeline)
        except Exception as exc:
            raise AggregationError(str(exc)) from exc

        logger.info(
            "[%s] aggregate %s (%d stage(s)) returned %d document(s)",
            ctx.request_id, collection, len(pipeline), len(results),
        )
        return ToolResult.ok(
            ctx.session_id,
            collection=collection,
            pipelineStages=len(pipeline),
            results=len(results),
            documents=results,
        )
