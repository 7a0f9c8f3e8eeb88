"""
agent.tools.describe_schema - Collection schema tool.

Gives the model the compact schema of one collection (field types, flags,
enum values, bounds, references) plus its cross-collection relationships,
so it can write correct filters and pipelines.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from application.context import SessionContext
from application.services.schema_formatter import SchemaFormatter
from application.services.schema_reflector import SchemaReflector
from agent.tools.base import BaseTool, ToolResult
from domain.exceptions import DomainError, SchemaError

logger = logging.getLogger(__name__)


class DescribeSchemaInput(BaseModel):
    """Input schema for the describe_schema tool."""
    collection: str = Field(description="Collection whose schema to describe.")


class DescribeSchemaTool(BaseTool):
    """Return the formatted schema of a collection."""

    name = "describe_schema"
    description = (
        "Get the schema of a collection: field names, types, required/unique/indexed "
        "flags, enum values, bounds and references to other collections. "
        "Use before querying a collection you have not inspected yet."
    )

    def __init__(self, reflector: SchemaReflector, formatter: SchemaFormatter):
        self._reflector = reflector
        self._formatter = formatter

    def get_schema(self) -> type[BaseModel]:
        return DescribeSchemaInput

    async def execute(self, ctx: SessionContext, collection: str = "", **kwargs) -> ToolResult:
        try:
            descriptor = self._reflector.reflect(collection)
            schema = self._formatter.format(descriptor)
            relationships = self._reflector.extract_relationships(collection)[collection]
        except DomainError:
            raise
        except Exception as exc:
            raise SchemaError(f"Could not reflect schema for '{collection}': {exc}") from exc

        if not schema:
            raise SchemaError(
                f"The requested schema for '{collection}' is empty or unreflectable"
            )

        logger.info("Generated schema for %s with %d fields", collection, len(schema))
        return ToolResult.ok(
            ctx.session_id,
            collection=collection,
            fieldCount=len(schema),
            schema=schema,
            relationships=[r.to_dict() for r in relationships],
        )
