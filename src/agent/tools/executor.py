"""
agent.tools.executor - Runs one step's tool calls.

All calls requested in a single model response run concurrently; the
resulting ToolMessages come back in the order the calls were requested so
each one pairs with its tool_call_id.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Sequence

from langchain_core.messages import ToolMessage

from application.context import SessionContext
from agent.tools.base import ToolResult
from agent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    async def run(
        self, ctx: SessionContext, name: str, args: Optional[Mapping[str, Any]] = None,
    ) -> ToolResult:
        logger.info("[%s] Tool call: %s %s", ctx.request_id, name, dict(args or {}))
        result = await self._registry.invoke(name, ctx, **dict(args or {}))
        logger.debug(
            "[%s] Tool %s finished (success=%s)", ctx.request_id, name, result.success,
        )
        return result

    async def execute(
        self, ctx: SessionContext, tool_calls: Sequence[Mapping[str, Any]],
    ) -> list[ToolMessage]:
        """Execute every call of one step and return their ToolMessages."""
        results = await asyncio.gather(
            *(self.run(ctx, call["name"], call.get("args")) for call in tool_calls)
        )
        return [
            ToolMessage(
                content=result.to_json(),
                tool_call_id=call.get("id") or "",
                name=call["name"],
                status="success" if result.success else "error",
            )
            for call, result in zip(tool_calls, results)
        ]
