"""
agent.tools.registry - Tool registration, discovery, and invocation.

Central registry that manages all available tools and provides
LangChain-compatible tool wrappers. invoke() is the tool boundary: it
validates arguments against the tool's schema and turns every exception
into a failure ToolResult.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import ValidationError

from application.context import SessionContext
from agent.tools.base import BaseTool, ToolResult
from domain.exceptions import DomainError, ToolInputError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and invocation."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name."""
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise ToolInputError(f"Tool '{name}' not registered")
        return self._tools[name]

    def all(self) -> list[BaseTool]:
        """Return all registered tools."""
        return list(self._tools.values())

    def names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    async def invoke(self, name: str, ctx: SessionContext, **kwargs: Any) -> ToolResult:
        """Validate arguments, run the tool and return its envelope. Never raises."""
        try:
            tool = self.get(name)
            try:
                args = tool.get_schema().model_validate(kwargs)
            except ValidationError as exc:
                raise ToolInputError(
                    f"Invalid arguments for tool '{name}': {exc}"
                ) from exc
            return await tool.execute(ctx, **args.model_dump())
        except DomainError as exc:
            logger.warning("Tool %s failed [%s]: %s", name, type(exc).__name__, exc)
            return ToolResult.from_exception(ctx.session_id, exc)
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", name)
            return ToolResult.from_exception(ctx.session_id, exc)

    def to_langchain_tools(self, ctx: SessionContext) -> list[StructuredTool]:
        """Convert all registered tools to LangChain StructuredTools.

        Binds the SessionContext so the tools can also be called directly
        by a LangChain runnable; the returned string is the JSON envelope.
        """
        lc_tools = []
        for tool in self._tools.values():

            def _make_coroutine(tool_name: str, context: SessionContext):
                async def coroutine(**kwargs: Any) -> str:
                    result = await self.invoke(tool_name, context, **kwargs)
                    return result.to_json()
                return coroutine

            lc_tools.append(StructuredTool.from_function(
                coroutine=_make_coroutine(tool.name, ctx),
                name=tool.name,
                description=tool.description,
                args_schema=tool.get_schema(),
            ))
        return lc_tools
