"""
agent.context - Explicit agent dependencies.

AgentContext bundles what a turn needs besides the chat model: the model
registry, the reflector, the access-rule table, the document store and
conversation memory. The factory builds one per configuration; nothing
here is module-level state, so several independently configured agents
can live in one process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from application.services.model_registry import ModelRegistry
from application.services.pipeline_sanitizer import PipelineSanitizer
from application.services.schema_formatter import SchemaFormatter
from application.services.schema_reflector import SchemaReflector
from agent.memory import ConversationMemory
from agent.tools.aggregate import AggregateTool
from agent.tools.count_documents import CountDocumentsTool
from agent.tools.describe_schema import DescribeSchemaTool
from agent.tools.query_documents import QueryDocumentsTool
from agent.tools.registry import ToolRegistry
from domain.ports import DocumentStore


@dataclass(frozen=True)
class AgentContext:
    models: ModelRegistry
    store: DocumentStore
    memory: ConversationMemory
    rules: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    reflector: Optional[SchemaReflector] = None
    formatter: SchemaFormatter = field(default_factory=SchemaFormatter)

    def __post_init__(self) -> None:
        # Rules are loaded once and never mutated afterwards
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))
        if self.reflector is None:
            object.__setattr__(self, "reflector", SchemaReflector(self.models))


def build_tool_registry(agent_ctx: AgentContext) -> ToolRegistry:
    """Register the four data tools against one AgentContext."""
    registry = ToolRegistry()
    registry.register(QueryDocumentsTool(agent_ctx.models, agent_ctx.store))
    registry.register(CountDocumentsTool(agent_ctx.models, agent_ctx.store))
    registry.register(AggregateTool(
        agent_ctx.models, agent_ctx.store, PipelineSanitizer(agent_ctx.rules),
    ))
    registry.register(DescribeSchemaTool(agent_ctx.reflector, agent_ctx.formatter))
    return registry
