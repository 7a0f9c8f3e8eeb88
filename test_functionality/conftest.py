"""Shared test fixtures: in-memory document store, scripted chat model, fake Redis."""

import os
import sys
from typing import Any, Optional

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

# Ensure src/ is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from agent.context import AgentContext
from agent.memory import ConversationMemory
from agent.orchestrator import AgentOrchestrator
from application.context import SessionContext
from application.services.model_registry import ModelRegistry
from application.services.schema_reflector import SchemaReflector
from infrastructure.catalog import build_commerce_registry
from infrastructure.persistence.in_memory_history import InMemoryChatHistoryStore


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------

def _get_path(doc: dict, path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class InMemoryDocumentStore:
    """DocumentStore fake supporting equality filters, projection, sort and limit.

    Records every call so tests can inspect what reached the store.
    """

    def __init__(self, collections: Optional[dict[str, list[dict]]] = None):
        self.collections = collections or {}
        self.find_calls: list[dict] = []
        self.count_calls: list[dict] = []
        self.pipelines: list[tuple[str, list]] = []
        self.aggregate_result: list[dict] = []
        self.fail_with: Optional[Exception] = None

    def _matching(self, collection: str, filter: dict) -> list[dict]:
        return [
            doc for doc in self.collections.get(collection, [])
            if all(_get_path(doc, k) == v for k, v in filter.items())
        ]

    async def find(self, collection, filter, projection=None, sort=None, limit=10):
        self.find_calls.append({
            "collection": collection, "filter": filter,
            "projection": projection, "sort": sort, "limit": limit,
        })
        if self.fail_with:
            raise self.fail_with
        docs = self._matching(collection, filter)
        for field, direction in reversed(list((sort or {}).items())):
            docs = sorted(docs, key=lambda d: _get_path(d, field), reverse=direction == -1)
        if projection:
            docs = [{k: d[k] for k in projection if k in d} for d in docs]
        return docs[:limit]

    async def count(self, collection, filter):
        self.count_calls.append({"collection": collection, "filter": filter})
        if self.fail_with:
            raise self.fail_with
        return len(self._matching(collection, filter))

    async def aggregate(self, collection, pipeline):
        self.pipelines.append((collection, pipeline))
        if self.fail_with:
            raise self.fail_with
        return list(self.aggregate_result)


def _orders() -> list[dict]:
    statuses = ["delivered", "shipped", "pending"]
    return [
        {
            "_id": f"o{i}",
            "orderNumber": f"ORD-{i:04d}",
            "status": statuses[i % 3],
            "finalAmount": 10.0 * i,
            "shippingAddress": {"city": "Berlin" if i % 2 else "Paris"},
        }
        for i in range(1, 31)
    ]


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore({
        "orders": _orders(),
        "users": [
            {"_id": "u1", "name": "Ada", "membershipLevel": "gold", "totalSpent": 900},
            {"_id": "u2", "name": "Bob", "membershipLevel": "bronze", "totalSpent": 40},
        ],
        "products": [],
    })


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@pytest.fixture
def models() -> ModelRegistry:
    registry = build_commerce_registry()
    registry.register("audit_log", {})
    return registry


@pytest.fixture
def reflector(models) -> SchemaReflector:
    return SchemaReflector(models)


# ---------------------------------------------------------------------------
# Chat model
# ---------------------------------------------------------------------------

class ScriptedChatModel(BaseChatModel):
    """Chat model that replays scripted AIMessages.

    responses are returned in order; once exhausted, `repeat` is returned
    forever (or an error is raised when no repeat message is set).
    """

    responses: list[AIMessage] = Field(default_factory=list)
    repeat: Optional[AIMessage] = None
    received: list[list[BaseMessage]] = Field(default_factory=list)
    bound_tools: list[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.received.append(list(messages))
        if self.responses:
            message = self.responses.pop(0)
        elif self.repeat is not None:
            message = self.repeat
        else:
            raise RuntimeError("Scripted chat model ran out of responses")
        return ChatResult(generations=[ChatGeneration(message=message)])

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self


def tool_call(name: str, args: dict, call_id: str = "call_1") -> dict:
    return {"name": name, "args": args, "id": call_id, "type": "tool_call"}


def ai_tool_calls(*calls: dict) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=list(calls),
        usage_metadata={"input_tokens": 100, "output_tokens": 20, "total_tokens": 120},
    )


def ai_answer(text: str) -> AIMessage:
    return AIMessage(
        content=text,
        usage_metadata={"input_tokens": 150, "output_tokens": 30, "total_tokens": 180},
    )


# ---------------------------------------------------------------------------
# Memory and agent
# ---------------------------------------------------------------------------

@pytest.fixture
def history_store() -> InMemoryChatHistoryStore:
    return InMemoryChatHistoryStore()


@pytest.fixture
def agent_ctx(models, store, history_store) -> AgentContext:
    return AgentContext(
        models=models,
        store=store,
        memory=ConversationMemory(history_store),
        rules={"users": {"isActive": True}},
    )


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(session_id="test_session", user_id="tester")


@pytest.fixture
def make_orchestrator(agent_ctx):
    def _make(llm: ScriptedChatModel, max_steps: int = 20) -> AgentOrchestrator:
        return AgentOrchestrator(llm=llm, agent_ctx=agent_ctx, max_steps=max_steps)
    return _make


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

class FakePipeline:
    """Queues commands and applies them on execute(), all at once."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self._ops.clear()
        return False

    def rpush(self, key, *values):
        self._ops.append(("rpush", key, values))
        return self

    def expire(self, key, seconds):
        self._ops.append(("expire", key, seconds))
        return self

    async def execute(self):
        if self._redis.fail_with:
            raise self._redis.fail_with
        for op, key, arg in self._ops:
            if op == "rpush":
                self._redis.lists.setdefault(key, []).extend(arg)
            else:
                self._redis.ttls[key] = arg
        self._ops.clear()
        return []


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisChatHistoryStore."""

    def __init__(self):
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}
        self.fail_with: Optional[Exception] = None

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def lrange(self, key, start, end):
        if self.fail_with:
            raise self.fail_with
        values = self.lists.get(key, [])
        return list(values[start:] if end == -1 else values[start:end + 1])

    async def delete(self, *keys):
        if self.fail_with:
            raise self.fail_with
        removed = 0
        for key in keys:
            removed += key in self.lists
            self.lists.pop(key, None)
            self.ttls.pop(key, None)
        return removed

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
