"""
factory - Composition root for the data agent.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get a fully
configured orchestrator.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    orchestrator = factory.create_orchestrator()
    result = await orchestrator.run_turn(SessionContext.create(), "How many orders shipped?")

    await factory.shutdown()
"""

from __future__ import annotations

import logging
from typing import Optional

from langchain_core.language_models import BaseChatModel

from application.services.model_registry import ModelRegistry
from application.services.schema_formatter import SchemaFormatter
from application.services.schema_reflector import SchemaReflector
from agent.context import AgentContext
from agent.memory import ConversationMemory
from agent.orchestrator import AgentOrchestrator
from domain.ports import ChatHistoryStore, DocumentStore
from infrastructure.catalog import build_commerce_registry
from infrastructure.config import Settings
from infrastructure.llm.llm_builder import build_llm
from infrastructure.persistence.in_memory_history import InMemoryChatHistoryStore
from infrastructure.persistence.mongo_store import MongoDocumentStore
from infrastructure.persistence.redis_history import RedisChatHistoryStore

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create orchestrators as needed.
    Collaborators may be injected for tests; anything not injected is
    built from the settings.
    """

    def __init__(
        self,
        config: Settings,
        *,
        models: Optional[ModelRegistry] = None,
        store: Optional[DocumentStore] = None,
        history: Optional[ChatHistoryStore] = None,
        llm: Optional[BaseChatModel] = None,
    ):
        self._config = config
        self._models = models
        self._store = store
        self._history = history
        self._llm = llm
        self._agent_ctx: Optional[AgentContext] = None
        self._orchestrator: Optional[AgentOrchestrator] = None
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    async def initialize(self) -> None:
        """One-time startup: connect the store and the memory backend."""
        logger.info("Initializing ServiceFactory...")

        if self._models is None:
            self._models = build_commerce_registry()
        if self._store is None:
            self._store = MongoDocumentStore.from_uri(
                self._config.mongodb_uri, self._config.mongodb_database,
            )
        if self._history is None:
            self._history = self._build_history_store()

        self._agent_ctx = AgentContext(
            models=self._models,
            store=self._store,
            memory=ConversationMemory(self._history),
            rules=self._config.sanitize_rules,
        )
        if self._config.sanitize_rules:
            logger.info(
                "Aggregate sanitization enabled for: %s",
                ", ".join(self._config.sanitize_rules),
            )

        self._initialized = True
        logger.info(
            "ServiceFactory ready (%d collection(s), memory=%s)",
            len(self._models), self._config.memory_type,
        )

    async def shutdown(self) -> None:
        """Close network clients opened by initialize()."""
        for resource in (self._store, self._history):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()
        self._initialized = False

    # ------------------------------------------------------------------
    # Service creation
    # ------------------------------------------------------------------

    def create_agent_context(self) -> AgentContext:
        self._ensure_initialized()
        return self._agent_ctx

    def create_reflector(self) -> SchemaReflector:
        return self.create_agent_context().reflector

    def create_formatter(self) -> SchemaFormatter:
        return self.create_agent_context().formatter

    def create_orchestrator(self) -> AgentOrchestrator:
        """Return the orchestrator, building it on first use.

        It holds no per-session state, so one instance serves every session.
        """
        self._ensure_initialized()
        if self._orchestrator is None:
            self._orchestrator = AgentOrchestrator(
                llm=self._llm or self._build_agent_llm(),
                agent_ctx=self._agent_ctx,
                max_steps=self._config.agent_max_steps,
            )
        return self._orchestrator

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_history_store(self) -> ChatHistoryStore:
        if self._config.memory_type == "redis":
            logger.info("Conversation memory: Redis (ttl=%ds)", self._config.session_ttl)
            return RedisChatHistoryStore.from_url(
                self._config.redis_url, ttl_seconds=self._config.session_ttl,
            )
        logger.info("Conversation memory: in-process")
        return InMemoryChatHistoryStore()

    def _build_agent_llm(self) -> BaseChatModel:
        """Build the chat model for the conversational agent."""
        return build_llm(
            provider=self._config.llm_provider,
            model=self._config.active_llm_model,
            temperature=self._config.llm_temperature,
            ollama_base_url=self._config.ollama_base_url,
            anthropic_api_key=self._config.anthropic_api_key,
            openai_api_key=self._config.openai_api_key,
            groq_api_key=self._config.groq_api_key,
            max_tokens=self._config.llm_max_tokens,
        )

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
