"""
agent.memory - Session-keyed conversation memory.

A thin facade over a ChatHistoryStore (Redis or in-process). Memory only
ever holds user and assistant messages; tool traffic stays inside the
turn that produced it. The orchestrator writes once per successful turn
through extend(), which stores both messages or neither.
"""

from __future__ import annotations

import logging
from typing import Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from domain.entities import ConversationMessage
from domain.ports import ChatHistoryStore

logger = logging.getLogger(__name__)


class ConversationMemory:
    """Per-session conversation memory.

    One instance serves every session; the session id picks the history.
    """

    def __init__(self, store: ChatHistoryStore):
        self._store = store

    @property
    def store(self) -> ChatHistoryStore:
        return self._store

    async def append(self, session_id: str, message: ConversationMessage) -> None:
        await self._store.append(session_id, [message])

    async def extend(
        self, session_id: str, messages: Sequence[ConversationMessage],
    ) -> None:
        """Append several messages atomically."""
        if not messages:
            return
        await self._store.append(session_id, list(messages))
        logger.debug("Stored %d message(s) for session %s", len(messages), session_id)

    async def list(self, session_id: str) -> list[ConversationMessage]:
        """Full history of a session, oldest first. Unknown sessions are empty."""
        return await self._store.list(session_id)

    async def clear(self, session_id: str) -> None:
        """Drop a session's history. Clearing an unknown session is a no-op."""
        await self._store.clear(session_id)
        logger.info("Cleared conversation history for session %s", session_id)

    @staticmethod
    def to_langchain(messages: Sequence[ConversationMessage]) -> list[BaseMessage]:
        """Map stored messages onto LangChain chat messages."""
        converted: list[BaseMessage] = []
        for msg in messages:
            if msg.role == "user":
                converted.append(HumanMessage(content=msg.content))
            elif msg.role == "assistant":
                converted.append(AIMessage(content=msg.content))
        return converted
