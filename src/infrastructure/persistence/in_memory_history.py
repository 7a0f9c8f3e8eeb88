"""
infrastructure.persistence.in_memory_history - Transient conversation history.

Process-lifetime storage shared by every session. Nothing survives a
restart.
"""

from __future__ import annotations

from typing import Sequence

from domain.entities import ConversationMessage


class InMemoryChatHistoryStore:
    """In-process implementation of ChatHistoryStore."""

    def __init__(self):
        self._sessions: dict[str, list[ConversationMessage]] = {}

    async def append(
        self, session_id: str, messages: Sequence[ConversationMessage],
    ) -> None:
        self._sessions.setdefault(session_id, []).extend(messages)

    async def list(self, session_id: str) -> list[ConversationMessage]:
        return list(self._sessions.get(session_id, ()))

    async def clear(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def session_ids(self) -> list[str]:
        return list(self._sessions)
