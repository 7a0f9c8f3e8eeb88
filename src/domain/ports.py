"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services and agent
tools depend only on these protocols, never on concrete classes.

Uses typing.Protocol (structural typing): any class that implements the
methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from domain.entities import ConversationMessage


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------

@runtime_checkable
class DocumentStore(Protocol):
    """Read-only access to named collections of a document database."""

    async def find(
        self,
        collection: str,
        filter: Mapping[str, Any],
        projection: Optional[Mapping[str, Any]] = None,
        sort: Optional[Mapping[str, int]] = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]: ...

    async def count(self, collection: str, filter: Mapping[str, Any]) -> int: ...

    async def aggregate(
        self, collection: str, pipeline: Sequence[Mapping[str, Any]],
    ) -> list[dict[str, Any]]: ...


# ---------------------------------------------------------------------------
# Conversation history
# ---------------------------------------------------------------------------

@runtime_checkable
class ChatHistoryStore(Protocol):
    """Session-keyed, append-only message history.

    append() must store all given messages or none of them.
    """

    async def append(
        self, session_id: str, messages: Sequence[ConversationMessage],
    ) -> None: ...

    async def list(self, session_id: str) -> list[ConversationMessage]: ...

    async def clear(self, session_id: str) -> None: ...
