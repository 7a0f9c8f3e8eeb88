"""
application.dto - Data Transfer Objects for service input/output.

These are the structured results the orchestrator returns to callers
(CLI and REST adapters). Every result carries an explicit success flag;
to_dict() renders the camelCase envelope callers see.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from domain.entities import ConversationMessage
from domain.models import UsageRecord


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one conversational turn."""
    success: bool
    session_id: str
    query: str
    response: Optional[str] = None
    new_message_count: Optional[int] = None
    timestamp: Optional[str] = None
    usage: Optional[UsageRecord] = None
    error: Optional[str] = None

    @classmethod
    def done(
        cls,
        session_id: str,
        query: str,
        response: str,
        new_message_count: int,
        usage: UsageRecord,
    ) -> TurnResult:
        return cls(
            success=True,
            session_id=session_id,
            query=query,
            response=response,
            new_message_count=new_message_count,
            timestamp=datetime.now(timezone.utc).isoformat(),
            usage=usage,
        )

    @classmethod
    def failed(cls, session_id: str, query: str, error: str) -> TurnResult:
        return cls(success=False, session_id=session_id, query=query, error=error)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "sessionId": self.session_id,
                "error": self.error,
                "query": self.query,
            }
        return {
            "success": True,
            "sessionId": self.session_id,
            "response": self.response,
            "newMessageCount": self.new_message_count,
            "query": self.query,
            "timestamp": self.timestamp,
            "usage": self.usage.to_dict() if self.usage else None,
        }


@dataclass(frozen=True)
class HistoryResult:
    """Stored conversation of one session, oldest first."""
    success: bool
    session_id: str
    messages: list[ConversationMessage] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "sessionId": self.session_id, "error": self.error}
        return {
            "success": True,
            "sessionId": self.session_id,
            "messageCount": self.message_count,
            "messages": [m.to_dict() for m in self.messages],
        }


@dataclass(frozen=True)
class ClearSessionResult:
    """Outcome of clearing a session's history."""
    success: bool
    session_id: str
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "sessionId": self.session_id}
        if self.error is not None:
            result["error"] = self.error
        return result
