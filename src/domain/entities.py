"""
domain.entities - Persistence-aware types.

Decoupled from any persistence strategy: no Redis concerns, no DB imports.
History stores serialize these through to_dict() / from_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

MESSAGE_ROLES = ("user", "assistant", "tool")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ConversationMessage:
    """One message of a session's history. Never modified once appended."""
    role: str
    content: str
    timestamp: str = field(default_factory=_now)

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unsupported message role: {self.role!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationMessage:
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            timestamp=data.get("timestamp") or _now(),
        )
