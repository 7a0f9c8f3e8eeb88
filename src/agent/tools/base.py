"""
agent.tools.base - Base tool interface and result envelope.

All agent tools inherit from BaseTool and return ToolResult. Failures are
results, not exceptions: the registry converts whatever a tool raises into
a failure envelope the model can read and adapt to.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel

from application.context import SessionContext


@dataclass(frozen=True)
class ToolResult:
    """Result envelope of one tool execution.

    Holds exactly one of a success payload or an error message.

    payload:     camelCase keys merged into the success envelope.
    error:       Message shown to the model on failure.
    error_type:  Name of the failure category (e.g. "QueryError").
    """
    success: bool
    session_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful ToolResult cannot carry an error")
        if not self.success and (self.error is None or self.payload):
            raise ValueError("A failed ToolResult needs an error and no payload")

    @classmethod
    def ok(cls, session_id: str, **payload: Any) -> ToolResult:
        return cls(success=True, session_id=session_id, payload=payload)

    @classmethod
    def fail(
        cls, session_id: str, error: str, error_type: Optional[str] = None,
    ) -> ToolResult:
        return cls(
            success=False, session_id=session_id, error=error, error_type=error_type,
        )

    @classmethod
    def from_exception(cls, session_id: str, exc: BaseException) -> ToolResult:
        return cls.fail(session_id, str(exc) or type(exc).__name__, type(exc).__name__)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "sessionId": self.session_id, **self.payload}
        return {
            "success": False,
            "sessionId": self.session_id,
            "error": self.error,
            "errorType": self.error_type,
        }

    def to_json(self) -> str:
        # ObjectId and datetime values come straight from the store
        return json.dumps(self.to_dict(), default=str, ensure_ascii=False)


class BaseTool(ABC):
    """Abstract base for all agent tools."""

    name: str
    description: str

    @abstractmethod
    async def execute(self, ctx: SessionContext, **kwargs) -> ToolResult:
        """Execute the tool with the given session context and arguments."""
        ...

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the Pydantic schema for this tool's input arguments."""
        ...
