"""
application.context - Request-scoped session context.

Replaces the process-wide agent singleton. Every turn receives its context
explicitly, so two concurrent sessions get two different SessionContext
instances.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class SessionContext:
    """Per-turn context passed through the agent and its tools.

    Attributes:
        session_id:  Conversation identity under which history accumulates.
        user_id:     Optional caller identity (informational only).
        metadata:    Free-form caller metadata, logged but never interpreted.
        request_id:  Unique per turn, for tracing/logging.
        started_at:  ISO timestamp of turn creation.
    """
    session_id: str
    user_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    request_id: str = field(default_factory=lambda: uuid4().hex)
    started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
    )

    @classmethod
    def create(
        cls,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SessionContext:
        """Build a context, generating a session id when none is given."""
        return cls(
            session_id=session_id or generate_session_id(user_id),
            user_id=user_id or "",
            metadata=dict(metadata or {}),
        )


def generate_session_id(user_id: Optional[str] = None) -> str:
    """Return '<user>_<millis>_<random>' or 'session_<millis>_<random>'."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(13))
    prefix = user_id or "session"
    return f"{prefix}_{millis}_{suffix}"
