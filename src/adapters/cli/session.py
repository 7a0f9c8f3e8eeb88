"""
adapters.cli.session - Local record of the current conversation.

The id of the last conversation is stored in ~/.mongo-agent/session.json so
consecutive `ask` invocations continue the same conversation (with the
Redis memory backend) until the user starts a new one.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

_SESSION_DIR  = Path.home() / ".mongo-agent"
_SESSION_FILE = _SESSION_DIR / "session.json"


@dataclass
class CliSession:
    session_id: str
    user_id: str = ""


def load_session() -> Optional[CliSession]:
    """Return the stored session, or None if there is none (or it is unreadable)."""
    if not _SESSION_FILE.exists():
        return None
    try:
        data = json.loads(_SESSION_FILE.read_text(encoding="utf-8"))
        return CliSession(**data)
    except (OSError, ValueError, TypeError):
        return None


def save_session(session: CliSession) -> None:
    """Persist the current conversation to disk."""
    _SESSION_DIR.mkdir(parents=True, exist_ok=True)
    _SESSION_FILE.write_text(
        json.dumps(asdict(session), indent=2), encoding="utf-8"
    )


def forget_session() -> None:
    """Delete the stored conversation record."""
    if _SESSION_FILE.exists():
        _SESSION_FILE.unlink()
