"""
Shared FastAPI dependencies.

- get_factory(): returns the initialized ServiceFactory (set at startup).
- get_orchestrator(): the factory's AgentOrchestrator.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

from agent.orchestrator import AgentOrchestrator
from factory import ServiceFactory

# Module-level reference set by app lifespan
_factory: Optional[ServiceFactory] = None


def set_factory(factory: Optional[ServiceFactory]) -> None:
    global _factory
    _factory = factory


def get_factory() -> ServiceFactory:
    if _factory is None:
        raise RuntimeError("ServiceFactory not initialized.")
    return _factory


def get_orchestrator(
    factory: ServiceFactory = Depends(get_factory),
) -> AgentOrchestrator:
    return factory.create_orchestrator()
