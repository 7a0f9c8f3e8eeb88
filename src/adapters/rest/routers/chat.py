"""Conversational query and session history endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from adapters.rest.dependencies import get_orchestrator
from adapters.rest.schemas import HistoryOut, QueryBody, QueryOut
from agent.orchestrator import AgentOrchestrator
from application.context import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/query", response_model=QueryOut)
async def process_query(
    body: QueryBody,
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
):
    ctx = SessionContext.create(
        session_id=body.session_id, user_id=body.user_id, metadata=body.metadata,
    )
    logger.info("Processing natural language query (session=%s)", ctx.session_id)
    result = await orchestrator.run_turn(ctx, body.query)
    return QueryOut(success=result.success, data=result.to_dict())


@router.get("/sessions/{session_id}/history", response_model=HistoryOut)
async def get_history(
    session_id: str,
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.get_history(session_id)
    if not result.success:
        raise HTTPException(status_code=503, detail=result.error)
    return result.to_dict()


@router.delete("/sessions/{session_id}")
async def clear_session(
    session_id: str,
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.clear_session(session_id)
    if not result.success:
        raise HTTPException(status_code=503, detail=result.error)
    return result.to_dict()
