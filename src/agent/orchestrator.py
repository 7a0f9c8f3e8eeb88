"""
agent.orchestrator - The decide/act loop of one conversational turn.

    DECIDING ──(no tool calls)──────────────▶ DONE
       │  ▲
 (tools)│  │(results appended)
       ▼  │
     ACTING ──(step bound reached)──────────▶ ABORTED

One turn loads the session history, asks the tool-bound chat model what to
do, runs the requested tools, and repeats until the model answers in plain
text. Only a finished turn touches memory, and then with exactly two
messages: the user's question and the final answer. Tool traffic never
leaves the turn.

Constructed by factory.py with all dependencies injected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from application.context import SessionContext
from application.dto import ClearSessionResult, HistoryResult, TurnResult
from agent.context import AgentContext, build_tool_registry
from agent.memory import ConversationMemory
from agent.prompt import build_system_prompt
from agent.tools.executor import ToolExecutor
from agent.tools.registry import ToolRegistry
from domain.entities import ConversationMessage
from domain.exceptions import TurnBoundExceededError
from domain.models import UsageRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 20


class TurnPhase(str, Enum):
    DECIDING = "deciding"
    ACTING = "acting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class TurnState:
    """Working state of one turn. Discarded when the turn ends."""
    session_id: str
    messages: list[BaseMessage]
    phase: TurnPhase = TurnPhase.DECIDING
    steps: int = 0
    pending: list[dict[str, Any]] = field(default_factory=list)
    answer: str = ""
    usage: UsageRecord = field(default_factory=UsageRecord)


class AgentOrchestrator:
    """Runs turns for any number of sessions.

    Holds no per-session state; everything session-specific is loaded from
    memory at the start of a turn and flows through SessionContext.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        agent_ctx: AgentContext,
        max_steps: int = DEFAULT_MAX_STEPS,
        system_prompt: Optional[str] = None,
        tools: Optional[ToolRegistry] = None,
    ):
        if max_steps < 1:
            raise ValueError(f"max_steps must be positive, got {max_steps}")
        self._llm = llm
        self._ctx = agent_ctx
        self._tools = tools or build_tool_registry(agent_ctx)
        self._executor = ToolExecutor(self._tools)
        self._max_steps = max_steps
        self._system_prompt = system_prompt or build_system_prompt(
            self._tools, agent_ctx.reflector,
        )

    @property
    def memory(self) -> ConversationMemory:
        return self._ctx.memory

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    async def run_turn(self, ctx: SessionContext, user_input: str) -> TurnResult:
        """Process one user message and return the turn's result. Never raises.

        Args:
            ctx:        Session context (session id, request id, metadata).
            user_input: The user's message text.
        """
        logger.info(
            "[%s] Turn started (session=%s): %s",
            ctx.request_id, ctx.session_id, user_input[:80],
        )
        try:
            history = await self.memory.list(ctx.session_id)
            state = TurnState(
                session_id=ctx.session_id,
                messages=[
                    SystemMessage(content=self._system_prompt),
                    *ConversationMemory.to_langchain(history),
                    HumanMessage(content=user_input),
                ],
            )
            await self._drive(ctx, state)

            await self.memory.extend(ctx.session_id, [
                ConversationMessage(role="user", content=user_input),
                ConversationMessage(role="assistant", content=state.answer),
            ])
        except TurnBoundExceededError as exc:
            logger.warning("[%s] %s", ctx.request_id, exc)
            return TurnResult.failed(ctx.session_id, user_input, str(exc))
        except Exception as exc:
            logger.exception("[%s] Turn failed for session %s", ctx.request_id, ctx.session_id)
            return TurnResult.failed(ctx.session_id, user_input, str(exc) or type(exc).__name__)

        logger.info(
            "[%s] Turn finished: %d tool step(s), %d token(s)",
            ctx.request_id, state.steps, state.usage.total_tokens,
        )
        return TurnResult.done(
            session_id=ctx.session_id,
            query=user_input,
            response=state.answer,
            new_message_count=len(history) + 2,
            usage=state.usage,
        )

    async def _drive(self, ctx: SessionContext, state: TurnState) -> None:
        llm = self._llm.bind_tools(self._tools.to_langchain_tools(ctx))

        while state.phase is not TurnPhase.DONE:
            if state.phase is TurnPhase.DECIDING:
                response = await llm.ainvoke(state.messages)
                self._record_usage(ctx, state, response)
                state.messages.append(response)

                tool_calls = list(getattr(response, "tool_calls", None) or [])
                if not tool_calls:
                    state.answer = message_text(response)
                    state.phase = TurnPhase.DONE
                elif state.steps >= self._max_steps:
                    state.phase = TurnPhase.ABORTED
                    raise TurnBoundExceededError(self._max_steps)
                else:
                    state.pending = tool_calls
                    state.phase = TurnPhase.ACTING

            elif state.phase is TurnPhase.ACTING:
                state.steps += 1
                logger.debug(
                    "[%s] Step %d: %s",
                    ctx.request_id, state.steps, [c["name"] for c in state.pending],
                )
                state.messages.extend(await self._executor.execute(ctx, state.pending))
                state.pending = []
                state.phase = TurnPhase.DECIDING

    @staticmethod
    def _record_usage(ctx: SessionContext, state: TurnState, response: Any) -> None:
        state.usage.add(getattr(response, "usage_metadata", None))
        logger.info(
            "[%s] Token usage: input=%d output=%d total=%d",
            ctx.request_id, state.usage.input_tokens,
            state.usage.output_tokens, state.usage.total_tokens,
        )

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    async def get_history(self, session_id: str) -> HistoryResult:
        try:
            messages = await self.memory.list(session_id)
        except Exception as exc:
            logger.exception("Could not load history for session %s", session_id)
            return HistoryResult(success=False, session_id=session_id, error=str(exc))
        return HistoryResult(success=True, session_id=session_id, messages=messages)

    async def clear_session(self, session_id: str) -> ClearSessionResult:
        try:
            await self.memory.clear(session_id)
        except Exception as exc:
            logger.exception("Could not clear session %s", session_id)
            return ClearSessionResult(success=False, session_id=session_id, error=str(exc))
        return ClearSessionResult(success=True, session_id=session_id)


def message_text(message: BaseMessage) -> str:
    """Plain text of a chat message whose content may be a list of blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
