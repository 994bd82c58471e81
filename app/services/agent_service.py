"""
Agent service: one chat request from conversation log to answer.

Responsibility: Gate the caller, normalize the conversation, run the agent, and
hand back either a stream of answer chunks or the captured answer with sources.
Called by the API; no HTTP here.
"""

import logging
from collections.abc import AsyncIterator, Sequence

from app.agent.executor import AgentExecutor
from app.agent.graph import build_agent_graph
from app.agent.llm import build_chat_model
from app.agent.messages import normalize_messages
from app.agent.tools import build_retriever_tool
from app.core.errors import RateLimitedError
from app.core.rate_limit import RateGate
from app.schemas.chat import ChatResponse, ConversationMessage
from app.services.sources import extract_sources
from app.services.stream_filter import filter_final_answer
from app.services.vector_store import load_vector_store

logger = logging.getLogger(__name__)


class ChatHandler:
    """Composes rate gate, normalizer and executor. Built once at startup and shared."""

    def __init__(self, rate_gate: RateGate, executor: AgentExecutor) -> None:
        self.rate_gate = rate_gate
        self.executor = executor

    async def _admit(self, caller_id: str) -> None:
        if not await self.rate_gate.check(caller_id):
            raise RateLimitedError("rate limit reached")

    async def stream_answer(
        self, messages: Sequence[ConversationMessage], caller_id: str
    ) -> AsyncIterator[str]:
        """
        Check quota and validate input now, then return the lazy stream of answer chunks.
        Raises RateLimitedError / InvalidRequestError before any model or tool call.
        """
        await self._admit(caller_id)
        history, current = normalize_messages(messages)
        logger.info("[agent_service:stream_answer] caller=%s history_len=%d", caller_id, len(history))
        events = self.executor.stream(current, history)
        return filter_final_answer(events, self.executor.model_run_name)

    async def answer(
        self, messages: Sequence[ConversationMessage], caller_id: str
    ) -> ChatResponse:
        """Run to completion and return the answer with the retrieved source URLs."""
        await self._admit(caller_id)
        history, current = normalize_messages(messages)
        logger.info("[agent_service:answer] caller=%s history_len=%d", caller_id, len(history))
        result = await self.executor.invoke(current, history)
        sources = extract_sources(result.intermediate_steps)
        return ChatResponse(output=result.output, sources=sources)


def build_chat_handler() -> ChatHandler:
    """Wire the process-wide collaborators: model, knowledge base, tool, agent, rate gate."""
    model = build_chat_model()
    tool = build_retriever_tool(load_vector_store())
    graph = build_agent_graph(model, [tool])
    executor = AgentExecutor(graph, model_run_name=model.get_name())
    logger.info("[agent_service] chat handler ready model_run_name=%s tools=%s", executor.model_run_name, [tool.name])
    return ChatHandler(RateGate.from_config(), executor)
