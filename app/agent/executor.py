"""
Agent executor: run the compiled agent graph to completion.

Two modes:
- stream(): lazy async iterator over the run's log patches (every internal step),
  emitted as the agent plans, calls tools and writes its answer.
- invoke(): wait for the final answer and return it with the tool observations.

Both modes are bounded by an iteration cap (LangGraph recursion_limit) and a
wall-clock timeout, and map framework/model failures onto app.core.errors.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any

import openai
from langchain_core.exceptions import OutputParserException
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langchain_core.tracers.log_stream import LogStreamCallbackHandler, RunLogPatch
from langgraph.errors import GraphRecursionError

from app.core.config import AGENT_MAX_ITERATIONS, AGENT_TIMEOUT_SECONDS
from app.core.errors import AgentError, AgentTimeoutError, ModelFailureError

logger = logging.getLogger(__name__)

_DONE = object()


@dataclass
class AgentStep:
    """One tool call made by the agent and what the tool returned."""

    tool: str
    tool_input: dict[str, Any]
    observation: str


@dataclass
class AgentResult:
    output: str
    intermediate_steps: list[AgentStep] = field(default_factory=list)


def _message_text(message: BaseMessage) -> str:
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


async def _next_patch(events: AsyncIterator[RunLogPatch]) -> Any:
    try:
        return await anext(events)
    except StopAsyncIteration:
        return _DONE


class AgentExecutor:
    """Drives the agent graph; one instance is shared by all requests."""

    def __init__(
        self,
        graph: Any,
        model_run_name: str = "ChatOpenAI",
        max_iterations: int = AGENT_MAX_ITERATIONS,
        timeout: float = AGENT_TIMEOUT_SECONDS,
    ) -> None:
        self.graph = graph
        self.model_run_name = model_run_name
        self.max_iterations = max_iterations
        self.timeout = timeout

    def _config(self) -> RunnableConfig:
        # Each iteration is one "agent" step plus at most one "tools" step.
        return {"recursion_limit": 2 * self.max_iterations}

    @staticmethod
    def _inputs(input: str, chat_history: Sequence[BaseMessage]) -> dict[str, Any]:
        return {"input": input, "chat_history": list(chat_history), "agent_scratchpad": []}

    def _map_error(self, exc: BaseException) -> AgentError | None:
        """Translate a failure from the run into an AgentError; None means unknown (re-raise as is)."""
        if isinstance(exc, AgentError):
            return exc
        if isinstance(exc, asyncio.TimeoutError):
            return AgentTimeoutError(f"Agent run exceeded {self.timeout:g} seconds")
        if isinstance(exc, GraphRecursionError):
            return ModelFailureError(
                f"Agent stopped after {self.max_iterations} iterations without a final answer"
            )
        if isinstance(exc, (openai.OpenAIError, OutputParserException)):
            return ModelFailureError(f"Language model call failed: {exc}")
        return None

    async def _run_logged(
        self, input: str, chat_history: Sequence[BaseMessage], log: LogStreamCallbackHandler
    ) -> dict[str, Any]:
        config: RunnableConfig = {**self._config(), "callbacks": [log]}
        try:
            return await self.graph.ainvoke(self._inputs(input, chat_history), config)
        finally:
            await log.send_stream.aclose()

    async def stream(
        self, input: str, chat_history: Sequence[BaseMessage]
    ) -> AsyncIterator[RunLogPatch]:
        """
        Yield the run's log patches in emission order. Single-consumption; stops at the
        final answer or raises an AgentError. Output already yielded is never retracted.

        The run is a task owned by this generator: it is cancelled at the deadline or
        when the consumer stops early.
        """
        logger.info("[executor:stream] START input_len=%d history_len=%d", len(input), len(chat_history))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        log = LogStreamCallbackHandler(auto_close=False)
        run = asyncio.create_task(self._run_logged(input, chat_history, log))
        patches = aiter(log)
        count = 0
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                patch = await asyncio.wait_for(_next_patch(patches), remaining)
                if patch is _DONE:
                    break
                count += 1
                yield patch
            # Log closed: the run is over; surface its error, if any.
            await run
        except Exception as e:
            mapped = self._map_error(e)
            logger.warning("[executor:stream] FAILED after %d patches: %s", count, e)
            if mapped is None or mapped is e:
                raise
            raise mapped from e
        finally:
            if not run.done():
                run.cancel()
                logger.info("[executor:stream] run cancelled after %d patches", count)
            await asyncio.gather(run, return_exceptions=True)
        logger.info("[executor:stream] END patches=%d", count)

    async def invoke(self, input: str, chat_history: Sequence[BaseMessage]) -> AgentResult:
        """Run to the final answer and return it with every tool observation."""
        logger.info("[executor:invoke] START input_len=%d history_len=%d", len(input), len(chat_history))
        try:
            state = await asyncio.wait_for(
                self.graph.ainvoke(self._inputs(input, chat_history), self._config()),
                self.timeout,
            )
        except Exception as e:
            mapped = self._map_error(e)
            logger.warning("[executor:invoke] FAILED: %s", e)
            if mapped is None or mapped is e:
                raise
            raise mapped from e
        result = self._result(state.get("agent_scratchpad") or [])
        logger.info(
            "[executor:invoke] END steps=%d output_len=%d",
            len(result.intermediate_steps), len(result.output),
        )
        return result

    @staticmethod
    def _result(scratchpad: Sequence[BaseMessage]) -> AgentResult:
        calls: dict[str, dict[str, Any]] = {}
        steps: list[AgentStep] = []
        output = ""
        for message in scratchpad:
            if isinstance(message, AIMessage):
                for tc in message.tool_calls:
                    calls[tc.get("id") or ""] = tc
                if not message.tool_calls:
                    output = _message_text(message)
            elif isinstance(message, ToolMessage):
                tc = calls.get(message.tool_call_id, {})
                steps.append(
                    AgentStep(
                        tool=tc.get("name") or message.name or "",
                        tool_input=tc.get("args") or {},
                        observation=_message_text(message),
                    )
                )
        return AgentResult(output=output, intermediate_steps=steps)
