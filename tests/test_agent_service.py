"""
Tests for ChatHandler: rate gate, normalization and both answer modes.
"""

import pytest
from langchain_core.vectorstores import InMemoryVectorStore

from app.agent.executor import AgentExecutor
from app.agent.graph import build_agent_graph
from app.agent.tools import build_retriever_tool
from app.core.errors import InvalidRequestError, RateLimitedError
from app.core.rate_limit import RateGate
from app.services.agent_service import ChatHandler
from fakes import KB_RECORDS, conversation, scripted_model, tool_call_message

ANSWER = "Part D covers prescription drugs."


def _handler(vector_store: InMemoryVectorStore, *replies, limit: str = "5 per minute") -> ChatHandler:
    model = scripted_model(*replies)
    graph = build_agent_graph(model, [build_retriever_tool(vector_store)])
    executor = AgentExecutor(graph, model_run_name=model.get_name())
    return ChatHandler(RateGate.from_config(limit, "async+memory://"), executor)


@pytest.mark.asyncio
async def test_answer_returns_output_and_sources(vector_store: InMemoryVectorStore) -> None:
    handler = _handler(vector_store, tool_call_message("Part D"), ANSWER)
    response = await handler.answer(conversation(("user", "What is Part D?")), "10.0.0.1")
    assert response.output == ANSWER
    assert set(response.sources) == {r["url"] for r in KB_RECORDS}
    assert response.model_dump(by_alias=True)["_no_streaming_response_"] is True


@pytest.mark.asyncio
async def test_stream_answer_yields_final_answer(vector_store: InMemoryVectorStore) -> None:
    handler = _handler(vector_store, tool_call_message("Part D"), ANSWER)
    chunks = await handler.stream_answer(
        conversation(("user", "hi"), ("assistant", "hello"), ("user", "What is Part D?")),
        "10.0.0.1",
    )
    assert "".join([c async for c in chunks]) == ANSWER


@pytest.mark.asyncio
async def test_rate_limited_before_any_model_call(vector_store: InMemoryVectorStore) -> None:
    """Second request in the window is rejected; the scripted model only has one reply."""
    handler = _handler(vector_store, ANSWER, limit="1 per minute")
    messages = conversation(("user", "q"))
    first = await handler.stream_answer(messages, "10.0.0.1")
    assert "".join([c async for c in first]) == ANSWER
    with pytest.raises(RateLimitedError):
        await handler.stream_answer(messages, "10.0.0.1")
    with pytest.raises(RateLimitedError):
        await handler.answer(messages, "10.0.0.1")


@pytest.mark.asyncio
async def test_empty_messages_rejected_eagerly(vector_store: InMemoryVectorStore) -> None:
    """No scripted replies: any model call would fail with StopIteration instead."""
    handler = _handler(vector_store)
    with pytest.raises(InvalidRequestError):
        await handler.stream_answer([], "10.0.0.1")
    with pytest.raises(InvalidRequestError):
        await handler.answer([], "10.0.0.1")
