"""
Fakes for the chat tests: a scripted tool-calling chat model, a model that stalls
mid-answer, a small knowledge base, and helpers for building conversation payloads.

No network access: the model replies from a script and embeddings are deterministic.
"""

import asyncio
import json
import re
from collections.abc import AsyncIterator, Iterator
from typing import Any

from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, AIMessageChunk
from langchain_core.outputs import ChatGenerationChunk, ChatResult
from langchain_core.vectorstores import InMemoryVectorStore

from app.core.config import RETRIEVER_TOOL_NAME
from app.schemas.chat import ConversationMessage


class ScriptedChatModel(GenericFakeChatModel):
    """
    Replies with the next scripted AIMessage. Messages with tool_calls stream as a
    single tool-call chunk with empty text, like a real model planning a tool call.
    """

    def bind_tools(self, tools: Any, **kwargs: Any) -> "ScriptedChatModel":
        return self

    def _stream(self, messages, stop=None, run_manager=None, **kwargs) -> Iterator[ChatGenerationChunk]:
        message = next(self.messages)
        if isinstance(message, str):
            message = AIMessage(content=message)
        if message.tool_calls:
            chunks = [
                AIMessageChunk(
                    content="",
                    tool_call_chunks=[
                        {
                            "name": tc["name"],
                            "args": json.dumps(tc["args"]),
                            "id": tc["id"],
                            "index": i,
                            "type": "tool_call_chunk",
                        }
                        for i, tc in enumerate(message.tool_calls)
                    ],
                )
            ]
        else:
            chunks = [AIMessageChunk(content=token) for token in re.split(r"(\s)", message.content) if token]
        for message_chunk in chunks:
            chunk = ChatGenerationChunk(message=message_chunk)
            if run_manager:
                run_manager.on_llm_new_token(message_chunk.content, chunk=chunk)
            yield chunk


def tool_call_message(query: str, call_id: str = "call_1", name: str = RETRIEVER_TOOL_NAME) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[{"name": name, "args": {"query": query}, "id": call_id, "type": "tool_call"}],
    )


def scripted_model(*replies: AIMessage | str) -> ScriptedChatModel:
    return ScriptedChatModel(messages=iter(replies))


KB_RECORDS = [
    {"url": "https://example.com/part-d", "content": "Medicare Part D covers prescription drugs."},
    {"url": "https://example.com/enrollment", "content": "Open enrollment runs Oct 15 to Dec 7."},
]


def build_vector_store() -> InMemoryVectorStore:
    store = InMemoryVectorStore(DeterministicFakeEmbedding(size=16))
    store.add_documents(
        [Document(page_content=json.dumps(r), metadata={"url": r["url"]}) for r in KB_RECORDS]
    )
    return store


def conversation(*pairs: tuple[str, str]) -> list[ConversationMessage]:
    return [ConversationMessage(role=role, content=content) for role, content in pairs]


class SlowChatModel(GenericFakeChatModel):
    """
    Streams the first word of its reply, then stalls for `delay` seconds before the rest.
    Non-streaming calls stall before answering.
    """

    delay: float = 5.0

    def bind_tools(self, tools: Any, **kwargs: Any) -> "SlowChatModel":
        return self

    async def _astream(self, messages, stop=None, run_manager=None, **kwargs) -> AsyncIterator[ChatGenerationChunk]:
        message = next(self.messages)
        head, sep, tail = str(getattr(message, "content", message)).partition(" ")
        for i, token in enumerate([head, sep + tail]):
            if i:
                await asyncio.sleep(self.delay)
            chunk = ChatGenerationChunk(message=AIMessageChunk(content=token))
            if run_manager:
                await run_manager.on_llm_new_token(token, chunk=chunk)
            yield chunk

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        await asyncio.sleep(self.delay)
        return self._generate(messages, stop=stop, **kwargs)
