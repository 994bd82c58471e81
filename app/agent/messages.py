"""
Chat history normalization: client conversation log -> agent history + current input.
"""

import logging
from collections.abc import Sequence

from langchain_core.messages import AIMessage, BaseMessage, ChatMessage, HumanMessage

from app.core.errors import InvalidRequestError
from app.schemas.chat import ConversationMessage

logger = logging.getLogger(__name__)

AGENT_ROLES = frozenset({"user", "assistant"})


def to_langchain_message(message: ConversationMessage) -> BaseMessage:
    """Map one client message to the matching LangChain message type."""
    if message.role == "user":
        return HumanMessage(content=message.content)
    if message.role == "assistant":
        return AIMessage(content=message.content)
    return ChatMessage(content=message.content, role=message.role)


def normalize_messages(messages: Sequence[ConversationMessage]) -> tuple[list[BaseMessage], str]:
    """
    Split the conversation into (history, current input).

    Only user/assistant entries become history; other roles (e.g. intermediate-step
    markers the UI shows as system messages) are dropped. The current input is the
    content of the last entry of the unfiltered list.
    """
    if not messages:
        raise InvalidRequestError("messages must contain at least one entry")
    kept = [m for m in messages if m.role in AGENT_ROLES]
    history = [to_langchain_message(m) for m in kept[:-1]]
    current = messages[-1].content
    logger.info(
        "[messages:normalize] IN  messages=%d OUT history=%d dropped=%d current_len=%d",
        len(messages), len(history), len(messages) - len(kept), len(current),
    )
    return history, current
