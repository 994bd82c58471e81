"""
Agent LLM: OpenAI (primary) or Hugging Face router (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise the HF router,
which exposes the same chat completions API.
"""

import logging

from langchain_openai import ChatOpenAI

from app.core.config import (
    HF_API_KEY,
    HF_CHAT_BASE_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from app.core.errors import ModelFailureError

logger = logging.getLogger(__name__)


def build_chat_model() -> ChatOpenAI:
    """
    Chat model for the agent. streaming=True is required for token-level output
    in the chat stream.
    """
    if OPENAI_API_KEY:
        logger.info("[llm] using OpenAI model=%s", OPENAI_LLM_MODEL)
        return ChatOpenAI(
            model=OPENAI_LLM_MODEL,
            api_key=OPENAI_API_KEY,
            temperature=LLM_TEMPERATURE,
            timeout=LLM_API_TIMEOUT,
            streaming=True,
        )
    if HF_API_KEY:
        logger.info("[llm] OPENAI_API_KEY not set; using Hugging Face router model=%s", HF_LLM_MODEL)
        return ChatOpenAI(
            model=HF_LLM_MODEL,
            api_key=HF_API_KEY,
            base_url=HF_CHAT_BASE_URL,
            temperature=LLM_TEMPERATURE,
            timeout=LLM_API_TIMEOUT,
            streaming=True,
        )
    raise ModelFailureError("No language model configured: set OPENAI_API_KEY or HF_API_KEY in .env")
