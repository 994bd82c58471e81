"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# OpenAI (agent LLM). When set, the agent uses OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))

# Hugging Face (embeddings / inference)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()

# HF LLM for agent (fallback when OPENAI_API_KEY is not set). The router speaks the OpenAI chat API.
HF_CHAT_BASE_URL: str = "https://router.huggingface.co/v1"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# Embeddings (e.g. sentence-transformers/all-MiniLM-L6-v2 = 384 dims)
HF_EMBED_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
EMBED_BATCH_SIZE: int = 32

# API timeouts (seconds)
EMBED_API_TIMEOUT: float = 30.0
LLM_API_TIMEOUT: float = 60.0

# Knowledge base: InMemoryVectorStore dump (see scripts/build_knowledge_base.py)
KNOWLEDGE_BASE_PATH: str = (
    os.getenv("KNOWLEDGE_BASE_PATH", "data/knowledge_base.json").strip()
    or "data/knowledge_base.json"
)

# Retriever tool: MMR over a candidate pool (lambda 0 = max diversity, 1 = max relevance)
RETRIEVER_TOOL_NAME: str = "search_latest_knowledge"
RETRIEVER_TOOL_DESCRIPTION: str = "Searches and returns up-to-date general information."
RETRIEVER_K: int = 6
RETRIEVER_FETCH_K: int = 20
RETRIEVER_LAMBDA_MULT: float = 0.5

# Agent graph. One iteration = one planning call (+ the tool calls it requests).
AGENT_MAX_ITERATIONS: int = int(os.getenv("AGENT_MAX_ITERATIONS", "6"))
AGENT_TIMEOUT_SECONDS: float = float(os.getenv("AGENT_TIMEOUT_SECONDS", "120"))
AGENT_SYSTEM_PROMPT: str = os.getenv("AGENT_SYSTEM_PROMPT", "").strip() or (
    "You are a trusted advisor who helps people with everyday questions. "
    "Answer in a warm, plain-spoken and brief way: lead with the main point, "
    "keep it to a few sentences and skip the fine print unless asked.\n\n"
    "Use the search_latest_knowledge tool whenever the question depends on current "
    "or specific facts. Include links only when they genuinely help.\n\n"
    "If you do not know the answer, say so kindly and suggest one simple next step."
)

# Rate limiting (per client IP). Storage: async+memory:// or async+redis://host:6379
RATE_LIMIT: str = os.getenv("RATE_LIMIT", "1 per 10 seconds").strip() or "1 per 10 seconds"
RATE_LIMIT_STORAGE_URI: str = (
    os.getenv("RATE_LIMIT_STORAGE_URI", "async+memory://").strip() or "async+memory://"
)
RATE_LIMIT_NAMESPACE: str = "chat"
RATE_LIMIT_MESSAGE: str = "Oops! It seems you've reached the rate limit. Please try again later."
DEFAULT_CALLER_ID: str = "127.0.0.1"
