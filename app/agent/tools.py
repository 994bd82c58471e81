"""
Agent tools: the knowledge-base retriever exposed as a callable tool.

Tool: search_latest_knowledge (MMR search over the vector store).
"""

import logging

from langchain_core.tools import BaseTool, create_retriever_tool
from langchain_core.vectorstores import VectorStore

from app.core.config import (
    RETRIEVER_FETCH_K,
    RETRIEVER_K,
    RETRIEVER_LAMBDA_MULT,
    RETRIEVER_TOOL_DESCRIPTION,
    RETRIEVER_TOOL_NAME,
)

logger = logging.getLogger(__name__)

# Documents are joined with a blank line; the sources parser relies on this layout.
DOCUMENT_SEPARATOR = "\n\n"


def retriever_search_kwargs() -> dict[str, float]:
    """Fixed diversity-aware policy: top k of a fetch_k candidate pool re-ranked by MMR."""
    return {
        "k": RETRIEVER_K,
        "fetch_k": RETRIEVER_FETCH_K,
        "lambda_mult": RETRIEVER_LAMBDA_MULT,
    }


def build_retriever_tool(vector_store: VectorStore) -> BaseTool:
    """
    Wrap the vector store's MMR retriever in a tool the agent can call by name.
    No caching or retry; search errors propagate to the agent loop.
    """
    retriever = vector_store.as_retriever(
        search_type="mmr",
        search_kwargs=retriever_search_kwargs(),
    )
    logger.info(
        "[tools] %s over %s search_kwargs=%s",
        RETRIEVER_TOOL_NAME, type(vector_store).__name__, retriever.search_kwargs,
    )
    return create_retriever_tool(
        retriever,
        name=RETRIEVER_TOOL_NAME,
        description=RETRIEVER_TOOL_DESCRIPTION,
        document_separator=DOCUMENT_SEPARATOR,
    )
