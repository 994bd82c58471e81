"""
Unit tests for the knowledge-base retriever tool.
"""

import json
from unittest.mock import patch

import pytest
from langchain_core.vectorstores import InMemoryVectorStore

from app.agent.tools import DOCUMENT_SEPARATOR, build_retriever_tool, retriever_search_kwargs
from app.core.config import RETRIEVER_TOOL_DESCRIPTION, RETRIEVER_TOOL_NAME
from app.services.sources import parse_json_fragments
from fakes import KB_RECORDS


def test_search_policy() -> None:
    """Top 6 of 20 candidates, MMR balance 0.5."""
    assert retriever_search_kwargs() == {"k": 6, "fetch_k": 20, "lambda_mult": 0.5}


def test_tool_is_named_and_described(vector_store: InMemoryVectorStore) -> None:
    tool = build_retriever_tool(vector_store)
    assert tool.name == RETRIEVER_TOOL_NAME == "search_latest_knowledge"
    assert tool.description == RETRIEVER_TOOL_DESCRIPTION


def test_tool_uses_mmr_retriever(vector_store: InMemoryVectorStore) -> None:
    """The store is searched with max marginal relevance and the fixed kwargs."""
    with patch.object(
        InMemoryVectorStore, "max_marginal_relevance_search", return_value=[]
    ) as mock_mmr:
        build_retriever_tool(vector_store).invoke({"query": "enrollment"})
    mock_mmr.assert_called_once()
    args, kwargs = mock_mmr.call_args
    assert args[0] == "enrollment"
    assert kwargs["k"] == 6
    assert kwargs["fetch_k"] == 20
    assert kwargs["lambda_mult"] == 0.5


@pytest.mark.asyncio
async def test_observation_is_json_documents(vector_store: InMemoryVectorStore) -> None:
    """Documents come back joined by blank lines; each one is a JSON record with its url."""
    observation = await build_retriever_tool(vector_store).ainvoke({"query": "Medicare"})
    assert DOCUMENT_SEPARATOR in observation
    urls = {item["url"] for item in parse_json_fragments(observation)}
    assert urls == {r["url"] for r in KB_RECORDS}
    assert json.loads(observation.split(DOCUMENT_SEPARATOR)[0])["content"]


def test_search_errors_propagate(vector_store: InMemoryVectorStore) -> None:
    with patch.object(
        InMemoryVectorStore, "max_marginal_relevance_search", side_effect=RuntimeError("store down")
    ):
        with pytest.raises(RuntimeError, match="store down"):
            build_retriever_tool(vector_store).invoke({"query": "x"})
