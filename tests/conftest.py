import pytest
from langchain_core.vectorstores import InMemoryVectorStore

from fakes import build_vector_store


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    """Two-record knowledge base over deterministic fake embeddings."""
    return build_vector_store()
