"""
Knowledge base: embeddings (HF Inference API) and the vector store the retriever tool searches.

Responsibility: Embed texts via all-MiniLM-L6-v2 and load the InMemoryVectorStore
dump written by scripts/build_knowledge_base.py.
"""

import logging
from pathlib import Path

import httpx
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore, VectorStore

from app.core.config import (
    EMBED_API_TIMEOUT,
    EMBED_BATCH_SIZE,
    HF_API_KEY,
    HF_EMBED_MODEL,
    KNOWLEDGE_BASE_PATH,
)

logger = logging.getLogger(__name__)

HF_API_URL_ROUTER = (
    "https://router.huggingface.co/hf-inference/models/"
    f"{HF_EMBED_MODEL}/pipeline/feature-extraction"
)


class HuggingFaceInferenceEmbeddings(Embeddings):
    """
    Batch embed texts using the Hugging Face Inference API (all-MiniLM-L6-v2).

    Vectors are L2-normalized so cosine similarity in the store is a dot product.
    """

    def __init__(
        self,
        api_key: str = HF_API_KEY,
        api_url: str = HF_API_URL_ROUTER,
        batch_size: int = EMBED_BATCH_SIZE,
        timeout: float = EMBED_API_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.batch_size = batch_size
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ValueError(
                "HF_API_KEY must be set in .env. Get a token from https://huggingface.co/settings/tokens"
            )
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _parse_batch(response: httpx.Response) -> list[list[float]]:
        if response.status_code == 401:
            raise ValueError(
                "Invalid HF API key. Check HF_API_KEY at https://huggingface.co/settings/tokens"
            )
        if response.status_code == 503:
            raise RuntimeError(f"HF model is loading. Retry later. {response.text[:200]}")
        if response.status_code != 200:
            raise RuntimeError(f"HF API error {response.status_code}: {response.text[:200]}")

        result = response.json()
        if isinstance(result, list) and result and isinstance(result[0], list):
            batch_emb = result
        else:
            batch_emb = [
                item if isinstance(item, list) else [item]
                for item in (result if isinstance(result, list) else [result])
            ]

        vectors = []
        for vec in batch_emb:
            norm = sum(x * x for x in vec) ** 0.5
            if norm == 0:
                norm = 1.0
            vectors.append([x / norm for x in vec])
        return vectors

    def _payload(self, batch: list[str]) -> dict:
        return {"inputs": batch, "options": {"wait_for_model": True}}

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        headers = self._headers()
        vectors: list[list[float]] = []
        with httpx.Client(timeout=self.timeout) as client:
            for i in range(0, len(texts), self.batch_size):
                batch = texts[i : i + self.batch_size]
                response = client.post(self.api_url, json=self._payload(batch), headers=headers)
                vectors.extend(self._parse_batch(response))
        logger.info("[vector_store:embed_documents] OUT vectors=%d", len(vectors))
        return vectors

    def embed_query(self, text: str) -> list[float]:
        return self.embed_documents([text])[0]

    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        headers = self._headers()
        vectors: list[list[float]] = []
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for i in range(0, len(texts), self.batch_size):
                batch = texts[i : i + self.batch_size]
                response = await client.post(self.api_url, json=self._payload(batch), headers=headers)
                vectors.extend(self._parse_batch(response))
        return vectors

    async def aembed_query(self, text: str) -> list[float]:
        return (await self.aembed_documents([text]))[0]


def load_vector_store(
    path: str = KNOWLEDGE_BASE_PATH,
    embedding: Embeddings | None = None,
) -> VectorStore:
    """
    Load the knowledge base dump at `path`. Returns an empty store if the file is missing,
    so the agent can still answer from its own knowledge.
    """
    embedding = embedding or HuggingFaceInferenceEmbeddings()
    if not Path(path).is_file():
        logger.warning("[vector_store] knowledge base %s not found; starting with an empty store", path)
        return InMemoryVectorStore(embedding)
    store = InMemoryVectorStore.load(path, embedding)
    logger.info("[vector_store] loaded knowledge base from %s (documents=%d)", path, len(store.store))
    return store
