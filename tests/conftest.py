"""
Pytest fixtures for the document chat tests.

Providers are replaced by deterministic stand-ins so no Ollama or OpenAI
instance is needed; ChromaDB runs in-process (EphemeralClient) with a
unique collection prefix per test.
"""

import re
import threading
import uuid

import chromadb
import pytest

from core.exceptions import CompletionFailure
from generation.config import GenerationConfig
from generation.service import ChatService
from ingestion.manifest import FileManifestStore
from ingestion.service import IngestionService
from vector_store.models import StoreConfig
from vector_store.store import VectorStore


class KeywordEmbedder:
    """
    Bag-of-words embedder: every distinct lowercase word gets a dimension.

    Texts sharing more words get a higher cosine similarity, which makes
    ranking in tests predictable.
    """

    def __init__(self, dimensions: int = 256):
        self.dimensions = dimensions
        self.calls: list[list[str]] = []
        self._vocabulary: dict[str, int] = {}
        self._lock = threading.Lock()

    def _index(self, word: str) -> int:
        with self._lock:
            if word not in self._vocabulary:
                self._vocabulary[word] = len(self._vocabulary) % self.dimensions
            return self._vocabulary[word]

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[self._index(word)] += 1.0
        return vector

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.embed(text) for text in texts]


class ScriptedLLM:
    """LanguageModel stand-in that records prompts and returns a fixed reply."""

    def __init__(self, reply: str = "Profit grew 5%.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, human_message: str) -> str:
        self.calls.append((system_prompt, human_message))
        if self.error is not None:
            raise self.error
        return self.reply

    @property
    def last_system_prompt(self) -> str:
        return self.calls[-1][0]


def failing_llm() -> ScriptedLLM:
    return ScriptedLLM(error=CompletionFailure("model crashed", retryable=False))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def chroma_client():
    return chromadb.EphemeralClient()


@pytest.fixture
def store_config():
    return StoreConfig(collection_prefix=f"test_{uuid.uuid4().hex[:8]}_")


@pytest.fixture
def store(embedder, store_config, chroma_client):
    """VectorStore on in-memory ChromaDB with the keyword embedder."""
    return VectorStore(embedder, store_config, chroma_client=chroma_client)


@pytest.fixture
def manifest():
    return FileManifestStore()


@pytest.fixture
def ingestion(store, manifest):
    return IngestionService(store, manifest)


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def chat(store, llm):
    service = ChatService(store, llm, GenerationConfig(write_back_workers=2))
    yield service
    service.close()
