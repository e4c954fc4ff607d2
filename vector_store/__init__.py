"""
Vector Store Module - ChromaDB persistence with exact cosine retrieval

Stores chunks and chat turns as embeddings, one logical collection each,
and answers user-scoped top-k similarity queries.

Quick Start:
    from vector_store import VectorStore, OllamaEmbedder, DOCUMENTS

    store = VectorStore(OllamaEmbedder())
    store.add(DOCUMENTS, chunks)
    hits = store.similarity_search(DOCUMENTS, "How did profit change?", k=4, where={"user": "u1"})
"""

__version__ = "1.0.0"

from .embedder import EmbeddingProvider, OllamaEmbedder, OpenAIEmbedder
from .models import DOCUMENTS, MESSAGES, RecordInput, SearchResult, StoreConfig
from .store import VectorStore

__all__ = [
    "__version__",
    "VectorStore",
    "EmbeddingProvider",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "StoreConfig",
    "RecordInput",
    "SearchResult",
    "DOCUMENTS",
    "MESSAGES",
]
