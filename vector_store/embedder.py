"""
Embedding providers - text to fixed-dimension vectors

The vector store only depends on the EmbeddingProvider protocol, so tests
and deployments can swap providers freely.

Implementations:
- OllamaEmbedder: local embeddings via the Ollama API (default)
- OpenAIEmbedder: hosted embeddings via the OpenAI API

Both translate provider errors into EmbeddingFailure, mark connection
problems and 5xx/429 responses as retryable and retry those with
exponential backoff. Every request carries a timeout.

Usage:
    from vector_store.embedder import OllamaEmbedder

    embedder = OllamaEmbedder(model="nomic-embed-text")
    vector = embedder.embed("Ein Beispieltext")
    vectors = embedder.embed_batch(["Text 1", "Text 2"])
"""

import logging
import os
from typing import Optional, Protocol, runtime_checkable

import ollama
from openai import OpenAI, APIConnectionError as OpenAIConnectionError, APIStatusError

from core.exceptions import EmbeddingFailure
from core.retry import call_with_retry

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Maps text to a fixed-dimension vector."""

    def embed(self, text: str) -> list[float]:
        ...

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        ...


def _require_text(texts: list[str]) -> None:
    for text in texts:
        if not text or not text.strip():
            raise EmbeddingFailure("Cannot embed empty text")


class OllamaEmbedder:
    """
    Generates text embeddings using a local Ollama model.

    The embedder connects to a running Ollama instance and uses a specified
    embedding model (default: nomic-embed-text).
    """

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.model = model
        self.base_url = base_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = ollama.Client(host=base_url, timeout=timeout)
        self._dimensions: Optional[int] = None

    @property
    def dimensions(self) -> Optional[int]:
        return self._dimensions

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        _require_text(texts)

        embeddings = call_with_retry(
            lambda: self._request(texts),
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            description=f"Ollama embedding ({self.model})",
        )
        if len(embeddings) != len(texts):
            raise EmbeddingFailure(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} texts"
            )
        self._dimensions = len(embeddings[0])
        return [list(vector) for vector in embeddings]

    def _request(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self._client.embed(model=self.model, input=texts)
            return response["embeddings"]
        except ollama.ResponseError as e:
            raise EmbeddingFailure(
                f"Ollama embedding failed for model '{self.model}'",
                original_error=e,
                status_code=getattr(e, "status_code", None),
            ) from e
        except Exception as e:
            name = type(e).__name__
            if "Connection" in name or "Timeout" in name or "refused" in str(e).lower():
                raise EmbeddingFailure(
                    f"Cannot connect to Ollama at {self.base_url}. "
                    f"Is Ollama running? Start it with: ollama serve",
                    original_error=e,
                    retryable=True,
                ) from e
            raise EmbeddingFailure("Embedding generation failed", original_error=e) from e

    def health_check(self) -> dict[str, bool | str]:
        result = {
            "healthy": False,
            "provider_running": False,
            "model_available": False,
            "model": self.model,
            "error": "",
        }

        try:
            models = self._client.list()
            result["provider_running"] = True

            model_names = [m.model for m in models.models]
            result["model_available"] = any(
                m.startswith(self.model) for m in model_names
            )

            if not result["model_available"]:
                result["error"] = (
                    f"Model '{self.model}' not found. "
                    f"Available: {model_names}. "
                    f"Pull it with: ollama pull {self.model}"
                )
            else:
                result["healthy"] = True

        except Exception as e:
            result["error"] = f"Cannot connect to Ollama: {e}"

        return result


class OpenAIEmbedder:
    """
    Generates text embeddings with the OpenAI embeddings endpoint.

    The SDK's own retries are disabled so backoff is handled in one place.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OpenAI API key required. Set OPENAI_API_KEY environment variable.")

        self.model = model
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        _require_text(texts)

        return call_with_retry(
            lambda: self._request(texts),
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            description=f"OpenAI embedding ({self.model})",
        )

    def _request(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self._client.embeddings.create(model=self.model, input=texts)
        except OpenAIConnectionError as e:
            raise EmbeddingFailure(
                "Cannot connect to OpenAI API", original_error=e, retryable=True
            ) from e
        except APIStatusError as e:
            raise EmbeddingFailure(
                f"OpenAI embedding failed for model '{self.model}'",
                original_error=e,
                status_code=e.status_code,
            ) from e

        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]
