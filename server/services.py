"""
Wiring of providers, stores and services from a ServerConfig.

Shared by the HTTP app and the CLI so both run the same pipeline.
"""

import logging
from dataclasses import dataclass

from generation.llm import LanguageModel, OllamaChatModel, OpenAIChatModel
from generation.service import ChatService
from ingestion.manifest import FileManifestStore
from ingestion.service import IngestionService
from vector_store.embedder import EmbeddingProvider, OllamaEmbedder, OpenAIEmbedder
from vector_store.store import VectorStore

from .config import ServerConfig

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: VectorStore
    ingestion: IngestionService
    chat: ChatService


def build_embedder(config: ServerConfig) -> EmbeddingProvider:
    provider = config.embedding_provider.lower()
    if provider == "ollama":
        return OllamaEmbedder(
            model=config.ollama_embed_model,
            base_url=config.ollama_base_url,
            timeout=config.embedding_timeout_seconds,
            max_retries=config.embedding_max_retries,
        )
    if provider == "openai":
        return OpenAIEmbedder(
            model=config.openai_embed_model,
            timeout=config.embedding_timeout_seconds,
            max_retries=config.embedding_max_retries,
        )
    raise ValueError(f"Unsupported embedding provider: {config.embedding_provider}")


def build_llm(config: ServerConfig) -> LanguageModel:
    gen = config.generation
    provider = gen.llm_provider.lower()
    if provider == "ollama":
        return OllamaChatModel(
            model=gen.ollama_model,
            base_url=gen.ollama_base_url,
            temperature=gen.temperature,
            output_tokens=gen.output_tokens,
            timeout=gen.timeout_seconds,
            max_retries=gen.max_retries,
        )
    if provider == "openai":
        return OpenAIChatModel(
            model=gen.openai_model,
            temperature=gen.temperature,
            output_tokens=gen.output_tokens,
            timeout=gen.timeout_seconds,
            max_retries=gen.max_retries,
        )
    raise ValueError(f"Unsupported LLM provider: {gen.llm_provider}")


def build_services(config: ServerConfig) -> Services:
    embedder = build_embedder(config)
    store = VectorStore(embedder, config.store)
    manifest = FileManifestStore(config.ingestion.manifest_path)
    logger.info(
        f"Services ready: embeddings={config.embedding_provider}, "
        f"llm={config.generation.llm_provider}, data_dir={config.data_dir}"
    )
    return Services(
        store=store,
        ingestion=IngestionService(store, manifest, config.ingestion),
        chat=ChatService(store, build_llm(config), config.generation),
    )
