from dataclasses import dataclass, field
from pathlib import Path
import os

from generation.config import GenerationConfig
from ingestion.config import IngestionConfig
from vector_store.models import StoreConfig


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    data_dir: str = "data"
    embedding_provider: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_embed_model: str = "nomic-embed-text"
    openai_embed_model: str = "text-embedding-3-small"
    embedding_timeout_seconds: float = 60.0
    embedding_max_retries: int = 3
    store: StoreConfig = field(default_factory=StoreConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        data_dir = os.environ.get("DATA_DIR", cls.data_dir)

        store = StoreConfig.from_env()
        if "CHROMA_PERSIST_DIR" not in os.environ:
            store.persist_directory = str(Path(data_dir) / "chroma")

        ingestion = IngestionConfig.from_env()
        if "MANIFEST_PATH" not in os.environ:
            ingestion.manifest_path = str(Path(data_dir) / "manifest.json")

        return cls(
            host=os.environ.get("SERVER_HOST", cls.host),
            port=int(os.environ.get("SERVER_PORT", cls.port)),
            data_dir=data_dir,
            embedding_provider=os.environ.get("EMBEDDING_PROVIDER", cls.embedding_provider),
            ollama_base_url=os.environ.get("OLLAMA_BASE_URL", cls.ollama_base_url),
            ollama_embed_model=os.environ.get("OLLAMA_EMBED_MODEL", cls.ollama_embed_model),
            openai_embed_model=os.environ.get("OPENAI_EMBED_MODEL", cls.openai_embed_model),
            embedding_timeout_seconds=float(
                os.environ.get("EMBEDDING_TIMEOUT_SECONDS", cls.embedding_timeout_seconds)
            ),
            embedding_max_retries=int(os.environ.get("EMBEDDING_MAX_RETRIES", cls.embedding_max_retries)),
            store=store,
            ingestion=ingestion,
            generation=GenerationConfig.from_env(),
        )
