from dataclasses import dataclass, field
import os

from chunking.models import ChunkingConfig


@dataclass
class IngestionConfig:
    manifest_path: str = "data/manifest.json"
    replace_existing: bool = False
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)

    @classmethod
    def from_env(cls) -> "IngestionConfig":
        def _int(name: str, default: int) -> int:
            value = os.environ.get(name)
            return int(value) if value else default

        chunking = ChunkingConfig(
            chunk_size=_int("CHUNK_SIZE", 700),
            chunk_overlap=_int("CHUNK_OVERLAP", 0),
            length_unit=os.environ.get("CHUNK_LENGTH_UNIT", "chars"),
        )
        return cls(
            manifest_path=os.environ.get("MANIFEST_PATH", cls.manifest_path),
            replace_existing=os.environ.get("INGEST_REPLACE_EXISTING") == "1",
            chunking=chunking,
        )
