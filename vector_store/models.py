"""
Data Models for the Vector Store

Defines:
1. StoreConfig - Where records are persisted and which collections exist
2. RecordInput - A text plus metadata to be embedded and stored
3. SearchResult - A single similarity hit with its cosine score

Design Principles:
- Pydantic v2 for validation (consistent with chunking)
- Records are append-only; there is no update model
- The "user" metadata key is mandatory on every stored record
"""

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

DOCUMENTS = "documents"
MESSAGES = "messages"

USER_KEY = "user"
SOURCE_KEY = "source"


class StoreConfig(BaseModel):
    """Configuration for the vector store."""
    persist_directory: str = Field(
        "./data/chroma",
        description="Directory for ChromaDB persistent storage",
    )
    in_memory: bool = Field(
        False,
        description="Use an ephemeral in-process ChromaDB instead of on-disk storage",
    )
    collection_prefix: str = Field(
        "",
        description="Prefix for physical ChromaDB collection names",
    )
    collections: list[str] = Field(
        default_factory=lambda: [DOCUMENTS, MESSAGES],
        description="Logical collections served by the store",
    )
    batch_size: int = Field(
        500,
        description="Maximum records per ChromaDB write",
        ge=1,
    )

    def physical_name(self, collection: str) -> str:
        return f"{self.collection_prefix}{collection}"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            persist_directory=os.environ.get("CHROMA_PERSIST_DIR", "./data/chroma"),
            in_memory=os.environ.get("CHROMA_IN_MEMORY") == "1",
            collection_prefix=os.environ.get("CHROMA_COLLECTION_PREFIX", ""),
        )


class RecordInput(BaseModel):
    """A record to embed and append to a collection."""
    text: str = Field(
        ...,
        description="Text to embed and store",
        min_length=1,
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Flat metadata; must contain a non-empty 'user'",
    )


class SearchResult(BaseModel):
    """A single search result from the vector store."""
    record_id: str = Field(
        ...,
        description="ID of the matching record",
    )
    text: str = Field(
        ...,
        description="Stored text of the matching record",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata as stored",
    )
    score: float = Field(
        ...,
        description="Cosine similarity (1 = identical direction)",
    )
    sequence: Optional[int] = Field(
        None,
        description="Insertion sequence number within the store",
    )

    @property
    def source(self) -> str:
        return str(self.metadata.get(SOURCE_KEY, ""))
