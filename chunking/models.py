"""
Data Models for the Chunking Pipeline

Defines:
1. ChunkingConfig - Chunk size, separator list, overlap and length unit
2. Chunk - A single text fragment with the metadata of its source document

Design Principles:
- Pydantic v2 for validation and serialization
- Chunks are immutable once created (frozen models)
- Metadata is copied per chunk, never shared with the caller's dict

Usage:
    config = ChunkingConfig(chunk_size=700)
    chunks = TextChunker(config).split_document(text, {"source": "a.pdf"})
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SEPARATORS = ["\n\n", "\n", ";", "."]


class ChunkingConfig(BaseModel):
    """
    Configuration for the recursive text splitter.

    Defaults match the upload pipeline: 700 characters per chunk,
    paragraph / line / clause / sentence separators, no overlap.
    """
    chunk_size: int = Field(
        700,
        description="Maximum chunk length (in length_unit)",
        ge=1,
    )
    separators: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SEPARATORS),
        description="Ordered separators, tried from coarse to fine",
    )
    chunk_overlap: int = Field(
        0,
        description="Trailing characters of the previous chunk repeated at the start of the next",
        ge=0,
    )
    strip_whitespace: bool = Field(
        True,
        description="Strip leading/trailing whitespace from every chunk",
    )
    length_unit: Literal["chars", "tokens"] = Field(
        "chars",
        description="How chunk length is measured",
    )

    @field_validator("separators")
    @classmethod
    def _no_duplicate_separators(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("separators must not contain duplicates")
        return value

    def model_post_init(self, __context: Any) -> None:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )


class Chunk(BaseModel):
    """
    A bounded-length text fragment tagged with its source metadata.
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(
        ...,
        description="The chunk text content",
        min_length=1,
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Copy of the source document metadata (source, user, ...)",
    )

    @property
    def source(self) -> str:
        return str(self.metadata.get("source", ""))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
