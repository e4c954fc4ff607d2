"""
Chunking Module - Recursive separator-based text splitting for RAG

Splits the plain text of uploaded documents into bounded-size chunks,
each tagged with a copy of the document's metadata.

Quick Start:
    from chunking import TextChunker, ChunkingConfig

    chunker = TextChunker(ChunkingConfig(chunk_size=700))
    chunks = chunker.split_document(text, {"source": "report.pdf", "user": "u1"})
"""

__version__ = "1.0.0"

from .chunker import TextChunker
from .models import DEFAULT_SEPARATORS, Chunk, ChunkingConfig
from .token_counter import count_tokens, get_length_function

__all__ = [
    "__version__",
    "TextChunker",
    "Chunk",
    "ChunkingConfig",
    "DEFAULT_SEPARATORS",
    "count_tokens",
    "get_length_function",
]
