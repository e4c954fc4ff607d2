"""
Text Chunker - Recursive separator-based splitting for the RAG pipeline

Takes the plain text of an uploaded document and produces bounded-size
chunks that are embedded and stored one vector per chunk.

Algorithm:
1. Split the text on the first separator. The separator stays attached to
   the end of the fragment before it, so no text is lost.
2. Fragments longer than chunk_size are split again with the remaining
   separators. A fragment no separator can reduce is kept as-is (oversized).
3. Consecutive small fragments are merged greedily, in order, into chunks
   of at most chunk_size.
4. Chunks are stripped of surrounding whitespace (optional) and empty
   chunks are dropped.
5. Overlap: the tail of each chunk is repeated at the start of the next,
   shortened if needed so the chunk stays within chunk_size.

Usage:
    from chunking import TextChunker, ChunkingConfig

    chunker = TextChunker(ChunkingConfig(chunk_size=20, separators=[". "]))
    chunker.split_text("Revenue grew 10%. Profit grew 5%.")
    # ["Revenue grew 10%.", "Profit grew 5%."]
"""

from typing import Any, Optional

from .models import Chunk, ChunkingConfig
from .token_counter import get_length_function


class TextChunker:
    """
    Splits text into chunks using an ordered list of separators.

    The chunker holds no state between calls; the same input and config
    always produce the same chunks.
    """

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        self._length = get_length_function(self.config.length_unit)

    def split_text(self, text: str) -> list[str]:
        """
        Split a text into chunk strings.

        Args:
            text: The document text.

        Returns:
            Chunks in source order. Empty or whitespace-only input returns [].
        """
        if not text:
            return []

        pieces = self._split(text, list(self.config.separators))

        if self.config.strip_whitespace:
            pieces = [piece.strip() for piece in pieces]
        pieces = [piece for piece in pieces if piece]

        return self._apply_overlap(pieces)

    def split_document(self, text: str, metadata: dict[str, Any]) -> list[Chunk]:
        """
        Split a document and tag every chunk with a copy of its metadata.

        Args:
            text: The document text.
            metadata: Source metadata (e.g. {"source": ..., "user": ...}).

        Returns:
            List of Chunk objects.
        """
        return [
            Chunk(text=chunk_text, metadata=dict(metadata))
            for chunk_text in self.split_text(text)
        ]

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _split(self, text: str, separators: list[str]) -> list[str]:
        """Split text recursively, coarse separators first."""
        if not separators:
            return [text]

        separator, remaining = separators[0], separators[1:]
        chunks: list[str] = []
        small: list[str] = []

        for fragment in self._split_keep_separator(text, separator):
            if self._length(fragment) <= self.config.chunk_size:
                small.append(fragment)
                continue

            if small:
                chunks.extend(self._merge(small))
                small = []

            if remaining:
                chunks.extend(self._split(fragment, remaining))
            else:
                # No separator left that could reduce it
                chunks.append(fragment)

        if small:
            chunks.extend(self._merge(small))

        return chunks

    @staticmethod
    def _split_keep_separator(text: str, separator: str) -> list[str]:
        """Split on separator, keeping it at the end of each fragment."""
        if separator == "":
            return list(text)

        parts = text.split(separator)
        fragments = [part + separator for part in parts[:-1]]
        fragments.append(parts[-1])
        return [fragment for fragment in fragments if fragment]

    def _merge(self, fragments: list[str]) -> list[str]:
        """Greedily merge fragments into chunks of at most chunk_size."""
        merged: list[str] = []
        current = ""

        for fragment in fragments:
            if current and self._length(current + fragment) > self.config.chunk_size:
                merged.append(current)
                current = ""
            current += fragment

        if current:
            merged.append(current)

        return merged

    def _apply_overlap(self, chunks: list[str]) -> list[str]:
        """Prefix each chunk with the tail of the chunk before it."""
        overlap = self.config.chunk_overlap
        if overlap <= 0 or len(chunks) < 2:
            return chunks

        result = [chunks[0]]
        for previous, chunk in zip(chunks, chunks[1:]):
            tail = previous[-overlap:]
            while tail and self._length(tail + chunk) > self.config.chunk_size:
                tail = tail[1:]
            result.append(tail + chunk)

        return result
