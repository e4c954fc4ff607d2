"""
Length functions for the Chunking Pipeline

Chunk sizes are measured in characters by default. When the splitter is
configured with length_unit="tokens", tiktoken's cl100k_base encoding is
used as a conservative approximation of the embedding model's tokenizer.

Usage:
    from chunking.token_counter import count_tokens, get_length_function

    n = count_tokens("Revenue grew 10%.")
    length = get_length_function("tokens")
"""

from typing import Callable

import tiktoken

# Singleton encoder - initialized once, reused across calls.
_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Get or initialize the tiktoken encoder (singleton)."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


def count_tokens(text: str) -> int:
    """
    Count the number of tokens in a text string.

    Args:
        text: The text to tokenize.

    Returns:
        Number of tokens.
    """
    if not text:
        return 0
    return len(_get_encoder().encode(text))


def get_length_function(unit: str) -> Callable[[str], int]:
    """
    Return the length function for a ChunkingConfig.length_unit value.

    Raises:
        ValueError: For an unknown unit.
    """
    if unit == "chars":
        return len
    if unit == "tokens":
        return count_tokens
    raise ValueError(f"Unknown length unit: {unit}")
