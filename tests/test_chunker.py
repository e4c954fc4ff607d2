"""Tests for chunking.chunker: TextChunker."""

import re

import pytest

from chunking import token_counter
from chunking.chunker import TextChunker
from chunking.models import ChunkingConfig


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SENTENCES = [
    "The committee met on Monday.",
    "Revenue grew by ten percent in the third quarter.",
    "Costs were flat; margins improved slightly.",
    "The board approved the budget for next year.",
    "Hiring will resume in spring.",
]


def _document(paragraphs: int = 6) -> str:
    blocks = []
    for p in range(paragraphs):
        lines = [" ".join(SENTENCES[(p + i) % len(SENTENCES)] for i in range(2)) for _ in range(3)]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


@pytest.fixture
def chunker():
    return TextChunker(ChunkingConfig(chunk_size=120))


# ---------------------------------------------------------------------------
# Basic splitting
# ---------------------------------------------------------------------------

class TestSplitText:
    def test_two_sentences(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=20, separators=[". "]))
        assert chunker.split_text("Revenue grew 10%. Profit grew 5%.") == [
            "Revenue grew 10%.",
            "Profit grew 5%.",
        ]

    def test_two_sentences_default_separators(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=20))
        assert chunker.split_text("Revenue grew 10%. Profit grew 5%.") == [
            "Revenue grew 10%.",
            "Profit grew 5%.",
        ]

    def test_short_text_is_single_chunk(self, chunker):
        assert chunker.split_text("Just one line.") == ["Just one line."]

    def test_empty_text(self, chunker):
        assert chunker.split_text("") == []

    def test_whitespace_only_text(self, chunker):
        assert chunker.split_text("  \n\n  \n") == []

    def test_chunks_respect_size(self, chunker):
        chunks = chunker.split_text(_document())
        assert len(chunks) > 1
        assert all(len(chunk) <= 120 for chunk in chunks)

    def test_no_empty_chunks(self, chunker):
        chunks = chunker.split_text("a.\n\n\n\n.b;;;\n\nc")
        assert all(chunk.strip() for chunk in chunks)

    def test_order_and_content_preserved(self, chunker):
        text = _document()
        chunks = chunker.split_text(text)
        assert re.sub(r"\s+", "", "".join(chunks)) == re.sub(r"\s+", "", text)

    def test_deterministic(self, chunker):
        text = _document()
        assert chunker.split_text(text) == chunker.split_text(text)

    def test_falls_through_to_finer_separator(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=4, separators=["\n\n", "\n"]))
        assert chunker.split_text("abc\ndef") == ["abc", "def"]

    def test_oversized_fragment_kept_whole(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=10, separators=[" "]))
        word = "a" * 50
        assert chunker.split_text(f"hi {word} there") == ["hi", word, "there"]

    def test_no_separators_returns_text(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=5, separators=[]))
        assert chunker.split_text("abcdefgh") == ["abcdefgh"]

    def test_empty_separator_splits_characters(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=3, separators=[""]))
        assert chunker.split_text("abcdefg") == ["abc", "def", "g"]


class TestWithoutStripping:
    @pytest.mark.parametrize("text", [
        "Revenue grew 10%. Profit grew 5%.",
        "  leading and trailing  \n\n",
        "one;two;three\n\nfour.five.six\nseven",
        "x" * 300,
    ])
    def test_concatenation_reproduces_text(self, text):
        chunker = TextChunker(ChunkingConfig(chunk_size=8, strip_whitespace=False))
        assert "".join(chunker.split_text(text)) == text

    def test_document_reproduced(self):
        text = _document()
        chunker = TextChunker(ChunkingConfig(chunk_size=100, strip_whitespace=False))
        chunks = chunker.split_text(text)
        assert "".join(chunks) == text
        assert all(len(chunk) <= 100 for chunk in chunks)

    def test_separator_stays_with_preceding_fragment(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=5, separators=[";"], strip_whitespace=False))
        assert chunker.split_text("ab;cd;ef") == ["ab;", "cd;ef"]


# ---------------------------------------------------------------------------
# Overlap
# ---------------------------------------------------------------------------

class TestOverlap:
    TEXT = "aaaa. bbbb. cccc. dddd."

    def test_tail_of_previous_chunk_prepended(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=16, separators=[". "], chunk_overlap=3))
        assert chunker.split_text(self.TEXT) == ["aaaa. bbbb.", "bb.cccc. dddd."]

    def test_overlap_shortened_to_fit(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=12, separators=[". "], chunk_overlap=3))
        chunks = chunker.split_text(self.TEXT)
        assert chunks == ["aaaa. bbbb.", ".cccc. dddd."]
        assert all(len(chunk) <= 12 for chunk in chunks)

    def test_single_chunk_unchanged(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=100, chunk_overlap=10))
        assert chunker.split_text("Short.") == ["Short."]


# ---------------------------------------------------------------------------
# Documents and metadata
# ---------------------------------------------------------------------------

class TestSplitDocument:
    def test_metadata_on_every_chunk(self):
        chunker = TextChunker(ChunkingConfig(chunk_size=20))
        chunks = chunker.split_document(
            "Revenue grew 10%. Profit grew 5%.",
            {"source": "report.pdf", "user": "u1"},
        )
        assert [c.text for c in chunks] == ["Revenue grew 10%.", "Profit grew 5%."]
        assert all(c.metadata == {"source": "report.pdf", "user": "u1"} for c in chunks)
        assert chunks[0].source == "report.pdf"

    def test_metadata_is_copied(self, chunker):
        metadata = {"source": "a.txt", "user": "u1"}
        chunks = chunker.split_document(_document(), metadata)
        metadata["source"] = "changed.txt"

        assert all(c.metadata["source"] == "a.txt" for c in chunks)
        assert chunks[0].metadata is not chunks[1].metadata

    def test_empty_document(self, chunker):
        assert chunker.split_document("", {"source": "a.txt"}) == []

    def test_chunks_are_frozen(self, chunker):
        chunk = chunker.split_document("Some text.", {"source": "a.txt"})[0]
        with pytest.raises(Exception):
            chunk.text = "other"


# ---------------------------------------------------------------------------
# Length units
# ---------------------------------------------------------------------------

class TestLengthUnit:
    def test_chars_is_len(self):
        assert token_counter.get_length_function("chars") is len

    def test_unknown_unit_raises(self):
        with pytest.raises(ValueError, match="Unknown length unit"):
            token_counter.get_length_function("words")

    def test_tokens_unit_uses_token_counter(self, monkeypatch):
        monkeypatch.setattr(token_counter, "count_tokens", lambda text: len(text.split()))
        chunker = TextChunker(ChunkingConfig(chunk_size=3, separators=[" "], length_unit="tokens"))

        chunks = chunker.split_text("one two three four five six seven")

        assert chunks == ["one two three", "four five six", "seven"]
